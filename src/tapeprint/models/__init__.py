"""Data models for tapeprint."""

from tapeprint.models.printer import DATA_PORT, PrinterConfig
from tapeprint.models.status import PrinterStatus, Printing, SomeTape, UnknownStatus
from tapeprint.models.tape import DPI, Tape, TapeWidth, UnsupportedTapeWidth, mm_to_px

__all__ = [
    "DATA_PORT",
    "DPI",
    "PrinterConfig",
    "PrinterStatus",
    "Printing",
    "SomeTape",
    "Tape",
    "TapeWidth",
    "UnknownStatus",
    "UnsupportedTapeWidth",
    "mm_to_px",
]
