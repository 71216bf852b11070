"""Printer status variants reported over the control channel."""

from dataclasses import dataclass

from tapeprint.models.tape import Tape


@dataclass(frozen=True)
class SomeTape:
    """Idle with a tape loaded."""

    tape: Tape


@dataclass(frozen=True)
class Printing:
    """A print operation is in progress."""


@dataclass(frozen=True)
class UnknownStatus:
    """Any other reply, kept verbatim for logging."""

    code: int
    raw: bytes = b""

    def __str__(self) -> str:
        return f"UnknownStatus(code=0x{self.code:02x}, raw={self.raw.hex()})"


PrinterStatus = SomeTape | Printing | UnknownStatus
