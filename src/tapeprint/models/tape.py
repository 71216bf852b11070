"""Tape catalog and dot-resolution helpers."""

import math
from dataclasses import dataclass
from enum import IntEnum

# Print head resolution of the device, fixed for every tape class
DPI = 360
MM_PER_INCH = 25.4


def mm_to_px(mm: float) -> int:
    """Convert millimeters to device dots at the fixed head resolution."""
    return math.floor(mm * DPI / MM_PER_INCH)


class UnsupportedTapeWidth(ValueError):
    """Raised when a width or tape code is not in the catalog."""

    pass


class TapeWidth(IntEnum):
    """Supported tape classes, by nominal width in millimeters."""

    W4 = 4
    W6 = 6
    W9 = 9
    W12 = 12
    W18 = 18
    W24 = 24
    W36 = 36


# Tape codes as reported in the device status reply
STATUS_CODE_TO_WIDTH = {
    0x01: TapeWidth.W6,
    0x02: TapeWidth.W9,
    0x03: TapeWidth.W12,
    0x04: TapeWidth.W18,
    0x05: TapeWidth.W24,
    0x06: TapeWidth.W36,
    0x0B: TapeWidth.W4,
}


@dataclass(frozen=True)
class Tape:
    """A loaded (or requested) tape, identified by its width class."""

    width: TapeWidth

    @classmethod
    def from_mm(cls, mm: int) -> "Tape":
        """Look up a tape class by millimeter width.

        Raises:
            UnsupportedTapeWidth: If no catalog entry matches.
        """
        try:
            return cls(TapeWidth(mm))
        except ValueError as e:
            supported = ", ".join(str(w.value) for w in TapeWidth)
            raise UnsupportedTapeWidth(f"Unsupported tape width {mm}mm (supported: {supported})") from e

    @classmethod
    def from_status_code(cls, code: int) -> "Tape":
        """Look up a tape class from the code in a status reply."""
        width = STATUS_CODE_TO_WIDTH.get(code)
        if width is None:
            raise UnsupportedTapeWidth(f"Unknown tape code 0x{code:02x}")
        return cls(width)

    @property
    def mm(self) -> int:
        return self.width.value

    @property
    def width_px(self) -> int:
        """Printable width in dots."""
        return mm_to_px(self.width.value)

    def __str__(self) -> str:
        return f"{self.mm}mm tape ({self.width_px}px)"
