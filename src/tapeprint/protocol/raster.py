"""Convert a framebuffer into the printer's raster byte stream."""

import logging
import struct

from tapeprint.framebuffer import Framebuffer
from tapeprint.protocol.frames import DATA_END, encode_frame, raster_frame, row_bytes

logger = logging.getLogger(__name__)

# Command bytes. Payloads for the setup commands are the values the
# vendor driver sends for a plain, half-cut label.
CMD_RESET = 0x40  # '@'
CMD_MODE = 0x7B  # '{'
CMD_CUT_MODE = 0x43  # 'C'
CMD_DENSITY = 0x44  # 'D'
CMD_PRINT_START = 0x47  # 'G'
CMD_LENGTH = 0x4C  # 'L'
CMD_FEED = 0x54  # 'T'
CMD_HEAD = 0x48  # 'H'
CMD_RASTER_MODE = 0x73  # 's'

MODE_PAYLOAD = b"\x00\x00ST"
CUT_MODE_PAYLOAD = b"\x02\x02\x01\x01"
DENSITY_PAYLOAD = b"\x05"
FEED_PAYLOAD = b"\x2a\x00"
HEAD_PAYLOAD = b"\x05"
RASTER_MODE_PAYLOAD = b"\x00"

# Extra dots fed past the last swath
LENGTH_MARGIN = 4

COMMAND_NAMES = {
    CMD_RESET: "reset",
    CMD_MODE: "mode",
    CMD_CUT_MODE: "cut-mode",
    CMD_DENSITY: "density",
    CMD_PRINT_START: "print-start",
    CMD_LENGTH: "length",
    CMD_FEED: "feed",
    CMD_HEAD: "head",
    CMD_RASTER_MODE: "raster-mode",
}


def length_command(width: int) -> bytes:
    """Label length command: swath count plus margin, as u32 little-endian."""
    return encode_frame(CMD_LENGTH, struct.pack("<I", width + LENGTH_MARGIN))


def encode_swath(fb: Framebuffer, column: int) -> bytes:
    """Pack one framebuffer column into swath bytes.

    Each byte holds 8 vertical dots, topmost in the most significant bit.
    Dots below the framebuffer height read as unset.
    """
    data = bytearray(row_bytes(fb.height))
    for xb in range(len(data)):
        chunk = 0
        for dx in range(8):
            if fb.get_pixel(column, xb * 8 + (7 - dx)):
                chunk |= 1 << dx
        data[xb] = chunk
    return bytes(data)


def encode_raster(fb: Framebuffer) -> bytes:
    """Encode every column as a raster frame, last column first."""
    if fb.width == 0 or fb.height == 0:
        return b""
    frames = [raster_frame(fb.height, encode_swath(fb, fb.width - 1 - y)) for y in range(fb.width)]
    return b"".join(frames)


def encode_label(fb: Framebuffer) -> bytes:
    """Build the complete print stream for a framebuffer.

    The stream is deterministic and needs no device access, so it can be
    analyzed offline as well as sent over the data channel.
    """
    parts = [
        encode_frame(CMD_RESET),
        encode_frame(CMD_MODE, MODE_PAYLOAD),
        encode_frame(CMD_CUT_MODE, CUT_MODE_PAYLOAD),
        encode_frame(CMD_DENSITY, DENSITY_PAYLOAD),
        encode_frame(CMD_PRINT_START),
        length_command(fb.width),
        encode_frame(CMD_FEED, FEED_PAYLOAD),
        encode_frame(CMD_HEAD, HEAD_PAYLOAD),
        encode_frame(CMD_RASTER_MODE, RASTER_MODE_PAYLOAD),
        encode_raster(fb),
        bytes([DATA_END]),
        encode_frame(CMD_RESET),
    ]
    data = b"".join(parts)
    logger.debug(f"Encoded {fb.width}x{fb.height} label into {len(data)} bytes")
    return data
