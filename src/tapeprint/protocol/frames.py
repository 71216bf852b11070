"""Frame codec for control commands and raster data blocks.

Control frame layout::

    ESC '{' <len> <cmd> <payload...> <sum> '}'

where ``len`` counts every byte after itself and ``sum`` is the 8-bit
wraparound sum of ``cmd`` and ``payload``.

Raster data frame layout (no length or checksum)::

    ESC '.' 00 00 00 01 <height:u16le> <ceil(height/8) bytes>
"""

import struct

ESCAPE = 0x1B
OPEN = 0x7B
TERMINATOR = 0x7D
RASTER_MARKER = 0x2E
RASTER_HEADER = bytes([ESCAPE, RASTER_MARKER, 0x00, 0x00, 0x00, 0x01])
DATA_END = 0x0C

MAX_FRAME_LENGTH = 0xFF
MAX_RASTER_HEIGHT = 0xFFFF


class FrameError(Exception):
    """Base class for frame encoding/decoding errors."""

    pass


class FrameTooLarge(FrameError):
    """The frame does not fit the one-byte length prefix."""

    pass


class ChecksumMismatch(FrameError):
    """The checksum byte does not match the frame body."""

    pass


class MalformedFrame(FrameError):
    """Escape, open or terminator bytes are missing or misplaced."""

    pass


def checksum(data: bytes) -> int:
    """8-bit wraparound sum of all bytes."""
    return sum(data) & 0xFF


def encode_frame(command: int, payload: bytes = b"") -> bytes:
    """Encode a control command into a checksummed frame.

    Args:
        command: Command byte.
        payload: Command arguments, possibly empty.

    Returns:
        The complete frame.

    Raises:
        FrameTooLarge: If the frame exceeds the length prefix.
    """
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command byte out of range: {command}")
    body = bytes([command]) + payload
    tail = body + bytes([checksum(body), TERMINATOR])
    if len(tail) > MAX_FRAME_LENGTH:
        raise FrameTooLarge(f"Frame for command 0x{command:02x} is {len(tail)} bytes (max {MAX_FRAME_LENGTH})")
    return bytes([ESCAPE, OPEN, len(tail)]) + tail


def decode_frame(frame: bytes) -> tuple[int, bytes]:
    """Decode one complete control frame.

    Returns:
        Tuple of (command, payload).

    Raises:
        MalformedFrame: If the framing bytes or length are wrong.
        ChecksumMismatch: If the checksum byte does not match.
    """
    if len(frame) < 5 or frame[0] != ESCAPE or frame[1] != OPEN:
        raise MalformedFrame(f"Missing frame header: {frame[:3].hex()}")
    length = frame[2]
    if length < 2 or len(frame) != length + 3:
        raise MalformedFrame(f"Length byte {length} does not match frame size {len(frame)}")
    if frame[-1] != TERMINATOR:
        raise MalformedFrame(f"Missing terminator, got 0x{frame[-1]:02x}")
    body = frame[3:-2]
    if not body:
        raise MalformedFrame("Frame has no command byte")
    expected = checksum(body)
    if frame[-2] != expected:
        raise ChecksumMismatch(f"Checksum 0x{frame[-2]:02x} != 0x{expected:02x} for command 0x{body[0]:02x}")
    return body[0], bytes(body[1:])


def row_bytes(height: int) -> int:
    """Bytes needed to pack one swath of ``height`` dots."""
    return (height + 7) // 8


def raster_frame(height: int, data: bytes) -> bytes:
    """Wrap one swath of packed pixels in a raster data frame.

    Raises:
        FrameTooLarge: If ``height`` does not fit in 16 bits.
        ValueError: If ``data`` is not exactly ``row_bytes(height)`` long.
    """
    if height > MAX_RASTER_HEIGHT:
        raise FrameTooLarge(f"Raster height {height} exceeds {MAX_RASTER_HEIGHT}")
    if len(data) != row_bytes(height):
        raise ValueError(f"Raster data is {len(data)} bytes, expected {row_bytes(height)} for height {height}")
    return RASTER_HEADER + struct.pack("<H", height) + data
