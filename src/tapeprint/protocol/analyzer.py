"""Offline analysis of an encoded print stream."""

import logging
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

from tapeprint.framebuffer import Framebuffer
from tapeprint.protocol.frames import (
    DATA_END,
    ESCAPE,
    OPEN,
    RASTER_HEADER,
    RASTER_MARKER,
    MalformedFrame,
    decode_frame,
    row_bytes,
)
from tapeprint.protocol.raster import COMMAND_NAMES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlFrame:
    offset: int
    command: int
    payload: bytes

    @property
    def name(self) -> str:
        return COMMAND_NAMES.get(self.command, f"0x{self.command:02x}")


@dataclass(frozen=True)
class RasterFrame:
    offset: int
    height: int
    data: bytes


@dataclass(frozen=True)
class DataEnd:
    offset: int


Frame = ControlFrame | RasterFrame | DataEnd


@dataclass
class StreamReport:
    """Summary of a print stream."""

    commands: list[ControlFrame] = field(default_factory=list)
    swaths: int = 0
    height: int | None = None
    data_end: bool = False
    size: int = 0

    @property
    def command_names(self) -> list[str]:
        return [c.name for c in self.commands]

    def summary(self) -> str:
        return (
            f"{self.size} bytes: {len(self.commands)} commands ({', '.join(self.command_names)}), "
            f"{self.swaths} swaths of height {self.height}, data end {'present' if self.data_end else 'missing'}"
        )


def iter_frames(data: bytes) -> Iterator[Frame]:
    """Split a print stream into frames.

    Raises:
        MalformedFrame: On an unrecognised byte or a truncated frame.
        ChecksumMismatch: On a control frame with a bad checksum.
    """
    pos = 0
    while pos < len(data):
        byte = data[pos]
        if byte == DATA_END:
            yield DataEnd(pos)
            pos += 1
            continue
        if byte != ESCAPE or pos + 1 >= len(data):
            raise MalformedFrame(f"Unexpected byte 0x{byte:02x} at offset {pos}")

        kind = data[pos + 1]
        if kind == OPEN:
            if pos + 2 >= len(data):
                raise MalformedFrame(f"Truncated control frame at offset {pos}")
            end = pos + 3 + data[pos + 2]
            if end > len(data):
                raise MalformedFrame(f"Truncated control frame at offset {pos}")
            command, payload = decode_frame(data[pos:end])
            yield ControlFrame(pos, command, payload)
            pos = end
        elif kind == RASTER_MARKER:
            header_end = pos + len(RASTER_HEADER)
            if data[pos:header_end] != RASTER_HEADER or header_end + 2 > len(data):
                raise MalformedFrame(f"Bad raster header at offset {pos}")
            (height,) = struct.unpack_from("<H", data, header_end)
            start = header_end + 2
            end = start + row_bytes(height)
            if end > len(data):
                raise MalformedFrame(f"Truncated raster frame at offset {pos}")
            yield RasterFrame(pos, height, data[start:end])
            pos = end
        else:
            raise MalformedFrame(f"Unknown frame type 0x{kind:02x} at offset {pos}")


def analyze_stream(data: bytes) -> StreamReport:
    """Validate the structure of a print stream and summarise it."""
    report = StreamReport(size=len(data))
    for frame in iter_frames(data):
        match frame:
            case ControlFrame():
                logger.debug(f"{frame.offset:08x}: {frame.name} {frame.payload.hex()}")
                report.commands.append(frame)
            case RasterFrame():
                if report.height is not None and frame.height != report.height:
                    raise MalformedFrame(
                        f"Raster height changed from {report.height} to {frame.height} at offset {frame.offset}"
                    )
                report.height = frame.height
                report.swaths += 1
            case DataEnd():
                report.data_end = True
    return report


def decode_raster(data: bytes) -> Framebuffer:
    """Rebuild the framebuffer carried by the raster frames of a stream."""
    swaths = [f for f in iter_frames(data) if isinstance(f, RasterFrame)]
    if not swaths:
        return Framebuffer(0, 0)
    width = len(swaths)
    height = swaths[0].height
    fb = Framebuffer(width, height)
    # Swaths arrive last column first
    for y, swath in enumerate(swaths):
        column = width - 1 - y
        for xb, chunk in enumerate(swath.data):
            for dx in range(8):
                if chunk & (1 << dx):
                    fb.set_pixel(column, xb * 8 + (7 - dx))
    return fb
