"""Wire protocol: frame codec, raster encoder and stream analysis."""

from tapeprint.protocol.analyzer import StreamReport, analyze_stream, decode_raster
from tapeprint.protocol.frames import (
    ChecksumMismatch,
    FrameError,
    FrameTooLarge,
    MalformedFrame,
    decode_frame,
    encode_frame,
    raster_frame,
)
from tapeprint.protocol.raster import encode_label, encode_raster

__all__ = [
    "ChecksumMismatch",
    "FrameError",
    "FrameTooLarge",
    "MalformedFrame",
    "StreamReport",
    "analyze_stream",
    "decode_frame",
    "decode_raster",
    "encode_frame",
    "encode_label",
    "encode_raster",
    "raster_frame",
]
