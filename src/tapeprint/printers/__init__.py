"""Printer transports for tapeprint."""

from tapeprint.models.printer import PrinterConfig
from tapeprint.printers.base import (
    BaseControlChannel,
    MissingConfiguration,
    PrinterError,
    TransportError,
    UnexpectedDeviceState,
)
from tapeprint.printers.codec import ControlCodec, load_codec
from tapeprint.printers.data import TCPDataChannel
from tapeprint.printers.udp import UDPControlChannel

__all__ = [
    "BaseControlChannel",
    "ControlCodec",
    "MissingConfiguration",
    "PrinterError",
    "TCPDataChannel",
    "TransportError",
    "UDPControlChannel",
    "UnexpectedDeviceState",
    "create_control_channel",
    "load_codec",
]


def create_control_channel(config: PrinterConfig) -> BaseControlChannel:
    """Factory function to create a control channel from config."""
    return UDPControlChannel(config, load_codec(config.codec))
