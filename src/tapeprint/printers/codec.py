"""Pluggable request/response codec for the control channel."""

import importlib
from abc import ABC, abstractmethod

from tapeprint.models.status import PrinterStatus
from tapeprint.printers.base import MissingConfiguration


class ControlCodec(ABC):
    """Builds control datagrams and parses status replies for one device family."""

    @abstractmethod
    def status_request(self) -> bytes:
        pass

    @abstractmethod
    def start_request(self) -> bytes:
        pass

    @abstractmethod
    def stop_request(self) -> bytes:
        pass

    @abstractmethod
    def notify_request(self) -> bytes:
        pass

    @abstractmethod
    def parse_status(self, reply: bytes) -> PrinterStatus:
        """Decode a status reply.

        Raises:
            ValueError: If the reply cannot be decoded.
        """
        pass


def load_codec(path: str | None) -> ControlCodec:
    """Instantiate a codec from a ``package.module:Class`` path.

    Raises:
        MissingConfiguration: If no path is given or it cannot be loaded.
    """
    if not path:
        raise MissingConfiguration("No control codec configured (set printer.codec)")

    module_name, sep, class_name = path.partition(":")
    if not sep or not module_name or not class_name:
        raise MissingConfiguration(f"Invalid codec path '{path}', expected 'package.module:Class'")

    try:
        module = importlib.import_module(module_name)
        codec_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise MissingConfiguration(f"Cannot load codec '{path}': {e}") from e

    if not (isinstance(codec_class, type) and issubclass(codec_class, ControlCodec)):
        raise MissingConfiguration(f"Codec '{path}' is not a ControlCodec")
    return codec_class()
