"""Abstract control channel and printer error taxonomy."""

from abc import ABC, abstractmethod

from tapeprint.models.printer import PrinterConfig
from tapeprint.models.status import PrinterStatus


class PrinterError(Exception):
    """Exception raised for printer-related errors.

    ``step`` names the session step that failed, when known.
    """

    def __init__(self, message: str, step: str | None = None) -> None:
        super().__init__(message)
        self.step = step

    def __str__(self) -> str:
        message = super().__str__()
        if self.step:
            return f"[{self.step}] {message}"
        return message


class TransportError(PrinterError):
    """A socket could not be opened, written or read."""

    pass


class UnexpectedDeviceState(PrinterError):
    """The printer did not report a usable tape."""

    pass


class MissingConfiguration(PrinterError):
    """Not enough configuration to proceed; raised before any network I/O."""

    pass


class BaseControlChannel(ABC):
    """Request/response control channel to one printer.

    An instance belongs to a single session and is not safe for use from
    several tasks or threads at once.
    """

    def __init__(self, config: PrinterConfig) -> None:
        self.config = config
        self.address = config.address

    @abstractmethod
    async def open(self) -> None:
        """Prepare the channel for use.

        Raises:
            TransportError: If the local endpoint cannot be created.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the channel."""
        pass

    @abstractmethod
    async def query_status(self) -> PrinterStatus:
        """Ask the printer for its status; one request/response exchange.

        Raises:
            TransportError: If no valid reply arrives in time.
        """
        pass

    @abstractmethod
    async def send_start(self) -> None:
        """Tell the printer a print job is starting."""
        pass

    @abstractmethod
    async def send_stop(self) -> None:
        """Tell the printer the print job is over."""
        pass

    @abstractmethod
    async def notify_data_incoming(self) -> None:
        """Tell the printer the raster stream is about to arrive."""
        pass

    async def __aenter__(self) -> "BaseControlChannel":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
