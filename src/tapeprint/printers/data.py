"""TCP data channel for the raster stream."""

import asyncio
import logging

from tapeprint.models.printer import PrinterConfig
from tapeprint.printers.base import TransportError

logger = logging.getLogger(__name__)


class TCPDataChannel:
    """Byte-stream connection to the printer's raw data port."""

    def __init__(self, config: PrinterConfig) -> None:
        self.config = config
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_connected(self) -> bool:
        return self._writer is not None

    async def connect(self) -> None:
        """Open the connection.

        Raises:
            TransportError: On timeout or connection failure.
        """
        host, port = self.config.address, self.config.data_port
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.config.connect_timeout,
            )
        except TimeoutError as e:
            raise TransportError(f"Timeout connecting to {host}:{port}") from e
        except OSError as e:
            raise TransportError(f"Failed to connect to {host}:{port}: {e}") from e
        logger.debug(f"Data channel connected to {host}:{port}")

    async def write_all(self, data: bytes) -> None:
        """Write the whole buffer and wait until it is flushed."""
        if not self._writer:
            raise TransportError("Data channel not connected")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Failed to write {len(data)} bytes: {e}") from e
        logger.debug(f"Wrote {len(data)} bytes to data channel")

    async def close(self) -> None:
        if self._writer:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except OSError:
                pass
            self._writer = None
            self._reader = None
