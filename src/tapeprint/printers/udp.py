"""UDP control channel."""

import asyncio
import logging
import socket

from tapeprint.models.printer import PrinterConfig
from tapeprint.models.status import PrinterStatus
from tapeprint.printers.base import BaseControlChannel, TransportError
from tapeprint.printers.codec import ControlCodec

logger = logging.getLogger(__name__)


class _ReplyProtocol(asyncio.DatagramProtocol):
    """Queues datagrams received from the printer; anything else is dropped."""

    def __init__(self, peers: set[str]) -> None:
        self.peers = peers
        self.replies: asyncio.Queue[bytes] = asyncio.Queue()
        self.error: Exception | None = None

    def datagram_received(self, data: bytes, addr) -> None:
        if addr[0] not in self.peers:
            logger.debug(f"Ignoring datagram from {addr[0]}: {data.hex()}")
            return
        self.replies.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        self.error = exc


class UDPControlChannel(BaseControlChannel):
    """Control channel over UDP datagrams.

    Status queries wait for a single reply, bounded by the configured
    reply timeout. Start, stop and notify requests are sent without
    waiting for a reply.
    """

    def __init__(self, config: PrinterConfig, codec: ControlCodec) -> None:
        super().__init__(config)
        self.codec = codec
        self._transport: asyncio.DatagramTransport | None = None
        self._protocol: _ReplyProtocol | None = None

    async def open(self) -> None:
        if self._transport:
            return
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(
                self.address,
                self.config.control_port,
                family=socket.AF_INET,
                type=socket.SOCK_DGRAM,
            )
        except OSError as e:
            raise TransportError(f"Cannot resolve printer address {self.address}: {e}") from e
        peers = {info[4][0] for info in infos}

        try:
            self._transport, self._protocol = await loop.create_datagram_endpoint(
                lambda: _ReplyProtocol(peers),
                local_addr=("0.0.0.0", 0),
            )
        except OSError as e:
            raise TransportError(f"Failed to bind control socket: {e}") from e

    async def close(self) -> None:
        if self._transport:
            self._transport.close()
            self._transport = None
            self._protocol = None

    def _open_protocol(self) -> _ReplyProtocol:
        if not self._transport or not self._protocol:
            raise TransportError("Control channel not open")
        return self._protocol

    def _send(self, data: bytes) -> None:
        protocol = self._open_protocol()
        if protocol.error:
            error, protocol.error = protocol.error, None
            raise TransportError(f"Control socket error: {error}") from error
        try:
            self._transport.sendto(data, (self.address, self.config.control_port))
        except OSError as e:
            raise TransportError(f"Failed to send to {self.address}:{self.config.control_port}: {e}") from e

    def _discard_stale(self, protocol: _ReplyProtocol) -> None:
        while not protocol.replies.empty():
            stale = protocol.replies.get_nowait()
            logger.debug(f"Discarding stale reply from {self.address}: {stale.hex()}")

    async def query_status(self) -> PrinterStatus:
        protocol = self._open_protocol()
        self._discard_stale(protocol)
        self._send(self.codec.status_request())
        try:
            reply = await asyncio.wait_for(protocol.replies.get(), timeout=self.config.reply_timeout)
        except TimeoutError as e:
            raise TransportError(f"No status reply from {self.address} within {self.config.reply_timeout}s") from e

        try:
            status = self.codec.parse_status(reply)
        except ValueError as e:
            raise TransportError(f"Malformed status reply from {self.address}: {reply.hex()}") from e
        logger.debug(f"Status from {self.address}: {status}")
        return status

    async def send_start(self) -> None:
        self._send(self.codec.start_request())

    async def send_stop(self) -> None:
        self._send(self.codec.stop_request())

    async def notify_data_incoming(self) -> None:
        self._send(self.codec.notify_request())
