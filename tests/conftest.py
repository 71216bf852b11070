"""Pytest configuration and fixtures."""

import pytest

from tapeprint.models.printer import PrinterConfig
from tapeprint.models.status import PrinterStatus, Printing, SomeTape, UnknownStatus
from tapeprint.models.tape import Tape, TapeWidth
from tapeprint.printers.base import BaseControlChannel
from tapeprint.printers.codec import ControlCodec
from tapeprint.printers.data import TCPDataChannel
from tapeprint.session import SessionTimings


class FakeCodec(ControlCodec):
    """Codec with one-byte requests; replies are b"T" + tape code, b"P" or anything else."""

    def status_request(self) -> bytes:
        return b"S"

    def start_request(self) -> bytes:
        return b"B"

    def stop_request(self) -> bytes:
        return b"E"

    def notify_request(self) -> bytes:
        return b"N"

    def parse_status(self, reply: bytes) -> PrinterStatus:
        if not reply:
            raise ValueError("empty reply")
        if reply[:1] == b"T" and len(reply) == 2:
            return SomeTape(Tape.from_status_code(reply[1]))
        if reply == b"P":
            return Printing()
        return UnknownStatus(reply[0], reply)


class FakeControlChannel(BaseControlChannel):
    """Control channel that replays scripted statuses and records every call."""

    def __init__(self, config: PrinterConfig, statuses: list[PrinterStatus | Exception], events: list[str]):
        super().__init__(config)
        self.statuses = list(statuses)
        self.events = events
        self.fail_on: dict[str, Exception] = {}

    def _record(self, event: str) -> None:
        self.events.append(event)
        if event in self.fail_on:
            raise self.fail_on[event]

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def query_status(self) -> PrinterStatus:
        self._record("status")
        result = self.statuses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def send_start(self) -> None:
        self._record("start")

    async def send_stop(self) -> None:
        self._record("stop")

    async def notify_data_incoming(self) -> None:
        self._record("notify")


class FakeDataChannel(TCPDataChannel):
    """Data channel that records the connect and the written bytes without network."""

    def __init__(self, config: PrinterConfig, events: list[str]):
        super().__init__(config)
        self.events = events
        self.written: list[bytes] = []
        self.closed = False
        self.fail_on: dict[str, Exception] = {}

    async def connect(self) -> None:
        self.events.append("connect")
        if "connect" in self.fail_on:
            raise self.fail_on["connect"]

    async def write_all(self, data: bytes) -> None:
        self.events.append("write")
        if "write" in self.fail_on:
            raise self.fail_on["write"]
        self.written.append(data)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def printer_config() -> PrinterConfig:
    return PrinterConfig(address="127.0.0.1", codec="conftest:FakeCodec")


@pytest.fixture
def no_delays() -> SessionTimings:
    return SessionTimings(start_settle=0, connect_settle=0, notify_settle=0, poll_interval=0)


@pytest.fixture
def tape_24mm() -> Tape:
    return Tape(TapeWidth.W24)


@pytest.fixture
def events() -> list[str]:
    return []
