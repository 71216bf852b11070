"""Print session orchestration across the control and data channels."""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from tapeprint.framebuffer import Framebuffer
from tapeprint.models.printer import PrinterConfig
from tapeprint.models.status import PrinterStatus, Printing, SomeTape
from tapeprint.models.tape import Tape
from tapeprint.printers import create_control_channel
from tapeprint.printers.base import (
    BaseControlChannel,
    MissingConfiguration,
    PrinterError,
    TransportError,
    UnexpectedDeviceState,
)
from tapeprint.printers.data import TCPDataChannel
from tapeprint.protocol.raster import encode_label

logger = logging.getLogger(__name__)

T = TypeVar("T")

# The firmware needs this long after each mode change before it accepts
# the next command. Nothing on the wire signals readiness.
SETTLE_DELAY = 0.5
POLL_INTERVAL = 0.5


class SessionState(StrEnum):
    """Steps of a print session, in order."""

    IDLE = "idle"
    AWAITING_STATUS = "awaiting_status"
    TAPE_CONFIRMED = "tape_confirmed"
    STARTED = "started"
    DATA_CHANNEL_OPEN = "data_channel_open"
    STREAMING = "streaming"
    POLLING = "polling"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SessionTimings:
    """Fixed waits between session steps, in seconds."""

    start_settle: float = SETTLE_DELAY
    connect_settle: float = SETTLE_DELAY
    notify_settle: float = SETTLE_DELAY
    poll_interval: float = POLL_INTERVAL


class PrintSession:
    """Drives one print job from status check to stop command.

    The session is linear: status, start, connect, notify, write, poll
    until the printer stops reporting ``Printing``, then stop. Any failure
    aborts immediately. Unless ``stop_on_abort`` is set, no stop command
    is sent on the abort path.

    Instances are single-use and must not be shared between tasks.
    """

    def __init__(
        self,
        control: BaseControlChannel,
        data_channel: TCPDataChannel,
        timings: SessionTimings | None = None,
        stop_on_abort: bool = False,
    ) -> None:
        self.control = control
        self.data_channel = data_channel
        self.timings = timings or SessionTimings()
        self.stop_on_abort = stop_on_abort
        self.state = SessionState.IDLE
        self.tape: Tape | None = None
        self.last_status: PrinterStatus | None = None
        self.polls = 0

    async def _step(self, step: str, call: Awaitable[T]) -> T:
        """Await one session call, tagging failures with the step name."""
        try:
            return await call
        except PrinterError as e:
            if e.step is None:
                e.step = step
            raise
        except OSError as e:
            raise TransportError(str(e), step=step) from e

    async def _query(self, step: str) -> PrinterStatus:
        status = await self._step(step, self.control.query_status())
        self.last_status = status
        logger.info(f"Printer status: {status}")
        return status

    async def run(self, data: bytes) -> None:
        """Run the session, sending ``data`` over the data channel.

        Raises:
            UnexpectedDeviceState: If no tape is reported at the start.
            TransportError: If any channel operation fails.
        """
        if self.state != SessionState.IDLE:
            raise RuntimeError("PrintSession instances are single-use")

        started = False
        try:
            self.state = SessionState.AWAITING_STATUS
            status = await self._query("status")
            if not isinstance(status, SomeTape):
                raise UnexpectedDeviceState(f"Expected a loaded tape, printer reported {status}", step="status")
            self.tape = status.tape
            self.state = SessionState.TAPE_CONFIRMED
            logger.info(f"Tape is {status.tape}, start printing...")

            await self._step("start", self.control.send_start())
            started = True
            self.state = SessionState.STARTED
            await asyncio.sleep(self.timings.start_settle)

            await self._step("connect", self.data_channel.connect())
            self.state = SessionState.DATA_CHANNEL_OPEN
            await asyncio.sleep(self.timings.connect_settle)

            await self._step("notify", self.control.notify_data_incoming())
            await asyncio.sleep(self.timings.notify_settle)

            self.state = SessionState.STREAMING
            await self._step("write", self.data_channel.write_all(data))
            logger.info(f"Print data is sent ({len(data)} bytes). Waiting...")

            self.state = SessionState.POLLING
            while True:
                await asyncio.sleep(self.timings.poll_interval)
                status = await self._query("poll")
                self.polls += 1
                if not isinstance(status, Printing):
                    break

            # Any non-printing reply ends the job, including device errors
            if not isinstance(status, SomeTape):
                logger.warning(f"Printing finished with unexpected status {status}")

            started = False
            await self._step("stop", self.control.send_stop())
            self.state = SessionState.STOPPED
            logger.info("Print session complete")
        except Exception:
            if started and self.stop_on_abort:
                await self._best_effort_stop()
            raise
        finally:
            await self.data_channel.close()

    async def _best_effort_stop(self) -> None:
        try:
            await self.control.send_stop()
            logger.info("Sent stop command after aborted session")
        except (PrinterError, OSError) as e:
            logger.warning(f"Stop command after aborted session failed: {e}")


async def resolve_tape(width_mm: int | None, control: BaseControlChannel | None) -> Tape:
    """Decide which tape to print for.

    An explicit width wins over the detected one; a mismatch is logged
    as a warning.

    Raises:
        MissingConfiguration: If there is neither a width nor a printer to ask,
            or the printer did not report a tape and no width was given.
        UnsupportedTapeWidth: If ``width_mm`` is not in the catalog.
    """
    if width_mm is None and control is None:
        raise MissingConfiguration("Please specify a tape width or a printer")

    given = Tape.from_mm(width_mm) if width_mm is not None else None

    detected = None
    if control is not None:
        status = await control.query_status()
        logger.info(f"Tape detected: {status}")
        if isinstance(status, SomeTape):
            detected = status.tape
        else:
            logger.warning(f"Failed to detect tape width. status: {status}")

    if given is not None and detected is not None and given != detected:
        logger.warning(f"Tape mismatch: given {given} does not match detected {detected}, using {given}")

    tape = given or detected
    if tape is None:
        raise MissingConfiguration("Tape width was not given and could not be detected")
    return tape


async def print_framebuffer(
    config: PrinterConfig,
    fb: Framebuffer,
    timings: SessionTimings | None = None,
) -> PrintSession:
    """Encode a framebuffer and print it on the configured printer."""
    data = encode_label(fb)
    async with create_control_channel(config) as control:
        session = PrintSession(
            control,
            TCPDataChannel(config),
            timings=timings,
            stop_on_abort=config.stop_on_abort,
        )
        await session.run(data)
    return session
