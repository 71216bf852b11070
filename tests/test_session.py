"""Tests for the print session orchestrator."""

import asyncio
import logging

import pytest
from conftest import FakeControlChannel, FakeDataChannel

from tapeprint.models.printer import PrinterConfig
from tapeprint.models.status import Printing, SomeTape, UnknownStatus
from tapeprint.models.tape import Tape
from tapeprint.printers.base import MissingConfiguration, TransportError, UnexpectedDeviceState
from tapeprint.session import PrintSession, SessionState, SessionTimings, resolve_tape


def _session(
    config: PrinterConfig,
    statuses: list,
    events: list[str],
    timings: SessionTimings,
    stop_on_abort: bool = False,
) -> tuple[PrintSession, FakeControlChannel, FakeDataChannel]:
    control = FakeControlChannel(config, statuses, events)
    data_channel = FakeDataChannel(config, events)
    session = PrintSession(control, data_channel, timings=timings, stop_on_abort=stop_on_abort)
    return session, control, data_channel


class TestSessionLinearity:
    @pytest.mark.parametrize("polls", [0, 1, 5])
    async def test_call_order(self, printer_config, events, no_delays, tape_24mm, polls: int):
        statuses = [SomeTape(tape_24mm)] + [Printing()] * polls + [SomeTape(tape_24mm)]
        session, _, data_channel = _session(printer_config, statuses, events, no_delays)

        await session.run(b"payload")

        expected = ["status", "start", "connect", "notify", "write"] + ["status"] * (polls + 1) + ["stop"]
        assert events == expected
        assert data_channel.written == [b"payload"]
        assert session.state == SessionState.STOPPED
        assert session.polls == polls + 1
        assert session.tape == tape_24mm

    async def test_data_channel_closed(self, printer_config, events, no_delays, tape_24mm):
        session, _, data_channel = _session(printer_config, [SomeTape(tape_24mm)] * 2, events, no_delays)
        await session.run(b"x")
        assert data_channel.closed

    async def test_single_use(self, printer_config, events, no_delays, tape_24mm):
        session, _, _ = _session(printer_config, [SomeTape(tape_24mm)] * 2, events, no_delays)
        await session.run(b"x")
        with pytest.raises(RuntimeError):
            await session.run(b"x")

    async def test_unknown_status_ends_polling(self, printer_config, events, no_delays, tape_24mm, caplog):
        statuses = [SomeTape(tape_24mm), Printing(), UnknownStatus(0x45)]
        session, _, _ = _session(printer_config, statuses, events, no_delays)

        with caplog.at_level(logging.WARNING):
            await session.run(b"x")

        assert events[-1] == "stop"
        assert session.last_status == UnknownStatus(0x45)
        assert "unexpected status" in caplog.text


class TestSessionTimings:
    def test_defaults_are_half_second(self):
        timings = SessionTimings()
        assert timings.start_settle == 0.5
        assert timings.connect_settle == 0.5
        assert timings.notify_settle == 0.5
        assert timings.poll_interval == 0.5

    async def test_sleeps_between_steps(self, printer_config, events, tape_24mm, monkeypatch):
        sleeps: list[float] = []

        async def fake_sleep(delay: float) -> None:
            events.append(f"sleep {delay}")
            sleeps.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        timings = SessionTimings(start_settle=0.1, connect_settle=0.2, notify_settle=0.3, poll_interval=0.4)
        session, _, _ = _session(printer_config, [SomeTape(tape_24mm), Printing(), SomeTape(tape_24mm)], events, timings)

        await session.run(b"x")

        assert events == [
            "status",
            "start",
            "sleep 0.1",
            "connect",
            "sleep 0.2",
            "notify",
            "sleep 0.3",
            "write",
            "sleep 0.4",
            "status",
            "sleep 0.4",
            "status",
            "stop",
        ]


class TestSessionFailures:
    async def test_no_tape_aborts_before_start(self, printer_config, events, no_delays):
        session, _, _ = _session(printer_config, [Printing()], events, no_delays)

        with pytest.raises(UnexpectedDeviceState) as exc_info:
            await session.run(b"x")

        assert events == ["status"]
        assert exc_info.value.step == "status"
        assert session.state == SessionState.AWAITING_STATUS

    async def test_status_transport_error(self, printer_config, events, no_delays):
        session, _, _ = _session(printer_config, [TransportError("no reply")], events, no_delays)

        with pytest.raises(TransportError) as exc_info:
            await session.run(b"x")

        assert exc_info.value.step == "status"
        assert "[status]" in str(exc_info.value)

    async def test_connect_failure_sends_no_stop(self, printer_config, events, no_delays, tape_24mm):
        session, _, data_channel = _session(printer_config, [SomeTape(tape_24mm)], events, no_delays)
        data_channel.fail_on["connect"] = TransportError("refused")

        with pytest.raises(TransportError) as exc_info:
            await session.run(b"x")

        assert events == ["status", "start", "connect"]
        assert exc_info.value.step == "connect"
        assert data_channel.closed

    async def test_write_oserror_is_transport_error(self, printer_config, events, no_delays, tape_24mm):
        session, _, data_channel = _session(printer_config, [SomeTape(tape_24mm)], events, no_delays)
        data_channel.fail_on["write"] = ConnectionResetError("reset")

        with pytest.raises(TransportError) as exc_info:
            await session.run(b"x")

        assert exc_info.value.step == "write"
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)
        assert "stop" not in events

    async def test_poll_failure_sends_no_stop(self, printer_config, events, no_delays, tape_24mm):
        statuses = [SomeTape(tape_24mm), Printing(), TransportError("timeout")]
        session, _, _ = _session(printer_config, statuses, events, no_delays)

        with pytest.raises(TransportError) as exc_info:
            await session.run(b"x")

        assert exc_info.value.step == "poll"
        assert "stop" not in events
        assert session.state == SessionState.POLLING

    async def test_stop_failure_after_polling(self, printer_config, events, no_delays, tape_24mm):
        statuses = [SomeTape(tape_24mm), Printing(), SomeTape(tape_24mm)]
        session, control, _ = _session(printer_config, statuses, events, no_delays)
        control.fail_on["stop"] = TransportError("unreachable")

        with pytest.raises(TransportError) as exc_info:
            await session.run(b"x")

        # Same state as a failed poll; only the step tells them apart
        assert exc_info.value.step == "stop"
        assert session.state == SessionState.POLLING


class TestStopOnAbort:
    async def test_stop_after_failure(self, printer_config, events, no_delays, tape_24mm):
        session, _, data_channel = _session(
            printer_config, [SomeTape(tape_24mm)], events, no_delays, stop_on_abort=True
        )
        data_channel.fail_on["write"] = TransportError("broken pipe")

        with pytest.raises(TransportError):
            await session.run(b"x")

        assert events == ["status", "start", "connect", "notify", "write", "stop"]

    async def test_no_stop_before_start(self, printer_config, events, no_delays):
        session, _, _ = _session(printer_config, [Printing()], events, no_delays, stop_on_abort=True)

        with pytest.raises(UnexpectedDeviceState):
            await session.run(b"x")

        assert events == ["status"]

    async def test_stop_failure_keeps_original_error(self, printer_config, events, no_delays, tape_24mm, caplog):
        session, control, data_channel = _session(
            printer_config, [SomeTape(tape_24mm)], events, no_delays, stop_on_abort=True
        )
        data_channel.fail_on["connect"] = TransportError("refused")
        control.fail_on["stop"] = TransportError("unreachable")

        with caplog.at_level(logging.WARNING), pytest.raises(TransportError, match="refused"):
            await session.run(b"x")

        assert "Stop command after aborted session failed" in caplog.text


class TestResolveTape:
    async def test_neither_given(self):
        with pytest.raises(MissingConfiguration):
            await resolve_tape(None, None)

    async def test_explicit_only(self):
        tape = await resolve_tape(12, None)
        assert tape == Tape.from_mm(12)
        assert tape.width_px == 170

    async def test_detected_only(self, printer_config, events, tape_24mm):
        control = FakeControlChannel(printer_config, [SomeTape(tape_24mm)], events)
        assert await resolve_tape(None, control) == tape_24mm
        assert events == ["status"]

    async def test_matching(self, printer_config, events, tape_24mm, caplog):
        control = FakeControlChannel(printer_config, [SomeTape(tape_24mm)], events)
        with caplog.at_level(logging.WARNING):
            tape = await resolve_tape(24, control)
        assert tape.width_px == 340
        assert "mismatch" not in caplog.text

    async def test_mismatch_uses_explicit(self, printer_config, events, tape_24mm, caplog):
        control = FakeControlChannel(printer_config, [SomeTape(tape_24mm)], events)
        with caplog.at_level(logging.WARNING):
            tape = await resolve_tape(12, control)
        assert tape == Tape.from_mm(12)
        assert "Tape mismatch" in caplog.text

    async def test_detection_failed_without_width(self, printer_config, events):
        control = FakeControlChannel(printer_config, [Printing()], events)
        with pytest.raises(MissingConfiguration):
            await resolve_tape(None, control)

    async def test_detection_failed_with_width(self, printer_config, events, caplog):
        control = FakeControlChannel(printer_config, [Printing()], events)
        with caplog.at_level(logging.WARNING):
            tape = await resolve_tape(18, control)
        assert tape == Tape.from_mm(18)
        assert "Failed to detect tape width" in caplog.text
