"""Tests for session timing."""
import logging

import pytest

from sync_telemetry.timing import ContractViolation, TimedSession, epoch_millis


class TestTimedSession:
    """Test start/end timing discipline."""

    def test_not_started_initially(self, clock):
        timer = TimedSession(clock=clock)
        assert timer.has_started() is False
        assert timer.started_at is None
        assert timer.took == 0

    def test_took_is_monotonic_delta(self, clock):
        timer = TimedSession(clock=clock)
        timer.start(now=1_700_000_000_000)
        clock.advance(2_500)
        timer.end()

        assert timer.took == 2_500
        assert timer.started_at == 1_700_000_000_000

    def test_end_returns_self(self, clock):
        timer = TimedSession(clock=clock)
        timer.start()
        assert timer.end() is timer

    def test_start_defaults_to_wall_clock(self, clock):
        before = epoch_millis()
        timer = TimedSession(clock=clock)
        timer.start()
        assert before <= timer.started_at <= epoch_millis()

    def test_has_started_survives_end(self, clock):
        timer = TimedSession(clock=clock)
        timer.start()
        timer.end()
        assert timer.has_started() is True

    def test_second_start_discards_first_window(self, clock):
        timer = TimedSession(clock=clock)
        timer.start(now=1)
        clock.advance(1_000)
        timer.start(now=2)
        clock.advance(300)
        timer.end()

        assert timer.took == 300
        assert timer.started_at == 2

    def test_took_never_negative(self):
        readings = iter([500, 100])
        timer = TimedSession(clock=lambda: next(readings))
        timer.start()
        timer.end()
        assert timer.took == 0

    def test_real_clock_non_negative(self):
        timer = TimedSession()
        timer.start()
        timer.end()
        assert timer.took >= 0


class TestEndWithoutStart:
    """end() before start() is a contract violation."""

    def test_release_mode_reports_zero(self, settings, clock, caplog):
        timer = TimedSession(clock=clock)
        with caplog.at_level(logging.ERROR, logger="sync_telemetry.timing"):
            result = timer.end()

        assert result is timer
        assert timer.took == 0
        assert "without first calling start()" in caplog.text

    def test_debug_mode_raises(self, debug_settings, clock):
        with pytest.raises(ContractViolation):
            TimedSession(clock=clock).end()

    def test_violation_is_assertion_error(self, debug_settings, clock):
        with pytest.raises(AssertionError):
            TimedSession(clock=clock).end()

    def test_strict_override_beats_settings(self, settings, clock):
        with pytest.raises(ContractViolation):
            TimedSession(clock=clock, strict=True).end()

    def test_lenient_override_beats_debug_settings(self, debug_settings, clock):
        timer = TimedSession(clock=clock, strict=False)
        assert timer.end().took == 0

    def test_injected_logger_receives_error(self, settings, clock, caplog):
        log = logging.getLogger("test.telemetry.sink")
        timer = TimedSession(clock=clock, log=log)
        with caplog.at_level(logging.ERROR, logger="test.telemetry.sink"):
            timer.end()

        assert [r.name for r in caplog.records] == ["test.telemetry.sink"]
