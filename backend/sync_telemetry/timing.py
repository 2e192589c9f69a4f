"""
Start/stop timing for stats sessions.

Durations come from a monotonic clock so wall-clock adjustments never produce
negative readings; the wall-clock start time is kept only for reporting.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from sync_telemetry.config import telemetry_settings

logger = logging.getLogger(__name__)

MonotonicClock = Callable[[], int]


class ContractViolation(AssertionError):
    """A session was ended without ever being started."""


def epoch_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


@dataclass
class TimedSession:
    """
    Wall-clock start time plus elapsed nanoseconds for one timed window.

    Attributes:
        started_at: Epoch millis recorded by start(), None until started
        took: Elapsed nanoseconds, set by end()
        clock: Monotonic nanosecond clock used for duration math
        strict: Raise ContractViolation on misuse; None defers to settings
        log: Logger receiving timing diagnostics
    """

    started_at: Optional[int] = None
    took: int = 0
    clock: MonotonicClock = field(default=time.monotonic_ns, repr=False)
    strict: Optional[bool] = field(default=None, repr=False)
    log: logging.Logger = field(default=logger, repr=False)
    _start_instant: Optional[int] = field(default=None, init=False, repr=False)

    def start(self, now: Optional[int] = None) -> None:
        """Record the start time. A second call discards the earlier window."""
        self.started_at = epoch_millis() if now is None else now
        self._start_instant = self.clock()

    def has_started(self) -> bool:
        """True once start() has been called, including after end()."""
        return self._start_instant is not None

    def end(self) -> "TimedSession":
        """
        Stop timing and store the elapsed duration.

        Returns:
            This TimedSession; `took` stays 0 if it was never started

        Raises:
            ContractViolation: If never started and strict checking is on
        """
        if self._start_instant is None:
            strict = telemetry_settings.debug_assertions if self.strict is None else self.strict
            if strict:
                raise ContractViolation("end() called without first calling start()")
            self.log.error("Stats session ended without first calling start(); reporting took=0")
            return self

        self.took = max(0, self.clock() - self._start_instant)
        return self


class TimedMixin:
    """Delegates start/has_started/end to an embedded TimedSession at `self.timer`."""

    timer: TimedSession

    @property
    def started_at(self) -> Optional[int]:
        return self.timer.started_at

    @property
    def took(self) -> int:
        return self.timer.took

    def start(self, now: Optional[int] = None) -> None:
        self.timer.start(now)
        self.timer.log.debug("%r started at %s", self, self.timer.started_at)

    def has_started(self) -> bool:
        return self.timer.has_started()

    def end(self):
        """Stop timing and return this session for immediate serialization."""
        self.timer.end()
        self.timer.log.debug("%r ended, took=%dns", self, self.timer.took)
        return self
