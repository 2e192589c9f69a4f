"""Pytest fixtures for sync telemetry tests."""
import os

import pytest

# Keep a developer's .env or shell settings from leaking into tests
for _key in list(os.environ):
    if _key.startswith("SYNC_TELEMETRY_"):
        del os.environ[_key]


class FakeClock:
    """Monotonic nanosecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, nanos: int) -> None:
        self.now += nanos


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(monkeypatch):
    """Telemetry settings that tests may change; restored afterwards."""
    from sync_telemetry.config import telemetry_settings

    monkeypatch.setattr(telemetry_settings, "debug_assertions", False)
    return telemetry_settings


@pytest.fixture
def debug_settings(settings, monkeypatch):
    """Settings with strict timing contract checks enabled."""
    monkeypatch.setattr(settings, "debug_assertions", True)
    return settings


@pytest.fixture
def operation(clock):
    """An operation session for a startup sync on the fake clock."""
    from sync_telemetry.sessions import OperationStatsSession

    return OperationStatsSession("startup", "testUID", "testDeviceID", clock=clock)
