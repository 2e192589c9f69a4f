"""Sync telemetry configuration settings."""
from pydantic_settings import BaseSettings

from sync_telemetry.models import SyncPingReason


class TelemetrySettings(BaseSettings):
    """Settings for sync telemetry aggregation and ping building."""

    # Raise on timing contract violations instead of logging them
    debug_assertions: bool = False

    # Ping defaults
    ping_version: int = 1
    ping_reason: SyncPingReason = SyncPingReason.SCHEDULE

    # Max characters of an exception message kept in a failure reason
    failure_message_limit: int = 100

    class Config:
        env_file = ".env"
        env_prefix = "SYNC_TELEMETRY_"
        extra = "ignore"


telemetry_settings = TelemetrySettings()
