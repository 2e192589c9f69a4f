"""Telemetry aggregation for sync runs: counters, timed sessions and the sync ping."""
from sync_telemetry.models import (
    DownloadStats,
    FailureKind,
    FailureReason,
    SyncPingReason,
    SyncReason,
    UploadStats,
    ValidationStats,
)
from sync_telemetry.ping import SyncPing, build_ping
from sync_telemetry.sessions import EngineStatsSession, OperationStatsSession
from sync_telemetry.timing import ContractViolation, TimedSession

__all__ = [
    "ContractViolation",
    "DownloadStats",
    "EngineStatsSession",
    "FailureKind",
    "FailureReason",
    "OperationStatsSession",
    "SyncPing",
    "SyncPingReason",
    "SyncReason",
    "TimedSession",
    "UploadStats",
    "ValidationStats",
    "build_ping",
]
