"""Models for sync telemetry counters."""
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Optional, Union


class SyncReason(str, Enum):
    """Why a sync run was triggered."""

    STARTUP = "startup"
    SCHEDULED = "scheduled"
    BACKGROUNDED = "backgrounded"
    USER = "user"
    SYNC_NOW = "syncNow"
    DID_LOGIN = "didLogin"


class SyncPingReason(str, Enum):
    """Why a ping was submitted."""

    SHUTDOWN = "shutdown"
    SCHEDULE = "schedule"
    ID_CHANGED = "idchanged"


class FailureKind(str, Enum):
    """Failure categories an engine can report."""

    HTTP = "httperror"
    NETWORK = "nserror"
    SHUTDOWN = "shutdownerror"
    AUTH = "autherror"
    OTHER = "othererror"
    UNEXPECTED = "unexpectederror"


def _check_non_negative(stats) -> None:
    for f in fields(stats):
        if getattr(stats, f.name) < 0:
            raise ValueError(f"{type(stats).__name__}.{f.name} must be non-negative")


@dataclass
class UploadStats:
    """Outgoing record counts for one engine."""

    sent: int = 0
    sent_failed: int = 0

    def __post_init__(self):
        _check_non_negative(self)

    def has_data(self) -> bool:
        return self.sent > 0 or self.sent_failed > 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "sent": self.sent,
            "sentFailed": self.sent_failed,
        }


@dataclass
class DownloadStats:
    """Incoming record counts for one engine."""

    applied: int = 0
    succeeded: int = 0
    failed: int = 0
    new_failed: int = 0
    reconciled: int = 0

    def __post_init__(self):
        _check_non_negative(self)

    def has_data(self) -> bool:
        return (
            self.applied > 0
            or self.succeeded > 0
            or self.failed > 0
            or self.new_failed > 0
            or self.reconciled > 0
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "applied": self.applied,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "newFailed": self.new_failed,
            "reconciled": self.reconciled,
        }


@dataclass
class ValidationStats:
    """Placeholder for validation issue counters; never carries data yet."""

    def has_data(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, int]:
        return {}


@dataclass(frozen=True)
class FailureReason:
    """Why an engine failed, as reported in the ping."""

    kind: FailureKind
    code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: BaseException, limit: Optional[int] = None) -> "FailureReason":
        """
        Wrap an arbitrary exception as an unexpected failure.

        Args:
            exc: The exception an engine raised
            limit: Max message length (None = configured failure_message_limit)
        """
        if limit is None:
            # Import here; config imports this module for SyncPingReason
            from sync_telemetry.config import telemetry_settings

            limit = telemetry_settings.failure_message_limit
        message = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
        return cls(kind=FailureKind.UNEXPECTED, error=message[:limit])

    @classmethod
    def coerce(cls, value: Union["FailureReason", BaseException], limit: Optional[int] = None) -> "FailureReason":
        if isinstance(value, FailureReason):
            return value
        return cls.from_exception(value, limit=limit)

    def to_dict(self) -> Dict[str, Union[str, int]]:
        d: Dict[str, Union[str, int]] = {"name": self.kind.value}
        if self.code is not None:
            d["code"] = self.code
        if self.error is not None:
            d["error"] = self.error
        return d
