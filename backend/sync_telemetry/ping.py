"""
Sync ping payload: wire models and the builder.

Field aliases are the external wire names; renaming any of them is a breaking
change that needs a `version` bump.
"""
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from sync_telemetry.config import telemetry_settings
from sync_telemetry.models import FailureKind, SyncPingReason, SyncReason
from sync_telemetry.sessions import EngineStatsSession, OperationStatsSession


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class IncomingRecord(_WireModel):
    """Download counts for one engine."""
    applied: int = Field(0, ge=0)
    succeeded: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    new_failed: int = Field(0, ge=0, alias="newFailed")
    reconciled: int = Field(0, ge=0)


class OutgoingRecord(_WireModel):
    """Upload counts for one engine."""
    sent: int = Field(0, ge=0)
    sent_failed: int = Field(0, ge=0, alias="sentFailed")


class FailureRecord(_WireModel):
    """Why an engine failed."""
    name: FailureKind
    code: Optional[int] = None
    error: Optional[str] = None


class EngineRecord(_WireModel):
    """One engine's part of a sync."""
    name: str = Field(..., min_length=1)
    took: int = Field(..., ge=0, description="Nanoseconds")
    incoming: IncomingRecord
    outgoing: OutgoingRecord
    failure_reason: Optional[FailureRecord] = Field(None, alias="failureReason")


class OperationRecord(_WireModel):
    """One sync run."""
    when: int = Field(..., ge=0, description="Epoch millis, 0 if never started")
    took: int = Field(..., ge=0, description="Nanoseconds")
    did_login: bool = Field(..., alias="didLogin")
    why: SyncReason
    engines: Tuple[EngineRecord, ...] = ()


class SyncPing(_WireModel):
    """The complete telemetry payload handed to the uploader."""
    version: int = Field(..., ge=1)
    discarded: int = Field(0, ge=0)
    why: SyncPingReason
    uid: str
    device_id: str = Field("", alias="deviceID")
    syncs: Tuple[OperationRecord, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Wire form as plain JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def build_ping(
    operation: OperationStatsSession,
    engines: Optional[Iterable[EngineStatsSession]] = None,
    *,
    why: Optional[SyncPingReason] = None,
    discarded: int = 0,
    version: Optional[int] = None,
) -> SyncPing:
    """
    Build a ping from a completed operation session.

    Args:
        operation: The finished sync run
        engines: Engine sessions in execution order (None = the operation's registered engines)
        why: Ping reason (None = configured default)
        discarded: Number of syncs dropped before this ping
        version: Payload version (None = configured default)

    Returns:
        Immutable SyncPing with exactly one entry in `syncs`
    """
    return SyncPing.model_validate({
        "version": telemetry_settings.ping_version if version is None else version,
        "discarded": discarded,
        "why": telemetry_settings.ping_reason if why is None else why,
        "uid": operation.user_id,
        "deviceID": operation.device_id or "",
        "syncs": [operation.to_dict(engines)],
    })
