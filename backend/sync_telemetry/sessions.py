"""Engine and operation stats sessions for a single sync run."""
import logging
import time
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from sync_telemetry.models import (
    DownloadStats,
    FailureReason,
    SyncReason,
    UploadStats,
    ValidationStats,
)
from sync_telemetry.timing import MonotonicClock, TimedMixin, TimedSession

logger = logging.getLogger(__name__)


class EngineStatsSession(TimedMixin):
    """
    Stats about a single engine's sync.

    Counters only grow through record_upload/record_download; the
    upload_stats/download_stats properties hand out copies.
    """

    def __init__(
        self,
        collection: str,
        *,
        clock: MonotonicClock = time.monotonic_ns,
        strict: Optional[bool] = None,
        log: logging.Logger = logger,
    ):
        if not collection:
            raise ValueError("collection name must be non-empty")

        self._collection = collection
        self.timer = TimedSession(clock=clock, strict=strict, log=log)
        self._upload_stats = UploadStats()
        self._download_stats = DownloadStats()
        self.failure_reason: Optional[FailureReason] = None
        self.validation_stats: Optional[ValidationStats] = None

    def __repr__(self) -> str:
        return f"EngineStatsSession({self._collection!r})"

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def upload_stats(self) -> UploadStats:
        return replace(self._upload_stats)

    @property
    def download_stats(self) -> DownloadStats:
        return replace(self._download_stats)

    def record_download(self, stats: DownloadStats) -> None:
        """Add one batch of incoming counts to the running totals."""
        current = self._download_stats
        self._download_stats = DownloadStats(
            applied=current.applied + stats.applied,
            succeeded=current.succeeded + stats.succeeded,
            failed=current.failed + stats.failed,
            new_failed=current.new_failed + stats.new_failed,
            reconciled=current.reconciled + stats.reconciled,
        )

    def record_upload(self, stats: UploadStats) -> None:
        """Add one batch of outgoing counts to the running totals."""
        current = self._upload_stats
        self._upload_stats = UploadStats(
            sent=current.sent + stats.sent,
            sent_failed=current.sent_failed + stats.sent_failed,
        )

    def record_failure(self, reason: Union[FailureReason, BaseException]) -> None:
        """Remember why this engine failed. Exceptions become unexpected errors."""
        self.failure_reason = FailureReason.coerce(reason)
        self.timer.log.warning("%r failed: %s", self, self.failure_reason.kind.value)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self._collection,
            "took": self.took,
            "incoming": self._download_stats.to_dict(),
            "outgoing": self._upload_stats.to_dict(),
        }
        if self.failure_reason is not None:
            d["failureReason"] = self.failure_reason.to_dict()
        return d


class OperationStatsSession(TimedMixin):
    """Stats and metadata for a whole sync run, spanning every engine that ran."""

    def __init__(
        self,
        reason: Union[SyncReason, str],
        user_id: str,
        device_id: Optional[str] = None,
        *,
        clock: MonotonicClock = time.monotonic_ns,
        strict: Optional[bool] = None,
        log: logging.Logger = logger,
    ):
        if not user_id:
            raise ValueError("user_id must be non-empty")

        self._reason = SyncReason(reason)
        self.user_id = user_id
        self.device_id = device_id
        self.timer = TimedSession(clock=clock, strict=strict, log=log)
        self._engines: Dict[str, EngineStatsSession] = {}

    def __repr__(self) -> str:
        return f"OperationStatsSession({self._reason.value!r})"

    @property
    def reason(self) -> SyncReason:
        return self._reason

    @property
    def logged_in_during_this_run(self) -> bool:
        return self._reason is SyncReason.DID_LOGIN

    @property
    def engines(self) -> Mapping[str, EngineStatsSession]:
        """Engine sessions keyed by collection, in the order they were added."""
        return MappingProxyType(self._engines)

    def add_engine(self, engine: EngineStatsSession) -> EngineStatsSession:
        """
        Register an engine session for this run.

        Raises:
            ValueError: If an engine with the same collection is already registered
        """
        if engine.collection in self._engines:
            raise ValueError(f"Engine already registered for this run: {engine.collection}")
        self._engines[engine.collection] = engine
        return engine

    def engine_session(self, collection: str) -> EngineStatsSession:
        """Get the session for `collection`, creating one that shares this run's timer settings."""
        engine = self._engines.get(collection)
        if engine is None:
            engine = self.add_engine(
                EngineStatsSession(
                    collection,
                    clock=self.timer.clock,
                    strict=self.timer.strict,
                    log=self.timer.log,
                )
            )
        return engine

    def to_dict(self, engines: Optional[Iterable[EngineStatsSession]] = None) -> Dict[str, Any]:
        """
        Serialize the run.

        Args:
            engines: Engine sessions to report, in order (None = registered engines)
        """
        if engines is None:
            engines = self._engines.values()
        return {
            "when": self.started_at or 0,
            "took": self.took,
            "didLogin": self.logged_in_during_this_run,
            "why": self._reason.value,
            "engines": [engine.to_dict() for engine in engines],
        }
