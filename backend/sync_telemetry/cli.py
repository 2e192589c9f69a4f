"""
Sync telemetry CLI.

Replays a finished sync run described in JSON through the stats sessions and
prints the resulting ping.

Usage:
    python -m sync_telemetry ping RUN_FILE [--ping-reason R] [--discarded N] [--indent N]
    python -m sync_telemetry example
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from sync_telemetry.models import (
    DownloadStats,
    FailureKind,
    FailureReason,
    SyncPingReason,
    SyncReason,
    UploadStats,
)
from sync_telemetry.ping import IncomingRecord, OutgoingRecord, SyncPing, build_ping
from sync_telemetry.sessions import OperationStatsSession

EXAMPLE_RUN = {
    "reason": "startup",
    "uid": "testUID",
    "deviceID": "testDeviceID",
    "engines": [
        {
            "name": "bookmarks",
            "incoming": [{"applied": 10, "succeeded": 9, "failed": 1, "newFailed": 0, "reconciled": 2}],
            "outgoing": [{"sent": 5, "sentFailed": 1}],
        },
        {
            "name": "history",
            "incoming": [{"applied": 40, "succeeded": 40}, {"applied": 12, "succeeded": 12}],
            "outgoing": [],
            "failure": "nserror",
        },
    ],
}


class EngineRun(BaseModel):
    """One engine's recorded batches."""
    name: str = Field(..., min_length=1)
    incoming: List[IncomingRecord] = Field(default_factory=list, description="One entry per downloaded batch")
    outgoing: List[OutgoingRecord] = Field(default_factory=list, description="One entry per uploaded batch")
    failure: Optional[FailureKind] = None


class RunDescription(BaseModel):
    """A finished sync run, engines in execution order."""
    reason: SyncReason
    uid: str = Field(..., min_length=1)
    device_id: Optional[str] = Field(None, alias="deviceID")
    when: Optional[int] = Field(None, ge=0, description="Epoch millis the run started")
    engines: List[EngineRun] = Field(default_factory=list)

    @field_validator("engines")
    @classmethod
    def unique_engine_names(cls, engines: List[EngineRun]) -> List[EngineRun]:
        names = [engine.name for engine in engines]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate engine names: {', '.join(duplicates)}")
        return engines


def replay(
    run: RunDescription,
    why: Optional[SyncPingReason] = None,
    discarded: int = 0,
) -> SyncPing:
    """
    Feed a run description through fresh sessions and build its ping.

    Args:
        run: Validated run description
        why: Ping reason (None = configured default)
        discarded: Number of discarded syncs to report

    Returns:
        The built SyncPing
    """
    operation = OperationStatsSession(run.reason, run.uid, run.device_id)
    operation.start(now=run.when)

    for engine_run in run.engines:
        engine = operation.engine_session(engine_run.name)
        engine.start()
        for batch in engine_run.incoming:
            engine.record_download(DownloadStats(**batch.model_dump()))
        for batch in engine_run.outgoing:
            engine.record_upload(UploadStats(**batch.model_dump()))
        if engine_run.failure is not None:
            engine.record_failure(FailureReason(kind=engine_run.failure))
        engine.end()

    operation.end()
    return build_ping(operation, why=why, discarded=discarded)


def cmd_ping(args) -> int:
    """Execute ping command."""
    if args.discarded < 0:
        print("Error: --discarded must be non-negative", file=sys.stderr)
        return 2
    if args.indent is not None and args.indent < 0:
        print("Error: --indent must be non-negative", file=sys.stderr)
        return 2

    try:
        run = RunDescription.model_validate_json(Path(args.run_file).read_bytes())
    except OSError as e:
        print(f"Error: cannot read {args.run_file}: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print(f"Error: invalid run description in {args.run_file}:\n{e}", file=sys.stderr)
        return 2

    why = SyncPingReason(args.ping_reason) if args.ping_reason else None
    ping = replay(run, why=why, discarded=args.discarded)
    print(ping.to_json(indent=args.indent))
    return 0


def cmd_example(args) -> int:
    """Execute example command."""
    print(json.dumps(EXAMPLE_RUN, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build sync telemetry pings from recorded runs"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log session timing to stderr"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Ping subcommand
    ping_parser = subparsers.add_parser(
        "ping",
        help="Replay a run description and print its ping"
    )
    ping_parser.add_argument(
        "run_file",
        help="JSON run description (see the example command)"
    )
    ping_parser.add_argument(
        "--ping-reason",
        choices=[reason.value for reason in SyncPingReason],
        help="Ping reason (default: configured, usually schedule)"
    )
    ping_parser.add_argument(
        "--discarded",
        type=int,
        default=0,
        help="Number of discarded syncs to report (default: 0)"
    )
    ping_parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Pretty-print JSON with this indent"
    )
    ping_parser.set_defaults(func=cmd_ping)

    # Example subcommand
    example_parser = subparsers.add_parser(
        "example",
        help="Print a sample run description"
    )
    example_parser.set_defaults(func=cmd_example)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)
