"""Workspace snapshot model and its versioned JSON document.

A workspace snapshot is the complete persisted unit of state. On disk it is a
JSON object with camelCase keys:

    schemaVersion, selectedPresetRawValue, autoAdaptEnabled, tuning,
    runHistory, profiles, activeProfileID, benchmarkHistory,
    latestBenchmark, savedAt

Decoding first runs ``migrate_payload``, which upgrades older payloads one
schema version at a time, then validates the result against the pydantic
records in ``liquid_frames.records``. Any validation failure is reported as
``WorkspaceDecodeError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .benchmark import BenchmarkReport
from .config import DEFAULT_ENGINE_CONFIG, Preset, Tuning
from .errors import WorkspaceDecodeError
from .profiles import Profile, find_profile, sort_profiles
from .records import (
    EPOCH,
    BenchmarkRecord,
    ProfileRecord,
    RunRecord,
    TuningRecord,
    WorkspaceRecord,
    describe_validation_error,
)
from .runs import RunMetrics, ensure_utc, newest_first

CURRENT_SCHEMA_VERSION = DEFAULT_ENGINE_CONFIG.current_schema_version


@dataclass
class WorkspaceSnapshot:
    """Full persisted state of one motion workspace.

    ``active_profile_id`` may be None or stale on disk; consumers resolve it
    against ``profiles`` (see ``resolve_active_profile``).
    """

    schema_version: int = CURRENT_SCHEMA_VERSION
    selected_preset: Preset = Preset.BALANCED
    auto_adapt_enabled: bool = True
    tuning: Tuning = field(default_factory=Tuning)
    run_history: List[RunMetrics] = field(default_factory=list)
    profiles: List[Profile] = field(default_factory=list)
    active_profile_id: Optional[str] = None
    benchmark_history: List[BenchmarkReport] = field(default_factory=list)
    latest_benchmark: Optional[BenchmarkReport] = None
    saved_at: datetime = EPOCH

    def __post_init__(self) -> None:
        self.selected_preset = Preset(self.selected_preset)
        self.saved_at = ensure_utc(self.saved_at)

    def resolve_active_profile(self) -> Optional[Profile]:
        """Return the active profile (ids match case-insensitively), else the first."""
        active = find_profile(self.profiles, self.active_profile_id)
        if active is not None:
            return active
        return self.profiles[0] if self.profiles else None


# ---------------------------------------------------------------------------
# Schema migration
# ---------------------------------------------------------------------------


def _migrate_v1_to_v2(payload: Dict[str, Any]) -> Dict[str, Any]:
    # v2 introduced profiles and benchmark tracking
    payload.setdefault("profiles", [])
    payload.setdefault("activeProfileID", None)
    payload.setdefault("benchmarkHistory", [])
    payload.setdefault("latestBenchmark", None)
    return payload


MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    1: _migrate_v1_to_v2,
}


def stored_schema_version(payload: Mapping[str, Any]) -> int:
    version = payload.get("schemaVersion", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise WorkspaceDecodeError(f"schemaVersion must be an integer, got {version!r}")
    return version


def migrate_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Upgrade a decoded payload to the current schema.

    Returns a new mapping; ``payload`` is not modified. Payloads newer than the
    current schema are passed through unchanged. Fields still absent after
    migration take their record defaults during validation.
    """
    data = dict(payload)
    version = stored_schema_version(data)
    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is not None:
            data = step(data)
        version += 1
    return data


# ---------------------------------------------------------------------------
# Snapshot codec
# ---------------------------------------------------------------------------


def to_record(snapshot: WorkspaceSnapshot) -> WorkspaceRecord:
    latest = snapshot.latest_benchmark
    return WorkspaceRecord(
        schema_version=snapshot.schema_version,
        selected_preset=snapshot.selected_preset,
        auto_adapt_enabled=snapshot.auto_adapt_enabled,
        tuning=TuningRecord.from_tuning(snapshot.tuning),
        run_history=[RunRecord.from_run(run) for run in snapshot.run_history],
        profiles=[ProfileRecord.from_profile(profile) for profile in snapshot.profiles],
        active_profile_id=snapshot.active_profile_id,
        benchmark_history=[BenchmarkRecord.from_report(report) for report in snapshot.benchmark_history],
        latest_benchmark=BenchmarkRecord.from_report(latest) if latest is not None else None,
        saved_at=snapshot.saved_at,
    )


def from_record(record: WorkspaceRecord, schema_version: int) -> WorkspaceSnapshot:
    """Build a snapshot; histories are ordered newest-first and capped."""
    config = DEFAULT_ENGINE_CONFIG
    runs = newest_first(item.to_run() for item in record.run_history)
    benchmarks = sorted(
        (item.to_report() for item in record.benchmark_history),
        key=lambda report: report.generated_at,
        reverse=True,
    )
    latest = record.latest_benchmark
    return WorkspaceSnapshot(
        schema_version=schema_version,
        selected_preset=record.selected_preset,
        auto_adapt_enabled=record.auto_adapt_enabled,
        tuning=record.tuning.to_tuning(),
        run_history=runs[: config.run_history_limit],
        profiles=sort_profiles(item.to_profile() for item in record.profiles),
        active_profile_id=record.active_profile_id or None,
        benchmark_history=benchmarks[: config.benchmark_history_limit],
        latest_benchmark=latest.to_report() if latest is not None else None,
        saved_at=record.saved_at or EPOCH,
    )


def encode_snapshot(snapshot: WorkspaceSnapshot) -> Dict[str, Any]:
    return to_record(snapshot).to_payload()


def decode_snapshot(payload: Any) -> WorkspaceSnapshot:
    """Decode a JSON-compatible payload into a snapshot.

    The stored schema version is kept on the snapshot (absent means 1); the
    payload itself is migrated before validation.
    """
    if not isinstance(payload, Mapping):
        raise WorkspaceDecodeError(
            f"Workspace snapshot must be a JSON object, got {type(payload).__name__}."
        )
    version = stored_schema_version(payload)
    try:
        record = WorkspaceRecord.model_validate(migrate_payload(payload))
    except ValidationError as exc:
        raise WorkspaceDecodeError(describe_validation_error(exc)) from exc
    return from_record(record, version)
