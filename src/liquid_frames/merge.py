"""Reconciliation of two independently modified workspace snapshots.

The merge is last-writer-wins per entity:

- authority: the snapshot with the later ``saved_at`` (ties go to incoming);
  the selected preset, auto-adapt flag and current tuning come from it.
- profiles: union by id; the later ``updated_at`` wins, ties go to incoming.
- runs and benchmark reports: union, deduplicated on a composite key with
  floats rounded to 3 decimals, newest-first, capped.
- latest benchmark: newest of incoming.latest, current.latest and the first
  merged history entry.
- active profile: first of incoming, authority, current that still resolves,
  else the first merged profile.

Nothing that exists in only one input is dropped (other than by the caps).
"""

from __future__ import annotations

import logging
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, TypeVar

from .benchmark import BenchmarkReport
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .profiles import Profile, find_profile, sort_profiles
from .runs import RunMetrics, newest_first
from .workspace import CURRENT_SCHEMA_VERSION, WorkspaceSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEDUP_DECIMALS = 3


def _round(value: float) -> float:
    return round(value, DEDUP_DECIMALS)


def run_key(run: RunMetrics) -> tuple:
    return (
        _round(run.timestamp.timestamp()),
        run.trigger.value,
        _round(run.prep_peak),
        _round(run.velocity_peak),
        _round(run.bias_peak),
        _round(run.phases.pre_split),
        _round(run.phases.pre_settle),
        _round(run.phases.settle_tail),
    )


def benchmark_key(report: BenchmarkReport) -> tuple:
    return (
        _round(report.generated_at.timestamp()),
        _round(report.overall_score),
        _round(report.consistency_score),
        report.grade.value,
    )


def _dedup(items: Iterable[T], key) -> List[T]:
    seen = set()
    unique: List[T] = []
    for item in items:
        k: Hashable = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def merge_profiles(current: Sequence[Profile], incoming: Sequence[Profile]) -> List[Profile]:
    """Union two profile lists by id, keeping the newer record of each id."""
    merged: Dict[str, Profile] = {}
    for profile in current:
        merged[profile.id] = profile.with_normalized_metadata()
    for profile in incoming:
        candidate = profile.with_normalized_metadata()
        existing = merged.get(candidate.id)
        if existing is None or candidate.updated_at >= existing.updated_at:
            merged[candidate.id] = candidate
    return sort_profiles(merged.values())


def _latest_benchmark(candidates: Iterable[Optional[BenchmarkReport]]) -> Optional[BenchmarkReport]:
    latest = None
    for report in candidates:
        if report is None:
            continue
        if latest is None or report.generated_at > latest.generated_at:
            latest = report
    return latest


def _resolve_active_id(profiles: Sequence[Profile], candidates: Iterable[Optional[str]]) -> Optional[str]:
    for candidate in candidates:
        match = find_profile(profiles, candidate)
        if match is not None:
            return match.id
    return profiles[0].id if profiles else None


def merge_workspaces(
    current: WorkspaceSnapshot,
    incoming: WorkspaceSnapshot,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> WorkspaceSnapshot:
    """Merge ``incoming`` into ``current`` and return a new snapshot.

    Neither input is modified.

    Args:
        current: The locally held snapshot.
        incoming: The snapshot being imported.
        config: Supplies the run and benchmark history caps.

    Returns:
        A snapshot holding the union of both inputs.
    """
    authority = incoming if incoming.saved_at >= current.saved_at else current

    profiles = merge_profiles(current.profiles, incoming.profiles)

    runs = newest_first(_dedup([*current.run_history, *incoming.run_history], run_key))
    runs = runs[: config.run_history_limit]

    benchmarks = sorted(
        _dedup([*current.benchmark_history, *incoming.benchmark_history], benchmark_key),
        key=lambda report: report.generated_at,
        reverse=True,
    )[: config.benchmark_history_limit]

    latest = _latest_benchmark(
        [incoming.latest_benchmark, current.latest_benchmark, benchmarks[0] if benchmarks else None]
    )

    active_id = _resolve_active_id(
        profiles,
        [incoming.active_profile_id, authority.active_profile_id, current.active_profile_id],
    )

    merged = WorkspaceSnapshot(
        schema_version=max(current.schema_version, incoming.schema_version, CURRENT_SCHEMA_VERSION),
        selected_preset=authority.selected_preset,
        auto_adapt_enabled=authority.auto_adapt_enabled,
        tuning=authority.tuning,
        run_history=runs,
        profiles=profiles,
        active_profile_id=active_id,
        benchmark_history=benchmarks,
        latest_benchmark=latest,
        saved_at=max(current.saved_at, incoming.saved_at),
    )
    logger.info(
        "Merged workspaces: %d profiles, %d runs, %d benchmarks (authority: %s)",
        len(profiles),
        len(runs),
        len(benchmarks),
        "incoming" if authority is incoming else "current",
    )
    return merged
