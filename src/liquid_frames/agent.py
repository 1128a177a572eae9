"""Automation commands: release policy checks, benchmarks and snapshot merges.

Each command returns a ``CommandResult`` holding a JSON-compatible payload
and a process exit code. Policy failures are ordinary results (exit code 2),
not exceptions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .benchmark import BenchmarkReport, Grade, run_suite
from .config import Preset, default_workspace_path
from .data_io import load_workspace, save_text, save_workspace
from .errors import WorkspaceNotFoundError
from .gate import ReleaseGateReport, ReleaseGateStatus, evaluate_release_gate
from .merge import merge_workspaces
from .profiles import find_profile
from .quality import QualityLevel, QualityReport, evaluate_quality
from .regression import compare
from .runs import newest_first, utc_now
from .records import format_timestamp

logger = logging.getLogger(__name__)

PAYLOAD_SCHEMA_VERSION = 1

EXIT_SUCCESS = 0
EXIT_POLICY_FAILED = 2
EXIT_USAGE = 64


@dataclass(frozen=True)
class CheckPolicy:
    """Operator thresholds applied on top of the release gate.

    **Thresholds:**
    - min_runs: minimum recorded runs
    - require_grade: lowest acceptable benchmark grade
    - require_quality: worst acceptable quality level
    - allow_attention: whether an ATTENTION gate status passes
    """

    min_runs: int = 5
    require_grade: Grade = Grade.B
    require_quality: QualityLevel = QualityLevel.HEALTHY
    allow_attention: bool = False

    def __post_init__(self) -> None:
        if self.min_runs < 0:
            raise ValueError(f"min_runs must be a non-negative integer, got {self.min_runs}")
        object.__setattr__(self, "require_grade", Grade(self.require_grade))
        object.__setattr__(self, "require_quality", QualityLevel(self.require_quality))

    def thresholds(self) -> Dict[str, Any]:
        return {
            "minRuns": self.min_runs,
            "requireGrade": self.require_grade.value,
            "requireQuality": self.require_quality.value,
            "allowAttention": self.allow_attention,
        }


@dataclass(frozen=True)
class CommandResult:
    payload: Dict[str, Any]
    exit_code: int

    @property
    def passed(self) -> bool:
        return self.exit_code == EXIT_SUCCESS

    def to_json(self, pretty: bool = False) -> str:
        return json.dumps(self.payload, sort_keys=True, indent=2 if pretty else None)


def policy_failures(
    gate: ReleaseGateReport,
    benchmark: BenchmarkReport,
    quality: QualityReport,
    run_count: int,
    policy: CheckPolicy,
) -> List[str]:
    failures: List[str] = []
    status_passes = gate.status == ReleaseGateStatus.READY or (
        gate.status == ReleaseGateStatus.ATTENTION and policy.allow_attention
    )
    if not status_passes:
        failures.append(f"Release gate status {gate.status.value} is below required status.")
    if benchmark.grade.rank < policy.require_grade.rank:
        failures.append(
            f"Benchmark grade {benchmark.grade.value} is below required {policy.require_grade.value}."
        )
    if quality.level.rank > policy.require_quality.rank:
        failures.append(
            f"Quality level {quality.level.value} is below required {policy.require_quality.value}."
        )
    if run_count < policy.min_runs:
        failures.append(f"Run count {run_count} is below required minimum {policy.min_runs}.")
    return failures


def _failed_check_payload(
    workspace_path: Path,
    policy: CheckPolicy,
    failure: str,
    finding: str,
    run_count: int = 0,
    benchmark_history_count: int = 0,
) -> Dict[str, Any]:
    return {
        "schemaVersion": PAYLOAD_SCHEMA_VERSION,
        "generatedAt": format_timestamp(utc_now()),
        "workspacePath": str(workspace_path),
        "activeProfile": None,
        "releaseGateStatus": ReleaseGateStatus.BLOCKED.value,
        "qualityLevel": QualityLevel.UNSTABLE.value,
        "benchmarkGrade": None,
        "runCount": run_count,
        "benchmarkHistoryCount": benchmark_history_count,
        "passed": False,
        "policyFailures": [failure],
        "gateFindings": [finding],
        "benchmarkOverallScore": None,
        "benchmarkConsistencyScore": None,
        "regressionStatus": None,
        "thresholds": policy.thresholds(),
    }


def run_check(
    workspace_path: Optional[Path] = None,
    policy: Optional[CheckPolicy] = None,
    export_markdown: Optional[Path] = None,
) -> CommandResult:
    """Evaluate the release gate of a stored workspace against ``policy``.

    The active profile's tuning is evaluated; the cached latest benchmark is
    reused when present, otherwise the suite runs. A missing workspace or a
    workspace without profiles yields a blocked, failed payload.
    """
    policy = policy or CheckPolicy()
    path = Path(workspace_path) if workspace_path is not None else default_workspace_path()

    try:
        snapshot = load_workspace(path)
    except WorkspaceNotFoundError:
        logger.warning("Workspace snapshot not found at %s", path)
        payload = _failed_check_payload(
            path, policy, "Workspace snapshot not found.", f"Expected snapshot at {path}."
        )
        return CommandResult(payload=payload, exit_code=EXIT_POLICY_FAILED)

    profiles = [profile.with_normalized_metadata() for profile in snapshot.profiles]
    profile = find_profile(profiles, snapshot.active_profile_id) or (profiles[0] if profiles else None)
    if profile is None:
        payload = _failed_check_payload(
            path,
            policy,
            "No profiles were found in workspace snapshot.",
            "No active profile is available.",
            run_count=len(snapshot.run_history),
            benchmark_history_count=len(snapshot.benchmark_history),
        )
        return CommandResult(payload=payload, exit_code=EXIT_POLICY_FAILED)

    runs = newest_first(snapshot.run_history)
    quality = evaluate_quality(profile.tuning, runs)
    benchmark = snapshot.latest_benchmark or run_suite(profile.tuning)
    regression = compare(benchmark, profile.baseline) if profile.baseline is not None else None

    gate = evaluate_release_gate(
        profile=profile,
        profile_is_dirty=False,
        quality=quality,
        benchmark=benchmark,
        regression=regression,
        latest_run=runs[0] if runs else None,
        run_count=len(runs),
        benchmark_history_count=len(snapshot.benchmark_history),
        workspace_path=str(path),
    )

    if export_markdown is not None:
        save_text(gate.markdown, Path(export_markdown))
        logger.info("Release gate report written to %s", export_markdown)

    failures = policy_failures(gate, benchmark, quality, len(runs), policy)
    passed = not failures
    payload = {
        "schemaVersion": PAYLOAD_SCHEMA_VERSION,
        "generatedAt": format_timestamp(utc_now()),
        "workspacePath": str(path),
        "activeProfile": profile.name,
        "releaseGateStatus": gate.status.value,
        "qualityLevel": quality.level.value,
        "benchmarkGrade": benchmark.grade.value,
        "runCount": len(runs),
        "benchmarkHistoryCount": len(snapshot.benchmark_history),
        "passed": passed,
        "policyFailures": failures,
        "gateFindings": list(gate.findings),
        "benchmarkOverallScore": benchmark.overall_score,
        "benchmarkConsistencyScore": benchmark.consistency_score,
        "regressionStatus": regression.status.value if regression is not None else None,
        "thresholds": policy.thresholds(),
    }
    return CommandResult(payload=payload, exit_code=EXIT_SUCCESS if passed else EXIT_POLICY_FAILED)


def run_benchmark(preset: Preset = Preset.BALANCED) -> CommandResult:
    preset = Preset(preset)
    report = run_suite(preset.tuning)
    payload = {
        "schemaVersion": PAYLOAD_SCHEMA_VERSION,
        "generatedAt": format_timestamp(utc_now()),
        "preset": preset.value,
        "grade": report.grade.value,
        "overallScore": report.overall_score,
        "consistencyScore": report.consistency_score,
        "qualityLevel": report.quality.level.value,
        "scenarios": [
            {
                "name": scenario.name,
                "trigger": scenario.trigger.value,
                "estimatedDuration": scenario.estimated_duration,
                "score": scenario.score,
            }
            for scenario in report.scenarios
        ],
    }
    return CommandResult(payload=payload, exit_code=EXIT_SUCCESS)


def run_merge(current: Path, incoming: Path, output: Optional[Path] = None) -> CommandResult:
    """Merge two snapshot files and write the result to ``output`` (default: ``current``).

    Raises:
        WorkspaceNotFoundError: Either input does not exist.
        WorkspaceDecodeError: Either input cannot be decoded.
    """
    current_snapshot = load_workspace(Path(current))
    incoming_snapshot = load_workspace(Path(incoming))
    merged = merge_workspaces(current_snapshot, incoming_snapshot)
    target = save_workspace(merged, Path(output) if output is not None else Path(current))
    active = merged.resolve_active_profile()
    payload = {
        "schemaVersion": PAYLOAD_SCHEMA_VERSION,
        "generatedAt": format_timestamp(utc_now()),
        "outputPath": str(target),
        "workspaceSchemaVersion": merged.schema_version,
        "activeProfile": active.name if active is not None else None,
        "profileCount": len(merged.profiles),
        "runCount": len(merged.run_history),
        "benchmarkHistoryCount": len(merged.benchmark_history),
        "savedAt": format_timestamp(merged.saved_at),
    }
    return CommandResult(payload=payload, exit_code=EXIT_SUCCESS)
