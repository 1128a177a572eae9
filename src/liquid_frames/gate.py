"""Release gate: a ternary ship verdict over quality, benchmark and regression."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .benchmark import BenchmarkReport, Grade
from .config import DEFAULT_ENGINE_CONFIG
from .profiles import Profile
from .quality import QualityLevel, QualityReport
from .regression import Regression, RegressionStatus
from .runs import RunMetrics, ensure_utc, utc_now

RELEASE_TARGET_GRADE = Grade.B
ALL_PASSED_MESSAGE = "All release gate checks passed."


class ReleaseGateStatus(str, Enum):
    READY = "ready"
    ATTENTION = "attention"
    BLOCKED = "blocked"

    @property
    def label(self) -> str:
        return self.value.upper()

    @property
    def rank(self) -> int:
        """2 for ready down to 0 for blocked; higher is better."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    ReleaseGateStatus.READY: 2,
    ReleaseGateStatus.ATTENTION: 1,
    ReleaseGateStatus.BLOCKED: 0,
}


@dataclass(frozen=True)
class ReleaseGateReport:
    """Derived, non-persisted release verdict for one profile.

    Attributes:
        generated_at: When the gate was evaluated.
        workspace_path: Snapshot the inputs came from, for display only.
        profile: Profile under evaluation.
        profile_is_dirty: Current tuning differs from the profile's saved tuning.
        quality: Quality report of the current tuning and recent runs.
        benchmark: Benchmark report, if one is available.
        regression: Comparison against the profile baseline, if one exists.
        latest_run: Most recent recorded run, if any.
        run_count: Number of recorded runs.
        benchmark_history_count: Number of retained benchmark reports.
        status: The verdict.
        findings: Contributing conditions in fixed order.
    """

    generated_at: datetime
    workspace_path: str
    profile: Profile
    profile_is_dirty: bool
    quality: QualityReport
    benchmark: Optional[BenchmarkReport]
    regression: Optional[Regression]
    latest_run: Optional[RunMetrics]
    run_count: int
    benchmark_history_count: int
    status: ReleaseGateStatus
    findings: Tuple[str, ...]

    @property
    def markdown(self) -> str:
        from .reporting import render_release_gate_markdown

        return render_release_gate_markdown(self)


def gate_status(
    profile_is_dirty: bool,
    quality_level: QualityLevel,
    benchmark: Optional[BenchmarkReport],
    regression: Optional[Regression],
    run_count: int,
    min_runs: int = DEFAULT_ENGINE_CONFIG.release_min_runs,
) -> ReleaseGateStatus:
    if (
        profile_is_dirty
        or quality_level == QualityLevel.UNSTABLE
        or (benchmark is not None and benchmark.grade in (Grade.C, Grade.D))
        or (regression is not None and regression.status == RegressionStatus.FAIL)
    ):
        return ReleaseGateStatus.BLOCKED
    if (
        quality_level == QualityLevel.CAUTION
        or benchmark is None
        or regression is None
        or regression.status == RegressionStatus.WARNING
        or run_count < min_runs
    ):
        return ReleaseGateStatus.ATTENTION
    return ReleaseGateStatus.READY


def gate_findings(
    profile_is_dirty: bool,
    quality_level: QualityLevel,
    benchmark: Optional[BenchmarkReport],
    regression: Optional[Regression],
    run_count: int,
    min_runs: int = DEFAULT_ENGINE_CONFIG.release_min_runs,
) -> List[str]:
    findings: List[str] = []
    if profile_is_dirty:
        findings.append("Active profile has unsaved tuning changes. Save or revert before release.")

    if quality_level == QualityLevel.UNSTABLE:
        findings.append("Quality level is UNSTABLE. Resolve reliability findings before release.")
    elif quality_level == QualityLevel.CAUTION:
        findings.append("Quality level is CAUTION. Review reliability findings before release.")

    if benchmark is not None and benchmark.grade in (Grade.C, Grade.D):
        findings.append(
            f"Benchmark grade {benchmark.grade.value} is below release target {RELEASE_TARGET_GRADE.value}."
        )
    if benchmark is None:
        findings.append("No benchmark report is available. Run the benchmark suite.")

    if regression is None:
        findings.append("No baseline regression is available for the active profile.")
    elif regression.status == RegressionStatus.FAIL:
        findings.append("Baseline regression is FAIL against the stored baseline.")
    elif regression.status == RegressionStatus.WARNING:
        findings.append("Baseline regression is WARN against the stored baseline.")

    if run_count < min_runs:
        findings.append(
            f"Only {run_count} recorded run(s); at least {min_runs} are required for release confidence."
        )
    return findings


def evaluate_release_gate(
    profile: Profile,
    profile_is_dirty: bool,
    quality: QualityReport,
    benchmark: Optional[BenchmarkReport],
    regression: Optional[Regression],
    latest_run: Optional[RunMetrics],
    run_count: int,
    benchmark_history_count: int,
    workspace_path: str = "",
    generated_at: Optional[datetime] = None,
    min_runs: int = DEFAULT_ENGINE_CONFIG.release_min_runs,
) -> ReleaseGateReport:
    """Combine the release signals into a verdict.

    BLOCKED wins over ATTENTION, which wins over READY. When no finding
    applies, the report carries a single all-passed message.
    """
    status = gate_status(profile_is_dirty, quality.level, benchmark, regression, run_count, min_runs)
    findings = gate_findings(profile_is_dirty, quality.level, benchmark, regression, run_count, min_runs)
    if not findings:
        findings = [ALL_PASSED_MESSAGE]

    return ReleaseGateReport(
        generated_at=ensure_utc(generated_at) if generated_at is not None else utc_now(),
        workspace_path=workspace_path,
        profile=profile,
        profile_is_dirty=profile_is_dirty,
        quality=quality,
        benchmark=benchmark,
        regression=regression,
        latest_run=latest_run,
        run_count=run_count,
        benchmark_history_count=benchmark_history_count,
        status=status,
        findings=tuple(findings),
    )
