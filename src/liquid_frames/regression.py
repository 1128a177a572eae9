"""Regression detection of a fresh benchmark against a stored baseline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Tuple

from .benchmark import BenchmarkReport, Grade
from .runs import ensure_utc

FAIL_OVERALL_DELTA = -6.0
FAIL_CONSISTENCY_DELTA = -8.0
FAIL_SCENARIO_DELTA = -12.0
WARN_OVERALL_DELTA = -2.5
WARN_CONSISTENCY_DELTA = -4.0
WARN_SCENARIO_DELTA = -6.0

IN_LINE_MESSAGE = "Benchmark is in line with baseline."


class RegressionStatus(str, Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    RegressionStatus.PASS: "PASS",
    RegressionStatus.WARNING: "WARN",
    RegressionStatus.FAIL: "FAIL",
}


@dataclass(frozen=True)
class BenchmarkBaseline:
    """Frozen scores of one prior benchmark report, attached to a profile."""

    captured_at: datetime
    overall_score: float
    consistency_score: float
    grade: Grade
    scenario_scores: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "captured_at", ensure_utc(self.captured_at))
        object.__setattr__(self, "grade", Grade(self.grade))
        object.__setattr__(self, "scenario_scores", dict(self.scenario_scores))

    @classmethod
    def from_report(cls, report: BenchmarkReport) -> "BenchmarkBaseline":
        return cls(
            captured_at=report.generated_at,
            overall_score=report.overall_score,
            consistency_score=report.consistency_score,
            grade=report.grade,
            scenario_scores=report.scenario_scores(),
        )


@dataclass(frozen=True)
class Regression:
    status: RegressionStatus
    overall_delta: float
    consistency_delta: float
    worst_scenario_delta: float
    messages: Tuple[str, ...]


def _scenario_deltas(report: BenchmarkReport, baseline_scores: Dict[str, float]) -> List[float]:
    deltas = []
    for scenario in report.scenarios:
        baseline_score = baseline_scores.get(scenario.name)
        deltas.append(0.0 if baseline_score is None else scenario.score - baseline_score)
    return deltas


def compare(report: BenchmarkReport, baseline: BenchmarkBaseline) -> Regression:
    """Diff ``report`` against ``baseline``.

    A scenario missing from the baseline contributes a delta of 0. The worst
    scenario delta is 0 when the report has no scenarios.
    """
    overall_delta = report.overall_score - baseline.overall_score
    consistency_delta = report.consistency_score - baseline.consistency_score
    deltas = _scenario_deltas(report, dict(baseline.scenario_scores))
    worst_delta = min(deltas) if deltas else 0.0

    if (
        overall_delta < FAIL_OVERALL_DELTA
        or consistency_delta < FAIL_CONSISTENCY_DELTA
        or worst_delta < FAIL_SCENARIO_DELTA
    ):
        status = RegressionStatus.FAIL
    elif (
        overall_delta < WARN_OVERALL_DELTA
        or consistency_delta < WARN_CONSISTENCY_DELTA
        or worst_delta < WARN_SCENARIO_DELTA
    ):
        status = RegressionStatus.WARNING
    else:
        status = RegressionStatus.PASS

    messages: List[str] = []
    if overall_delta < FAIL_OVERALL_DELTA:
        messages.append(f"Overall score dropped significantly ({overall_delta:+.1f}).")
    elif overall_delta < WARN_OVERALL_DELTA:
        messages.append(f"Overall score regressed mildly ({overall_delta:+.1f}).")
    elif overall_delta > -WARN_OVERALL_DELTA:
        messages.append(f"Overall score improved ({overall_delta:+.1f}).")

    if consistency_delta < WARN_CONSISTENCY_DELTA:
        messages.append(f"Consistency regressed ({consistency_delta:+.1f}).")
    elif consistency_delta > -WARN_CONSISTENCY_DELTA:
        messages.append(f"Consistency improved ({consistency_delta:+.1f}).")

    if worst_delta < FAIL_SCENARIO_DELTA:
        messages.append(f"Worst scenario regressed heavily ({worst_delta:+.1f}).")
    elif worst_delta < WARN_SCENARIO_DELTA:
        messages.append(f"A scenario regressed mildly ({worst_delta:+.1f}).")

    if not messages:
        messages.append(IN_LINE_MESSAGE)

    return Regression(
        status=status,
        overall_delta=overall_delta,
        consistency_delta=consistency_delta,
        worst_scenario_delta=worst_delta,
        messages=tuple(messages),
    )
