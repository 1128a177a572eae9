"""Heuristic reliability scoring of a tuning and its recent runs.

Each rule below contributes to an integer risk score independently; the
messages of fired rules are reported in rule-declaration order.

- Split spring ratio (stiffness/damping) below 5.8: +1
- Combined settle delays above 1.55 s: +1
- Gesture threshold above 0.82: +1
- Velocity influence above 1.0: +1
- With at least 3 sampled runs, mean total duration above 1.85 s: +2
- With at least 3 sampled runs, duration population std dev above 0.3: +2

Score below 1 is healthy, 1 to 2 is caution, anything higher is unstable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np

from .config import DEFAULT_ENGINE_CONFIG, Tuning
from .runs import RunMetrics

HEALTHY_MESSAGE = "Motion profile is within target reliability bounds."


class QualityLevel(str, Enum):
    HEALTHY = "healthy"
    CAUTION = "caution"
    UNSTABLE = "unstable"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def rank(self) -> int:
        """0 for healthy through 2 for unstable; lower is better."""
        return _QUALITY_RANK[self]


_QUALITY_RANK = {
    QualityLevel.HEALTHY: 0,
    QualityLevel.CAUTION: 1,
    QualityLevel.UNSTABLE: 2,
}


@dataclass(frozen=True)
class QualityReport:
    level: QualityLevel
    messages: Tuple[str, ...]


def level_for_score(score: int) -> QualityLevel:
    if score < 1:
        return QualityLevel.HEALTHY
    if score <= 2:
        return QualityLevel.CAUTION
    return QualityLevel.UNSTABLE


def evaluate_quality(
    tuning: Tuning,
    recent_runs: Sequence[RunMetrics],
    sample_size: int = DEFAULT_ENGINE_CONFIG.quality_sample_size,
) -> QualityReport:
    """Score ``tuning`` plus the newest runs for reliability risk.

    Args:
        tuning: Tuning under evaluation (used as given, not normalized).
        recent_runs: Completed runs ordered newest-first; only the first
            ``sample_size`` are sampled.
        sample_size: Number of newest runs considered.

    Returns:
        QualityReport with the mapped level and the triggered messages, or a
        single reassuring message when no rule fired.
    """
    score = 0
    messages: List[str] = []

    spring_ratio = tuning.split_stiffness / max(1.0, tuning.split_damping)
    if spring_ratio < 5.8:
        score += 1
        messages.append("Split spring ratio is low. Motion may feel heavy or muddy.")

    if tuning.pre_settle_delay + tuning.post_settle_delay > 1.55:
        score += 1
        messages.append("Combined settle delays are high. End-to-end latency may feel slow.")

    if tuning.gesture_threshold > 0.82:
        score += 1
        messages.append("Gesture threshold is high. Branch initiation may feel unresponsive.")

    if tuning.velocity_influence > 1.0:
        score += 1
        messages.append("Velocity influence is very high. Behavior may become inconsistent.")

    sample = list(recent_runs)[: max(0, sample_size)]
    if len(sample) >= 3:
        durations = np.array([run.total_duration for run in sample], dtype=float)
        mean = float(np.mean(durations))
        deviation = float(np.std(durations))

        if mean > 1.85:
            score += 2
            messages.append("Recent runs are too slow on average.")
        if deviation > 0.3:
            score += 2
            messages.append("Run timing variance is high. Motion is not yet reliable.")

    if not messages:
        messages.append(HEALTHY_MESSAGE)

    return QualityReport(level=level_for_score(score), messages=tuple(messages))
