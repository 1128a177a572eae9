"""Run records: one completed execution of the motion sequence."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Sequence

from .config import clamp, clamp01

SYNTHETIC_PHASE_SPLIT = (0.28, 0.44, 0.28)


class Trigger(str, Enum):
    GESTURE = "gesture"
    BUTTON = "button"
    REPLAY = "replay"


def ensure_utc(moment: datetime) -> datetime:
    """Return ``moment`` as an aware UTC datetime (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PhaseDurations:
    """Durations [s] of the three timed phases of one run."""

    pre_split: float
    pre_settle: float
    settle_tail: float

    def __post_init__(self) -> None:
        for name in ("pre_split", "pre_settle", "settle_tail"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(
                    f"{name} must be a finite duration, got {value}.\n"
                    f"Phase durations are measured in seconds."
                )
            object.__setattr__(self, name, max(0.0, value))

    @property
    def total(self) -> float:
        return self.pre_split + self.pre_settle + self.settle_tail

    @classmethod
    def from_total(cls, total: float, split: Sequence[float] = SYNTHETIC_PHASE_SPLIT) -> "PhaseDurations":
        """Distribute ``total`` across the phases using the given fractions."""
        pre_split, pre_settle, settle_tail = split
        return cls(
            pre_split=total * pre_split,
            pre_settle=total * pre_settle,
            settle_tail=total * settle_tail,
        )


@dataclass(frozen=True)
class RunMetrics:
    """One completed motion run, reduced to peak signals and phase durations.

    Attributes:
        timestamp: Completion time (stored as aware UTC).
        trigger: What started the run.
        prep_peak: Highest prep progress observed, in [0, 1].
        velocity_peak: Highest gesture velocity observed, in [0, 1].
        bias_peak: Signed lateral bias with the largest magnitude, in [-1, 1].
        phases: Measured phase durations.
        id: Opaque identifier, generated when omitted.

    Peaks outside their ranges are clamped; non-finite peaks raise ValueError.
    Instances are immutable once created.
    """

    timestamp: datetime
    trigger: Trigger
    prep_peak: float
    velocity_peak: float
    bias_peak: float
    phases: PhaseDurations
    id: str = field(default_factory=lambda: str(uuid.uuid4()).upper())

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "trigger", Trigger(self.trigger))
        for name in ("prep_peak", "velocity_peak", "bias_peak"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}.")
        object.__setattr__(self, "prep_peak", clamp01(float(self.prep_peak)))
        object.__setattr__(self, "velocity_peak", clamp01(float(self.velocity_peak)))
        object.__setattr__(self, "bias_peak", clamp(float(self.bias_peak), -1.0, 1.0))

    @property
    def total_duration(self) -> float:
        return self.phases.total


def newest_first(runs: Iterable[RunMetrics]) -> List[RunMetrics]:
    return sorted(runs, key=lambda run: run.timestamp, reverse=True)


def append_capped(history: Sequence[RunMetrics], run: RunMetrics, limit: int) -> List[RunMetrics]:
    """Prepend ``run`` to a newest-first history and drop the oldest beyond ``limit``."""
    return [run, *history][: max(0, limit)]
