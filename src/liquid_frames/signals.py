"""Gesture signal extraction.

Maps a raw drag displacement and its predicted end displacement into the
normalized signals consumed downstream:

- prep_progress: how far the pull has progressed toward a commit, in [0, 1]
- glow_pulse: visual intensity cue derived from prep and velocity, in [0, 1]
- velocity: projected flick strength, in [0, 1]
- bias: lateral lean of the gesture, in [-1, 1]
- energy: combined drive of prep and velocity, in [0, 1]

Every division is guarded with ``max(constant, x)`` so the outputs stay finite
for any finite input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from .config import Tuning, clamp

Vector = Tuple[float, float]


@dataclass(frozen=True)
class GestureSignals:
    prep_progress: float
    glow_pulse: float
    velocity: float
    bias: float
    energy: float

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        return (self.prep_progress, self.glow_pulse, self.velocity, self.bias, self.energy)


def _check_finite(name: str, vector: Vector) -> Tuple[float, float]:
    dx, dy = float(vector[0]), float(vector[1])
    if not (math.isfinite(dx) and math.isfinite(dy)):
        raise ValueError(f"{name} must contain finite components, got ({dx}, {dy}).")
    return dx, dy


def estimate_signals(translation: Vector, predicted_end: Vector, tuning: Tuning) -> GestureSignals:
    """Estimate gesture signals from the current and predicted drag translation.

    Args:
        translation: Current displacement (dx, dy) from the drag origin. Negative
            dy is an upward pull.
        predicted_end: Predicted end displacement (lookahead) of the drag.
        tuning: Motion tuning supplying pull distance, velocity scale and
            influence weights.

    Returns:
        GestureSignals with every component inside its documented bounds.
    """
    dx, dy = _check_finite("translation", translation)
    end_x, end_y = _check_finite("predicted_end", predicted_end)

    pull = max(0.0, -dy) + abs(dx) * 0.25
    prep_progress = min(1.0, pull / max(120.0, tuning.pull_distance))

    delta_x = end_x - dx
    delta_y = end_y - dy
    projected_distance = math.hypot(delta_x, delta_y)
    velocity = min(1.0, projected_distance / max(80.0, tuning.velocity_scale))

    horizontal_bias = dx / max(80.0, tuning.pull_distance * 0.8)
    projected_bias = delta_x / max(100.0, tuning.pull_distance)
    bias = clamp(horizontal_bias + projected_bias * tuning.bias_influence, -1.0, 1.0)

    energy = min(1.0, prep_progress * 0.35 + velocity * tuning.velocity_influence)
    glow_pulse = min(1.0, prep_progress * 1.1 + velocity * 0.2)

    return GestureSignals(
        prep_progress=prep_progress,
        glow_pulse=glow_pulse,
        velocity=velocity,
        bias=bias,
        energy=energy,
    )


class GesturePeakTracker:
    """Accumulates peak signals across one drag so a run can be recorded."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.prep_peak = 0.0
        self.velocity_peak = 0.0
        self.bias_peak = 0.0
        self.samples = 0

    def observe(self, signals: GestureSignals) -> None:
        self.samples += 1
        self.prep_peak = max(self.prep_peak, signals.prep_progress)
        self.velocity_peak = max(self.velocity_peak, signals.velocity)
        if abs(signals.bias) > abs(self.bias_peak):
            self.bias_peak = signals.bias

    def reached_threshold(self, tuning: Tuning) -> bool:
        return self.prep_peak >= tuning.gesture_threshold
