"""Synthetic benchmark scenarios for the motion benchmark suite.

This module provides the fixed scenario suite every benchmark runs against:
- Gentle Gesture: a measured upward pull with a soft follow-through
- Assertive Gesture: a long pull with a strong flick
- Lateral Bias Gesture: a pull leaning right with a diagonal flick
- Button Trigger: a button press, modelled as a full pull with no flick

The literals are part of the persisted contract: stored baselines compare
scenario scores by name, so changing any value makes existing baselines
non-comparable. Bump ``SCENARIO_SUITE_VERSION`` whenever the suite changes.

Example:
    >>> from liquid_frames.scenarios import load_benchmark_scenarios
    >>>
    >>> for scenario in load_benchmark_scenarios():
    ...     print(f"{scenario.name}: target {scenario.target_duration:.2f}s")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .runs import Trigger
from .signals import Vector

SCENARIO_SUITE_VERSION = 1


@dataclass(frozen=True)
class BenchmarkScenario:
    name: str
    translation: Vector
    predicted_end_translation: Vector
    target_duration: float
    trigger: Trigger


def _make_gentle_gesture() -> BenchmarkScenario:
    return BenchmarkScenario(
        name="Gentle Gesture",
        translation=(0.0, -200.0),
        predicted_end_translation=(0.0, -260.0),
        target_duration=3.3,
        trigger=Trigger.GESTURE,
    )


def _make_assertive_gesture() -> BenchmarkScenario:
    return BenchmarkScenario(
        name="Assertive Gesture",
        translation=(0.0, -300.0),
        predicted_end_translation=(0.0, -470.0),
        target_duration=2.9,
        trigger=Trigger.GESTURE,
    )


def _make_lateral_bias_gesture() -> BenchmarkScenario:
    return BenchmarkScenario(
        name="Lateral Bias Gesture",
        translation=(90.0, -170.0),
        predicted_end_translation=(170.0, -230.0),
        target_duration=3.2,
        trigger=Trigger.GESTURE,
    )


def _make_button_trigger() -> BenchmarkScenario:
    return BenchmarkScenario(
        name="Button Trigger",
        translation=(0.0, -320.0),
        predicted_end_translation=(0.0, -320.0),
        target_duration=3.0,
        trigger=Trigger.BUTTON,
    )


BENCHMARK_SCENARIOS: Tuple[BenchmarkScenario, ...] = (
    _make_gentle_gesture(),
    _make_assertive_gesture(),
    _make_lateral_bias_gesture(),
    _make_button_trigger(),
)


def load_benchmark_scenarios() -> Tuple[BenchmarkScenario, ...]:
    return BENCHMARK_SCENARIOS
