"""Single-step feedback controller nudging a tuning toward its target duration."""

from __future__ import annotations

from dataclasses import replace

from .config import DEFAULT_ENGINE_CONFIG, Tuning
from .runs import RunMetrics, Trigger


def adapt(
    tuning: Tuning,
    run: RunMetrics,
    target_duration: float = DEFAULT_ENGINE_CONFIG.target_duration,
) -> Tuning:
    """Return the tuning adjusted by one deterministic step based on ``run``.

    Rules are applied in order on the same working copy; only the two
    duration branches are mutually exclusive. The result is normalized.
    """
    t = tuning

    if run.total_duration > target_duration + 0.18:
        # too slow: stiffen springs, shorten settle delays
        t = replace(
            t,
            split_stiffness=t.split_stiffness * 1.04,
            settle_stiffness=t.settle_stiffness * 1.05,
            pre_settle_delay=t.pre_settle_delay * 0.93,
            post_settle_delay=t.post_settle_delay * 0.90,
        )
    elif run.total_duration < target_duration - 0.20:
        t = replace(
            t,
            split_damping=t.split_damping * 1.04,
            settle_damping=t.settle_damping * 1.05,
            pre_settle_delay=t.pre_settle_delay * 1.03,
            post_settle_delay=t.post_settle_delay * 1.03,
        )

    if run.velocity_peak > 0.82:
        t = replace(
            t,
            velocity_influence=t.velocity_influence * 0.96,
            gesture_threshold=t.gesture_threshold + 0.01,
        )

    if abs(run.bias_peak) > 0.82:
        t = replace(t, bias_influence=t.bias_influence * 0.95)

    if run.prep_peak < 0.74 and run.trigger == Trigger.GESTURE:
        t = replace(
            t,
            gesture_threshold=t.gesture_threshold - 0.01,
            pull_distance=t.pull_distance * 0.98,
        )

    return t.normalized()
