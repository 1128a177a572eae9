"""Unit tests for adaptive.py module."""

import pytest

from liquid_frames.adaptive import adapt
from liquid_frames.config import TUNING_RANGES, Tuning
from liquid_frames.runs import PhaseDurations, RunMetrics, Trigger


def create_test_run(t0, total, trigger=Trigger.BUTTON, prep=0.9, velocity=0.5, bias=0.0):
    return RunMetrics(
        timestamp=t0,
        trigger=trigger,
        prep_peak=prep,
        velocity_peak=velocity,
        bias_peak=bias,
        phases=PhaseDurations.from_total(total),
    )


class TestAdapt:
    """Test the adaptive engine."""

    def test_slow_run_speeds_up(self, t0):
        """Test a run 0.4s above target stiffens springs and shortens delays."""
        tuning = Tuning()
        adapted = adapt(tuning, create_test_run(t0, 1.35 + 0.4))
        assert adapted.split_stiffness > tuning.split_stiffness
        assert adapted.settle_stiffness > tuning.settle_stiffness
        assert adapted.pre_settle_delay < tuning.pre_settle_delay
        assert adapted.post_settle_delay < tuning.post_settle_delay
        assert adapted.split_stiffness == pytest.approx(180.0 * 1.04)
        assert adapted.post_settle_delay == pytest.approx(0.42 * 0.90)

    def test_fast_run_slows_down(self, t0):
        """Test a fast run adds damping and lengthens delays."""
        tuning = Tuning()
        adapted = adapt(tuning, create_test_run(t0, 0.9))
        assert adapted.split_damping == pytest.approx(22.0 * 1.04)
        assert adapted.settle_damping == pytest.approx(14.0 * 1.05)
        assert adapted.pre_settle_delay == pytest.approx(0.56 * 1.03)
        assert adapted.split_stiffness == tuning.split_stiffness

    def test_on_target_run_is_noop(self, t0):
        """Test that an on-target run with calm peaks changes nothing."""
        tuning = Tuning()
        assert adapt(tuning, create_test_run(t0, 1.35)) == tuning

    def test_fast_flick_damps_velocity(self, t0):
        """Test the velocity peak rule."""
        adapted = adapt(Tuning(), create_test_run(t0, 1.35, velocity=0.9))
        assert adapted.velocity_influence == pytest.approx(0.72 * 0.96)
        assert adapted.gesture_threshold == pytest.approx(0.63)

    def test_strong_bias_reduces_influence(self, t0):
        """Test the bias peak rule applies to either direction."""
        adapted = adapt(Tuning(), create_test_run(t0, 1.35, bias=-0.9))
        assert adapted.bias_influence == pytest.approx(0.45 * 0.95)

    def test_shallow_gesture_lowers_threshold(self, t0):
        """Test that a shallow gesture pull eases the commit threshold."""
        adapted = adapt(Tuning(), create_test_run(t0, 1.35, trigger=Trigger.GESTURE, prep=0.6))
        assert adapted.gesture_threshold == pytest.approx(0.61)
        assert adapted.pull_distance == pytest.approx(210.0 * 0.98)

    def test_shallow_button_run_ignored(self, t0):
        """Test that the prep rule only applies to gesture runs."""
        adapted = adapt(Tuning(), create_test_run(t0, 1.35, trigger=Trigger.BUTTON, prep=0.6))
        assert adapted.gesture_threshold == 0.62

    def test_result_is_normalized(self, t0):
        """Test that repeated adaptation stays inside the ranges."""
        tuning = Tuning()
        run = create_test_run(t0, 4.0, velocity=1.0, bias=1.0)
        for _ in range(200):
            tuning = adapt(tuning, run)
        for name, (low, high) in TUNING_RANGES.items():
            assert low <= getattr(tuning, name) <= high
        assert tuning.split_stiffness == 280.0
