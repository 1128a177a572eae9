"""Unit tests for signals.py module."""

import math

import numpy as np
import pytest

from liquid_frames.config import Preset, Tuning
from liquid_frames.signals import GesturePeakTracker, GestureSignals, estimate_signals


class TestEstimateSignals:
    """Test estimate_signals formulas."""

    def test_known_values(self):
        """Test a hand-computed diagonal pull against the balanced tuning."""
        signals = estimate_signals((40.0, -100.0), (60.0, -180.0), Tuning())

        pull = 100.0 + 40.0 * 0.25
        prep = pull / 210.0
        velocity = math.hypot(20.0, -80.0) / 160.0
        bias = 40.0 / 168.0 + (20.0 / 210.0) * 0.45

        assert signals.prep_progress == pytest.approx(prep)
        assert signals.velocity == pytest.approx(velocity)
        assert signals.bias == pytest.approx(bias)
        assert signals.energy == pytest.approx(0.35 * prep + 0.72 * velocity)
        assert signals.glow_pulse == pytest.approx(1.1 * prep + 0.2 * velocity)

    def test_full_pull_without_flick(self):
        """Test that a full pull saturates prep while velocity stays zero."""
        signals = estimate_signals((0.0, -210.0), (0.0, -210.0), Tuning())
        assert signals.prep_progress == pytest.approx(1.0)
        assert signals.velocity == 0.0
        assert signals.bias == 0.0
        assert signals.glow_pulse == 1.0
        assert signals.energy == pytest.approx(0.35)

    def test_downward_drag_has_no_pull(self):
        """Test that dragging down contributes nothing to prep."""
        signals = estimate_signals((0.0, 150.0), (0.0, 150.0), Tuning())
        assert signals.prep_progress == 0.0

    def test_bias_is_clamped(self):
        """Test that extreme lateral drags saturate bias."""
        right = estimate_signals((5000.0, 0.0), (9000.0, 0.0), Tuning())
        left = estimate_signals((-5000.0, 0.0), (-9000.0, 0.0), Tuning())
        assert right.bias == 1.0
        assert left.bias == -1.0

    def test_small_pull_distance_is_guarded(self):
        """Test that the pull distance floor of 120 applies."""
        tuning = Tuning(pull_distance=10.0)
        signals = estimate_signals((0.0, -60.0), (0.0, -60.0), tuning)
        assert signals.prep_progress == pytest.approx(0.5)

    @pytest.mark.parametrize(
        "translation, predicted",
        [
            ((math.nan, 0.0), (0.0, 0.0)),
            ((0.0, 0.0), (0.0, math.inf)),
        ],
    )
    def test_non_finite_input_rejected(self, translation, predicted):
        """Test that non-finite vectors raise ValueError."""
        with pytest.raises(ValueError, match="finite"):
            estimate_signals(translation, predicted, Tuning())

    def test_as_tuple_order(self):
        """Test the tuple ordering of the signals."""
        signals = GestureSignals(0.1, 0.2, 0.3, 0.4, 0.5)
        assert signals.as_tuple() == (0.1, 0.2, 0.3, 0.4, 0.5)


class TestSignalMonotonicity:
    """Test monotonicity and bounds of the estimator."""

    def test_prep_non_decreasing_with_pull(self):
        """Test that a longer pull never decreases prep progress."""
        for preset in Preset:
            previous = -1.0
            for pull in np.linspace(0.0, 600.0, 61):
                signals = estimate_signals((15.0, -pull), (15.0, -pull - 40.0), preset.tuning)
                assert signals.prep_progress >= previous
                previous = signals.prep_progress

    def test_velocity_non_decreasing_with_delta(self):
        """Test that a larger predicted delta never decreases velocity."""
        for preset in Preset:
            previous = -1.0
            for delta in np.linspace(0.0, 500.0, 51):
                signals = estimate_signals((0.0, -100.0), (delta * 0.3, -100.0 - delta), preset.tuning)
                assert signals.velocity >= previous
                previous = signals.velocity

    def test_outputs_bounded_and_finite(self):
        """Test output bounds across a random grid of inputs."""
        rng = np.random.default_rng(11)
        for _ in range(300):
            translation = tuple(rng.uniform(-1000.0, 1000.0, size=2))
            predicted = tuple(rng.uniform(-1000.0, 1000.0, size=2))
            signals = estimate_signals(translation, predicted, Tuning())
            for value in signals.as_tuple():
                assert math.isfinite(value)
            assert 0.0 <= signals.prep_progress <= 1.0
            assert 0.0 <= signals.glow_pulse <= 1.0
            assert 0.0 <= signals.velocity <= 1.0
            assert -1.0 <= signals.bias <= 1.0
            assert 0.0 <= signals.energy <= 1.0


class TestGesturePeakTracker:
    """Test GesturePeakTracker accumulation."""

    def test_tracks_peaks(self):
        """Test peak prep, velocity and largest-magnitude bias."""
        tracker = GesturePeakTracker()
        tracker.observe(GestureSignals(0.3, 0.3, 0.6, 0.2, 0.4))
        tracker.observe(GestureSignals(0.7, 0.8, 0.1, -0.5, 0.3))
        tracker.observe(GestureSignals(0.5, 0.6, 0.2, 0.4, 0.3))
        assert tracker.samples == 3
        assert tracker.prep_peak == 0.7
        assert tracker.velocity_peak == 0.6
        assert tracker.bias_peak == -0.5

    def test_threshold_and_reset(self):
        """Test threshold detection and reset."""
        tracker = GesturePeakTracker()
        tracker.observe(GestureSignals(0.65, 0.7, 0.0, 0.0, 0.2))
        assert tracker.reached_threshold(Tuning())
        assert not tracker.reached_threshold(Tuning(gesture_threshold=0.8))
        tracker.reset()
        assert tracker.samples == 0
        assert tracker.prep_peak == 0.0
