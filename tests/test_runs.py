"""Unit tests for runs.py module."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from liquid_frames.runs import (
    PhaseDurations,
    RunMetrics,
    Trigger,
    append_capped,
    ensure_utc,
    newest_first,
)


def create_test_run(timestamp, total=1.35, trigger=Trigger.GESTURE, prep=0.9, velocity=0.5, bias=0.0):
    """Helper function to create a run with a 28/44/28 phase split."""
    return RunMetrics(
        timestamp=timestamp,
        trigger=trigger,
        prep_peak=prep,
        velocity_peak=velocity,
        bias_peak=bias,
        phases=PhaseDurations.from_total(total),
    )


class TestPhaseDurations:
    """Test PhaseDurations."""

    def test_total(self):
        """Test that total sums the three phases."""
        phases = PhaseDurations(0.3, 0.5, 0.4)
        assert phases.total == pytest.approx(1.2)

    def test_from_total_split(self):
        """Test the synthetic 28/44/28 split."""
        phases = PhaseDurations.from_total(2.0)
        assert phases.pre_split == pytest.approx(0.56)
        assert phases.pre_settle == pytest.approx(0.88)
        assert phases.settle_tail == pytest.approx(0.56)
        assert phases.total == pytest.approx(2.0)

    def test_negative_durations_clamped(self):
        """Test that negative phase durations are clamped to zero."""
        phases = PhaseDurations(-1.0, 0.5, 0.2)
        assert phases.pre_split == 0.0

    def test_non_finite_rejected(self):
        """Test that non-finite durations raise ValueError."""
        with pytest.raises(ValueError, match="finite duration"):
            PhaseDurations(math.inf, 0.5, 0.2)


class TestRunMetrics:
    """Test RunMetrics construction."""

    def test_peaks_are_clamped(self, t0):
        """Test that peaks are clamped into their ranges."""
        run = create_test_run(t0, prep=1.4, velocity=-0.2, bias=-3.0)
        assert run.prep_peak == 1.0
        assert run.velocity_peak == 0.0
        assert run.bias_peak == -1.0

    def test_total_duration(self, t0):
        """Test that total duration is the phase total."""
        run = create_test_run(t0, total=1.8)
        assert run.total_duration == pytest.approx(1.8)

    def test_naive_timestamp_taken_as_utc(self):
        """Test that naive timestamps become aware UTC."""
        run = create_test_run(datetime(2025, 1, 1, 12, 0))
        assert run.timestamp.tzinfo is not None
        assert run.timestamp.utcoffset() == timedelta(0)

    def test_trigger_coerced_from_raw_value(self, t0):
        """Test that a raw trigger string is accepted."""
        run = create_test_run(t0, trigger="button")
        assert run.trigger is Trigger.BUTTON

    def test_ids_are_unique(self, t0):
        """Test generated ids."""
        first = create_test_run(t0)
        second = create_test_run(t0)
        assert first.id != second.id
        assert first.id == first.id.upper()

    def test_non_finite_peak_rejected(self, t0):
        """Test that non-finite peaks raise ValueError."""
        with pytest.raises(ValueError):
            create_test_run(t0, prep=math.nan)

    def test_is_immutable(self, t0):
        """Test that runs cannot be modified."""
        run = create_test_run(t0)
        with pytest.raises(AttributeError):
            run.prep_peak = 0.1


class TestHistory:
    """Test history helpers."""

    def test_newest_first(self, t0):
        """Test ordering by timestamp, newest first."""
        runs = [create_test_run(t0 + timedelta(seconds=s)) for s in (5, 20, 1)]
        ordered = newest_first(runs)
        assert [r.timestamp for r in ordered] == [
            t0 + timedelta(seconds=20),
            t0 + timedelta(seconds=5),
            t0 + timedelta(seconds=1),
        ]

    def test_append_capped_drops_oldest(self, t0):
        """Test that the history keeps the newest 40 runs."""
        history = []
        for i in range(45):
            history = append_capped(history, create_test_run(t0 + timedelta(seconds=i)), 40)
        assert len(history) == 40
        assert history[0].timestamp == t0 + timedelta(seconds=44)
        assert history[-1].timestamp == t0 + timedelta(seconds=5)

    def test_ensure_utc_converts_offsets(self):
        """Test conversion of non-UTC offsets."""
        moment = datetime(2025, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_utc(moment).hour == 10
