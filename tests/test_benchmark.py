"""Unit tests for scenarios.py and benchmark.py modules."""

import math

import numpy as np
import pytest

from liquid_frames.benchmark import Grade, grade_for_score, parse_grade, run_suite
from liquid_frames.config import TUNING_RANGES, Preset, Tuning
from liquid_frames.quality import QualityLevel
from liquid_frames.runs import Trigger
from liquid_frames.scenarios import SCENARIO_SUITE_VERSION, load_benchmark_scenarios

SCENARIO_NAMES = ["Gentle Gesture", "Assertive Gesture", "Lateral Bias Gesture", "Button Trigger"]


def create_extreme_tunings():
    """Helper: range corners plus seeded random tunings."""
    lows = Tuning(**{name: low for name, (low, _) in TUNING_RANGES.items()})
    highs = Tuning(**{name: high for name, (_, high) in TUNING_RANGES.items()})
    tunings = [lows, highs] + [preset.tuning for preset in Preset]
    rng = np.random.default_rng(3)
    for _ in range(50):
        tunings.append(
            Tuning(**{name: float(rng.uniform(low, high)) for name, (low, high) in TUNING_RANGES.items()})
        )
    return tunings


class TestScenarios:
    """Test the scenario suite literals."""

    def test_suite_order_and_version(self):
        """Test fixed scenario order."""
        assert SCENARIO_SUITE_VERSION == 1
        assert [s.name for s in load_benchmark_scenarios()] == SCENARIO_NAMES

    def test_literals(self):
        """Test the scenario literal values."""
        gentle, assertive, lateral, button = load_benchmark_scenarios()
        assert gentle.translation == (0.0, -200.0)
        assert assertive.predicted_end_translation == (0.0, -470.0)
        assert lateral.translation == (90.0, -170.0)
        assert lateral.target_duration == 3.2
        assert button.trigger is Trigger.BUTTON
        assert button.translation == button.predicted_end_translation


class TestGrades:
    """Test grade helpers."""

    @pytest.mark.parametrize(
        "score, grade",
        [(100.0, Grade.A), (88.0, Grade.A), (87.99, Grade.B), (75.0, Grade.B), (62.0, Grade.C), (61.9, Grade.D), (0.0, Grade.D)],
    )
    def test_grade_boundaries(self, score, grade):
        """Test grade thresholds."""
        assert grade_for_score(score) is grade

    def test_rank(self):
        """Test that rank decreases from A to D."""
        assert [g.rank for g in Grade] == [4, 3, 2, 1]

    def test_parse_grade(self):
        """Test lenient grade parsing."""
        assert parse_grade(" b") is Grade.B
        with pytest.raises(ValueError):
            parse_grade("E")


class TestRunSuite:
    """Test run_suite."""

    def test_deterministic(self, t0):
        """Test identical tunings give identical reports."""
        first = run_suite(Preset.CINEMATIC.tuning, generated_at=t0)
        second = run_suite(Preset.CINEMATIC.tuning, generated_at=t0)
        assert first == second
        assert [s.name for s in first.scenarios] == SCENARIO_NAMES
        for a, b in zip(first.scenarios, second.scenarios):
            assert a.score == pytest.approx(b.score, abs=1e-4)

    def test_balanced_grades_a(self, t0):
        """Test the balanced preset grade and aggregates."""
        report = run_suite(Preset.BALANCED.tuning, generated_at=t0)
        assert report.grade is Grade.A
        assert report.overall_score == pytest.approx(97.66, abs=0.05)
        assert report.consistency_score == pytest.approx(74.98, abs=0.05)

    def test_responsive_grades_b(self, t0):
        """Test that equal durations give full consistency."""
        report = run_suite(Preset.RESPONSIVE.tuning, generated_at=t0)
        assert report.grade is Grade.B
        assert report.consistency_score == pytest.approx(100.0)
        durations = {round(s.estimated_duration, 9) for s in report.scenarios}
        assert len(durations) == 1

    def test_estimated_duration_formula(self, t0):
        """Test the Button Trigger duration against the documented formula."""
        tuning = Tuning()
        report = run_suite(tuning, generated_at=t0)
        button = report.scenarios[3]
        split_response = 165.0 / 180.0 + 22.0 / 118.0
        settle_response = 180.0 / 145.0 + 14.0 / 108.0
        expected = (0.32 + 0.56 + 0.42 + split_response + settle_response) / 1.22
        assert button.estimated_duration == pytest.approx(expected)
        assert button.trigger is Trigger.BUTTON

    def test_tuning_is_normalized_first(self, t0):
        """Test that out-of-range tunings are clamped before scoring."""
        wild = Tuning(split_stiffness=5000.0, pull_distance=-40.0)
        assert run_suite(wild, generated_at=t0) == run_suite(wild.normalized(), generated_at=t0)

    def test_embedded_quality_uses_synthetic_runs(self, t0):
        """Test that the embedded quality sees the slow synthetic runs."""
        report = run_suite(Tuning(), generated_at=t0)
        assert report.quality.level is QualityLevel.CAUTION
        assert report.quality.messages == ("Recent runs are too slow on average.",)

    def test_scores_finite_and_bounded(self, t0):
        """Test that no tuning produces non-finite or out-of-range output."""
        for tuning in create_extreme_tunings():
            report = run_suite(tuning, generated_at=t0)
            assert 0.0 <= report.overall_score <= 100.0
            assert 0.0 <= report.consistency_score <= 100.0
            for scenario in report.scenarios:
                for value in (scenario.estimated_duration, scenario.responsiveness, scenario.stability, scenario.score):
                    assert math.isfinite(value)
                assert 0.0 <= scenario.score <= 100.0
                assert scenario.estimated_duration > 0.0

    def test_generated_at_defaults_to_now(self):
        """Test the default timestamp is aware UTC."""
        report = run_suite(Tuning())
        assert report.generated_at.tzinfo is not None

    def test_scenario_scores_mapping(self, t0):
        """Test the name to score mapping used by baselines."""
        report = run_suite(Tuning(), generated_at=t0)
        scores = report.scenario_scores()
        assert list(scores) == SCENARIO_NAMES
        assert scores["Gentle Gesture"] == report.scenarios[0].score
