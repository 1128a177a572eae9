"""Unit tests for gate.py and reporting.py modules."""

from datetime import timedelta

import pytest

from liquid_frames.benchmark import BenchmarkReport, Grade, run_suite
from liquid_frames.config import Tuning
from liquid_frames.gate import (
    ALL_PASSED_MESSAGE,
    ReleaseGateStatus,
    evaluate_release_gate,
)
from liquid_frames.profiles import Profile
from liquid_frames.quality import HEALTHY_MESSAGE, QualityLevel, QualityReport
from liquid_frames.regression import Regression, RegressionStatus
from liquid_frames.reporting import render_release_gate_markdown, summarize_benchmark
from liquid_frames.runs import PhaseDurations, RunMetrics, Trigger

HEALTHY = QualityReport(QualityLevel.HEALTHY, (HEALTHY_MESSAGE,))
CAUTION = QualityReport(QualityLevel.CAUTION, ("Recent runs are too slow on average.",))
UNSTABLE = QualityReport(QualityLevel.UNSTABLE, ("Run timing variance is high. Motion is not yet reliable.",))


def create_test_regression(status=RegressionStatus.PASS, overall=0.0):
    return Regression(
        status=status,
        overall_delta=overall,
        consistency_delta=0.0,
        worst_scenario_delta=overall,
        messages=("Benchmark is in line with baseline.",),
    )


def create_test_benchmark(t0, grade=Grade.A):
    report = run_suite(Tuning(), generated_at=t0)
    return BenchmarkReport(
        generated_at=report.generated_at,
        overall_score=report.overall_score,
        consistency_score=report.consistency_score,
        grade=grade,
        scenarios=report.scenarios,
        quality=report.quality,
    )


def create_gate(t0, dirty=False, quality=HEALTHY, benchmark="default", regression="default", run_count=6):
    """Helper: evaluate the gate with perfect inputs unless overridden."""
    if benchmark == "default":
        benchmark = create_test_benchmark(t0)
    if regression == "default":
        regression = create_test_regression()
    profile = Profile(id="GATE-1", name="Launch Candidate", tuning=Tuning(), created_at=t0, updated_at=t0)
    latest = RunMetrics(
        timestamp=t0,
        trigger=Trigger.GESTURE,
        prep_peak=0.9,
        velocity_peak=0.6,
        bias_peak=0.1,
        phases=PhaseDurations.from_total(1.4),
    )
    return evaluate_release_gate(
        profile=profile,
        profile_is_dirty=dirty,
        quality=quality,
        benchmark=benchmark,
        regression=regression,
        latest_run=latest if run_count else None,
        run_count=run_count,
        benchmark_history_count=3,
        workspace_path="/tmp/ws.json",
        generated_at=t0 + timedelta(minutes=1),
    )


class TestGateStatus:
    """Test release gate precedence."""

    def test_ready(self, t0):
        """Test perfect inputs are ready."""
        report = create_gate(t0)
        assert report.status is ReleaseGateStatus.READY
        assert report.findings == (ALL_PASSED_MESSAGE,)

    def test_dirty_blocks_everything(self, t0):
        """Test a dirty profile blocks otherwise perfect inputs."""
        report = create_gate(t0, dirty=True)
        assert report.status is ReleaseGateStatus.BLOCKED
        assert report.findings == (
            "Active profile has unsaved tuning changes. Save or revert before release.",
        )

    def test_absent_benchmark_is_attention(self, t0):
        """Test no benchmark, no regression and 6 runs is attention, not ready."""
        report = create_gate(t0, benchmark=None, regression=None, run_count=6)
        assert report.status is ReleaseGateStatus.ATTENTION
        assert report.findings == (
            "No benchmark report is available. Run the benchmark suite.",
            "No baseline regression is available for the active profile.",
        )

    @pytest.mark.parametrize("grade", [Grade.C, Grade.D])
    def test_low_grade_blocks(self, t0, grade):
        """Test grades below B block."""
        report = create_gate(t0, benchmark=create_test_benchmark(t0, grade))
        assert report.status is ReleaseGateStatus.BLOCKED
        assert f"Benchmark grade {grade.value} is below release target B." in report.findings

    def test_grade_b_passes(self, t0):
        """Test that grade B does not lower the status."""
        report = create_gate(t0, benchmark=create_test_benchmark(t0, Grade.B))
        assert report.status is ReleaseGateStatus.READY

    def test_unstable_blocks(self, t0):
        """Test unstable quality blocks."""
        assert create_gate(t0, quality=UNSTABLE).status is ReleaseGateStatus.BLOCKED

    def test_caution_needs_attention(self, t0):
        """Test caution quality needs attention."""
        report = create_gate(t0, quality=CAUTION)
        assert report.status is ReleaseGateStatus.ATTENTION
        assert report.findings == ("Quality level is CAUTION. Review reliability findings before release.",)

    def test_regression_statuses(self, t0):
        """Test regression warning and fail."""
        warn = create_gate(t0, regression=create_test_regression(RegressionStatus.WARNING))
        fail = create_gate(t0, regression=create_test_regression(RegressionStatus.FAIL))
        assert warn.status is ReleaseGateStatus.ATTENTION
        assert warn.findings == ("Baseline regression is WARN against the stored baseline.",)
        assert fail.status is ReleaseGateStatus.BLOCKED
        assert fail.findings == ("Baseline regression is FAIL against the stored baseline.",)

    def test_low_run_count(self, t0):
        """Test the run count finding includes the literal count."""
        report = create_gate(t0, run_count=2)
        assert report.status is ReleaseGateStatus.ATTENTION
        assert report.findings == (
            "Only 2 recorded run(s); at least 5 are required for release confidence.",
        )

    def test_finding_order(self, t0):
        """Test findings appear in the fixed order."""
        report = create_gate(
            t0,
            dirty=True,
            quality=UNSTABLE,
            benchmark=create_test_benchmark(t0, Grade.D),
            regression=create_test_regression(RegressionStatus.FAIL),
            run_count=0,
        )
        assert report.status is ReleaseGateStatus.BLOCKED
        assert report.findings == (
            "Active profile has unsaved tuning changes. Save or revert before release.",
            "Quality level is UNSTABLE. Resolve reliability findings before release.",
            "Benchmark grade D is below release target B.",
            "Baseline regression is FAIL against the stored baseline.",
            "Only 0 recorded run(s); at least 5 are required for release confidence.",
        )


class TestRendering:
    """Test text and markdown rendering."""

    def test_blocked_markdown(self, t0):
        """Test markdown for a blocked gate."""
        report = create_gate(t0, regression=create_test_regression(RegressionStatus.FAIL, overall=-9.0))
        markdown = report.markdown
        assert "**BLOCKED**" in markdown
        assert "Launch Candidate" in markdown
        assert "Baseline regression is FAIL against the stored baseline." in markdown
        assert "Status: **FAIL**" in markdown
        assert "-9.0" in markdown
        assert markdown == render_release_gate_markdown(report)

    def test_markdown_without_optional_sections(self, t0):
        """Test markdown when benchmark, regression and runs are absent."""
        markdown = create_gate(t0, benchmark=None, regression=None, run_count=0).markdown
        assert "**ATTENTION**" in markdown
        assert "No benchmark report is available." in markdown
        assert "No baseline is stored for this profile." in markdown
        assert "No runs recorded." in markdown

    def test_ready_markdown_contains_scenarios(self, t0):
        """Test that the benchmark table lists every scenario."""
        markdown = create_gate(t0).markdown
        assert "**READY**" in markdown
        for name in ("Gentle Gesture", "Assertive Gesture", "Lateral Bias Gesture", "Button Trigger"):
            assert name in markdown

    def test_summarize_benchmark(self, t0):
        """Test the github table summary."""
        summary = summarize_benchmark(run_suite(Tuning(), generated_at=t0))
        assert summary.splitlines()[0].startswith("| Scenario")
        assert "Grade A" in summary
