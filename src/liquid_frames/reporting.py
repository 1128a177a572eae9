"""Text and markdown rendering of benchmark and release gate reports."""

from __future__ import annotations

from typing import List

from tabulate import tabulate

from .benchmark import BenchmarkReport
from .gate import ReleaseGateReport
from .regression import Regression
from .records import format_timestamp


def summarize_benchmark(report: BenchmarkReport) -> str:
    rows = [
        (
            scenario.name,
            scenario.trigger.value,
            f"{scenario.estimated_duration:.2f}",
            f"{scenario.responsiveness * 100.0:.1f}",
            f"{scenario.stability * 100.0:.1f}",
            f"{scenario.score:.1f}",
        )
        for scenario in report.scenarios
    ]
    table = tabulate(
        rows,
        headers=[
            "Scenario",
            "Trigger",
            "Est. Duration [s]",
            "Responsiveness [%]",
            "Stability [%]",
            "Score",
        ],
        tablefmt="github",
    )
    overall = (
        f"Grade {report.grade.value}: overall {report.overall_score:.1f}, "
        f"consistency {report.consistency_score:.1f}, quality {report.quality.level.label}"
    )
    return table + "\n" + overall


def summarize_regression(regression: Regression) -> str:
    rows = [
        ("Overall", f"{regression.overall_delta:+.1f}"),
        ("Consistency", f"{regression.consistency_delta:+.1f}"),
        ("Worst scenario", f"{regression.worst_scenario_delta:+.1f}"),
    ]
    return tabulate(rows, headers=["Delta", "Value"], tablefmt="github")


def render_release_gate_markdown(report: ReleaseGateReport) -> str:
    """Render a release gate report as a standalone markdown document."""
    profile = report.profile
    lines: List[str] = [
        "# Liquid Frames Release Gate",
        "",
        f"- Status: **{report.status.label}**",
        f"- Generated: {format_timestamp(report.generated_at)}",
        f"- Profile: {profile.name}",
        f"- Profile ID: {profile.id}",
        f"- Unsaved changes: {'yes' if report.profile_is_dirty else 'no'}",
        f"- Recorded runs: {report.run_count}",
        f"- Benchmark history: {report.benchmark_history_count}",
    ]
    if report.workspace_path:
        lines.append(f"- Workspace: {report.workspace_path}")
    if profile.tags:
        lines.append(f"- Tags: {', '.join(profile.tags)}")
    if profile.notes:
        lines.append(f"- Notes: {profile.notes}")

    lines += ["", "## Findings", ""]
    lines += [f"- {finding}" for finding in report.findings]

    lines += ["", f"## Quality: {report.quality.level.label}", ""]
    lines += [f"- {message}" for message in report.quality.messages]

    lines += ["", "## Benchmark", ""]
    if report.benchmark is None:
        lines.append("No benchmark report is available.")
    else:
        lines.append(summarize_benchmark(report.benchmark))

    lines += ["", "## Baseline Regression", ""]
    if report.regression is None:
        lines.append("No baseline is stored for this profile.")
    else:
        lines.append(f"Status: **{report.regression.status.label}**")
        lines.append("")
        lines.append(summarize_regression(report.regression))
        lines.append("")
        lines += [f"- {message}" for message in report.regression.messages]

    lines += ["", "## Latest Run", ""]
    run = report.latest_run
    if run is None:
        lines.append("No runs recorded.")
    else:
        lines.append(
            f"{format_timestamp(run.timestamp)} via {run.trigger.value}: "
            f"{run.total_duration:.2f}s total "
            f"(prep {run.prep_peak:.2f}, velocity {run.velocity_peak:.2f}, bias {run.bias_peak:+.2f})"
        )
    return "\n".join(lines) + "\n"
