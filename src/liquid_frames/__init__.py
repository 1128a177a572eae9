"""liquid-frames motion core.

The decision-and-state core of a motion-design prototyping tool. A motion
profile is a tunable parameter vector (``Tuning``) whose behaviour is judged
from recorded runs, scored against a fixed deterministic scenario suite,
compared to a stored baseline, and finally condensed into a
ready/attention/blocked release verdict.

Main Components:
    - Tuning, Preset: Parameter vector with declared ranges and canonical presets
    - estimate_signals: Drag gesture signal extraction
    - evaluate_quality: Heuristic reliability scoring of a tuning and its runs
    - adapt: One-step feedback controller toward the target run duration
    - run_suite: Deterministic benchmark suite with letter grading
    - compare: Regression of a benchmark against a stored baseline
    - merge_workspaces: Last-writer-wins reconciliation of two snapshots
    - evaluate_release_gate: Ternary release verdict with findings
    - MotionSession: Stateful controller owning one workspace

Quick Start:
    >>> from liquid_frames import Preset, run_suite
    >>>
    >>> report = run_suite(Preset.RESPONSIVE.tuning)
    >>> print(f"Grade {report.grade.value}: {report.overall_score:.1f}")

The persisted JSON format lives in ``liquid_frames.workspace`` (validated by
the pydantic records in ``liquid_frames.records``); the
``check``/``benchmark``/``merge`` commands in ``liquid_frames.__main__``.
"""

from .adaptive import adapt
from .benchmark import BenchmarkReport, Grade, run_suite
from .config import EngineConfig, Preset, Tuning
from .gate import ReleaseGateReport, ReleaseGateStatus, evaluate_release_gate
from .merge import merge_workspaces
from .profiles import Profile
from .quality import QualityLevel, QualityReport, evaluate_quality
from .regression import BenchmarkBaseline, Regression, RegressionStatus, compare
from .runs import PhaseDurations, RunMetrics, Trigger
from .session import MotionSession, SaveQueue
from .signals import GestureSignals, estimate_signals
from .workspace import WorkspaceSnapshot

__all__ = [
    "Tuning",
    "Preset",
    "EngineConfig",
    "GestureSignals",
    "estimate_signals",
    "Trigger",
    "PhaseDurations",
    "RunMetrics",
    "QualityLevel",
    "QualityReport",
    "evaluate_quality",
    "adapt",
    "Grade",
    "BenchmarkReport",
    "run_suite",
    "BenchmarkBaseline",
    "Regression",
    "RegressionStatus",
    "compare",
    "Profile",
    "WorkspaceSnapshot",
    "merge_workspaces",
    "ReleaseGateStatus",
    "ReleaseGateReport",
    "evaluate_release_gate",
    "MotionSession",
    "SaveQueue",
]
