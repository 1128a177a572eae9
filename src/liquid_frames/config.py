"""Configuration primitives for the liquid-frames motion core.

Holds the tunable motion parameter set (``Tuning``) with its declared valid
ranges, the canonical presets, and the engine-level constants shared by the
quality, adaptive, benchmark and release gate components.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into the closed interval [low, high]."""
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


@dataclass(frozen=True)
class Tuning:
    """Editable parameter vector controlling a motion profile.

    **Springs:**
    - split_stiffness, split_damping: spring driving the split phase
    - settle_stiffness, settle_damping: spring driving the settle phase

    **Phase delays (seconds):**
    - pre_split_delay, gesture_commit_delay, pre_settle_delay, post_settle_delay

    **Gesture response:**
    - gesture_threshold: prep progress required to commit a gesture
    - pull_distance: drag distance [pt] mapping to full prep progress
    - velocity_scale: projected distance [pt] mapping to full velocity
    - velocity_influence, bias_influence: weights of velocity and lateral bias

    Every field has a closed valid range in ``TUNING_RANGES``. Values outside
    the range are accepted here and clamped by ``normalized()``.
    """

    split_stiffness: float = 180.0
    split_damping: float = 22.0
    settle_stiffness: float = 145.0
    settle_damping: float = 14.0

    pre_split_delay: float = 0.32
    gesture_commit_delay: float = 0.10
    pre_settle_delay: float = 0.56
    post_settle_delay: float = 0.42

    gesture_threshold: float = 0.62
    pull_distance: float = 210.0
    velocity_scale: float = 160.0
    velocity_influence: float = 0.72
    bias_influence: float = 0.45

    def normalized(self) -> "Tuning":
        """Return a copy with every field clamped to its declared range.

        Fields are clamped independently; the operation is idempotent.
        """
        clamped = {
            name: clamp(float(getattr(self, name)), low, high)
            for name, (low, high) in TUNING_RANGES.items()
        }
        return replace(self, **clamped)

    def is_normalized(self) -> bool:
        return self == self.normalized()

    def to_dict(self) -> Dict[str, float]:
        return {f.name: float(getattr(self, f.name)) for f in fields(self)}


TUNING_RANGES: Dict[str, Tuple[float, float]] = {
    "split_stiffness": (120.0, 280.0),
    "split_damping": (10.0, 34.0),
    "settle_stiffness": (90.0, 230.0),
    "settle_damping": (8.0, 28.0),
    "pre_split_delay": (0.0, 0.8),
    "gesture_commit_delay": (0.0, 0.35),
    "pre_settle_delay": (0.2, 1.2),
    "post_settle_delay": (0.16, 0.9),
    "gesture_threshold": (0.4, 0.9),
    "pull_distance": (120.0, 320.0),
    "velocity_scale": (80.0, 300.0),
    "velocity_influence": (0.2, 1.2),
    "bias_influence": (0.1, 1.0),
}


class Preset(str, Enum):
    BALANCED = "balanced"
    RESPONSIVE = "responsive"
    CINEMATIC = "cinematic"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def tuning(self) -> Tuning:
        return PRESET_TUNINGS[self]


BALANCED_TUNING = Tuning()

RESPONSIVE_TUNING = Tuning(
    split_stiffness=210.0,
    split_damping=20.0,
    settle_stiffness=172.0,
    settle_damping=12.0,
    pre_split_delay=0.2,
    gesture_commit_delay=0.06,
    pre_settle_delay=0.46,
    post_settle_delay=0.3,
    gesture_threshold=0.58,
    pull_distance=185.0,
    velocity_scale=145.0,
    velocity_influence=0.8,
    bias_influence=0.42,
)

CINEMATIC_TUNING = Tuning(
    split_stiffness=156.0,
    split_damping=23.0,
    settle_stiffness=128.0,
    settle_damping=16.0,
    pre_split_delay=0.44,
    gesture_commit_delay=0.12,
    pre_settle_delay=0.74,
    post_settle_delay=0.52,
    gesture_threshold=0.65,
    pull_distance=238.0,
    velocity_scale=182.0,
    velocity_influence=0.66,
    bias_influence=0.5,
)

PRESET_TUNINGS = {
    Preset.BALANCED: BALANCED_TUNING,
    Preset.RESPONSIVE: RESPONSIVE_TUNING,
    Preset.CINEMATIC: CINEMATIC_TUNING,
}


def parse_preset(value: str) -> Preset:
    """Resolve a preset from its raw value, case-insensitively."""
    try:
        return Preset(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in Preset)
        raise ValueError(f"Unknown preset {value!r}; expected one of: {choices}") from exc


@dataclass(frozen=True)
class EngineConfig:
    """Constants shared by the evaluators and the session.

    **History caps:**
    - run_history_limit: most-recent runs retained (oldest dropped first)
    - benchmark_history_limit: most-recent benchmark reports retained

    **Evaluation:**
    - quality_sample_size: newest runs sampled by the quality evaluator
    - target_duration: run duration the adaptive engine steers toward [s]
    - release_min_runs: runs below which the release gate asks for attention
    """

    run_history_limit: int = 40
    benchmark_history_limit: int = 24
    quality_sample_size: int = 8
    target_duration: float = 1.35
    release_min_runs: int = 5
    current_schema_version: int = 2
    save_debounce_s: float = 0.6


DEFAULT_ENGINE_CONFIG = EngineConfig()

WORKSPACE_ENV = "LIQUID_FRAMES_WORKSPACE"
EXPORT_DIR_ENV = "LIQUID_FRAMES_EXPORT_DIR"
VERBOSITY_ENV = "LIQUID_FRAMES_VERBOSITY"


def get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    try:
        return int(os.environ.get(VERBOSITY_ENV, "1"))
    except ValueError:
        return 1


def default_workspace_path() -> Path:
    override = os.environ.get(WORKSPACE_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".liquid-frames" / "motion-workspace.json"


def default_export_dir() -> Path:
    override = os.environ.get(EXPORT_DIR_ENV)
    if override:
        return Path(override).expanduser()
    desktop = Path.home() / "Desktop"
    return desktop if desktop.is_dir() else Path.home()
