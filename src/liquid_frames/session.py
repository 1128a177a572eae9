"""Stateful motion session: the single writer of a workspace.

``MotionSession`` owns the mutable state of one workspace (current tuning,
histories, profiles) and exposes every user-facing operation. Each mutation
hands a fresh snapshot to an optional ``SaveQueue``, which keeps at most one
write in flight per workspace file and lets newer snapshots supersede
pending ones.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .adaptive import adapt
from .benchmark import BenchmarkReport, run_suite
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig, Preset, Tuning, default_workspace_path, parse_preset
from .data_io import (
    export_path,
    load_latest_export,
    load_workspace,
    release_gate_path,
    save_text,
    save_workspace,
)
from .errors import ProfileDeletionError, UnknownProfileError, WorkspaceNotFoundError
from .gate import ReleaseGateReport, evaluate_release_gate
from .merge import merge_workspaces
from .profiles import Profile, find_profile, parse_tags, sort_profiles
from .quality import QualityReport, evaluate_quality
from .regression import BenchmarkBaseline, Regression, compare
from .runs import PhaseDurations, RunMetrics, Trigger, append_capped, utc_now
from .signals import GesturePeakTracker, GestureSignals, Vector, estimate_signals
from .workspace import CURRENT_SCHEMA_VERSION, WorkspaceSnapshot

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_NAME = "Default Profile"

Writer = Callable[[WorkspaceSnapshot, Path], Path]


class SaveQueue:
    """Serializes snapshot writes to one workspace file.

    ``request`` replaces any pending snapshot (the older one is counted as
    superseded, never written). With ``debounce_s > 0`` the write happens on a
    ``threading.Timer`` after the quiet period; otherwise it happens inline.
    ``flush`` writes the pending snapshot synchronously. A failed write leaves
    the snapshot pending so a later ``flush`` or ``close`` retries it.
    """

    def __init__(self, path: Path, debounce_s: float = 0.0, writer: Writer = save_workspace) -> None:
        self.path = Path(path)
        self.debounce_s = debounce_s
        self._writer = writer
        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._pending: Optional[WorkspaceSnapshot] = None
        self._timer: Optional[threading.Timer] = None
        self.writes = 0
        self.superseded = 0

    @property
    def pending(self) -> bool:
        with self._state_lock:
            return self._pending is not None

    def request(self, snapshot: WorkspaceSnapshot) -> None:
        with self._state_lock:
            if self._pending is not None:
                self.superseded += 1
            self._pending = snapshot
            if self.debounce_s > 0:
                if self._timer is not None:
                    self._timer.cancel()
                self._timer = threading.Timer(self.debounce_s, self._flush_in_background)
                self._timer.daemon = True
                self._timer.start()
                return
        self.flush()

    def flush(self) -> Optional[Path]:
        """Write the pending snapshot now; returns the path, or None if idle."""
        with self._write_lock:
            with self._state_lock:
                snapshot, self._pending = self._pending, None
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
            if snapshot is None:
                return None
            try:
                self._writer(snapshot, self.path)
            except Exception:
                # keep it for the next flush unless a newer request arrived
                with self._state_lock:
                    if self._pending is None:
                        self._pending = snapshot
                raise
            self.writes += 1
            return self.path

    def _flush_in_background(self) -> None:
        try:
            self.flush()
        except OSError:
            logger.exception("Failed to save workspace to %s", self.path)

    def close(self) -> None:
        self.flush()


def planned_phases(tuning: Tuning) -> PhaseDurations:
    """Phase durations implied by the tuning's configured delays."""
    return PhaseDurations(
        pre_split=tuning.gesture_commit_delay + tuning.pre_split_delay,
        pre_settle=tuning.pre_settle_delay,
        settle_tail=tuning.post_settle_delay,
    )


class MotionSession:
    """Editable workspace state plus the operations that mutate it.

    Args:
        snapshot: Initial state. Defaults to an empty workspace.
        workspace_path: File backing ``save_now`` and ``reload``.
        config: Engine constants (history caps, quality sample, target).
        save_queue: When given, every mutation requests a save through it.
        clock: Source of "now"; injectable for deterministic tests.
    """

    def __init__(
        self,
        snapshot: Optional[WorkspaceSnapshot] = None,
        workspace_path: Optional[Path] = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        save_queue: Optional[SaveQueue] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.workspace_path = Path(workspace_path) if workspace_path is not None else default_workspace_path()
        self.config = config
        self.save_queue = save_queue
        self._clock = clock
        self._tracker = GesturePeakTracker()
        self.gesture_signals: Optional[GestureSignals] = None
        self._apply_snapshot(snapshot if snapshot is not None else WorkspaceSnapshot())

    @classmethod
    def open(cls, workspace_path: Optional[Path] = None, **kwargs) -> "MotionSession":
        """Load the session from disk, starting from defaults if no snapshot exists.

        Unless ``save_queue`` is passed, mutations are saved back to the same
        file through a ``SaveQueue`` debounced by ``config.save_debounce_s``.
        Call ``close`` on shutdown to write anything still pending.
        """
        path = Path(workspace_path) if workspace_path is not None else default_workspace_path()
        try:
            snapshot = load_workspace(path)
        except WorkspaceNotFoundError:
            logger.info("No workspace at %s; starting from defaults", path)
            snapshot = None
        if "save_queue" not in kwargs:
            config = kwargs.get("config", DEFAULT_ENGINE_CONFIG)
            kwargs["save_queue"] = SaveQueue(path, config.save_debounce_s)
        return cls(snapshot=snapshot, workspace_path=path, **kwargs)

    def close(self) -> None:
        """Flush any save still waiting in the queue."""
        if self.save_queue is not None:
            self.save_queue.close()

    # -- state ------------------------------------------------------------

    def _apply_snapshot(self, snapshot: WorkspaceSnapshot) -> None:
        self.selected_preset = snapshot.selected_preset
        self.auto_adapt_enabled = snapshot.auto_adapt_enabled
        self.tuning = snapshot.tuning.normalized()
        self.run_history: List[RunMetrics] = list(snapshot.run_history)[: self.config.run_history_limit]
        self.benchmark_history: List[BenchmarkReport] = list(snapshot.benchmark_history)[
            : self.config.benchmark_history_limit
        ]
        self.latest_benchmark = snapshot.latest_benchmark
        self.profiles = sort_profiles(profile.with_normalized_metadata() for profile in snapshot.profiles)
        if not self.profiles:
            self.profiles = [Profile.create(DEFAULT_PROFILE_NAME, self.tuning, now=self._clock())]
        active = find_profile(self.profiles, snapshot.active_profile_id) or self.profiles[0]
        self.active_profile_id = active.id

    def snapshot(self) -> WorkspaceSnapshot:
        return WorkspaceSnapshot(
            schema_version=CURRENT_SCHEMA_VERSION,
            selected_preset=self.selected_preset,
            auto_adapt_enabled=self.auto_adapt_enabled,
            tuning=self.tuning,
            run_history=list(self.run_history),
            profiles=list(self.profiles),
            active_profile_id=self.active_profile_id,
            benchmark_history=list(self.benchmark_history),
            latest_benchmark=self.latest_benchmark,
            saved_at=self._clock(),
        )

    def _changed(self) -> None:
        if self.save_queue is not None:
            self.save_queue.request(self.snapshot())

    @property
    def active_profile(self) -> Profile:
        return find_profile(self.profiles, self.active_profile_id) or self.profiles[0]

    @property
    def latest_run(self) -> Optional[RunMetrics]:
        return self.run_history[0] if self.run_history else None

    @property
    def profile_is_dirty(self) -> bool:
        return self.tuning != self.active_profile.tuning

    @property
    def quality_report(self) -> QualityReport:
        return evaluate_quality(self.tuning, self.run_history, self.config.quality_sample_size)

    @property
    def benchmark_regression(self) -> Optional[Regression]:
        baseline = self.active_profile.baseline
        if baseline is None or self.latest_benchmark is None:
            return None
        return compare(self.latest_benchmark, baseline)

    def _store_profile(self, profile: Profile) -> Profile:
        others = [existing for existing in self.profiles if existing.id != profile.id]
        self.profiles = sort_profiles([profile, *others])
        return profile

    def _update_active(self, **changes) -> Profile:
        return self._store_profile(self.active_profile.touched(now=self._clock(), **changes))

    # -- tuning -----------------------------------------------------------

    def update_tuning(self, tuning: Optional[Tuning] = None, **changes: float) -> Tuning:
        """Replace the current tuning and/or change individual fields; always normalized."""
        base = tuning if tuning is not None else self.tuning
        self.tuning = replace(base, **changes).normalized()
        self._changed()
        return self.tuning

    def select_preset(self, preset) -> Preset:
        self.selected_preset = preset if isinstance(preset, Preset) else parse_preset(str(preset))
        self._changed()
        return self.selected_preset

    def apply_selected_preset(self) -> Tuning:
        self.tuning = self.selected_preset.tuning
        self._changed()
        return self.tuning

    def set_auto_adapt(self, enabled: bool) -> None:
        self.auto_adapt_enabled = bool(enabled)
        self._changed()

    # -- profiles ---------------------------------------------------------

    def select_active_profile(self, profile_id: str) -> Profile:
        """Activate a profile and load its tuning.

        Raises:
            UnknownProfileError: ``profile_id`` is not in the workspace.
        """
        profile = find_profile(self.profiles, profile_id)
        if profile is None:
            raise UnknownProfileError(profile_id)
        self.active_profile_id = profile.id
        self.tuning = profile.tuning
        self._changed()
        return profile

    def rename_active_profile(self, name: str) -> Profile:
        profile = self._update_active(name=name)
        self._changed()
        return profile

    def set_active_profile_notes(self, notes: str) -> Profile:
        profile = self._update_active(notes=notes)
        self._changed()
        return profile

    def set_active_profile_tags(self, text: str) -> Profile:
        """Set tags from a comma-separated string."""
        profile = self._update_active(tags=parse_tags(text))
        self._changed()
        return profile

    def create_profile_from_current(self, name: Optional[str] = None) -> Profile:
        profile = Profile.create(
            name or f"Profile {len(self.profiles) + 1}",
            self.tuning,
            now=self._clock(),
        )
        self._store_profile(profile)
        self.active_profile_id = profile.id
        self._changed()
        return profile

    def duplicate_active_profile(self) -> Profile:
        source = self.active_profile
        duplicate = replace(
            Profile.create(
                f"{source.name} Copy",
                source.tuning,
                notes=source.notes,
                tags=source.tags,
                now=self._clock(),
            ),
            baseline=source.baseline,
        )
        self._store_profile(duplicate)
        self.active_profile_id = duplicate.id
        self.tuning = duplicate.tuning
        self._changed()
        return duplicate

    def delete_active_profile(self) -> Profile:
        """Delete the active profile and activate the newest remaining one.

        Raises:
            ProfileDeletionError: The active profile is the only one left.
        """
        if len(self.profiles) <= 1:
            raise ProfileDeletionError("Cannot delete the last profile; a workspace keeps at least one.")
        removed = self.active_profile
        self.profiles = [profile for profile in self.profiles if profile.id != removed.id]
        successor = self.profiles[0]
        self.active_profile_id = successor.id
        self.tuning = successor.tuning
        logger.info("Deleted profile %r; %r is now active", removed.name, successor.name)
        self._changed()
        return removed

    def save_current_to_active_profile(self) -> Profile:
        profile = self._update_active(tuning=self.tuning)
        self._changed()
        return profile

    def revert_from_active_profile(self) -> Tuning:
        self.tuning = self.active_profile.tuning
        self._changed()
        return self.tuning

    # -- runs -------------------------------------------------------------

    def update_gesture(self, translation: Vector, predicted_end: Vector) -> GestureSignals:
        signals = estimate_signals(translation, predicted_end, self.tuning)
        self._tracker.observe(signals)
        self.gesture_signals = signals
        return signals

    def end_gesture(self, phases: Optional[PhaseDurations] = None) -> Optional[RunMetrics]:
        """Finish the drag; records a run only if prep crossed the gesture threshold."""
        tracker = self._tracker
        committed = tracker.samples > 0 and tracker.reached_threshold(self.tuning)
        run = None
        if committed:
            run = self.record_run(
                RunMetrics(
                    timestamp=self._clock(),
                    trigger=Trigger.GESTURE,
                    prep_peak=tracker.prep_peak,
                    velocity_peak=tracker.velocity_peak,
                    bias_peak=tracker.bias_peak,
                    phases=phases if phases is not None else planned_phases(self.tuning),
                )
            )
        tracker.reset()
        self.gesture_signals = None
        return run

    def record_run(self, run: RunMetrics) -> RunMetrics:
        """Append a completed run; adapts the tuning when auto-adapt is on."""
        self.run_history = append_capped(self.run_history, run, self.config.run_history_limit)
        if self.auto_adapt_enabled:
            self.tuning = adapt(self.tuning, run, self.config.target_duration)
        self._changed()
        return run

    def clear_run_history(self) -> None:
        self.run_history = []
        self._changed()

    # -- benchmarks -------------------------------------------------------

    def run_benchmark_suite(self, record_history: bool = True) -> BenchmarkReport:
        report = run_suite(self.tuning, generated_at=self._clock())
        self.latest_benchmark = report
        if record_history:
            self.benchmark_history = [report, *self.benchmark_history][: self.config.benchmark_history_limit]
        logger.debug("Benchmark grade %s (overall %.1f)", report.grade.value, report.overall_score)
        self._changed()
        return report

    def set_baseline_from_current_benchmark(self) -> BenchmarkBaseline:
        """Capture the latest benchmark (running one if needed) as the active profile's baseline."""
        report = self.latest_benchmark
        if report is None:
            report = self.run_benchmark_suite()
        baseline = BenchmarkBaseline.from_report(report)
        self._update_active(baseline=baseline)
        self._changed()
        return baseline

    def clear_baseline_for_active_profile(self) -> None:
        self._update_active(baseline=None)
        self._changed()

    def clear_benchmark_history(self) -> None:
        self.benchmark_history = []
        self.latest_benchmark = None
        self._changed()

    # -- persistence ------------------------------------------------------

    def save_now(self) -> Path:
        snapshot = self.snapshot()
        if self.save_queue is not None:
            self.save_queue.request(snapshot)
            self.save_queue.flush()
            return self.save_queue.path
        return save_workspace(snapshot, self.workspace_path)

    def reload(self) -> bool:
        """Replace the state with the stored snapshot; False if none exists."""
        try:
            snapshot = load_workspace(self.workspace_path)
        except WorkspaceNotFoundError:
            logger.warning("No workspace at %s; keeping current state", self.workspace_path)
            return False
        self._apply_snapshot(snapshot)
        return True

    def export_to(self, directory: Optional[Path] = None) -> Path:
        path = export_path(directory, self._clock())
        save_workspace(self.snapshot(), path)
        logger.info("Exported workspace to %s", path)
        return path

    def import_from(self, path: Path) -> WorkspaceSnapshot:
        """Merge the snapshot stored at ``path`` into this session."""
        incoming = load_workspace(path)
        merged = merge_workspaces(self.snapshot(), incoming, self.config)
        self._apply_snapshot(merged)
        self._changed()
        return merged

    def import_latest_export(self, directory: Optional[Path] = None) -> Tuple[Path, WorkspaceSnapshot]:
        path, incoming = load_latest_export(directory)
        merged = merge_workspaces(self.snapshot(), incoming, self.config)
        self._apply_snapshot(merged)
        self._changed()
        logger.info("Imported %s", path)
        return path, merged

    # -- release gate -----------------------------------------------------

    def release_gate_report(self) -> ReleaseGateReport:
        return evaluate_release_gate(
            profile=self.active_profile,
            profile_is_dirty=self.profile_is_dirty,
            quality=self.quality_report,
            benchmark=self.latest_benchmark,
            regression=self.benchmark_regression,
            latest_run=self.latest_run,
            run_count=len(self.run_history),
            benchmark_history_count=len(self.benchmark_history),
            workspace_path=str(self.workspace_path),
            generated_at=self._clock(),
            min_runs=self.config.release_min_runs,
        )

    def export_release_gate_report(self, directory: Optional[Path] = None) -> Path:
        report = self.release_gate_report()
        path = save_text(report.markdown, release_gate_path(directory, report.generated_at))
        logger.info("Release gate %s written to %s", report.status.label, path)
        return path
