"""Pydantic record models for the persisted workspace document.

Each record mirrors one frozen domain dataclass and carries the on-disk
camelCase keys, field defaults and validation. Records convert to and from
their dataclass with ``from_*`` / ``to_*``; nothing outside ``workspace``
needs to handle raw JSON mappings.

Timestamps are ISO-8601 UTC strings with a ``Z`` suffix and microsecond
precision. Numbers must be finite JSON numbers (booleans are rejected).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    StrictInt,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from .benchmark import BenchmarkReport, Grade, ScenarioResult
from .config import Preset, Tuning
from .errors import WorkspaceDecodeError
from .profiles import Profile
from .quality import QualityLevel, QualityReport
from .regression import BenchmarkBaseline
from .runs import PhaseDurations, RunMetrics, Trigger, ensure_utc

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_DEFAULT_TUNING = Tuning()


def format_timestamp(moment: datetime) -> str:
    """Encode as ISO-8601 UTC with microsecond precision and a ``Z`` suffix."""
    return ensure_utc(moment).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _timestamp_input(value: Any) -> Any:
    # numbers would otherwise be read as unix seconds
    if isinstance(value, (str, datetime)):
        return value
    raise ValueError(f"expected an ISO-8601 string, got {value!r}")


Timestamp = Annotated[
    datetime,
    BeforeValidator(_timestamp_input),
    AfterValidator(ensure_utc),
    PlainSerializer(format_timestamp, return_type=str),
]

Number = Annotated[float, Field(strict=True, allow_inf_nan=False)]

_TIMESTAMP_ADAPTER = TypeAdapter(Timestamp)


def parse_timestamp(value: Any, key: str = "timestamp") -> datetime:
    try:
        return _TIMESTAMP_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise WorkspaceDecodeError(f"{key} is not a valid ISO-8601 timestamp: {value!r}") from exc


def describe_validation_error(exc: ValidationError) -> str:
    """One line per invalid field, keyed by its on-disk path."""
    lines = [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]
    return "Invalid workspace snapshot:\n  " + "\n  ".join(lines)


class Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TuningRecord(Record):
    split_stiffness: Number = _DEFAULT_TUNING.split_stiffness
    split_damping: Number = _DEFAULT_TUNING.split_damping
    settle_stiffness: Number = _DEFAULT_TUNING.settle_stiffness
    settle_damping: Number = _DEFAULT_TUNING.settle_damping
    pre_split_delay: Number = _DEFAULT_TUNING.pre_split_delay
    gesture_commit_delay: Number = _DEFAULT_TUNING.gesture_commit_delay
    pre_settle_delay: Number = _DEFAULT_TUNING.pre_settle_delay
    post_settle_delay: Number = _DEFAULT_TUNING.post_settle_delay
    gesture_threshold: Number = _DEFAULT_TUNING.gesture_threshold
    pull_distance: Number = _DEFAULT_TUNING.pull_distance
    velocity_scale: Number = _DEFAULT_TUNING.velocity_scale
    velocity_influence: Number = _DEFAULT_TUNING.velocity_influence
    bias_influence: Number = _DEFAULT_TUNING.bias_influence

    @classmethod
    def from_tuning(cls, tuning: Tuning) -> "TuningRecord":
        return cls(**tuning.to_dict())

    def to_tuning(self) -> Tuning:
        return Tuning(**self.model_dump())


class RunRecord(Record):
    id: Optional[str] = None
    timestamp: Timestamp
    trigger: Trigger = Field(Trigger.BUTTON, alias="triggerRawValue")
    prep_peak: Number = 0.0
    velocity_peak: Number = 0.0
    bias_peak: Number = 0.0
    pre_split: Number = 0.0
    pre_settle: Number = 0.0
    settle_tail: Number = 0.0

    @classmethod
    def from_run(cls, run: RunMetrics) -> "RunRecord":
        return cls(
            id=run.id,
            timestamp=run.timestamp,
            trigger=run.trigger,
            prep_peak=run.prep_peak,
            velocity_peak=run.velocity_peak,
            bias_peak=run.bias_peak,
            pre_split=run.phases.pre_split,
            pre_settle=run.phases.pre_settle,
            settle_tail=run.phases.settle_tail,
        )

    def to_run(self) -> RunMetrics:
        extra = {"id": self.id} if self.id else {}
        return RunMetrics(
            timestamp=self.timestamp,
            trigger=self.trigger,
            prep_peak=self.prep_peak,
            velocity_peak=self.velocity_peak,
            bias_peak=self.bias_peak,
            phases=PhaseDurations(
                pre_split=self.pre_split,
                pre_settle=self.pre_settle,
                settle_tail=self.settle_tail,
            ),
            **extra,
        )


class ScenarioRecord(Record):
    name: str = Field("", alias="scenarioName")
    trigger: Trigger = Field(Trigger.GESTURE, alias="triggerRawValue")
    estimated_duration: Number = 0.0
    responsiveness: Number = 0.0
    stability: Number = 0.0
    score: Number = 0.0


class BenchmarkRecord(Record):
    generated_at: Timestamp
    overall_score: Number = 0.0
    consistency_score: Number = 0.0
    grade: Grade = Field(Grade.D, alias="gradeRawValue")
    scenarios: List[ScenarioRecord] = Field(default_factory=list)
    quality_level: QualityLevel = Field(QualityLevel.HEALTHY, alias="qualityLevelRawValue")
    quality_messages: List[str] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: BenchmarkReport) -> "BenchmarkRecord":
        return cls(
            generated_at=report.generated_at,
            overall_score=report.overall_score,
            consistency_score=report.consistency_score,
            grade=report.grade,
            scenarios=[
                ScenarioRecord(
                    name=scenario.name,
                    trigger=scenario.trigger,
                    estimated_duration=scenario.estimated_duration,
                    responsiveness=scenario.responsiveness,
                    stability=scenario.stability,
                    score=scenario.score,
                )
                for scenario in report.scenarios
            ],
            quality_level=report.quality.level,
            quality_messages=list(report.quality.messages),
        )

    def to_report(self) -> BenchmarkReport:
        return BenchmarkReport(
            generated_at=self.generated_at,
            overall_score=self.overall_score,
            consistency_score=self.consistency_score,
            grade=self.grade,
            scenarios=tuple(
                ScenarioResult(
                    name=item.name,
                    trigger=item.trigger,
                    estimated_duration=item.estimated_duration,
                    responsiveness=item.responsiveness,
                    stability=item.stability,
                    score=item.score,
                )
                for item in self.scenarios
            ),
            quality=QualityReport(level=self.quality_level, messages=tuple(self.quality_messages)),
        )


class BaselineRecord(Record):
    captured_at: Optional[Timestamp] = None
    overall_score: Number = 0.0
    consistency_score: Number = 0.0
    grade: Grade = Field(Grade.D, alias="gradeRawValue")
    scenario_scores: Dict[str, Number] = Field(default_factory=dict)

    @classmethod
    def from_baseline(cls, baseline: BenchmarkBaseline) -> "BaselineRecord":
        return cls(
            captured_at=baseline.captured_at,
            overall_score=baseline.overall_score,
            consistency_score=baseline.consistency_score,
            grade=baseline.grade,
            scenario_scores=dict(baseline.scenario_scores),
        )

    def to_baseline(self) -> BenchmarkBaseline:
        return BenchmarkBaseline(
            captured_at=self.captured_at or EPOCH,
            overall_score=self.overall_score,
            consistency_score=self.consistency_score,
            grade=self.grade,
            scenario_scores=self.scenario_scores,
        )


class ProfileRecord(Record):
    """Stored profile. Absent ``updatedAt`` falls back to ``createdAt``."""

    id: str = Field(min_length=1)
    name: str = ""
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    tuning: TuningRecord = Field(default_factory=TuningRecord)
    baseline: Optional[BaselineRecord] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileRecord":
        return cls(
            id=profile.id,
            name=profile.name,
            notes=profile.notes,
            tags=list(profile.tags),
            tuning=TuningRecord.from_tuning(profile.tuning),
            baseline=BaselineRecord.from_baseline(profile.baseline) if profile.baseline is not None else None,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )

    def to_profile(self) -> Profile:
        created_at = self.created_at or EPOCH
        return Profile(
            id=self.id,
            name=self.name,
            notes=self.notes,
            tags=tuple(self.tags),
            tuning=self.tuning.to_tuning(),
            baseline=self.baseline.to_baseline() if self.baseline is not None else None,
            created_at=created_at,
            updated_at=self.updated_at or created_at,
        )


class WorkspaceRecord(Record):
    """Top-level workspace document, validated after schema migration."""

    schema_version: StrictInt = 1
    selected_preset: Preset = Field(Preset.BALANCED, alias="selectedPresetRawValue")
    auto_adapt_enabled: bool = True
    tuning: TuningRecord = Field(default_factory=TuningRecord)
    run_history: List[RunRecord] = Field(default_factory=list)
    profiles: List[ProfileRecord] = Field(default_factory=list)
    active_profile_id: Optional[str] = Field(None, alias="activeProfileID")
    benchmark_history: List[BenchmarkRecord] = Field(default_factory=list)
    latest_benchmark: Optional[BenchmarkRecord] = None
    saved_at: Optional[Timestamp] = None
