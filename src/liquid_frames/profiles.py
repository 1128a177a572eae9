"""Named, persisted motion profiles."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .config import Tuning
from .regression import BenchmarkBaseline
from .runs import ensure_utc, utc_now

PLACEHOLDER_NAME = "Untitled Profile"


def normalize_name(name: Optional[str]) -> str:
    trimmed = (name or "").strip()
    return trimmed or PLACEHOLDER_NAME


def normalize_notes(notes: Optional[str]) -> str:
    return (notes or "").strip()


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Trim tags, drop empties and remove case-insensitive duplicates.

    The first spelling of a tag wins and first-seen order is preserved.
    """
    seen = set()
    result: List[str] = []
    for tag in tags:
        trimmed = (tag or "").strip()
        if not trimmed:
            continue
        key = trimmed.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    return tuple(result)


def parse_tags(text: str) -> Tuple[str, ...]:
    """Parse a comma-separated tag string into normalized tags."""
    return normalize_tags(text.split(","))


def new_profile_id() -> str:
    return str(uuid.uuid4()).upper()


@dataclass(frozen=True)
class Profile:
    """A named tuning with an optional performance baseline.

    Name, notes and tags are normalized on construction, so every instance
    holds trimmed metadata, a non-empty name and case-insensitively unique
    tags.
    """

    id: str
    name: str
    tuning: Tuning
    notes: str = ""
    tags: Tuple[str, ...] = ()
    baseline: Optional[BenchmarkBaseline] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", normalize_name(self.name))
        object.__setattr__(self, "notes", normalize_notes(self.notes))
        object.__setattr__(self, "tags", normalize_tags(self.tags))
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    @classmethod
    def create(
        cls,
        name: str,
        tuning: Tuning,
        notes: str = "",
        tags: Iterable[str] = (),
        now: Optional[datetime] = None,
    ) -> "Profile":
        moment = now or utc_now()
        return cls(
            id=new_profile_id(),
            name=name,
            tuning=tuning.normalized(),
            notes=notes,
            tags=tuple(tags),
            created_at=moment,
            updated_at=moment,
        )

    def with_normalized_metadata(self) -> "Profile":
        return replace(self)

    def touched(self, now: Optional[datetime] = None, **changes) -> "Profile":
        """Return a copy with ``changes`` applied and ``updated_at`` bumped."""
        return replace(self, updated_at=now or utc_now(), **changes)


def sort_profiles(profiles: Iterable[Profile]) -> List[Profile]:
    """Newest ``updated_at`` first; ties broken by case-insensitive name."""
    by_name = sorted(profiles, key=lambda profile: profile.name.casefold())
    return sorted(by_name, key=lambda profile: profile.updated_at, reverse=True)


def find_profile(profiles: Iterable[Profile], profile_id: Optional[str]) -> Optional[Profile]:
    if profile_id is None:
        return None
    wanted = profile_id.upper()
    for profile in profiles:
        if profile.id.upper() == wanted:
            return profile
    return None
