"""
Data model (Destination)
========================

Each accepted row of the destinations table becomes one `Destination`.
Records are immutable (`frozen=True`): filters and the year selector never
edit a destination, they compute a *display stage* next to it.

The seven TALC stages live in `Stage`. Their order is an index sequence used
for "one step away" similarity only. Decline and rejuvenation are two
branches out of stagnation, so the index is NOT a timeline.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple

# Snapshot years carried by the `stage_<year>` columns
SNAPSHOT_YEARS: Tuple[int, ...] = (1980, 1990, 2000, 2010, 2020)
# Reference "year" meaning: use the current stage
CURRENT = "current"


def normalize_text(value: Any) -> str:
    """Trim a raw cell into its display form ('' for missing)."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_key(value: Any) -> str:
    """Comparison form: trimmed and lower-cased."""
    return normalize_text(value).lower()


class Stage(str, Enum):
    EXPLORATION = "exploration"
    INVOLVEMENT = "involvement"
    DEVELOPMENT = "development"
    CONSOLIDATION = "consolidation"
    STAGNATION = "stagnation"
    DECLINE = "decline"
    REJUVENATION = "rejuvenation"

    @classmethod
    def parse(cls, text: Any) -> Optional["Stage"]:
        """Canonicalize a stage string (case-insensitive), None if unknown."""
        key = normalize_key(text)
        for s in cls:
            if s.value == key:
                return s
        return None

    @property
    def index(self) -> int:
        return STAGES.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


STAGES: Tuple[Stage, ...] = tuple(Stage)


class EntryType(str, Enum):
    COUNTRY = "country"
    LOCATION = "location"

    @classmethod
    def parse(cls, text: Any) -> Optional["EntryType"]:
        """Blank means location; anything unrecognized gives None."""
        key = normalize_key(text)
        if not key:
            return cls.LOCATION
        for t in cls:
            if t.value == key:
                return t
        return None


class Identity(NamedTuple):
    """(normalized name, entry type): unique per destination."""
    name: str
    entry_type: EntryType

    @property
    def key(self) -> str:
        return f"{self.name}_{self.entry_type.value}"

    @classmethod
    def from_key(cls, key: str) -> "Identity":
        name, _, etype = key.rpartition("_")
        parsed = EntryType.parse(etype) if etype else None
        if not name or parsed is None:
            raise ValueError(f"Not an identity key: {key!r}")
        return cls(name, parsed)


@dataclass(frozen=True)
class Destination:
    """One destination record (country or location)."""
    name: str
    entry_type: EntryType
    latitude: float
    longitude: float
    country: str
    stage: Stage
    stage_label: str
    parent: str = ""
    justification: str = ""
    # snapshot year -> stage, only years with a recognized value
    history: Dict[int, Stage] = field(default_factory=dict)

    @property
    def name_key(self) -> str:
        return normalize_key(self.name)

    @property
    def country_key(self) -> str:
        return normalize_key(self.country)

    @property
    def parent_key(self) -> str:
        return normalize_key(self.parent)

    @property
    def identity(self) -> Identity:
        return Identity(self.name_key, self.entry_type)

    @property
    def is_country(self) -> bool:
        return self.entry_type is EntryType.COUNTRY


@dataclass(frozen=True)
class WatchListEntry:
    """Snapshot of a destination taken when it was added to the watch list."""
    id: str
    name: str
    country: str
    stage: str
    latitude: float
    longitude: float
    type: str
    added_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "stage": self.stage,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "type": self.type,
            "addedAt": self.added_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WatchListEntry":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            country=str(d.get("country", "")),
            stage=str(d.get("stage", "")),
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            type=str(d.get("type", EntryType.LOCATION.value)),
            added_at=str(d.get("addedAt", "")),
        )
