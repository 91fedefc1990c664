"""
Filter engine
=============

Given the current criteria (search text, stage selector, type selector and a
reference year) compute:

1) which destinations are visible, and
2) the *display stage* of every destination for the reference year.

Everything here is a pure function over the dataset: running it twice with the
same criteria gives the same answer.

Year projection ("fall forward"):
- year == CURRENT           -> current stage
- exact snapshot recorded   -> that stage
- otherwise                 -> first stage recorded in a LATER snapshot year
- nothing later either      -> current stage
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Union
from .dataset import Dataset
from .models import CURRENT, SNAPSHOT_YEARS, Destination, EntryType, Identity, Stage, normalize_key

ALL = "all"

Year = Union[int, str, None]


def parse_year(value: Year) -> Union[int, str]:
    """Accept an int, a numeric string, 'current' or None."""
    if value is None:
        return CURRENT
    if isinstance(value, int):
        return value
    key = normalize_key(value)
    if key in ("", CURRENT, "now"):
        return CURRENT
    try:
        return int(key)
    except ValueError:
        raise ValueError(f"year must be a number or '{CURRENT}', got {value!r}") from None


def project_stage(dest: Destination, year: Year) -> Stage:
    """Stage to display for `dest` at reference `year` (forward fill)."""
    y = parse_year(year)
    if y == CURRENT:
        return dest.stage
    if y in dest.history:
        return dest.history[y]
    for snap in SNAPSHOT_YEARS:
        if snap > y and snap in dest.history:
            return dest.history[snap]
    return dest.stage


def matches_query(dest: Destination, query: str) -> bool:
    """Case-insensitive substring match on name, country or parent."""
    q = normalize_key(query)
    if not q:
        return True
    return q in dest.name_key or q in dest.country_key or q in dest.parent_key


@dataclass(frozen=True)
class FilterCriteria:
    """Current filter state. Immutable: use `with_changes()` to derive a new one."""
    query: str = ""
    stage: str = ALL
    entry_type: str = ALL
    year: Union[int, str] = CURRENT
    # False: stage selector compares against the current stage (observed behavior)
    match_display_stage: bool = False

    def __post_init__(self) -> None:
        stage = normalize_key(self.stage) or ALL
        if stage != ALL and Stage.parse(stage) is None:
            raise ValueError(f"Unknown stage filter: {self.stage!r}")
        etype = normalize_key(self.entry_type) or ALL
        if etype != ALL and etype not in (t.value for t in EntryType):
            raise ValueError(f"Unknown type filter: {self.entry_type!r}")
        object.__setattr__(self, "stage", stage)
        object.__setattr__(self, "entry_type", etype)
        object.__setattr__(self, "year", parse_year(self.year))

    def with_changes(self, **changes) -> "FilterCriteria":
        return replace(self, **changes)

    @property
    def stage_selector(self) -> Optional[Stage]:
        return None if self.stage == ALL else Stage.parse(self.stage)


@dataclass
class FilterResult:
    """Output of one filter pass."""
    criteria: FilterCriteria
    visible: List[Identity] = field(default_factory=list)
    display_stage: Dict[Identity, Stage] = field(default_factory=dict)
    _visible_set: set = field(default_factory=set, repr=False)

    def is_visible(self, ident: Identity) -> bool:
        return ident in self._visible_set

    def __len__(self) -> int:
        return len(self.visible)


def is_visible(dest: Destination, criteria: FilterCriteria, display_stage: Stage) -> bool:
    if not matches_query(dest, criteria.query):
        return False
    wanted = criteria.stage_selector
    if wanted is not None:
        compared = display_stage if criteria.match_display_stage else dest.stage
        if compared is not wanted:
            return False
    if criteria.entry_type != ALL and dest.entry_type.value != criteria.entry_type:
        return False
    return True


def apply_filters(dataset: Dataset, criteria: FilterCriteria) -> FilterResult:
    """Compute visibility and display stage for every destination."""
    result = FilterResult(criteria=criteria)
    for dest in dataset:
        shown = project_stage(dest, criteria.year)
        result.display_stage[dest.identity] = shown
        if is_visible(dest, criteria, shown):
            result.visible.append(dest.identity)
            result._visible_set.add(dest.identity)
    return result


def visible_destinations(dataset: Dataset, result: FilterResult) -> List[Destination]:
    return [dataset.get(i) for i in result.visible]
