"""
View projection
===============

Pure functions that turn the dataset and a filter result into plain view
models. Nothing here knows about a particular map or chart library; the
engine hands these objects to a `RenderSink`.

Provided views:
- marker descriptors (position, fill color by stage, radius by type, popup)
- chart series (stage distribution, region distribution)
- autocomplete suggestions with a highlight span
- detail panel (description, characteristics, parent/children, similar list)
- insights + summary stats (dashboard numbers)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union
from .dataset import Dataset
from .filters import FilterResult, matches_query
from .models import CURRENT, Destination, EntryType, Stage, STAGES, normalize_key
from .regions import DEFAULT_REGIONS, RegionTable, classify_country, region_label
from .similarity import DEFAULT_LIMIT, SimilarDestination, rank_similar

# -----------------------------
# Stage styling and reference text
# -----------------------------

STAGE_COLORS: Dict[Stage, str] = {
    Stage.EXPLORATION: "#3498db",
    Stage.INVOLVEMENT: "#f1c40f",
    Stage.DEVELOPMENT: "#2ecc71",
    Stage.CONSOLIDATION: "#e74c3c",
    Stage.STAGNATION: "#9b59b6",
    Stage.DECLINE: "#7f8c8d",
    Stage.REJUVENATION: "#e67e22",
}
FALLBACK_COLOR = "#95a5a6"

COUNTRY_RADIUS = 12
LOCATION_RADIUS = 7
SUGGESTION_LIMIT = 8

STAGE_DESCRIPTIONS: Dict[Stage, str] = {
    Stage.EXPLORATION: (
        "This destination is in the Exploration stage - characterized by small numbers of adventurous "
        "tourists, minimal infrastructure, and high authenticity. Visitors typically have significant "
        "contact with local communities."
    ),
    Stage.INVOLVEMENT: (
        "This destination is in the Involvement stage - local residents are beginning to provide "
        "facilities for tourists, a tourism season may be emerging, and the community is recognizing "
        "tourism's economic potential."
    ),
    Stage.DEVELOPMENT: (
        "This destination is in the Development stage - experiencing rapid growth with large numbers of "
        "tourists during peak periods, significant external investment, and major changes to the area's "
        "character."
    ),
    Stage.CONSOLIDATION: (
        "This destination is in the Consolidation stage - tourism is a major part of the local economy, "
        "growth rates are declining but total numbers remain high, and major franchises and chains are "
        "present."
    ),
    Stage.STAGNATION: (
        "This destination is in the Stagnation stage - peak visitor numbers have been reached, the "
        "destination may no longer be fashionable, and environmental, social, and economic problems may "
        "be evident."
    ),
    Stage.DECLINE: (
        "This destination is in the Decline stage - visitors are being lost to newer destinations, tourist "
        "facilities may be converted for other uses, and the area may be exiting tourism altogether."
    ),
    Stage.REJUVENATION: (
        "This destination is in the Rejuvenation stage - through significant changes, new attractions, or "
        "repositioning, the destination is experiencing renewed growth and sustainable development."
    ),
}
UNKNOWN_DESCRIPTION = "Information not available for this stage."

# (visitor numbers, growth, infrastructure, local control)
STAGE_CHARACTERISTICS: Dict[Stage, Tuple[str, str, str, str]] = {
    Stage.EXPLORATION: ("Very low", "Slow", "Minimal", "Local"),
    Stage.INVOLVEMENT: ("Low", "Increasing", "Basic, locally provided", "Mostly local"),
    Stage.DEVELOPMENT: ("Rapidly rising", "Fast", "Large-scale, external investment", "Shifting outside"),
    Stage.CONSOLIDATION: ("High", "Slowing", "Chains and franchises", "Mostly external"),
    Stage.STAGNATION: ("Peak", "Flat", "Ageing", "External"),
    Stage.DECLINE: ("Falling", "Negative", "Converted to other uses", "Returning local"),
    Stage.REJUVENATION: ("Rising again", "Renewed", "New attractions", "Mixed"),
}
CHARACTERISTIC_FIELDS = ("Visitor numbers", "Growth rate", "Infrastructure", "Control")

# Rough tourist-volume curve used by the lifecycle chart (stagnation = 95)
LIFECYCLE_CURVE: Dict[Stage, int] = {
    Stage.EXPLORATION: 10,
    Stage.INVOLVEMENT: 25,
    Stage.DEVELOPMENT: 55,
    Stage.CONSOLIDATION: 85,
    Stage.STAGNATION: 95,
    Stage.DECLINE: 40,
    Stage.REJUVENATION: 130,
}


def stage_color(value: Union[Stage, str, None]) -> str:
    """Fill color for a stage; unrecognized values get FALLBACK_COLOR."""
    s = value if isinstance(value, Stage) else Stage.parse(value)
    if s is None:
        return FALLBACK_COLOR
    return STAGE_COLORS[s]


def type_label(entry_type: EntryType) -> str:
    return "Country-Level" if entry_type is EntryType.COUNTRY else "Location"


# -----------------------------
# Markers
# -----------------------------

@dataclass(frozen=True)
class MarkerView:
    key: str
    position: Tuple[float, float]
    fill_color: str
    radius: int
    popup: Tuple[Tuple[str, str], ...]

    @property
    def popup_fields(self) -> Dict[str, str]:
        return dict(self.popup)


def marker_for(dest: Destination, display_stage: Optional[Stage] = None,
               dataset: Optional[Dataset] = None) -> MarkerView:
    stage = display_stage or dest.stage
    popup: List[Tuple[str, str]] = [
        ("name", dest.name),
        ("type", "(Country)" if dest.is_country else ""),
        ("country", dest.country),
        ("parent", dest.parent),
        ("stage", f"{stage.label} Stage"),
    ]
    if dest.is_country and dataset is not None:
        n = len(dataset.children_of(dest.name))
        if n:
            popup.append(("locations", f"{n} locations tracked"))
    return MarkerView(
        key=dest.identity.key,
        position=(dest.latitude, dest.longitude),
        fill_color=stage_color(stage),
        radius=COUNTRY_RADIUS if dest.is_country else LOCATION_RADIUS,
        popup=tuple(popup),
    )


def markers(dataset: Dataset, result: FilterResult) -> Dict[str, MarkerView]:
    """Marker descriptors for the visible destinations, keyed by identity key."""
    out: Dict[str, MarkerView] = {}
    for ident in result.visible:
        dest = dataset.get(ident)
        out[ident.key] = marker_for(dest, result.display_stage.get(ident), dataset)
    return out


# -----------------------------
# Charts
# -----------------------------

@dataclass(frozen=True)
class ChartSeries:
    title: str
    labels: Tuple[str, ...]
    values: Tuple[int, ...]
    colors: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return sum(self.values)

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(self.labels, self.values))


BAR_COLORS = (
    "#3498db", "#e74c3c", "#2ecc71", "#f1c40f",
    "#9b59b6", "#e67e22", "#1abc9c", "#34495e", "#95a5a6", "#16a085",
)


def stage_series(destinations: Iterable[Destination],
                 display_stage: Optional[Mapping] = None) -> ChartSeries:
    """Counts per canonical stage (zero-filled), using display stage when given."""
    counts = {s: 0 for s in STAGES}
    for d in destinations:
        s = display_stage.get(d.identity, d.stage) if display_stage else d.stage
        counts[s] += 1
    return ChartSeries(
        title="Stage Distribution",
        labels=tuple(s.label for s in STAGES),
        values=tuple(counts[s] for s in STAGES),
        colors=tuple(STAGE_COLORS[s] for s in STAGES),
    )


def region_series(destinations: Iterable[Destination],
                  region_table: RegionTable = DEFAULT_REGIONS) -> ChartSeries:
    """Counts per region, descending, zero regions omitted, ties in declaration order."""
    counts: Dict[str, int] = {r: 0 for r in region_table}
    cache: Dict[str, str] = {}
    for d in destinations:
        if d.country_key not in cache:
            cache[d.country_key] = classify_country(d.country_key, region_table)
        region = cache[d.country_key]
        counts[region] = counts.get(region, 0) + 1
    ranked = sorted(((r, c) for r, c in counts.items() if c > 0), key=lambda rc: rc[1], reverse=True)
    return ChartSeries(
        title="Regional Distribution",
        labels=tuple(region_label(r) for r, _ in ranked),
        values=tuple(c for _, c in ranked),
        colors=tuple(BAR_COLORS[i % len(BAR_COLORS)] for i in range(len(ranked))),
    )


# -----------------------------
# Autocomplete
# -----------------------------

@dataclass(frozen=True)
class Suggestion:
    name: str
    country: str
    stage: str
    entry_type: str
    # (start, end) of the query inside `name`, None if it matched another field
    highlight: Optional[Tuple[int, int]] = None


def suggest(dataset: Dataset, query: str, limit: int = SUGGESTION_LIMIT) -> List[Suggestion]:
    q = normalize_key(query)
    if not q:
        return []
    out: List[Suggestion] = []
    for d in dataset:
        if not matches_query(d, q):
            continue
        pos = d.name.lower().find(q)
        out.append(Suggestion(
            name=d.name,
            country=d.country,
            stage=d.stage.label,
            entry_type=d.entry_type.value,
            highlight=(pos, pos + len(q)) if pos >= 0 else None,
        ))
        if len(out) >= limit:
            break
    return out


# -----------------------------
# Detail panel
# -----------------------------

@dataclass
class DetailPanel:
    name: str
    country: str
    entry_type: str
    type_label: str
    parent: str
    stage: Stage
    stage_label: str
    description: str
    characteristics: List[Tuple[str, str]]
    coordinates: str
    justification: str = ""
    children: List[Tuple[str, str]] = field(default_factory=list)
    history: List[Tuple[str, str]] = field(default_factory=list)
    similar: List[SimilarDestination] = field(default_factory=list)
    in_watchlist: bool = False


def stage_characteristics(stage: Stage) -> List[Tuple[str, str]]:
    return list(zip(CHARACTERISTIC_FIELDS, STAGE_CHARACTERISTICS[stage]))


def detail_panel(dataset: Dataset, dest: Destination, display_stage: Optional[Stage] = None,
                 watchlist=None, similar_limit: int = DEFAULT_LIMIT) -> DetailPanel:
    stage = display_stage or dest.stage
    children: List[Tuple[str, str]] = []
    if dest.is_country:
        children = [(c.name, c.stage.label) for c in dataset.children_of(dest.name)]
    history = [(str(y), dest.history[y].label) for y in sorted(dest.history)]
    history.append((CURRENT, dest.stage.label))
    return DetailPanel(
        name=dest.name,
        country=dest.country,
        entry_type=dest.entry_type.value,
        type_label=type_label(dest.entry_type),
        parent=dest.parent,
        stage=stage,
        stage_label=stage.label,
        description=STAGE_DESCRIPTIONS.get(stage, UNKNOWN_DESCRIPTION),
        characteristics=stage_characteristics(stage),
        coordinates=f"{dest.latitude:.4f}, {dest.longitude:.4f}",
        justification=dest.justification,
        children=children,
        history=history,
        similar=rank_similar(dataset, dest, limit=similar_limit),
        in_watchlist=bool(watchlist is not None and watchlist.contains(dest.identity)),
    )


# -----------------------------
# Dashboard numbers
# -----------------------------

@dataclass(frozen=True)
class Insights:
    dominant_stage: Optional[Stage]
    dominant_count: int
    emerging_percent: float
    mature_percent: float
    country_count: int
    location_count: int


def _percent(part: int, total: int) -> float:
    return round(part * 100.0 / total, 1) if total else 0.0


def insights(dataset: Dataset) -> Insights:
    counts = dataset.count_by_stage()
    types = dataset.count_by_type()
    total = len(dataset)
    dom = dataset.dominant_stage()
    return Insights(
        dominant_stage=dom,
        dominant_count=counts[dom] if dom is not None else 0,
        emerging_percent=_percent(counts[Stage.EXPLORATION] + counts[Stage.INVOLVEMENT], total),
        mature_percent=_percent(counts[Stage.CONSOLIDATION] + counts[Stage.STAGNATION], total),
        country_count=types[EntryType.COUNTRY],
        location_count=types[EntryType.LOCATION],
    )


@dataclass(frozen=True)
class SummaryStats:
    total: int
    visible: int
    countries: int


def summary_stats(dataset: Dataset, result: Optional[FilterResult] = None) -> SummaryStats:
    return SummaryStats(
        total=len(dataset),
        visible=len(result) if result is not None else len(dataset),
        countries=len(dataset.countries()),
    )
