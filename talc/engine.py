"""
Core engine (view state)
========================

The engine is the one object that owns mutable state. It works like a small
"view controller":

1) Hold the loaded Dataset (never modified after load)
2) Hold the current FilterCriteria (search, stage, type, year)
3) On every change: re-run the filter engine, then project the result onto
   the rendering sink (markers + charts)
4) Answer on-demand detail / similarity / autocomplete questions

State that a browser page would keep in globals (marker list, chart handles,
counters) lives on the engine instance instead.

Marker sync per refresh:
- newly visible          -> add_marker
- no longer visible      -> remove_marker
- visible, style changed -> restyle_marker (e.g. year slider recolor)

Charts are disposable: the previous handle is released before the chart is
replaced.
"""

from __future__ import annotations
import csv
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from .dataset import Dataset
from .filters import ALL, FilterCriteria, FilterResult, apply_filters, visible_destinations
from .models import CURRENT, SNAPSHOT_YEARS, Destination, EntryType, Identity, normalize_key
from .regions import DEFAULT_REGIONS, RegionTable
from .sink import ChartHandle, RecordingSink, RenderSink
from .similarity import DEFAULT_LIMIT, SimilarDestination, rank_similar
from .views import (
    DetailPanel, MarkerView, Suggestion, SummaryStats,
    detail_panel, markers, region_series, stage_series, suggest, summary_stats,
)
from .watchlist import WatchListStore

logger = logging.getLogger(__name__)

STAGE_CHART = "stage_distribution"
REGION_CHART = "region_distribution"

# Year slider positions, oldest first, "now" last
YEAR_STEPS = tuple(SNAPSHOT_YEARS) + (CURRENT,)


@dataclass
class TALCEngine:
    """TALC view engine.

    Filters only change `criteria`; every change is followed by `refresh()`,
    which pushes the difference to the sink.
    """
    dataset: Dataset
    sink: RenderSink = field(default_factory=RecordingSink)
    watchlist: Optional[WatchListStore] = None
    region_table: RegionTable = field(default_factory=lambda: DEFAULT_REGIONS)
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    result: FilterResult = field(init=False)

    _shown: Dict[str, MarkerView] = field(default_factory=dict, init=False)
    _charts: Dict[str, ChartHandle] = field(default_factory=dict, init=False)
    # Stacks for undo/redo (store criteria snapshots)
    _undo: List[FilterCriteria] = field(default_factory=list, init=False)
    _redo: List[FilterCriteria] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.refresh()

    # ---------------- Projection ----------------
    def refresh(self) -> FilterResult:
        """Re-run filters and sync markers + charts on the sink."""
        self.result = apply_filters(self.dataset, self.criteria)
        wanted = markers(self.dataset, self.result)

        for key in [k for k in self._shown if k not in wanted]:
            self.sink.remove_marker(key)
            del self._shown[key]
        for key, view in wanted.items():
            old = self._shown.get(key)
            if old is None:
                self.sink.add_marker(key, view)
            elif old != view:
                self.sink.restyle_marker(key, view)
            self._shown[key] = view

        visible = visible_destinations(self.dataset, self.result)
        self._replace_chart(STAGE_CHART, stage_series(visible, self.result.display_stage))
        self._replace_chart(REGION_CHART, region_series(visible, self.region_table))
        logger.debug("Refreshed: %d/%d visible (%s)", len(self.result), len(self.dataset), self.criteria)
        return self.result

    def _replace_chart(self, name: str, series) -> None:
        old = self._charts.pop(name, None)
        if old is not None:
            old.release()
        self._charts[name] = self.sink.replace_chart(name, series)

    def charts(self) -> Dict[str, object]:
        """Series of the live charts, by chart name."""
        return {name: h.series for name, h in self._charts.items()}

    def close(self) -> None:
        """Release chart handles (end of session)."""
        for h in self._charts.values():
            h.release()
        self._charts.clear()

    # ---------------- History (Stacks) ----------------
    def _set(self, criteria: FilterCriteria) -> FilterResult:
        if criteria != self.criteria:
            self._undo.append(self.criteria)
            self._redo.clear()
            self.criteria = criteria
        return self.refresh()

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self.criteria)
        self.criteria = self._undo.pop()
        self.refresh()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self.criteria)
        self.criteria = self._redo.pop()
        self.refresh()
        return True

    # ---------------- Filters ----------------
    def search(self, query: str) -> FilterResult:
        return self._set(self.criteria.with_changes(query=query))

    def filter_stage(self, stage: str) -> FilterResult:
        return self._set(self.criteria.with_changes(stage=stage))

    def filter_type(self, entry_type: str) -> FilterResult:
        return self._set(self.criteria.with_changes(entry_type=entry_type))

    def set_year(self, year) -> FilterResult:
        return self._set(self.criteria.with_changes(year=year))

    def quick_filter(self, stage: str) -> FilterResult:
        """Legend click: select one stage and clear the search text."""
        return self._set(self.criteria.with_changes(stage=stage, query=""))

    def reset(self) -> FilterResult:
        return self._set(FilterCriteria(match_display_stage=self.criteria.match_display_stage))

    def step_year(self) -> FilterResult:
        """Advance the year slider one position (wraps from 'current' to the first snapshot)."""
        year = self.criteria.year
        i = YEAR_STEPS.index(year) if year in YEAR_STEPS else -1
        return self.set_year(YEAR_STEPS[(i + 1) % len(YEAR_STEPS)])

    # ---------------- On-demand queries ----------------
    def lookup(self, name: str, entry_type: Optional[str] = None) -> Destination:
        etype = None
        if entry_type and entry_type != ALL:
            etype = EntryType.parse(entry_type)
            if etype is None:
                raise ValueError(f"Unknown type: {entry_type!r}")
        dest = self.dataset.find(name, etype)
        if dest is None:
            raise KeyError(f"No destination named {name!r}")
        return dest

    def details(self, name: str, entry_type: Optional[str] = None) -> DetailPanel:
        dest = self.lookup(name, entry_type)
        return detail_panel(self.dataset, dest, self.result.display_stage.get(dest.identity),
                            watchlist=self.watchlist)

    def similar(self, name: str, limit: int = DEFAULT_LIMIT, entry_type: Optional[str] = None) -> List[SimilarDestination]:
        return rank_similar(self.dataset, self.lookup(name, entry_type), limit=limit)

    def suggest(self, query: str) -> List[Suggestion]:
        return suggest(self.dataset, query)

    def toggle_watch(self, name: str, entry_type: Optional[str] = None) -> bool:
        if self.watchlist is None:
            raise RuntimeError("No watch list configured")
        try:
            dest = self.lookup(name, entry_type)
        except KeyError:
            # saved entries may name destinations this dataset no longer has
            key = self._watched_key(name, entry_type)
            if key is None:
                raise
            return self.watchlist.toggle(key)
        return self.watchlist.toggle(dest, self.result.display_stage.get(dest.identity))

    def _watched_key(self, name: str, entry_type: Optional[str]) -> Optional[str]:
        etype = EntryType.parse(entry_type) if entry_type and entry_type != ALL else None
        for t in ([etype] if etype else [EntryType.LOCATION, EntryType.COUNTRY]):
            key = Identity(normalize_key(name), t).key
            if self.watchlist.contains(key):
                return key
        return None

    def stats(self) -> SummaryStats:
        return summary_stats(self.dataset, self.result)

    def visible(self) -> List[Destination]:
        return visible_destinations(self.dataset, self.result)

    # ---------------- Export ----------------
    def _export_rows(self) -> List[Dict[str, object]]:
        return [
            {
                "id": d.identity.key,
                "name": d.name,
                "type": d.entry_type.value,
                "country": d.country,
                "parent": d.parent,
                "latitude": d.latitude,
                "longitude": d.longitude,
                "stage": d.stage.label,
                "display_stage": self.result.display_stage[d.identity].label,
            }
            for d in self.visible()
        ]

    def export_csv(self, path: str) -> None:
        rows = self._export_rows()
        cols = ["id", "name", "type", "country", "parent", "latitude", "longitude", "stage", "display_stage"]
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=cols)
            w.writeheader()
            w.writerows(rows)

    def export_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._export_rows(), f, ensure_ascii=False, indent=2)
