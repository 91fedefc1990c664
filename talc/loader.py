"""
Dataset loader (rows -> Destination -> Dataset)
===============================================

This module validates each parsed row and turns it into an immutable
`Destination`, then builds the `Dataset`.

Key ideas:
- First occurrence wins: a second row with the same (name, type) identity is
  dropped, not merged.
- A bad row never aborts the load. It is rejected with a reason, logged at
  DEBUG level and kept in `LoadReport.rejected` for diagnostics.
- Only a total failure (missing file, unparseable table) raises `LoadFailure`,
  and then no dataset is exposed at all.
"""

from __future__ import annotations
import asyncio
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
from .dataset import Dataset
from .errors import LoadFailure, RecordRejected
from .models import SNAPSHOT_YEARS, Destination, EntryType, Identity, Stage, normalize_key, normalize_text
from .parser import Row, parse_table, parse_workbook

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "latitude", "longitude", "phase")


def _to_float(x: str) -> Optional[float]:
    """Parse a coordinate cell, returning None if missing/invalid/non-finite."""
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _history(row: Row) -> Dict[int, Stage]:
    out: Dict[int, Stage] = {}
    for year in SNAPSHOT_YEARS:
        s = Stage.parse(row.get(f"stage_{year}", ""))
        if s is not None:
            out[year] = s
    return out


class Normalizer:
    """Validates rows and remembers which identities were already claimed."""

    def __init__(self) -> None:
        self._seen: Set[Identity] = set()

    def normalize(self, row: Row, row_number: Optional[int] = None) -> Tuple[Optional[Destination], Optional[str]]:
        """Return (destination, None) for an accepted row or (None, reason)."""
        try:
            return self.accept(row, row_number), None
        except RecordRejected as e:
            return None, e.reason

    def accept(self, row: Row, row_number: Optional[int] = None) -> Destination:
        """Like normalize(), but raises RecordRejected for a bad row."""
        try:
            dest = self._build(row, row_number)
        except RecordRejected as e:
            logger.debug("Rejected %s", e)
            raise
        return dest

    def _build(self, row: Row, row_number: Optional[int]) -> Destination:
        name = normalize_text(row.get("name"))
        for col in REQUIRED_COLUMNS:
            if not normalize_text(row.get(col)):
                raise RecordRejected(f"missing {col}", row_number, name)

        entry_type = EntryType.parse(row.get("type"))
        if entry_type is None:
            raise RecordRejected(f"unknown type {normalize_text(row.get('type'))!r}", row_number, name)

        ident = Identity(normalize_key(name), entry_type)
        if ident in self._seen:
            raise RecordRejected(f"duplicate of {ident.key}", row_number, name)
        # the first row with complete fields claims the identity, even if it is rejected below
        self._seen.add(ident)

        lat = _to_float(normalize_text(row.get("latitude")))
        lng = _to_float(normalize_text(row.get("longitude")))
        if lat is None or lng is None:
            raise RecordRejected("latitude/longitude is not a number", row_number, name)

        stage_label = normalize_text(row.get("phase"))
        stage = Stage.parse(stage_label)
        if stage is None:
            raise RecordRejected(f"unknown stage {stage_label!r}", row_number, name)

        return Destination(
            name=name,
            entry_type=entry_type,
            latitude=lat,
            longitude=lng,
            country=normalize_text(row.get("country")) or "Unknown",
            stage=stage,
            stage_label=stage_label,
            parent=normalize_text(row.get("parent")),
            justification=normalize_text(row.get("justification")),
            history=_history(row),
        )


@dataclass
class LoadReport:
    """Result of one load: the dataset plus per-row diagnostics."""
    dataset: Dataset
    total_rows: int = 0
    rejected: List[RecordRejected] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return len(self.dataset)


def build_dataset(rows: List[Row]) -> LoadReport:
    """Normalize parsed rows into a fresh Dataset (first occurrence wins)."""
    dataset = Dataset()
    report = LoadReport(dataset=dataset, total_rows=len(rows))
    norm = Normalizer()
    # row numbers are 1-based data rows (header excluded)
    for i, row in enumerate(rows, start=1):
        try:
            dest = norm.accept(row, row_number=i)
        except RecordRejected as e:
            report.rejected.append(e)
            continue
        dataset.add(dest)
    logger.info("Loaded %d destinations (%d rows, %d rejected)",
                report.accepted, report.total_rows, len(report.rejected))
    return report


def load_dataset(text: str) -> LoadReport:
    """Parse raw table text and build the dataset in one step."""
    return build_dataset(parse_table(text))


def load_path(path: str) -> LoadReport:
    """Load a .csv (or .xlsx) file from disk."""
    if path.lower().endswith((".xlsx", ".xlsm")):
        return build_dataset(parse_workbook(path))
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            text = f.read()
    except OSError as e:
        raise LoadFailure(f"Could not read {os.path.basename(path)}: {e}") from e
    return load_dataset(text)


async def aload_path(path: str) -> LoadReport:
    """One-shot asynchronous load: a complete report or LoadFailure, never partial."""
    return await asyncio.to_thread(load_path, path)
