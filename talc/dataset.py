"""
Dataset (in-memory store)
=========================

Owns every normalized `Destination`, keyed by identity, in load order.
Aggregates are answered from the incremental `Indices` instead of scanning
all records:

- count_by_stage   -> sizes of `by_stage` lists (zero-filled)
- count_by_region  -> one classification per distinct country, not per row
- children_of      -> `children_by_parent` lookup

There is no delete API: a dataset lives until the process ends.
"""

from __future__ import annotations
from typing import Dict, Iterator, List, Optional
from .indices import Indices
from .models import Destination, EntryType, Identity, Stage, STAGES, normalize_key
from .regions import DEFAULT_REGIONS, OTHER_REGION, RegionTable, classify_country


class Dataset:
    """All destinations of one load, plus derived aggregates."""

    def __init__(self) -> None:
        self._items: Dict[Identity, Destination] = {}
        self.idx = Indices()

    # ---------------- Storage ----------------
    def add(self, dest: Destination) -> bool:
        """Insert a destination. Returns False (no-op) when the identity exists."""
        ident = dest.identity
        if ident in self._items:
            return False
        self._items[ident] = dest
        self.idx.add(dest)
        return True

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Destination]:
        return iter(self._items.values())

    def __contains__(self, ident: object) -> bool:
        return ident in self._items

    def get(self, ident: Identity) -> Optional[Destination]:
        return self._items.get(ident)

    def find(self, name: str, entry_type: Optional[EntryType] = None) -> Optional[Destination]:
        """Look a destination up by name (case-insensitive).

        Without a type, a location wins over a country of the same name.
        """
        key = normalize_key(name)
        if entry_type is not None:
            return self._items.get(Identity(key, entry_type))
        return self._items.get(Identity(key, EntryType.LOCATION)) or self._items.get(Identity(key, EntryType.COUNTRY))

    def countries(self) -> List[str]:
        """Distinct country keys, in first-seen order."""
        return list(self.idx.by_country.keys())

    # ---------------- Aggregates ----------------
    def count_by_stage(self) -> Dict[Stage, int]:
        return {s: len(self.idx.by_stage[s]) for s in STAGES}

    def count_by_type(self) -> Dict[EntryType, int]:
        return {t: len(self.idx.by_type[t]) for t in EntryType}

    def count_by_region(self, region_table: RegionTable = DEFAULT_REGIONS) -> Dict[str, int]:
        """Count destinations per region; unmatched ones land in 'other'.

        Every declared region is present (zero-filled), followed by 'other'.
        """
        counts: Dict[str, int] = {r: 0 for r in region_table}
        counts[OTHER_REGION] = counts.get(OTHER_REGION, 0)
        for country, ids in self.idx.by_country.items():
            counts[classify_country(country, region_table)] += len(ids)
        return counts

    def children_of(self, country_name: str) -> List[Destination]:
        """Location entries whose parent equals `country_name` (case-insensitive)."""
        ids = self.idx.children_by_parent.get(normalize_key(country_name), [])
        return [self._items[i] for i in ids]

    def dominant_stage(self) -> Optional[Stage]:
        """Stage with the most destinations; ties go to the earlier canonical stage."""
        if not self._items:
            return None
        counts = self.count_by_stage()
        best = STAGES[0]
        for s in STAGES:
            if counts[s] > counts[best]:
                best = s
        return best

