"""
Indices (incremental lookup tables)
===================================

The dataset keeps a few maps from value -> list of identities so that
aggregate questions ("how many in decline?", "which locations belong to
Italy?") do not need a full scan.

Example:
- `by_stage[Stage.DECLINE]` lists every destination currently in decline.
- `children_by_parent["italy"]` lists location entries whose parent is Italy.

Lists keep insertion (load) order, which is the order views display.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List
from .models import Destination, EntryType, Identity, Stage, STAGES


@dataclass
class Indices:
    """Container of incrementally maintained indices."""
    by_stage: Dict[Stage, List[Identity]] = field(default_factory=lambda: {s: [] for s in STAGES})
    by_type: Dict[EntryType, List[Identity]] = field(default_factory=lambda: {t: [] for t in EntryType})
    by_country: Dict[str, List[Identity]] = field(default_factory=dict)
    children_by_parent: Dict[str, List[Identity]] = field(default_factory=dict)

    def add(self, dest: Destination) -> None:
        ident = dest.identity
        self.by_stage[dest.stage].append(ident)
        self.by_type[dest.entry_type].append(ident)
        self.by_country.setdefault(dest.country_key, []).append(ident)
        if dest.entry_type is EntryType.LOCATION and dest.parent_key:
            self.children_by_parent.setdefault(dest.parent_key, []).append(ident)
