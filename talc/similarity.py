"""
Similarity ranking
==================

Scores every other destination against a reference one:

    +3  same stage
    +2  same country (case-insensitive)
    +1  same entry type
    +1  stage index exactly one step away

Zero scores are dropped. Python's sort is stable, so equal scores keep load
order.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List
from .models import Destination

DEFAULT_LIMIT = 5


@dataclass(frozen=True)
class SimilarDestination:
    destination: Destination
    score: int


def score_candidate(reference: Destination, candidate: Destination) -> int:
    score = 0
    if candidate.stage is reference.stage:
        score += 3
    if candidate.country_key == reference.country_key:
        score += 2
    if candidate.entry_type is reference.entry_type:
        score += 1
    if abs(candidate.stage.index - reference.stage.index) == 1:
        score += 1
    return score


def rank_similar(candidates: Iterable[Destination], reference: Destination,
                 limit: int = DEFAULT_LIMIT) -> List[SimilarDestination]:
    """Top `limit` candidates by score, excluding the reference (by display name)."""
    scored: List[SimilarDestination] = []
    for c in candidates:
        if c.name == reference.name:
            continue
        s = score_candidate(reference, c)
        if s > 0:
            scored.append(SimilarDestination(c, s))
    scored.sort(key=lambda x: x.score, reverse=True)
    return scored[:max(limit, 0)]
