"""Exceptions raised while loading the destinations table."""

from __future__ import annotations
from typing import Optional


class LoadFailure(Exception):
    """The whole table could not be fetched or parsed. The dataset stays empty."""


class RecordRejected(ValueError):
    """One row failed validation. Never aborts a load; only logged."""

    def __init__(self, reason: str, row_number: Optional[int] = None, name: str = "") -> None:
        self.reason = reason
        self.row_number = row_number
        self.name = name
        where = f"row {row_number}" if row_number is not None else "row"
        label = f" ({name})" if name else ""
        super().__init__(f"{where}{label}: {reason}")
