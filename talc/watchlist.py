"""
Watch list store
================

A small list of favorite destinations persisted as JSON. It is independent of
the dataset: entries are snapshots, so they survive even if a later load no
longer contains the destination.

- `toggle()` is the single control: adds when absent, removes when present.
- Every mutation rewrites the file through a temp file + `os.replace`, so a
  reader never sees a half-written list.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union
from .models import Destination, Identity, Stage, WatchListEntry

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.join("~", ".talc", "watchlist.json")


def default_path() -> str:
    """TALC_WATCHLIST overrides the default location."""
    return os.path.expanduser(os.environ.get("TALC_WATCHLIST") or DEFAULT_PATH)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _key_of(target: Union[Destination, Identity, str]) -> str:
    if isinstance(target, Destination):
        return target.identity.key
    if isinstance(target, Identity):
        return target.key
    return target


class WatchListStore:
    """Persisted favorites keyed by identity key, in insertion order."""

    def __init__(self, path: Optional[str] = None, clock: Callable[[], datetime] = _now) -> None:
        self.path = os.path.expanduser(path) if path else default_path()
        self._clock = clock
        self._entries: Dict[str, WatchListEntry] = {}
        self._load()

    # ---------------- Persistence ----------------
    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            entries = [WatchListEntry.from_dict(d) for d in payload]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable watch list %s: %s", self.path, e)
            return
        for e in entries:
            try:
                Identity.from_key(e.id)
            except ValueError:
                logger.warning("Skipping watch list entry with bad id %r", e.id)
                continue
            self._entries.setdefault(e.id, e)
        logger.debug("Loaded %d watch list entries from %s", len(self._entries), self.path)

    def _commit(self, entries: Dict[str, WatchListEntry]) -> None:
        """Write `entries` to disk, then make them current (all or nothing)."""
        folder = os.path.dirname(self.path) or "."
        os.makedirs(folder, exist_ok=True)
        payload = [e.to_dict() for e in entries.values()]
        fd, tmp = tempfile.mkstemp(prefix=".watchlist-", suffix=".json", dir=folder)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        self._entries = entries

    # ---------------- Operations ----------------
    def toggle(self, target: Union[Destination, Identity, str], stage: Optional[Stage] = None) -> bool:
        """Add `target` if absent, remove it if present. Returns True if now present.

        Removal only needs the identity (or its key), so entries whose
        destination is no longer in the loaded dataset can still be removed.
        Adding needs the `Destination` to take the snapshot from.
        """
        key = _key_of(target)
        entries = dict(self._entries)
        if key in entries:
            del entries[key]
            self._commit(entries)
            return False
        if not isinstance(target, Destination):
            raise KeyError(f"{key!r} is not in the watch list")
        dest = target
        entries[key] = WatchListEntry(
            id=key,
            name=dest.name,
            country=dest.country,
            stage=(stage or dest.stage).label,
            latitude=dest.latitude,
            longitude=dest.longitude,
            type=dest.entry_type.value,
            added_at=self._clock().isoformat(timespec="seconds"),
        )
        self._commit(entries)
        return True

    def contains(self, ident: Union[Identity, str]) -> bool:
        return _key_of(ident) in self._entries

    def list(self) -> List[WatchListEntry]:
        return list(self._entries.values())

    def clear(self, confirm: Callable[[], bool]) -> bool:
        """Empty the list, but only if `confirm()` says yes."""
        if not self._entries or not confirm():
            return False
        self._commit({})
        return True

    def __len__(self) -> int:
        return len(self._entries)
