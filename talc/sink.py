"""
Rendering sink
==============

The map and chart engines are outside this package. The engine only talks to
them through `RenderSink`:

- markers are added / removed / restyled by identity key
- charts are replaced by name; each replace returns a `ChartHandle` that the
  caller must release before asking for the next one

`RecordingSink` is an in-memory sink. The CLI and the tests drive it, and it
keeps a call log so you can see exactly what a refresh did.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple


class ChartHandle:
    """A live chart. `release()` frees it and may be called more than once."""

    def __init__(self, name: str, series: Any, on_release=None) -> None:
        self.name = name
        self.series = series
        self._on_release = on_release
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        if self._on_release is not None:
            self._on_release(self)


class RenderSink(Protocol):
    def add_marker(self, key: str, marker: Any) -> None: ...
    def remove_marker(self, key: str) -> None: ...
    def restyle_marker(self, key: str, marker: Any) -> None: ...
    def replace_chart(self, name: str, series: Any) -> ChartHandle: ...


@dataclass
class RecordingSink:
    """Keeps markers and live charts in dicts and logs every call."""
    markers: Dict[str, Any] = field(default_factory=dict)
    charts: Dict[str, ChartHandle] = field(default_factory=dict)
    calls: List[Tuple[str, str]] = field(default_factory=list)

    def add_marker(self, key: str, marker: Any) -> None:
        self.calls.append(("add", key))
        self.markers[key] = marker

    def remove_marker(self, key: str) -> None:
        self.calls.append(("remove", key))
        self.markers.pop(key, None)

    def restyle_marker(self, key: str, marker: Any) -> None:
        self.calls.append(("restyle", key))
        self.markers[key] = marker

    def replace_chart(self, name: str, series: Any) -> ChartHandle:
        live = self.charts.get(name)
        if live is not None and not live.released:
            raise RuntimeError(f"Chart {name!r} replaced before the old handle was released")
        self.calls.append(("chart", name))
        handle = ChartHandle(name, series, on_release=self._released)
        self.charts[name] = handle
        return handle

    def _released(self, handle: ChartHandle) -> None:
        self.calls.append(("release", handle.name))

    def chart(self, name: str) -> Optional[Any]:
        h = self.charts.get(name)
        return h.series if h is not None and not h.released else None

    def clear_log(self) -> None:
        self.calls.clear()
