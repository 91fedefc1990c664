import json
from datetime import datetime, timezone

import pytest

from talc.models import EntryType, Identity, Stage
from talc.watchlist import WatchListStore, default_path

FIXED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return WatchListStore(str(tmp_path / "watch" / "list.json"), clock=lambda: FIXED)


def test_toggle_adds_then_removes(store, dest_factory):
    venice = dest_factory("Venice", "decline")
    assert store.toggle(venice) is True
    assert store.contains(venice.identity)
    assert store.contains("venice_location")
    assert store.toggle(venice) is False
    assert not store.contains(venice.identity)
    assert store.list() == []


def test_double_toggle_restores_file_exactly(store, dest_factory):
    rome = dest_factory("Rome", "stagnation")
    store.toggle(rome)
    before = open(store.path, encoding="utf-8").read()
    venice = dest_factory("Venice", "decline")
    store.toggle(venice)
    store.toggle(venice)
    assert open(store.path, encoding="utf-8").read() == before
    assert [e.id for e in store.list()] == ["rome_location"]


def test_persisted_layout(store, dest_factory):
    store.toggle(dest_factory("Italy", "consolidation", entry_type=EntryType.COUNTRY, lat=41.87, lng=12.56))
    payload = json.load(open(store.path, encoding="utf-8"))
    assert payload == [{
        "id": "italy_country",
        "name": "Italy",
        "country": "Italy",
        "stage": "Consolidation",
        "latitude": 41.87,
        "longitude": 12.56,
        "type": "country",
        "addedAt": "2024-05-01T12:00:00+00:00",
    }]


def test_snapshot_uses_given_stage(store, dest_factory):
    store.toggle(dest_factory("Venice", "decline"), Stage.CONSOLIDATION)
    assert store.list()[0].stage == "Consolidation"


def test_reload_keeps_insertion_order(store, dest_factory):
    for name in ("B", "A", "C"):
        store.toggle(dest_factory(name))
    again = WatchListStore(store.path)
    assert [e.name for e in again.list()] == ["B", "A", "C"]
    assert again.contains(Identity("a", EntryType.LOCATION))


def test_clear_requires_confirmation(store, dest_factory):
    store.toggle(dest_factory("Venice"))
    assert store.clear(lambda: False) is False
    assert len(store) == 1
    assert store.clear(lambda: True) is True
    assert len(store) == 0
    assert json.load(open(store.path, encoding="utf-8")) == []


def test_missing_file_is_empty(tmp_path):
    assert WatchListStore(str(tmp_path / "none.json")).list() == []


def test_corrupt_file_is_ignored(tmp_path, caplog):
    p = tmp_path / "list.json"
    p.write_text("{not json", encoding="utf-8")
    with caplog.at_level("WARNING"):
        store = WatchListStore(str(p))
    assert store.list() == []
    assert "unreadable" in caplog.text


def test_default_path_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("TALC_WATCHLIST", str(tmp_path / "w.json"))
    assert default_path() == str(tmp_path / "w.json")


def test_toggle_by_identity_removes_entry_without_destination(store, dest_factory):
    store.toggle(dest_factory("Atlantis"))
    again = WatchListStore(store.path)
    assert again.toggle(Identity("atlantis", EntryType.LOCATION)) is False
    assert again.list() == []
    assert json.load(open(store.path, encoding="utf-8")) == []


def test_toggle_unknown_key_cannot_add(store):
    with pytest.raises(KeyError):
        store.toggle("atlantis_location")
    assert len(store) == 0
