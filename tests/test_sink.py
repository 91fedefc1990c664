import pytest

from talc.sink import ChartHandle, RecordingSink


def test_release_is_idempotent():
    seen = []
    h = ChartHandle("c", [1], on_release=seen.append)
    h.release()
    h.release()
    assert h.released
    assert seen == [h]


def test_replace_requires_release():
    sink = RecordingSink()
    h = sink.replace_chart("stages", "a")
    with pytest.raises(RuntimeError):
        sink.replace_chart("stages", "b")
    h.release()
    assert sink.chart("stages") is None
    sink.replace_chart("stages", "b")
    assert sink.chart("stages") == "b"
    assert sink.calls == [("chart", "stages"), ("release", "stages"), ("chart", "stages")]


def test_marker_calls_are_logged():
    sink = RecordingSink()
    sink.add_marker("rome_location", "m1")
    sink.restyle_marker("rome_location", "m2")
    sink.remove_marker("rome_location")
    assert sink.markers == {}
    assert [op for op, _ in sink.calls] == ["add", "restyle", "remove"]
