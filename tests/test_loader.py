import asyncio

import pytest

from talc.errors import LoadFailure, RecordRejected
from talc.loader import Normalizer, aload_path, build_dataset, load_dataset, load_path
from talc.models import EntryType, Identity, Stage, STAGES


def _row(**kw):
    base = {"name": "Venice", "latitude": "45.44", "longitude": "12.31", "phase": "Decline", "country": "Italy"}
    base.update(kw)
    return base


def test_accepts_valid_row():
    dest, reason = Normalizer().normalize(_row())
    assert reason is None
    assert dest.name == "Venice"
    assert dest.stage is Stage.DECLINE
    assert dest.stage_label == "Decline"
    assert dest.entry_type is EntryType.LOCATION
    assert dest.latitude == pytest.approx(45.44)


@pytest.mark.parametrize("col", ["name", "latitude", "longitude", "phase"])
def test_rejects_missing_required(col):
    dest, reason = Normalizer().normalize(_row(**{col: "  "}))
    assert dest is None
    assert col in reason


@pytest.mark.parametrize("lat,lng", [("abc", "1"), ("1", "x"), ("nan", "1"), ("1", "inf")])
def test_rejects_non_numeric_coordinates(lat, lng):
    dest, reason = Normalizer().normalize(_row(latitude=lat, longitude=lng))
    assert dest is None
    assert "number" in reason


def test_rejects_unknown_stage():
    dest, reason = Normalizer().normalize(_row(phase="Boom"))
    assert dest is None
    assert "stage" in reason


def test_stage_is_canonicalized_case_insensitively():
    dest, _ = Normalizer().normalize(_row(phase="  rEJUVENATION "))
    assert dest.stage is Stage.REJUVENATION
    assert dest.stage_label == "rEJUVENATION"


def test_country_defaults_to_unknown():
    dest, _ = Normalizer().normalize(_row(country=""))
    assert dest.country == "Unknown"


def test_duplicate_identity_first_wins():
    norm = Normalizer()
    first, _ = norm.normalize(_row())
    second, reason = norm.normalize(_row(name=" venice ", phase="Development"))
    assert first is not None
    assert second is None
    assert "duplicate" in reason


def test_country_and_location_may_share_a_name():
    norm = Normalizer()
    a, _ = norm.normalize(_row(name="Monaco", type="country"))
    b, _ = norm.normalize(_row(name="Monaco"))
    assert a.identity == Identity("monaco", EntryType.COUNTRY)
    assert b.identity == Identity("monaco", EntryType.LOCATION)


def test_row_with_bad_coordinates_still_claims_identity():
    rows = [_row(latitude="abc"), _row(phase="Development")]
    report = build_dataset(rows)
    assert len(report.dataset) == 0
    assert "number" in report.rejected[0].reason
    assert "duplicate" in report.rejected[1].reason


def test_row_with_unknown_stage_still_claims_identity():
    norm = Normalizer()
    norm.normalize(_row(phase="boom"))
    dest, reason = norm.normalize(_row())
    assert dest is None
    assert "duplicate" in reason


def test_row_missing_fields_does_not_claim_identity():
    norm = Normalizer()
    norm.normalize(_row(longitude=""))
    dest, reason = norm.normalize(_row())
    assert reason is None
    assert dest.name == "Venice"


def test_rejects_unknown_type():
    dest, reason = Normalizer().normalize(_row(type="city"))
    assert dest is None
    assert "unknown type 'city'" in reason


def test_history_ignores_blank_and_unknown_values():
    dest, _ = Normalizer().normalize(_row(stage_1980="development", stage_1990="", stage_2000="boom"))
    assert dest.history == {1980: Stage.DEVELOPMENT}


def test_accept_raises_record_rejected():
    with pytest.raises(RecordRejected) as exc:
        Normalizer().accept(_row(name=""), row_number=4)
    assert exc.value.row_number == 4


def test_venice_end_to_end():
    rows = [
        {"name": "Venice", "latitude": "45.44", "longitude": "12.31", "phase": "Decline", "country": "Italy"},
        {"name": "Venice", "latitude": "0", "longitude": "0", "phase": "Development", "country": "Italy"},
    ]
    report = build_dataset(rows)
    ds = report.dataset
    assert len(ds) == 1
    venice = ds.find("Venice")
    assert venice.stage is Stage.DECLINE
    counts = ds.count_by_stage()
    assert counts[Stage.DECLINE] == 1
    assert all(counts[s] == 0 for s in STAGES if s is not Stage.DECLINE)
    assert len(report.rejected) == 1


def test_loading_twice_gives_identical_counts(sample_csv):
    a = load_dataset(sample_csv).dataset
    b = load_dataset(sample_csv).dataset
    assert a.count_by_stage() == b.count_by_stage()
    assert a.count_by_region() == b.count_by_region()


def test_load_report_counts(sample_csv):
    text = sample_csv + "Nowhere,,,Decline,,,,,,,,,\n"
    report = load_dataset(text)
    assert report.total_rows == 9
    assert report.accepted == 8
    assert [r.row_number for r in report.rejected] == [9]


def test_load_path_reads_csv(tmp_path, sample_csv):
    p = tmp_path / "destinations.csv"
    p.write_text(sample_csv, encoding="utf-8")
    assert load_path(str(p)).accepted == 8


def test_load_path_missing_file_is_load_failure(tmp_path):
    with pytest.raises(LoadFailure):
        load_path(str(tmp_path / "missing.csv"))


def test_async_load(tmp_path, sample_csv):
    p = tmp_path / "destinations.csv"
    p.write_text(sample_csv, encoding="utf-8")
    report = asyncio.run(aload_path(str(p)))
    assert report.accepted == 8


def test_async_load_failure_is_atomic(tmp_path):
    with pytest.raises(LoadFailure):
        asyncio.run(aload_path(str(tmp_path / "missing.csv")))


def test_load_path_reads_workbook(tmp_path):
    pd = pytest.importorskip("pandas")
    pytest.importorskip("openpyxl")
    p = tmp_path / "destinations.xlsx"
    pd.DataFrame([
        {"Name": "Venice", "Latitude": "45.44", "Longitude": "12.31", "Phase": "Decline", "Country": "Italy"},
        {"Name": "Rome", "Latitude": "41.9", "Longitude": "12.49", "Phase": "Stagnation", "Country": "Italy"},
    ]).to_excel(p, index=False, engine="openpyxl")
    report = load_path(str(p))
    assert report.accepted == 2
    assert report.dataset.find("rome").stage is Stage.STAGNATION
