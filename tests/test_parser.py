import pytest

from talc.errors import LoadFailure
from talc.parser import parse_table


def test_header_driven_rows():
    rows = parse_table("name,latitude\nVenice,45.4\n")
    assert rows == [{"name": "Venice", "latitude": "45.4"}]


def test_header_names_are_trimmed_and_lowercased():
    rows = parse_table(" Name ,PHASE\nVenice,Decline\n")
    assert rows[0]["name"] == "Venice"
    assert rows[0]["phase"] == "Decline"


def test_blank_lines_are_skipped():
    rows = parse_table("name,phase\n\nVenice,Decline\n\n\nRome,Stagnation\n")
    assert [r["name"] for r in rows] == ["Venice", "Rome"]


def test_short_rows_get_empty_strings():
    rows = parse_table("name,latitude,longitude,phase\nVenice,45.4\n")
    assert rows[0]["longitude"] == ""
    assert rows[0]["phase"] == ""


def test_malformed_rows_are_dropped():
    rows = parse_table("name,phase\nVenice,Decline\nBad,Row,Extra,Fields\nRome,Stagnation\n")
    assert [r["name"] for r in rows] == ["Venice", "Rome"]


def test_extra_field_in_first_row_does_not_shift_columns():
    text = ("name,latitude,longitude,phase,country\n"
            "Venice,45.44,12.31,Decline,Italy,EXTRA\n"
            "Rome,41.90,12.49,Stagnation,Italy\n")
    rows = parse_table(text)
    assert rows == [{"name": "Rome", "latitude": "41.90", "longitude": "12.49",
                     "phase": "Stagnation", "country": "Italy"}]


@pytest.mark.parametrize("text", [
    'name,latitude,longitude,phase\nRome,41.90,12.49,Stagnation\n"Venice,45.44,12.31,Decline\n',
    'name,latitude,longitude,phase\n"Venice,45.44,12.31,Decline\nRome,41.90,12.49,Stagnation\n',
])
def test_unbalanced_quote_drops_only_that_line(text):
    rows = parse_table(text)
    assert [r["name"] for r in rows] == ["Rome"]


def test_quoted_delimiters_survive():
    rows = parse_table('name,phase\n"Venice, old town",Decline\n')
    assert rows[0]["name"] == "Venice, old town"


def test_unbalanced_quote_keeps_the_rest_of_the_load():
    from talc.loader import load_dataset
    text = ("name,latitude,longitude,phase\n"
            "Rome,41.90,12.49,Stagnation\n"
            '"Venice,45.44,12.31,Decline\n'
            "London,51.50,-0.12,Consolidation\n")
    report = load_dataset(text)
    assert [d.name for d in report.dataset] == ["Rome", "London"]


def test_na_like_values_stay_strings():
    rows = parse_table("name,country\nNA,None\n")
    assert rows[0] == {"name": "NA", "country": "None"}


def test_completion_callback_receives_full_rows():
    seen = []
    rows = parse_table("name\nA\nB\n", on_complete=seen.append)
    assert seen == [rows]
    assert len(seen[0]) == 2


@pytest.mark.parametrize("text", ["", "   \n\n"])
def test_empty_input_is_a_load_failure(text):
    with pytest.raises(LoadFailure):
        parse_table(text)
