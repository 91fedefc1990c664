from talc.dataset import Dataset
from talc.models import EntryType, Identity, Stage, STAGES
from talc.regions import DEFAULT_REGIONS, classify_country, region_label


def test_add_is_noop_for_existing_identity(dest_factory):
    ds = Dataset()
    assert ds.add(dest_factory("Venice", "decline")) is True
    assert ds.add(dest_factory("VENICE", "development")) is False
    assert len(ds) == 1
    assert ds.get(Identity("venice", EntryType.LOCATION)).stage is Stage.DECLINE


def test_count_by_stage_zero_filled_and_sums_to_total(dataset):
    counts = dataset.count_by_stage()
    assert list(counts) == list(STAGES)
    assert sum(counts.values()) == len(dataset)
    assert counts[Stage.CONSOLIDATION] == 2


def test_count_by_stage_empty():
    counts = Dataset().count_by_stage()
    assert set(counts.values()) == {0}


def test_count_by_type(dataset):
    counts = dataset.count_by_type()
    assert counts[EntryType.COUNTRY] == 3
    assert counts[EntryType.LOCATION] == 5


def test_count_by_region(dataset):
    counts = dataset.count_by_region()
    assert counts["europe"] == 6
    assert counts["asia"] == 1
    assert counts["north america"] == 1
    assert counts["other"] == 0
    assert sum(counts.values()) == len(dataset)


def test_count_by_region_unmatched_goes_to_other(dest_factory):
    ds = Dataset()
    ds.add(dest_factory("Atlantis", country="Unknown"))
    assert ds.count_by_region()["other"] == 1


def test_united_kingdom_classifies_into_declared_region():
    assert classify_country("United Kingdom") == "europe"
    assert classify_country("UK") == "europe"
    table = {"isles": ["kingdom"], "europe": ["united kingdom"]}
    assert classify_country("United Kingdom", table) == "isles"


def test_region_first_declared_wins_on_overlap():
    table = {"first": ["guinea"], "second": ["papua new guinea"]}
    assert classify_country("Papua New Guinea", table) == "first"
    # containment works in both directions
    assert classify_country("Guinea", {"x": ["equatorial guinea"]}) == "x"


def test_default_table_overlap_georgia_is_europe():
    assert classify_country("Georgia") == "europe"
    assert list(DEFAULT_REGIONS)[0] == "europe"


def test_region_label():
    assert region_label("north america") == "North America"


def test_children_of_is_case_insensitive(dataset):
    names = [d.name for d in dataset.children_of("ITALY")]
    assert names == ["Venice", "Rome"]
    assert dataset.children_of("Bhutan") == []


def test_children_exclude_country_entries(dest_factory):
    ds = Dataset()
    ds.add(dest_factory("Sardinia", entry_type=EntryType.COUNTRY, parent="Italy"))
    ds.add(dest_factory("Cagliari", parent="italy"))
    assert [d.name for d in ds.children_of("Italy")] == ["Cagliari"]


def test_dominant_stage(dataset):
    assert dataset.dominant_stage() is Stage.CONSOLIDATION


def test_dominant_stage_tie_goes_to_canonical_order(dest_factory):
    ds = Dataset()
    ds.add(dest_factory("A", "decline"))
    ds.add(dest_factory("B", "involvement"))
    assert ds.dominant_stage() is Stage.INVOLVEMENT


def test_dominant_stage_empty():
    assert Dataset().dominant_stage() is None


def test_find_prefers_location(dest_factory):
    ds = Dataset()
    ds.add(dest_factory("Monaco", "stagnation", entry_type=EntryType.COUNTRY))
    ds.add(dest_factory("Monaco", "decline"))
    assert ds.find("monaco").entry_type is EntryType.LOCATION
    assert ds.find("monaco", EntryType.COUNTRY).stage is Stage.STAGNATION
    assert ds.find("nowhere") is None
