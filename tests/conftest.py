import matplotlib

matplotlib.use("Agg")

import pytest

from talc.loader import load_dataset
from talc.models import Destination, EntryType, Stage

SAMPLE_CSV = """name,latitude,longitude,phase,country,type,parent,justification,stage_1980,stage_1990,stage_2000,stage_2010,stage_2020
Italy,41.87,12.56,Consolidation,Italy,country,,Mature national market,development,,,,consolidation
Venice,45.44,12.31,Decline,Italy,location,Italy,Overtourism,Consolidation,,,,Stagnation
Rome,41.90,12.49,Stagnation,Italy,location,Italy,,,,,,
Bhutan,27.51,90.43,Exploration,Bhutan,country,,,,,,,
Dubrovnik,42.65,18.09,Development,Croatia,location,,,exploration,involvement,development,,
London,51.50,-0.12,Consolidation,United Kingdom,location,,,,,,,
Cancun,21.16,-86.85,Rejuvenation,Mexico,location,,,,,,development,stagnation
Georgia,42.31,43.36,Involvement,Georgia,country,,,,,,,
"""


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def dataset():
    return load_dataset(SAMPLE_CSV).dataset


def make_dest(name, stage="development", country="Italy", entry_type=EntryType.LOCATION,
              parent="", history=None, lat=0.0, lng=0.0):
    s = Stage.parse(stage)
    return Destination(
        name=name,
        entry_type=entry_type,
        latitude=lat,
        longitude=lng,
        country=country,
        stage=s,
        stage_label=s.label,
        parent=parent,
        history=dict(history or {}),
    )


@pytest.fixture
def dest_factory():
    return make_dest
