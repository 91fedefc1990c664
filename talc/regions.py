"""
Region table
============

Declaration-ordered mapping from region label to lower-case country-name
fragments. Classification takes the FIRST region whose list matches, so an
overlap (e.g. 'georgia' sits under europe) is settled by declaration order.
"""

from __future__ import annotations
from typing import Dict, Mapping, Sequence
from .models import normalize_key

OTHER_REGION = "other"

RegionTable = Mapping[str, Sequence[str]]

DEFAULT_REGIONS: Dict[str, Sequence[str]] = {
    "europe": (
        "france", "germany", "italy", "spain", "portugal", "uk", "united kingdom", "netherlands",
        "belgium", "austria", "switzerland", "greece", "czech republic", "poland", "hungary",
        "croatia", "ireland", "denmark", "sweden", "norway", "finland", "russia", "ukraine",
        "romania", "bulgaria", "serbia", "montenegro", "albania", "north macedonia",
        "bosnia and herzegovina", "slovenia", "slovakia", "latvia", "lithuania", "estonia",
        "malta", "cyprus", "iceland", "monaco", "luxembourg", "liechtenstein", "andorra",
        "san marino", "vatican city", "moldova", "belarus", "kosovo", "georgia",
    ),
    "asia": (
        "china", "japan", "south korea", "india", "thailand", "vietnam", "indonesia", "malaysia",
        "philippines", "singapore", "hong kong", "taiwan", "myanmar", "cambodia", "laos", "nepal",
        "sri lanka", "bangladesh", "pakistan", "mongolia", "bhutan", "maldives", "brunei",
        "timor-leste", "macau",
    ),
    "middle east": (
        "uae", "united arab emirates", "qatar", "saudi arabia", "oman", "bahrain", "kuwait",
        "israel", "jordan", "lebanon", "turkey", "iran", "iraq", "syria", "yemen", "palestine",
    ),
    "africa": (
        "south africa", "egypt", "morocco", "kenya", "tanzania", "ethiopia", "nigeria", "ghana",
        "senegal", "tunisia", "madagascar", "namibia", "botswana", "zimbabwe", "zambia",
        "mozambique", "rwanda", "uganda", "mauritius", "seychelles",
    ),
    "north america": ("usa", "united states", "canada", "mexico", "puerto rico"),
    "central america": (
        "belize", "guatemala", "honduras", "el salvador", "nicaragua", "costa rica", "panama",
    ),
    "south america": (
        "brazil", "argentina", "chile", "peru", "colombia", "ecuador", "bolivia", "uruguay",
        "paraguay", "venezuela", "guyana", "suriname",
    ),
    "oceania": (
        "australia", "new zealand", "fiji", "papua new guinea", "samoa", "tonga", "vanuatu",
        "solomon islands", "palau", "micronesia",
    ),
    "caribbean": (
        "jamaica", "cuba", "dominican republic", "bahamas", "barbados", "trinidad and tobago",
        "haiti", "aruba", "cayman islands", "bermuda", "antigua", "st. lucia", "grenada",
    ),
}


def classify_country(country: str, table: RegionTable = DEFAULT_REGIONS) -> str:
    """Return the first region whose list contains (or is contained in) `country`."""
    c = normalize_key(country)
    if not c:
        return OTHER_REGION
    for region, names in table.items():
        for n in names:
            n = normalize_key(n)
            if n and (n in c or c in n):
                return region
    return OTHER_REGION


def region_label(region: str) -> str:
    """'north america' -> 'North America'."""
    return " ".join(w[:1].upper() + w[1:] for w in region.split(" "))
