from dataclasses import dataclass
from typing import Dict, Optional

import pycountry

# Spellings seen in map polygon labels, search results and manual entry.
# Keys are matched exactly first, then case-insensitively.
COUNTRY_NAME_TABLE: Dict[str, str] = {
    "United States": "usa",
    "United States of America": "usa",
    "USA": "usa",
    "US": "usa",
    "U.S.": "usa",
    "U.S.A.": "usa",
    "America": "usa",
    "United Kingdom": "gbr",
    "United Kingdom of Great Britain and Northern Ireland": "gbr",
    "UK": "gbr",
    "Great Britain": "gbr",
    "Britain": "gbr",
    "England": "gbr",
    "Russia": "rus",
    "Russian Federation": "rus",
    "China": "chn",
    "People's Republic of China": "chn",
    "PRC": "chn",
    "France": "fra",
    "French Republic": "fra",
    "Germany": "deu",
    "Federal Republic of Germany": "deu",
    "Deutschland": "deu",
    "Japan": "jpn",
    "India": "ind",
    "Brazil": "bra",
    "Australia": "aus",
    "Canada": "can",
    "South Africa": "zaf",
    "Egypt": "egy",
    "Turkey": "tur",
    "Türkiye": "tur",
    "Turkiye": "tur",
    "Mexico": "mex",
    "Argentina": "arg",
    "Italy": "ita",
    "Spain": "esp",
}

_FOLDED_TABLE: Dict[str, str] = {k.strip().casefold(): v for k, v in COUNTRY_NAME_TABLE.items()}


@dataclass(frozen=True)
class Resolution:
    """
    The result of resolving a display name.

    'synthetic' is True when no canonical mapping exists and the code was
    generated by truncation. Such codes are placeholders (useful to seed a
    "create new country" flow), not real ISO identifiers.
    """
    code: str
    synthetic: bool = False


def _iso_lookup(raw_name: str) -> Optional[str]:
    """ISO 3166 lookup by name, official name or alpha code."""
    if not raw_name.strip():
        return None
    try:
        country = pycountry.countries.lookup(raw_name.strip())
    except LookupError:
        return None
    return country.alpha_3.lower()


def synthetic_code(raw_name: str) -> str:
    """Last-resort code: the lower-cased first three characters of the input."""
    return raw_name.lower()[:3]


def resolve(raw_name: str) -> Resolution:
    """
    Maps any country-name string to a code. Pure and total: never raises.

    Order: exact table match, case-insensitive table match, ISO lookup,
    then the synthetic truncation fallback.
    """
    raw_name = raw_name if isinstance(raw_name, str) else str(raw_name or "")

    code = COUNTRY_NAME_TABLE.get(raw_name)
    if code is None:
        code = _FOLDED_TABLE.get(raw_name.strip().casefold())
    if code is None:
        code = _iso_lookup(raw_name)
    if code is not None:
        return Resolution(code=code)

    return Resolution(code=synthetic_code(raw_name), synthetic=True)


def resolve_code(raw_name: str) -> str:
    return resolve(raw_name).code
