import dataclasses
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Data crosses two boundaries:
# - HTTP JSON uses camelCase keys ("countryCode", "inPowerSince").
# - Authored TOML modules use snake_case keys, like every other data file.
# Every `from_dict` accepts both spellings; `to_wire` emits camelCase.

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _normalized(data: Dict[str, Any]) -> Dict[str, Any]:
    return {to_snake(k): v for k, v in data.items()}


def to_wire(value: Any) -> Any:
    """Recursively converts dataclasses into camelCase JSON-ready structures."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            to_camel(f.name): to_wire(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    return value


def _optional_text(value: Any) -> Optional[str]:
    # Authored data uses "" and null interchangeably for "no value".
    if value is None or value == "":
        return None
    return str(value)


# --- Runtime store entities ---

@dataclass
class CountryRecord:
    """
    A country as held by the runtime store.
    'code' is the primary key; 'id' is generated by the store.
    """
    code: str
    name: str
    capital: str
    population: int
    color: str
    region: Optional[str] = None
    id: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CountryRecord":
        d = _normalized(data)
        return cls(
            code=str(d["code"]),
            name=str(d["name"]),
            capital=str(d["capital"]),
            population=int(d["population"]),
            color=str(d.get("color") or ""),
            region=_optional_text(d.get("region")),
            id=int(d.get("id") or 0),
        )


@dataclass
class PoliticalEvent:
    """
    One entry of a country's political timeline.
    Linked to its country by 'country_code' only. 'order' is the sole sort key.
    """
    country_code: str
    period: str
    title: str
    description: str
    party_name: Optional[str] = None
    party_color: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    order: int = 0
    id: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], country_code: Optional[str] = None) -> "PoliticalEvent":
        d = _normalized(data)
        return cls(
            country_code=str(country_code if country_code is not None else d["country_code"]),
            period=str(d["period"]),
            title=str(d["title"]),
            description=str(d.get("description", "")),
            party_name=_optional_text(d.get("party_name")),
            party_color=_optional_text(d.get("party_color")),
            tags=[str(t) for t in (d.get("tags") or [])],
            order=int(d["order"]),
            id=int(d.get("id") or 0),
        )


@dataclass
class PoliticalLeader:
    """The current leader of a country. At most one per country code."""
    country_code: str
    name: str
    title: str
    party: str
    in_power_since: str
    description: str
    image_url: Optional[str] = None
    id: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], country_code: Optional[str] = None) -> "PoliticalLeader":
        d = _normalized(data)
        return cls(
            country_code=str(country_code if country_code is not None else d["country_code"]),
            name=str(d.get("name", "")),
            title=str(d.get("title", "")),
            party=str(d.get("party", "")),
            in_power_since=str(d.get("in_power_since", "")),
            description=str(d.get("description", "")),
            image_url=_optional_text(d.get("image_url")),
            id=int(d.get("id") or 0),
        )


@dataclass
class CountryWithEvents:
    """Join of a country, its sorted events and its optional leader."""
    country: CountryRecord
    events: List[PoliticalEvent] = field(default_factory=list)
    leader: Optional[PoliticalLeader] = None

    def to_wire(self) -> Dict[str, Any]:
        # Flattened: {...country, events, leader?}
        payload = to_wire(self.country)
        payload["events"] = to_wire(self.events)
        if self.leader is not None:
            payload["leader"] = to_wire(self.leader)
        return payload

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "CountryWithEvents":
        leader = data.get("leader")
        return cls(
            country=CountryRecord.from_dict(data),
            events=[PoliticalEvent.from_dict(e) for e in data.get("events") or []],
            leader=PoliticalLeader.from_dict(leader) if leader else None,
        )


# --- Authored dataset entities ---

@dataclass
class DataPoint:
    """A labelled percentage used by the demographic and statistic charts."""
    name: str
    value: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataPoint":
        # Accept the chart editor's {label, percentage} spelling as well.
        name = data.get("name", data.get("label", ""))
        value = data.get("value", data.get("percentage", 0))
        return cls(name=str(name), value=float(value))


def _points(raw: Any) -> List[DataPoint]:
    return [DataPoint.from_dict(p) for p in (raw or [])]


@dataclass
class Demographics:
    age_groups: List[DataPoint] = field(default_factory=list)
    religions: List[DataPoint] = field(default_factory=list)
    urban_rural: List[DataPoint] = field(default_factory=list)
    education_levels: List[DataPoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Demographics":
        d = _normalized(data or {})
        return cls(**{f.name: _points(d.get(f.name)) for f in dataclasses.fields(cls)})


@dataclass
class Statistics:
    gdp_sectors: List[DataPoint] = field(default_factory=list)
    employment: List[DataPoint] = field(default_factory=list)
    trade: List[DataPoint] = field(default_factory=list)
    spending: List[DataPoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Statistics":
        d = _normalized(data or {})
        return cls(**{f.name: _points(d.get(f.name)) for f in dataclasses.fields(cls)})


@dataclass
class CountryData:
    """
    A fully authored country: the store's CountryRecord fields plus leader,
    chart data and the political timeline. One authored module per country.
    """
    code: str
    name: str
    capital: str
    population: int
    region: str
    flag_coordinates: Tuple[float, float] = (0.0, 0.0)
    leader: Optional[PoliticalLeader] = None
    demographics: Demographics = field(default_factory=Demographics)
    statistics: Statistics = field(default_factory=Statistics)
    events: List[PoliticalEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CountryData":
        d = _normalized(data)
        code = str(d["code"])
        coords = d.get("flag_coordinates") or (0.0, 0.0)
        leader = d.get("leader")
        return cls(
            code=code,
            name=str(d.get("name", "")),
            capital=str(d.get("capital", "")),
            population=int(d.get("population") or 0),
            region=str(d.get("region", "")),
            flag_coordinates=(float(coords[0]), float(coords[1])),
            leader=PoliticalLeader.from_dict(leader, country_code=code) if leader else None,
            demographics=Demographics.from_dict(d.get("demographics")),
            statistics=Statistics.from_dict(d.get("statistics")),
            events=[PoliticalEvent.from_dict(e, country_code=code) for e in d.get("events") or []],
        )

    def to_authored(self) -> Dict[str, Any]:
        """
        The snake_case structure written to an authored TOML module.
        Store-generated ids and the redundant per-event country code are omitted,
        and None values are dropped because TOML has no null.
        """
        def clean(obj: Dict[str, Any], drop: Tuple[str, ...]) -> Dict[str, Any]:
            return {k: v for k, v in obj.items() if k not in drop and v is not None}

        out: Dict[str, Any] = {
            "code": self.code,
            "name": self.name,
            "capital": self.capital,
            "population": self.population,
            "region": self.region,
            "flag_coordinates": [float(self.flag_coordinates[0]), float(self.flag_coordinates[1])],
        }
        if self.leader is not None:
            out["leader"] = clean(dataclasses.asdict(self.leader), ("id", "country_code"))
        out["demographics"] = dataclasses.asdict(self.demographics)
        out["statistics"] = dataclasses.asdict(self.statistics)
        out["events"] = [
            clean(dataclasses.asdict(e), ("id", "country_code")) for e in self.events
        ]
        return out
