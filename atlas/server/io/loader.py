import rtoml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from atlas.shared.config import AtlasConfig
from atlas.shared.models import CountryRecord, PoliticalEvent, PoliticalLeader
from atlas.shared.palette import ATLAS_PALETTE


@dataclass
class SeedPayload:
    """The initial contents of the store, in the same shape as a sync payload."""
    countries: List[CountryRecord] = field(default_factory=list)
    events: List[PoliticalEvent] = field(default_factory=list)
    leaders: List[PoliticalLeader] = field(default_factory=list)


# Generic four-period timeline for countries without authored events.
_BASIC_PERIODS = [
    ("1993-2000", "Early 1990s Reforms",
     "{name} underwent significant political and economic reforms in the early to mid-1990s, "
     "adapting to the post-Cold War global order.",
     ["Political Reform", "Economic Changes"]),
    ("2000-2010", "Early 21st Century",
     "{name} navigated international challenges including terrorism concerns, technological change, "
     "and global economic volatility during this decade.",
     ["Globalization", "Economic Development"]),
    ("2010-2020", "Contemporary Developments",
     "{name} experienced political evolution influenced by technological disruption, social movements, "
     "and economic policies adapted to changing global conditions.",
     ["Digital Age", "Political Evolution"]),
    ("2020-Present", "Recent Years",
     "{name} has addressed challenges including the COVID-19 pandemic, climate change concerns, "
     "and evolving international relations in the current geopolitical landscape.",
     ["Pandemic Response", "Current Affairs"]),
]

_SINGLE_PARTY = {"rus", "chn"}
_PARTY_NAMES = {"rus": "United Russia", "chn": "Communist Party"}


def basic_timeline(code: str, name: str) -> List[PoliticalEvent]:
    """Builds the placeholder timeline used for seeded countries with no authored events."""
    party_color = "Single-Party" if code in _SINGLE_PARTY else "Various"
    events = []
    for order, (period, title, description, tags) in enumerate(_BASIC_PERIODS, start=1):
        party_name = _PARTY_NAMES.get(code, "Various")
        if code == "rus" and order == 1:
            party_name = "Mixed"
        events.append(PoliticalEvent(
            country_code=code,
            period=period,
            title=title,
            description=description.format(name=name),
            party_name=party_name,
            party_color=party_color,
            tags=list(tags),
            order=order,
        ))
    return events


class DataLoader:
    """
    Acts as a 'Compiler' that transforms human-readable seed data (TOML)
    into the payload the CountryRecordStore is initialised with.

    Responsibilities:
    1. Discovery: Reads 'seed/*.toml' from every active data module.
    2. Transform: Converts list tables ([[countries]], [[events]], [[leaders]]) into dataclasses.
    3. Defaults: Fills missing colours from the region palette and generates
       placeholder timelines where requested.
    """

    def __init__(self, config: AtlasConfig):
        self.config = config

    def load_seed(self) -> SeedPayload:
        print("[DataLoader] Compiling seed data...")
        payload = SeedPayload()

        for data_dir in self.config.get_data_dirs():
            seed_dir = data_dir / "seed"
            if not seed_dir.exists():
                continue

            countries = self._load_list(seed_dir / "countries.toml", "countries")
            for raw in countries:
                wants_basic = bool(raw.pop("basic_timeline", False))
                if not raw.get("color"):
                    raw["color"] = ATLAS_PALETTE.region_color(raw.get("region"))
                country = CountryRecord.from_dict(raw)
                payload.countries.append(country)
                if wants_basic:
                    payload.events.extend(basic_timeline(country.code, country.name))

            payload.events.extend(
                PoliticalEvent.from_dict(raw) for raw in self._load_list(seed_dir / "events.toml", "events")
            )
            payload.leaders.extend(
                PoliticalLeader.from_dict(raw) for raw in self._load_list(seed_dir / "leaders.toml", "leaders")
            )

        print(f"[DataLoader] Seed complete: {len(payload.countries)} countries, "
              f"{len(payload.events)} events, {len(payload.leaders)} leaders")
        return payload

    def _load_list(self, file_path: Path, key: str) -> List[Dict[str, Any]]:
        """
        Reads a TOML file using the LIST strategy: the key matches the filename
        ([[events]] inside events.toml). A missing or broken file yields an empty
        list so the rest of the seed still loads.
        """
        if not file_path.exists():
            return []

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = rtoml.load(f)
        except Exception as e:
            print(f"[DataLoader] Failed to parse seed file {file_path}: {e}")
            return []

        raw_content = data.get(key)
        if not isinstance(raw_content, list):
            print(f"[DataLoader] Expected a list under '{key}' in {file_path.name}")
            return []

        return [dict(item) for item in raw_content]
