import rtoml
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from atlas.shared.config import AtlasConfig
from atlas.shared.errors import DuplicateCountryCodeError
from atlas.shared.models import CountryData

Coordinates = Tuple[float, float]


class StaticCountryDataset:
    """
    The collection of authored country modules ('countries/*.toml').

    Every active data module is scanned in load order. Adding a country means
    dropping a new file into the folder; no code changes are needed.
    Two files declaring the same code is an authoring error and stops the load.
    """

    def __init__(self, config: AtlasConfig):
        self.config = config
        self._entries: Dict[str, CountryData] = {}
        self._sources: Dict[str, Path] = {}
        self._manual_coordinates: Dict[str, Coordinates] = {}
        self.reload()

    def reload(self):
        """Re-runs discovery. Used after the admin editor writes a module."""
        entries: Dict[str, CountryData] = {}
        sources: Dict[str, Path] = {}

        for data_dir in self.config.get_data_dirs():
            countries_dir = data_dir / "countries"
            if not countries_dir.exists():
                continue

            for file_path in sorted(countries_dir.glob("*.toml")):
                try:
                    data = rtoml.load(file_path)
                except Exception as e:
                    # We log the error but continue loading other files.
                    print(f"[Dataset] Failed to parse country file {file_path}: {e}")
                    continue

                # If 'code' is missing in the file, use the filename (without extension).
                if "code" not in data:
                    data["code"] = file_path.stem

                entry = CountryData.from_dict(data)
                if entry.code in entries:
                    raise DuplicateCountryCodeError(entry.code, sources[entry.code].name, file_path.name)

                entries[entry.code] = entry
                sources[entry.code] = file_path

        self._entries = entries
        self._sources = sources
        self._manual_coordinates = self._load_manual_coordinates()
        print(f"[Dataset] Loaded {len(self._entries)} countries from data files")

    def _load_manual_coordinates(self) -> Dict[str, Coordinates]:
        """
        Reads the hand-maintained marker table ('map/coordinates.toml').
        Format: [coordinates] usa = [-98.0, 39.0]
        """
        merged: Dict[str, Coordinates] = {}
        for data_dir in self.config.get_data_dirs():
            path = data_dir / "map" / "coordinates.toml"
            if not path.exists():
                continue
            try:
                table = rtoml.load(path).get("coordinates", {})
            except Exception as e:
                print(f"[Dataset] Failed to parse coordinates table {path}: {e}")
                continue
            for code, point in table.items():
                merged[code] = (float(point[0]), float(point[1]))
        return merged

    def get_by_code(self, code: str) -> Optional[CountryData]:
        return self._entries.get(code)

    def all_codes(self) -> List[str]:
        return sorted(self._entries)

    def all(self) -> List[CountryData]:
        return [self._entries[code] for code in self.all_codes()]

    def source_of(self, code: str) -> Optional[Path]:
        return self._sources.get(code)

    def all_coordinates(self) -> Dict[str, Coordinates]:
        """
        Marker positions ([longitude, latitude]) for every known code.
        Authored modules take precedence over the hand-maintained table.
        """
        coordinates = dict(self._manual_coordinates)
        for code, entry in self._entries.items():
            coordinates[code] = entry.flag_coordinates
        return coordinates

    def __len__(self) -> int:
        return len(self._entries)
