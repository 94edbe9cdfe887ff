import rtoml
from pathlib import Path

from atlas.shared.errors import CountryFileError

ALLOWED_SUFFIX = ".toml"


class CountryFileWriter:
    """
    Persists authored country modules sent by the admin editor.
    Writes are confined to one directory and one file extension, and are
    atomic (temp file + rename) so a crash never leaves half a module behind.
    """
    def __init__(self, countries_dir: Path):
        self.countries_dir = countries_dir

    def resolve_target(self, relative_path: str) -> Path:
        """
        Maps a requested path onto the countries directory.
        Accepts 'usa.toml' or 'countries/usa.toml'; anything escaping the
        directory or using another extension is rejected.
        """
        if not relative_path:
            raise CountryFileError("Missing file path")

        name = Path(relative_path)
        if name.parts and name.parts[0] == "countries":
            name = Path(*name.parts[1:]) if len(name.parts) > 1 else Path("")

        root = self.countries_dir.resolve()
        target = (root / name).resolve()

        if target.parent != root:
            raise CountryFileError(f"Path '{relative_path}' is outside the countries directory")
        if target.suffix != ALLOWED_SUFFIX or not target.stem:
            raise CountryFileError(f"Only '{ALLOWED_SUFFIX}' country files can be written")
        return target

    def write(self, relative_path: str, content: str) -> Path:
        target = self.resolve_target(relative_path)

        # Refuse content the dataset loader could not read back.
        try:
            rtoml.loads(content)
        except Exception as e:
            raise CountryFileError(f"Content is not valid TOML: {e}") from e

        temp_path = target.with_name(f"{target.name}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content, encoding="utf-8")
            temp_path.replace(target)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise CountryFileError(f"Failed to write {target.name}: {e}") from e

        print(f"[CountryFileWriter] Saved {target.name} to {target.parent}")
        return target


class CoordinateTableWriter:
    """
    Updates the hand-maintained marker table ('map/coordinates.toml').
    Entries are kept sorted by code; the header comment is rewritten on save.
    """
    HEADER = (
        "# Hand-maintained flag marker positions, [longitude, latitude].\n"
        "# Authored country modules override these with their own 'flag_coordinates'.\n\n"
    )

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return dict(rtoml.load(self.path).get("coordinates", {}))
        except Exception as e:
            raise CountryFileError(f"Failed to parse {self.path.name}: {e}") from e

    def set(self, code: str, longitude: float, latitude: float) -> bool:
        """Adds or replaces one marker. Returns True when the code was already present."""
        table = self.read()
        replaced = code in table
        table[code] = [float(longitude), float(latitude)]

        content = self.HEADER + rtoml.dumps({"coordinates": dict(sorted(table.items()))})
        temp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content, encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise CountryFileError(f"Failed to write {self.path.name}: {e}") from e

        print(f"[CoordinateTableWriter] {'Updated' if replaced else 'Added'} {code} in {self.path.name}")
        return replaced
