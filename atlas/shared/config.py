import json
import os
from pathlib import Path
from typing import Any, Dict, List

DEFAULT_API_URL = "http://127.0.0.1:5000"


class AtlasConfig:
    """
    Central configuration handler for the atlas.

    Responsibilities:
    1. Resolve file paths (authored country modules, seed data, user data).
    2. Manage the list of active data modules (read from mods.json).
    3. Hold the server address used by both the backend and the client services.
    """
    def __init__(self, project_root: Path):
        self.project_root = project_root

        # Standard directory structure
        self.modules_dir = project_root / "modules"
        self.user_data_dir = project_root / "user_data"
        self.mods_file = project_root / "mods.json"
        self.settings_file = project_root / "atlas.json"

        # Default load order (can be overridden by mods.json)
        self.active_mods: List[str] = ["base"]
        self._load_mods_manifest()

        # Server address (can be overridden by atlas.json / ATLAS_API_URL)
        self.host = "127.0.0.1"
        self.port = 5000
        self.api_base_url = DEFAULT_API_URL
        self._load_settings()

    def _read_json(self, path: Path) -> Dict[str, Any]:
        """Optional JSON settings file. Missing or unreadable files count as empty."""
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[Config] Warning: Failed to parse {path.name}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _load_mods_manifest(self):
        # {"active_mods": ["base", "my_mod"]}
        mods = self._read_json(self.mods_file).get("active_mods")
        if isinstance(mods, list):
            self.active_mods = [str(m) for m in mods]
            print(f"[Config] Loaded mod order: {self.active_mods}")

    def _load_settings(self):
        """Reads host/port/api_base_url overrides from atlas.json and the environment."""
        data = self._read_json(self.settings_file)
        if data:
            self.host = str(data.get("host", self.host))
            self.port = int(data.get("port", self.port))
            self.api_base_url = data.get("api_base_url", f"http://{self.host}:{self.port}")

        env_url = os.environ.get("ATLAS_API_URL")
        if env_url:
            self.api_base_url = env_url

    def get_data_dirs(self) -> List[Path]:
        """
        Returns a list of data directories for all active mods.
        Used by the dataset and the seed loader to merge data from multiple sources.
        """
        paths = []
        for mod in self.active_mods:
            p = self.modules_dir / mod / "data"
            if p.exists():
                paths.append(p)
        return paths

    def get_write_data_dir(self) -> Path:
        """
        Returns the directory where the admin editor writes authored modules.
        Always the 'base' module.
        """
        return self.modules_dir / "base" / "data"

    @property
    def countries_write_dir(self) -> Path:
        return self.get_write_data_dir() / "countries"

    @property
    def selection_slot_path(self) -> Path:
        """The durable slot holding the last selected country code."""
        return self.user_data_dir / "selection.json"
