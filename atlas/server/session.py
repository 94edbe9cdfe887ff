from pathlib import Path
from typing import Optional, Sequence

from atlas.server.io.exporter import CountryFileWriter
from atlas.server.io.loader import DataLoader
from atlas.server.store import CountryRecordStore, SyncSummary
from atlas.shared.config import AtlasConfig
from atlas.shared.models import CountryRecord, PoliticalEvent, PoliticalLeader

class AtlasSession:
    """
    The 'Host' of the backend. It owns the store for the lifetime of the process.

    Responsibilities:
    1. Initialization: Seeds the store using DataLoader.
    2. Sync: Applies payloads pushed by the client's DatasetReconciler.
    3. Persistence: Writes authored country modules for the admin editor.
    """
    def __init__(self, config: AtlasConfig, seed: bool = True):
        self.config = config

        # 1. Initialize IO subsystems
        self.loader = DataLoader(config)
        self.writer = CountryFileWriter(config.countries_write_dir)

        # 2. Load the store
        self.store = CountryRecordStore()
        if seed:
            payload = self.loader.load_seed()
            self.store.replace_all(payload.countries, payload.events, payload.leaders)

    def receive_sync(
        self,
        countries: Sequence[CountryRecord],
        events: Sequence[PoliticalEvent],
        leaders: Sequence[PoliticalLeader],
    ) -> SyncSummary:
        """Endpoint for the reconciler. Raises PayloadError on a rejected payload."""
        return self.store.replace_all(countries, events, leaders)

    def save_country_file(self, relative_path: str, content: str) -> Path:
        """Special command for the admin editor to force a disk write."""
        return self.writer.write(relative_path, content)


def create_session(project_root: Optional[Path] = None) -> AtlasSession:
    root = project_root or Path(__file__).resolve().parent.parent.parent
    return AtlasSession(AtlasConfig(root))
