import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, List

from atlas.client.dataset import StaticCountryDataset
from atlas.client.network_client import NetworkClient
from atlas.shared.errors import TransportFailure
from atlas.shared.models import CountryData, CountryRecord, to_wire
from atlas.shared.palette import ATLAS_PALETTE, AtlasPalette


@dataclass
class SyncResult:
    success: bool
    message: str


def project_country(entry: CountryData, palette: AtlasPalette = ATLAS_PALETTE) -> CountryRecord:
    """Drops everything the store does not model (charts, coordinates)."""
    return CountryRecord(
        code=entry.code,
        name=entry.name,
        capital=entry.capital,
        population=entry.population,
        color=palette.region_color(entry.region),
        region=entry.region or None,
    )


def build_payload(entries: List[CountryData], palette: AtlasPalette = ATLAS_PALETTE) -> Dict[str, Any]:
    """
    Projects authored entries into the sync payload: {countries, events, leaders}.
    Events and leaders carry their owning code; the store assigns ids.
    """
    countries, events, leaders = [], [], []
    for entry in entries:
        countries.append(project_country(entry, palette))
        events.extend(dataclasses.replace(e, country_code=entry.code) for e in entry.events)
        if entry.leader is not None:
            leaders.append(dataclasses.replace(entry.leader, country_code=entry.code))

    payload = {
        "countries": to_wire(countries),
        "events": to_wire(events),
        "leaders": to_wire(leaders),
    }
    # Ids are generated by the store; don't send placeholders.
    for section in payload.values():
        for item in section:
            item.pop("id", None)
    return payload


class DatasetReconciler:
    """
    Pushes the authored dataset into the runtime store ("sync").

    Not transactional: a transport failure leaves the store as the last
    successful sync left it, and nothing is retried automatically.
    """

    def __init__(self, dataset: StaticCountryDataset, client: NetworkClient,
                 palette: AtlasPalette = ATLAS_PALETTE):
        self.dataset = dataset
        self.client = client
        self.palette = palette

    async def sync(self) -> SyncResult:
        entries = self.dataset.all()
        payload = build_payload(entries, self.palette)
        print(f"[Reconciler] Syncing {len(payload['countries'])} countries "
              f"with {len(payload['events'])} events...")

        try:
            ack = await self.client.sync_countries(payload)
        except TransportFailure as e:
            print(f"[Reconciler] Sync failed: {e}")
            return SyncResult(False, str(e))

        if not ack.get("success"):
            message = ack.get("message") or "Failed to sync country data"
            print(f"[Reconciler] Sync rejected: {message}")
            return SyncResult(False, message)

        self.client.invalidate_countries()
        print("[Reconciler] Country data synchronized successfully")
        return SyncResult(True, ack.get("message", ""))
