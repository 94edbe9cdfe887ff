from typing import Any, Dict, Optional

from atlas.client.dataset import StaticCountryDataset
from atlas.client.formatting import format_population
from atlas.client.network_client import NetworkClient
from atlas.client.selection import HolderArbiter
from atlas.client.ui.panels.base_panel import BasePanel, Outcome, PanelStatus
from atlas.shared.models import CountryWithEvents, to_wire
from atlas.shared.palette import ATLAS_PALETTE, AtlasPalette

LOAD_ERROR = "Failed to load country information"


class CountryPanel(BasePanel):
    """
    The read-only viewer surface.

    Shows the store's record for the selected code (country, timeline, leader)
    enriched with the chart data of the matching authored module, when there
    is one. Unknown codes and transport errors look the same to the user.
    """
    def __init__(self, instance_id: str, arbiter: HolderArbiter, client: NetworkClient,
                 dataset: Optional[StaticCountryDataset] = None, palette: AtlasPalette = ATLAS_PALETTE):
        super().__init__(instance_id, arbiter, client)
        self.dataset = dataset
        self.palette = palette

    async def _fetch(self, code: str) -> CountryWithEvents:
        return await self.client.get_country_with_events(code)

    def _resolve(self, code: str, fetched: Any, failure: Optional[Exception]) -> Outcome:
        if failure is not None:
            return PanelStatus.ERRORED, None, LOAD_ERROR
        return PanelStatus.READY, fetched, None

    def _view_content(self) -> Dict[str, Any]:
        record: CountryWithEvents = self.data
        country = record.country

        content: Dict[str, Any] = {
            "name": country.name,
            "capital": country.capital,
            "population": format_population(country.population),
            "region": country.region,
            "color": country.color,
            "leader": None,
            "timeline": [],
            "demographics": None,
            "statistics": None,
        }

        if record.leader is not None:
            content["leader"] = to_wire(record.leader)

        for event in record.events:
            item = to_wire(event)
            item["badgeColor"] = self.palette.party_color(event.party_color)
            content["timeline"].append(item)

        authored = self.dataset.get_by_code(country.code) if self.dataset is not None else None
        if authored is not None:
            content["demographics"] = to_wire(authored.demographics)
            content["statistics"] = to_wire(authored.statistics)

        return content
