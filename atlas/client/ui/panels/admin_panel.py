from dataclasses import dataclass
from typing import Any, Dict, Optional

from atlas.client.admin.session import AdminEditSession
from atlas.client.dataset import StaticCountryDataset
from atlas.client.formatting import format_population
from atlas.client.network_client import NetworkClient
from atlas.client.reconciler import DatasetReconciler
from atlas.client.selection import HolderArbiter
from atlas.client.ui.panels.base_panel import BasePanel, Outcome, PanelStatus
from atlas.shared.errors import CountryNotFound
from atlas.shared.models import CountryWithEvents

LOAD_ERROR = "Failed to load country information"


@dataclass
class AdminPanelData:
    mode: str                                # "edit" or "create"
    session: AdminEditSession
    record: Optional[CountryWithEvents] = None


class AdminCountryPanel(BasePanel):
    """
    The admin surface. Same lifecycle as the viewer, but a code the store does
    not know is an invitation to create it rather than an error.
    """
    def __init__(self, instance_id: str, arbiter: HolderArbiter, client: NetworkClient,
                 dataset: StaticCountryDataset, reconciler: DatasetReconciler):
        super().__init__(instance_id, arbiter, client)
        self.dataset = dataset
        self.reconciler = reconciler

    @property
    def session(self) -> Optional[AdminEditSession]:
        return self.data.session if self.status is PanelStatus.READY else None

    async def _fetch(self, code: str) -> CountryWithEvents:
        return await self.client.get_country_with_events(code)

    def _resolve(self, code: str, fetched: Any, failure: Optional[Exception]) -> Outcome:
        if isinstance(failure, CountryNotFound):
            session = AdminEditSession.open(code, self.dataset, self.client, self.reconciler)
            return PanelStatus.READY, AdminPanelData("create", session), None
        if failure is not None:
            return PanelStatus.ERRORED, None, LOAD_ERROR

        if self.dataset.get_by_code(code) is not None:
            session = AdminEditSession.open(code, self.dataset, self.client, self.reconciler)
        else:
            # Seeded in the store, but never authored as a module.
            session = AdminEditSession.from_store_record(fetched, self.dataset, self.client, self.reconciler)
        return PanelStatus.READY, AdminPanelData("edit", session, fetched), None

    def _view_content(self) -> Dict[str, Any]:
        data: AdminPanelData = self.data
        draft = data.session.draft
        content: Dict[str, Any] = {
            "mode": data.mode,
            "title": "Create New Country" if data.mode == "create" else f"Edit {draft.name}",
            "modulePath": data.session.module_path,
        }
        if data.record is not None:
            country = data.record.country
            content["name"] = country.name
            content["population"] = format_population(country.population)
            content["eventCount"] = len(data.record.events)
            content["hasLeader"] = data.record.leader is not None
        return content
