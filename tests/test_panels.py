import asyncio

import httpx

from atlas.client.dataset import StaticCountryDataset
from atlas.client.network_client import NetworkClient
from atlas.client.reconciler import DatasetReconciler
from atlas.client.selection import HolderArbiter, SelectionStore
from atlas.client.ui.panels.admin_panel import AdminCountryPanel
from atlas.client.ui.panels.base_panel import PanelStatus
from atlas.client.ui.panels.country_panel import LOAD_ERROR, CountryPanel
from atlas.shared.errors import CountryNotFound, TransportFailure
from atlas.shared.models import CountryRecord, CountryWithEvents


def _record(code, name):
    country = CountryRecord(code=code, name=name, capital="Capital", population=1_000_000, color="#CCCCCC", id=1)
    return CountryWithEvents(country=country)


class ScriptedClient:
    """Stands in for NetworkClient. Responses for gated codes wait on an asyncio.Event."""

    def __init__(self, records, failing=()):
        self.records = records
        self.failing = set(failing)
        self.calls = []
        self.gates = {}

    def gate(self, code):
        self.gates[code] = asyncio.Event()
        return self.gates[code]

    async def get_country_with_events(self, code):
        self.calls.append(code)
        if code in self.gates:
            await self.gates[code].wait()
        if code in self.failing:
            raise TransportFailure("connection reset")
        if code not in self.records:
            raise CountryNotFound(code)
        return self.records[code]


RECORDS = {"usa": _record("usa", "United States"), "fra": _record("fra", "France")}


def test_selecting_same_country_twice_fetches_once():
    async def run():
        client = ScriptedClient(RECORDS)
        store = SelectionStore()
        panel = CountryPanel("viewer", HolderArbiter(), client)
        panel.mount(store)

        store.select("United States")
        store.select("United States")
        await panel.settle()
        store.select("usa")
        await panel.settle()
        return client, panel, store

    client, panel, store = asyncio.run(run())
    assert client.calls == ["usa"]
    assert panel.fetch_count == 1
    assert panel.status is PanelStatus.READY
    assert store.loading is False


def test_reselecting_with_two_mounted_panels_fetches_nothing_new():
    async def run():
        client = ScriptedClient(RECORDS)
        store = SelectionStore()
        arbiter = HolderArbiter()
        first = CountryPanel("first", arbiter, client)
        second = CountryPanel("second", arbiter, client)
        first.mount(store)
        second.mount(store)

        store.select("France")
        await first.settle()
        await second.settle()
        store.select("France")
        await first.settle()
        await second.settle()
        return client, first, second

    client, first, second = asyncio.run(run())
    assert client.calls == ["fra"]
    assert second.status is PanelStatus.READY
    assert second.fetch_count == 1


def test_slow_response_does_not_overwrite_newer_selection():
    async def run():
        client = ScriptedClient(RECORDS)
        panel = CountryPanel("viewer", HolderArbiter(), client)
        slow = client.gate("usa")

        first = panel.show("usa")
        await asyncio.sleep(0)
        second = panel.show("fra")
        await second
        slow.set()
        await first
        return panel

    panel = asyncio.run(run())
    assert panel.status is PanelStatus.READY
    assert panel.code == "fra"
    assert panel.data.country.name == "France"


def test_holder_token_discards_other_panels_results():
    async def run():
        client = ScriptedClient(RECORDS)
        arbiter = HolderArbiter()
        first = CountryPanel("first", arbiter, client)
        second = CountryPanel("second", arbiter, client)
        slow = client.gate("usa")

        task_a = first.show("usa")
        await asyncio.sleep(0)
        await second.show("fra")
        slow.set()
        await task_a
        return arbiter, first, second

    arbiter, first, second = asyncio.run(run())
    assert arbiter.holder == "second"
    assert first.data is None
    assert second.view()["name"] == "France"


def test_viewer_errors_on_unknown_country():
    async def run():
        store = SelectionStore()
        panel = CountryPanel("viewer", HolderArbiter(), ScriptedClient(RECORDS))
        panel.mount(store)
        store.select("Atlantis")
        await panel.settle()
        return panel

    panel = asyncio.run(run())
    assert panel.code == "atl"
    assert panel.status is PanelStatus.ERRORED
    assert panel.error == LOAD_ERROR


def test_viewer_errors_on_transport_failure():
    async def run():
        panel = CountryPanel("viewer", HolderArbiter(), ScriptedClient(RECORDS, failing={"usa"}))
        await panel.show("usa")
        return panel

    panel = asyncio.run(run())
    assert panel.status is PanelStatus.ERRORED
    assert panel.view()["error"] == LOAD_ERROR


def test_reselect_after_error_retries():
    async def run():
        client = ScriptedClient(RECORDS, failing={"usa"})
        panel = CountryPanel("viewer", HolderArbiter(), client)
        await panel.show("usa")
        client.failing.clear()
        await panel.show("usa")
        return client, panel

    client, panel = asyncio.run(run())
    assert client.calls == ["usa", "usa"]
    assert panel.status is PanelStatus.READY


def test_clear_returns_panel_to_idle():
    async def run():
        store = SelectionStore()
        arbiter = HolderArbiter()
        panel = CountryPanel("viewer", arbiter, ScriptedClient(RECORDS))
        panel.mount(store)
        store.select("France")
        await panel.settle()
        store.clear()
        return arbiter, panel

    arbiter, panel = asyncio.run(run())
    assert panel.status is PanelStatus.IDLE
    assert panel.view() == {"status": "idle", "code": None, "error": None}
    assert arbiter.holder is None


def test_admin_panel_offers_create_mode_for_unknown_country(config):
    async def run():
        client = ScriptedClient(RECORDS)
        dataset = StaticCountryDataset(config)
        panel = AdminCountryPanel("admin", HolderArbiter(), client, dataset, DatasetReconciler(dataset, client))
        store = SelectionStore()
        panel.mount(store)
        store.select("Atlantis")
        await panel.settle()
        return panel

    panel = asyncio.run(run())
    assert panel.status is PanelStatus.READY
    assert panel.view()["mode"] == "create"
    assert panel.session.draft.code == "atl"
    assert panel.session.is_new


def test_admin_panel_errors_on_transport_failure(config):
    async def run():
        client = ScriptedClient(RECORDS, failing={"usa"})
        dataset = StaticCountryDataset(config)
        panel = AdminCountryPanel("admin", HolderArbiter(), client, dataset, DatasetReconciler(dataset, client))
        await panel.show("usa")
        return panel

    panel = asyncio.run(run())
    assert panel.status is PanelStatus.ERRORED
    assert panel.session is None


def test_admin_panel_seeds_draft_from_store_when_not_authored(config):
    async def run():
        client = ScriptedClient({"gbr": _record("gbr", "United Kingdom")})
        dataset = StaticCountryDataset(config)
        panel = AdminCountryPanel("admin", HolderArbiter(), client, dataset, DatasetReconciler(dataset, client))
        await panel.show("gbr")
        return panel

    panel = asyncio.run(run())
    assert panel.view()["mode"] == "edit"
    assert panel.session.draft.name == "United Kingdom"


def test_viewer_against_real_backend(config, asgi_transport):
    async def run():
        dataset = StaticCountryDataset(config)
        async with NetworkClient("http://testserver", transport=asgi_transport) as client:
            store = SelectionStore()
            panel = CountryPanel("viewer", HolderArbiter(), client, dataset)
            panel.mount(store)
            store.select("United States")
            await panel.settle()
            return panel.view()

    view = asyncio.run(run())
    assert view["status"] == "ready"
    assert view["leader"]["party"] == "Democratic Party"
    assert view["population"] == "331.0 million"
    assert view["timeline"][0]["badgeColor"] == "#3B82F6"
    assert view["demographics"]["ageGroups"][0]["name"] == "0-14"
