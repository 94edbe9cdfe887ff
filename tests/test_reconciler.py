import asyncio

import httpx

from atlas.client.dataset import StaticCountryDataset
from atlas.client.network_client import NetworkClient
from atlas.client.reconciler import DatasetReconciler, build_payload

BASE_URL = "http://testserver"


def test_payload_is_camel_case_without_ids(config):
    payload = build_payload(StaticCountryDataset(config).all())

    assert [c["code"] for c in payload["countries"]] == ["deu", "fra", "tur", "usa"]
    assert all("id" not in item for section in payload.values() for item in section)
    usa = next(c for c in payload["countries"] if c["code"] == "usa")
    assert usa["color"] == "#2563EB"
    assert set(payload["events"][0]) >= {"countryCode", "partyName", "partyColor", "order"}
    # tur has no leader.
    assert sorted(l["countryCode"] for l in payload["leaders"]) == ["deu", "fra", "usa"]


def test_sync_pushes_dataset_into_store(config, session, asgi_transport):
    dataset = StaticCountryDataset(config)

    async def run():
        async with NetworkClient(BASE_URL, transport=asgi_transport) as client:
            before = await client.list_countries()
            result = await DatasetReconciler(dataset, client).sync()
            after = await client.list_countries()
            usa = await client.get_country_with_events("usa")
            return before, result, after, usa

    before, result, after, usa = asyncio.run(run())

    assert result.success
    assert "tur" not in {c.code for c in before}
    # The cached list was invalidated by the sync.
    assert "tur" in {c.code for c in after}
    assert usa.events[0].tags == ["Economic Boom", "NAFTA", "Welfare Reform"]
    assert usa.leader.party == "Democratic Party"
    # Codes not in the dataset keep their seeded data.
    assert len(session.store.get_events("gbr")) == 7
    assert session.store.get_leader("tur") is None


def test_transport_failure_is_reported(config):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        async with NetworkClient(BASE_URL, transport=httpx.MockTransport(refuse)) as client:
            return await DatasetReconciler(StaticCountryDataset(config), client).sync()

    result = asyncio.run(run())
    assert not result.success
    assert "connection refused" in result.message


def test_rejected_sync_is_reported(config):
    def reject(request):
        return httpx.Response(500, json={"success": False, "message": "Failed to synchronize country data"})

    async def run():
        async with NetworkClient(BASE_URL, transport=httpx.MockTransport(reject)) as client:
            return await DatasetReconciler(StaticCountryDataset(config), client).sync()

    result = asyncio.run(run())
    assert not result.success
    assert result.message == "Failed to synchronize country data"
