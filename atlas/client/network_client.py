from typing import Any, Dict, List, Optional

import httpx
import orjson

from atlas.shared.errors import CountryNotFound, TransportFailure
from atlas.shared.models import CountryRecord, CountryWithEvents, PoliticalEvent, PoliticalLeader

COUNTRIES_KEY = "/api/countries"


class NetworkClient:
    """
    The Bridge between the client panels and the backend API.

    Architecture (Service Pattern):
        Panels, the reconciler and the admin editor never touch httpx directly.
        Tests swap the transport (httpx.ASGITransport) to talk to the FastAPI
        app in-process; nothing else changes.

    Caching:
        The "all countries" list and "country by code" lookups are cached under
        their request path. The reconciler invalidates them after a sync so the
        next read reflects the new data. Detail reads (with-events) are never
        cached: each selection fetches fresh data.
    """

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: Optional[float] = None):
        # No timeout by default: a hung request stays in flight until superseded.
        self.http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._cache: Dict[str, Any] = {}

    async def aclose(self):
        await self.http.aclose()

    async def __aenter__(self) -> "NetworkClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # =========================================================================
    # SECTION: TRANSPORT
    # =========================================================================

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportFailure(f"{method} {path} failed: {e}") from e

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None, code: Optional[str] = None) -> Any:
        response = await self._send("GET", path, params=params)
        if response.status_code == 404 and code is not None:
            raise CountryNotFound(code)
        if response.status_code != 200:
            raise TransportFailure(f"GET {path} returned HTTP {response.status_code}", response.status_code)
        return orjson.loads(response.content)

    async def _post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Posts a JSON body and returns the acknowledgement.
        Non-2xx answers still carry {success, message}; only transport errors raise.
        """
        response = await self._send(
            "POST", path,
            content=orjson.dumps(payload),
            headers={"content-type": "application/json"},
        )
        try:
            ack = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            ack = {}
        if not isinstance(ack, dict):
            ack = {}
        ack.setdefault("success", response.is_success)
        ack.setdefault("message", f"HTTP {response.status_code}")
        if not response.is_success:
            ack["success"] = False
        return ack

    # =========================================================================
    # SECTION: QUERIES
    # =========================================================================

    async def list_countries(self) -> List[CountryRecord]:
        if COUNTRIES_KEY not in self._cache:
            data = await self._get_json(COUNTRIES_KEY)
            self._cache[COUNTRIES_KEY] = [CountryRecord.from_dict(c) for c in data]
        return list(self._cache[COUNTRIES_KEY])

    async def get_country(self, code: str) -> CountryRecord:
        key = f"{COUNTRIES_KEY}/{code}"
        if key not in self._cache:
            self._cache[key] = CountryRecord.from_dict(await self._get_json(key, code=code))
        return self._cache[key]

    async def get_country_with_events(self, code: str) -> CountryWithEvents:
        data = await self._get_json(f"{COUNTRIES_KEY}/{code}/with-events", code=code)
        return CountryWithEvents.from_wire(data)

    async def get_events(self, code: str) -> List[PoliticalEvent]:
        data = await self._get_json(f"{COUNTRIES_KEY}/{code}/events")
        return [PoliticalEvent.from_dict(e) for e in data]

    async def get_leader(self, code: str) -> PoliticalLeader:
        return PoliticalLeader.from_dict(await self._get_json(f"{COUNTRIES_KEY}/{code}/leader", code=code))

    async def search(self, query: str) -> List[CountryRecord]:
        data = await self._get_json("/api/search", params={"q": query})
        return [CountryRecord.from_dict(c) for c in data]

    def invalidate_countries(self):
        """Drops the cached 'all countries' and 'country by code' results."""
        stale = [k for k in self._cache if k == COUNTRIES_KEY or k.startswith(f"{COUNTRIES_KEY}/")]
        for key in stale:
            del self._cache[key]

    # =========================================================================
    # SECTION: COMMANDS
    # =========================================================================

    async def sync_countries(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post_json("/api/sync-countries", payload)

    async def write_country_file(self, path: str, content: str) -> Dict[str, Any]:
        return await self._post_json("/api/country-file", {"path": path, "content": content})
