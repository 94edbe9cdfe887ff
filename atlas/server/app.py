from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from atlas.server.session import AtlasSession
from atlas.shared.errors import CountryFileError, PayloadError
from atlas.shared.models import CountryRecord, PoliticalEvent, PoliticalLeader, to_wire


# --- Request bodies (camelCase on the wire) ---

class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CountryIn(_WireModel):
    code: str
    name: str
    capital: str
    population: int
    color: str = ""
    region: Optional[str] = None


class EventIn(_WireModel):
    country_code: str
    period: str
    title: str
    description: str = ""
    party_name: Optional[str] = None
    party_color: Optional[str] = None
    tags: Optional[List[str]] = None
    order: int


class LeaderIn(_WireModel):
    country_code: str
    name: str
    title: str
    party: str
    in_power_since: str
    description: str = ""
    image_url: Optional[str] = None


class SyncRequest(_WireModel):
    countries: List[CountryIn]
    events: List[EventIn] = []
    leaders: List[LeaderIn] = []


class CountryFileRequest(_WireModel):
    path: str
    content: str


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": message})


def create_app(session: AtlasSession) -> FastAPI:
    """Builds the HTTP surface over one AtlasSession."""
    app = FastAPI(title="Political Atlas")
    store = session.store

    @app.exception_handler(RequestValidationError)
    async def malformed_body(request: Request, exc: RequestValidationError):
        print(f"[API] Rejected malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request body"})

    @app.get("/api/countries")
    def list_countries():
        return to_wire(store.list_countries())

    @app.get("/api/countries/{code}")
    def get_country(code: str):
        country = store.get_country(code)
        if country is None:
            return _not_found("Country not found")
        return to_wire(country)

    @app.get("/api/countries/{code}/events")
    def get_events(code: str):
        return to_wire(store.get_events(code))

    @app.get("/api/countries/{code}/with-events")
    def get_country_with_events(code: str):
        joined = store.get_country_with_events(code)
        if joined is None:
            return _not_found("Country not found")
        return joined.to_wire()

    @app.get("/api/countries/{code}/leader")
    def get_leader(code: str):
        leader = store.get_leader(code)
        if leader is None:
            return _not_found("Leader not found for this country")
        return to_wire(leader)

    @app.get("/api/search")
    def search(q: str = ""):
        return to_wire(store.search_countries(q))

    @app.post("/api/sync-countries")
    def sync_countries(body: SyncRequest):
        try:
            summary = session.receive_sync(
                [CountryRecord.from_dict(c.model_dump()) for c in body.countries],
                [PoliticalEvent.from_dict(e.model_dump()) for e in body.events],
                [PoliticalLeader.from_dict(l.model_dump()) for l in body.leaders],
            )
        except PayloadError as e:
            return JSONResponse(status_code=400, content={"success": False, "message": str(e)})
        except Exception as e:
            print(f"[API] Error synchronizing country data: {e}")
            return JSONResponse(status_code=500, content={"success": False, "message": "Failed to synchronize country data"})

        return {
            "success": True,
            "message": f"Country data synchronized successfully ({summary.countries} countries, "
                       f"{summary.events} events, {summary.leaders} leaders)",
        }

    @app.post("/api/country-file")
    def write_country_file(body: CountryFileRequest):
        try:
            target = session.save_country_file(body.path, body.content)
        except CountryFileError as e:
            return JSONResponse(status_code=400, content={"success": False, "message": str(e)})
        return {"success": True, "message": f"Saved {target.name}"}

    return app
