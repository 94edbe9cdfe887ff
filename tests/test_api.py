import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def http(app):
    return TestClient(app)


def test_lists_seeded_countries(http):
    response = http.get("/api/countries")
    assert response.status_code == 200
    codes = [c["code"] for c in response.json()]
    assert len(codes) == 13
    assert codes[0] == "usa"


def test_country_with_events_for_usa(http):
    body = http.get("/api/countries/usa/with-events").json()
    assert body["name"] == "United States"
    assert body["leader"]["party"] == "Democratic Party"
    assert body["leader"]["inPowerSince"] == "2021"
    assert [e["order"] for e in body["events"]] == [1, 2, 3, 4, 5]
    assert body["events"][0]["countryCode"] == "usa"


def test_country_without_leader_omits_it(http):
    body = http.get("/api/countries/can/with-events").json()
    assert "leader" not in body
    assert len(body["events"]) == 4


def test_unknown_country_is_404(http):
    for path in ("/api/countries/atl", "/api/countries/atl/with-events"):
        response = http.get(path)
        assert response.status_code == 404
        assert response.json() == {"message": "Country not found"}


def test_missing_leader_is_404(http):
    response = http.get("/api/countries/can/leader")
    assert response.status_code == 404
    assert response.json()["message"] == "Leader not found for this country"


def test_search(http):
    assert [c["code"] for c in http.get("/api/search", params={"q": "GER"}).json()] == ["deu"]
    assert http.get("/api/search").json() == http.get("/api/countries").json()


def test_sync_adds_country(http):
    payload = {
        "countries": [{"code": "tur", "name": "Turkey", "capital": "Ankara", "population": 85000000,
                       "color": "#4F46E5", "region": "Europe/Asia"}],
        "events": [{"countryCode": "tur", "period": "2003-Present", "title": "AKP Era",
                    "description": "", "tags": [], "order": 1}],
        "leaders": [],
    }
    response = http.post("/api/sync-countries", json=payload)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert http.get("/api/countries/tur/events").json()[0]["title"] == "AKP Era"


def test_sync_rejects_malformed_body(http):
    response = http.post("/api/sync-countries", json={"countries": "nope"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_sync_rejects_dangling_event(http):
    payload = {"countries": [], "events": [{"countryCode": "xyz", "period": "1", "title": "t", "order": 1}]}
    response = http.post("/api/sync-countries", json=payload)
    assert response.status_code == 400
    assert "xyz" in response.json()["message"]
    assert http.get("/api/countries/xyz").status_code == 404


def test_country_file_write(http, config):
    response = http.post("/api/country-file", json={"path": "countries/ita.toml", "content": 'code = "ita"\n'})
    assert response.status_code == 200
    assert (config.countries_write_dir / "ita.toml").read_text(encoding="utf-8") == 'code = "ita"\n'


@pytest.mark.parametrize("path", ["../evil.toml", "countries/ita.json", "sub/dir/ita.toml", ""])
def test_country_file_rejects_bad_paths(http, path):
    response = http.post("/api/country-file", json={"path": path, "content": 'code = "ita"\n'})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_country_file_rejects_invalid_toml(http, config):
    response = http.post("/api/country-file", json={"path": "ita.toml", "content": "code = "})
    assert response.status_code == 400
    assert not (config.countries_write_dir / "ita.toml").exists()
