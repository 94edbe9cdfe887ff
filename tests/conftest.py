import shutil
from pathlib import Path

import httpx
import pytest

from atlas.server.app import create_app
from atlas.server.session import AtlasSession
from atlas.shared.config import AtlasConfig

REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def project(tmp_path, monkeypatch) -> Path:
    """A throwaway project root holding a copy of the base data module."""
    monkeypatch.delenv("ATLAS_API_URL", raising=False)
    shutil.copytree(REPO_ROOT / "modules" / "base" / "data", tmp_path / "modules" / "base" / "data")
    return tmp_path


@pytest.fixture
def config(project) -> AtlasConfig:
    return AtlasConfig(project)


@pytest.fixture
def session(config) -> AtlasSession:
    return AtlasSession(config)


@pytest.fixture
def app(session):
    return create_app(session)


@pytest.fixture
def asgi_transport(app) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=app)
