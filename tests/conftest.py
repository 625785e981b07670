"""
Shared fixtures: an in-memory store, a scripted geocoder and an API client.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import audit_service
from bear_store import BearStore
from database import Bear, BearUpdate, init_db, make_engine
from logic import config as config_module
from logic.geocoder import GeocodeCandidate, NoMatch, RegionContext


def make_candidate(
    latitude=48.8566,
    longitude=2.3522,
    kinds=("place",),
    relevance=0.95,
    country="France",
    place_name="Paris, Ile-de-France, France",
):
    context = (RegionContext("region.1", "Ile-de-France"),)
    if country is not None:
        context += (RegionContext("country.2", country),)
    return GeocodeCandidate(
        latitude=latitude,
        longitude=longitude,
        place_kinds=tuple(kinds),
        relevance=relevance,
        context=context,
        place_name=place_name,
    )


class FakeGeocoder:
    """Geocoder returning scripted candidates per query, recording calls."""

    def __init__(self, results=None, error=None):
        self.results = results or {}
        self.error = error
        self.queries = []

    async def lookup(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        candidates = self.results.get(query, [])
        if not candidates:
            raise NoMatch(query)
        return iter(candidates)


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setattr(config_module, "CONFIG_PATH", str(path))
    return path


@pytest.fixture
def session_factory(monkeypatch):
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(audit_service, "SessionLocal", factory)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return BearStore(session_factory)


@pytest.fixture
def add_bear(session_factory):
    def _add(bear_id="finlay-1", name="Finlay", lat=51.5074, lon=-0.1278, city="London", country="United Kingdom", color=None):
        db = session_factory()
        try:
            db.add(Bear(
                id=bear_id,
                name=name,
                initial_latitude=lat,
                initial_longitude=lon,
                city=city,
                country=country,
                color=color,
            ))
            db.commit()
        finally:
            db.close()
        return bear_id

    return _add


@pytest.fixture
def add_update(session_factory):
    def _add(bear_id, lat, lon, created_at, city="Somewhere", country="Someland", message=""):
        db = session_factory()
        try:
            db.add(BearUpdate(
                bear_id=bear_id,
                city=city,
                country=country,
                message=message,
                latitude=lat,
                longitude=lon,
                created_at=created_at,
            ))
            db.commit()
        finally:
            db.close()

    return _add


@pytest.fixture
def geocoder():
    return FakeGeocoder({
        "Paris, France": [make_candidate()],
        "Eiffel Tower, France": [make_candidate(kinds=("poi", "landmark"), relevance=0.99)],
        "Paris, Germany": [make_candidate()],
    })


@pytest.fixture
def client(store, geocoder, config_path):
    from main import app
    from server.dependencies import get_config, get_geocoder, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_config] = config_module.get_default_config
    yield TestClient(app)
    app.dependency_overrides.clear()


T1 = datetime(2025, 12, 1, 10, 0, 0)
T2 = datetime(2025, 12, 2, 10, 0, 0)
