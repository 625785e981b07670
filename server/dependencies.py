"""
Shared FastAPI dependencies.

Routers receive the store, geocoder and configuration through these
functions so tests can swap them with ``app.dependency_overrides``.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

from typing import Any, Dict

from bear_store import BearStore
from logic.config import load_config
from logic.geocoder import GeocoderClient

_store = None


def get_store() -> BearStore:
    global _store
    if _store is None:
        _store = BearStore()
    return _store


def get_geocoder() -> GeocoderClient:
    return GeocoderClient()


def get_config() -> Dict[str, Any]:
    return load_config()
