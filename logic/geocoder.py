"""
Geocoding client.

Wraps a single text-to-coordinates lookup against the Mapbox geocoding API.
Each lookup asks for city-level places only, with autocompletion disabled, so
the returned candidates are exact textual matches rather than suggestions.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import quote

import aiohttp

from logic.config import get_mapbox_token, load_config

logger = logging.getLogger(__name__)

COUNTRY_PREFIX = "country"
QUERY_SEPARATOR = ", "

# No client-side deadline on lookups
NO_TIMEOUT = aiohttp.ClientTimeout(total=None)


class GeocodeError(Exception):
    """Base class for geocoding failures."""

    user_message = "Could not look up that location. Try again."


class GeocodeUnavailable(GeocodeError):
    """The geocoding service could not be reached or returned an error."""

    user_message = "The location service is unavailable right now. Try again."


class NoMatch(GeocodeError):
    """The geocoding service returned zero candidates."""

    user_message = "Could not find that location. Check city and country."


@dataclass(frozen=True)
class RegionContext:
    """One containing region of a candidate, e.g. ``country.123 / France``."""

    id: str
    name: str

    @property
    def prefix(self) -> str:
        return self.id.split(".", 1)[0]


@dataclass(frozen=True)
class GeocodeCandidate:
    """A single ranked result of a text lookup.

    Attributes:
        latitude: Candidate latitude.
        longitude: Candidate longitude.
        place_kinds: Place-kind tags reported by the service (e.g. ``place``).
        relevance: Service relevance score in [0, 1].
        context: Containing regions, innermost first.
        place_name: Full display name of the candidate.
    """

    latitude: float
    longitude: float
    place_kinds: Tuple[str, ...]
    relevance: float
    context: Tuple[RegionContext, ...] = field(default_factory=tuple)
    place_name: str = ""

    @property
    def country(self) -> Optional[RegionContext]:
        return next((c for c in self.context if c.prefix == COUNTRY_PREFIX), None)


def build_place_query(city: str, country: str) -> str:
    """Join a city and a country into a single free-text place query."""
    return f"{city.strip()}{QUERY_SEPARATOR}{country.strip()}"


def candidate_from_feature(feature: Dict[str, Any]) -> GeocodeCandidate:
    """Convert a GeoJSON feature from the service into a GeocodeCandidate.

    Args:
        feature: One entry of the response ``features`` list.

    Returns:
        The parsed candidate.

    Raises:
        KeyError, TypeError, ValueError: If the feature has no usable coordinates.
    """
    coordinates = (feature.get("geometry") or {}).get("coordinates") or feature["center"]
    longitude, latitude = float(coordinates[0]), float(coordinates[1])

    context = tuple(
        RegionContext(id=str(c.get("id", "")), name=str(c.get("text", "")))
        for c in feature.get("context") or []
        if isinstance(c, dict)
    )

    return GeocodeCandidate(
        latitude=latitude,
        longitude=longitude,
        place_kinds=tuple(feature.get("place_type") or ()),
        relevance=float(feature.get("relevance", 0.0)),
        context=context,
        place_name=str(feature.get("place_name", "")),
    )


def iter_candidates(features: List[Dict[str, Any]]) -> Iterator[GeocodeCandidate]:
    """Lazily parse features in the service's relevance order, best first.

    Features without usable coordinates are skipped.
    """
    for feature in features:
        try:
            yield candidate_from_feature(feature)
        except (KeyError, TypeError, ValueError, IndexError):
            logger.warning("Skipping geocode feature without coordinates: %r", feature.get("id"))


class GeocoderClient:
    """Client for the external text-to-coordinates lookup.

    A session may be passed in (and is then owned by the caller); otherwise a
    short-lived session is opened per lookup.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        settings = load_config()["geocoder"]
        self.access_token = access_token or get_mapbox_token()
        self.base_url = (base_url or settings["base_url"]).rstrip("/")
        self.place_types = settings["place_types"]
        self.limit = int(settings["limit"])
        self._session = session

    def build_url(self, query: str) -> str:
        return f"{self.base_url}/{quote(query, safe='')}.json"

    def build_params(self) -> Dict[str, str]:
        return {
            "access_token": self.access_token or "",
            "types": self.place_types,
            "autocomplete": "false",
            "limit": str(self.limit),
        }

    async def lookup(self, query: str) -> Iterator[GeocodeCandidate]:
        """Look up a free-text place query.

        Performs exactly one request; failures are not retried.

        Args:
            query: Non-empty place query, e.g. ``"Paris, France"``.

        Returns:
            Lazy iterator of candidates, best first.

        Raises:
            ValueError: If the query is empty.
            GeocodeUnavailable: On network failure, timeout, a non-200
                response or a body that is not a feature collection.
            NoMatch: If the service returned zero candidates.
        """
        if not query or not query.strip():
            raise ValueError("Place query must not be empty")

        data = await self._fetch(query)
        if not isinstance(data, dict) or not isinstance(data.get("features") or [], list):
            logger.error("Unexpected geocoding response for %r: %r", query, data)
            raise GeocodeUnavailable("Geocoding service returned an unexpected response")
        features = data.get("features") or []
        if not features:
            logger.info("No geocode match for %r", query)
            raise NoMatch(query)

        return iter_candidates(features)

    async def _fetch(self, query: str) -> Dict[str, Any]:
        url = self.build_url(query)
        params = self.build_params()
        try:
            if self._session is not None:
                return await self._get_json(self._session, url, params)
            async with aiohttp.ClientSession(timeout=NO_TIMEOUT) as session:
                return await self._get_json(session, url, params)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Geocoding request for %r failed: %r", query, e)
            raise GeocodeUnavailable(str(e) or type(e).__name__) from e

    @staticmethod
    async def _get_json(session: aiohttp.ClientSession, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        async with session.get(url, params=params) as resp:
            if resp.status != 200:
                raise GeocodeUnavailable(f"Geocoding service returned HTTP {resp.status}")
            return await resp.json()
