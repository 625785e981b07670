"""
Validation and sanitization utilities.

This module contains the location acceptance checks applied to a geocode
candidate before a sighting is stored, and functions for sanitizing user input.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from fastapi import HTTPException

from logic.geocoder import GeocodeCandidate

CITY_PLACE_KIND = "place"
MIN_RELEVANCE = 0.8
MAX_PLACE_NAME_LEN = 100
MAX_MESSAGE_LEN = 500


class LocationRejected(Exception):
    """Base class for a geocode candidate failing an acceptance check."""

    user_message = "That location could not be accepted."

    def __init__(self, reason: str = ""):
        super().__init__(reason or self.user_message)
        self.reason = reason


class NoCandidate(LocationRejected):
    user_message = "Could not find that location. Check city and country."


class WrongPlaceKind(LocationRejected):
    user_message = "Please enter a city, not a street, landmark, region or country."


class LowConfidence(LocationRejected):
    user_message = "We are not sure which place you mean. Check the spelling of the city."


class CountryMismatch(LocationRejected):
    user_message = "That city does not seem to be in the country you entered."


class CheckResult(NamedTuple):
    """Outcome of one named acceptance check."""

    name: str
    passed: bool
    reason: str = ""


class LocationQuery(NamedTuple):
    """What the submitter typed, plus any accepted alternative country names."""

    city: str
    country: str
    country_aliases: Tuple[str, ...] = ()


CheckFn = Callable[[Optional[GeocodeCandidate], LocationQuery], CheckResult]


def check_has_candidate(candidate: Optional[GeocodeCandidate], query: LocationQuery) -> CheckResult:
    if candidate is None:
        return CheckResult("has_candidate", False, "geocoder returned no results")
    return CheckResult("has_candidate", True)


def check_place_kind(candidate: GeocodeCandidate, query: LocationQuery) -> CheckResult:
    if CITY_PLACE_KIND not in candidate.place_kinds:
        kinds = ",".join(candidate.place_kinds) or "unknown"
        return CheckResult("place_kind", False, f"resolved to {kinds}, not a city")
    return CheckResult("place_kind", True)


def check_relevance(candidate: GeocodeCandidate, query: LocationQuery) -> CheckResult:
    if candidate.relevance < MIN_RELEVANCE:
        return CheckResult("relevance", False, f"relevance {candidate.relevance:.2f} < {MIN_RELEVANCE}")
    return CheckResult("relevance", True)


def check_country(candidate: GeocodeCandidate, query: LocationQuery) -> CheckResult:
    country = candidate.country
    if country is None:
        return CheckResult("country", False, "candidate has no country context")

    name = country.name.lower()
    entered = [query.country, *query.country_aliases]
    if any(e.strip() and e.strip().lower() in name for e in entered):
        return CheckResult("country", True)
    return CheckResult("country", False, f"{country.name!r} does not contain {query.country!r}")


# Evaluated in order; the first failure wins
LOCATION_CHECKS: List[Tuple[CheckFn, type]] = [
    (check_has_candidate, NoCandidate),
    (check_place_kind, WrongPlaceKind),
    (check_relevance, LowConfidence),
    (check_country, CountryMismatch),
]


def run_location_checks(
    candidate: Optional[GeocodeCandidate],
    query: LocationQuery,
    checks: Sequence[Tuple[CheckFn, type]] = None,
) -> Tuple[List[CheckResult], Optional[type]]:
    """Run acceptance checks in order, stopping at the first failure.

    Args:
        candidate: Top-ranked geocode candidate, or None.
        query: The submitter's city and country.
        checks: Ordered (check, error class) pairs. Defaults to LOCATION_CHECKS.

    Returns:
        Tuple of (results evaluated so far, error class of the failing check or None).
    """
    results = []
    for check, error_cls in checks or LOCATION_CHECKS:
        result = check(candidate, query)
        results.append(result)
        if not result.passed:
            return results, error_cls
    return results, None


def alias_names(country_aliases: Optional[Dict[str, Any]], country: str) -> Tuple[str, ...]:
    """Get the configured alternative names for a country entry.

    A single string counts as one name; anything else that is not a string is
    ignored.
    """
    if not isinstance(country_aliases, dict):
        return ()
    names = country_aliases.get(country.strip().lower(), ())
    if isinstance(names, str):
        names = (names,)
    elif not isinstance(names, (list, tuple)):
        return ()
    return tuple(n for n in names if isinstance(n, str) and n.strip())


def validate_location(
    candidate: Optional[GeocodeCandidate],
    city: str,
    country: str,
    country_aliases: Optional[Dict[str, List[str]]] = None,
) -> Tuple[float, float]:
    """Accept or reject a geocode candidate for the submitter's city/country.

    Args:
        candidate: Top-ranked candidate, or None when the lookup found nothing.
        city: City as entered by the submitter.
        country: Country as entered by the submitter.
        country_aliases: Optional map of lower-cased entry -> alternative names.

    Returns:
        Accepted (latitude, longitude) pair.

    Raises:
        LocationRejected: The subclass for the first failing check.
    """
    aliases = alias_names(country_aliases, country)
    results, error_cls = run_location_checks(candidate, LocationQuery(city, country, aliases))
    if error_cls is not None:
        raise error_cls(results[-1].reason)
    return candidate.latitude, candidate.longitude


def sanitise_place_name(value: str, field_name: str) -> str:
    """Sanitize and validate a city or country entry.

    Args:
        value: Raw user input.
        field_name: Field label used in error messages.

    Returns:
        Stripped place name.

    Raises:
        HTTPException: If the value is empty or exceeds the maximum length.
    """
    value = (value or "").strip()
    if not value:
        raise HTTPException(400, f"Missing {field_name}")
    if len(value) > MAX_PLACE_NAME_LEN:
        raise HTTPException(400, f"{field_name.capitalize()} too long")
    return value


def sanitise_message(value: Optional[str]) -> str:
    """Sanitize the optional free-text message.

    Raises:
        HTTPException: If the message exceeds the maximum length.
    """
    value = (value or "").strip()
    if len(value) > MAX_MESSAGE_LEN:
        raise HTTPException(400, "Message too long")
    return value


def sanitise_coordinate(value, *, minimum: float, maximum: float) -> float:
    """Sanitize a latitude or longitude value.

    Raises:
        HTTPException: If the value is not a number in [minimum, maximum].
    """
    if isinstance(value, bool):
        raise HTTPException(400, "Invalid coordinate")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise HTTPException(400, "Invalid coordinate")
    if not minimum <= number <= maximum:
        raise HTTPException(400, "Coordinate out of range")
    return number
