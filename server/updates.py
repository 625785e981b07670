"""
Sighting submission API routes.

This module contains the submission pipeline that turns a free-text city and
country into a stored sighting: geocode, validate, store, audit, broadcast.
A submission that fails any step before the insert is discarded.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from audit_service import ACCEPTED, AuditLogger
from bear_store import BearStore, StoreUnavailable
from logic.geocoder import GeocodeUnavailable, GeocoderClient, NoMatch, build_place_query
from logic.validation import LocationRejected, sanitise_message, sanitise_place_name, validate_location
from server.broadcast import broadcast_report_added
from server.dependencies import get_config, get_geocoder, get_store
from user_context import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class SightingSubmission(BaseModel):
    """Request model for submitting a sighting."""

    city: str
    country: str
    message: Optional[str] = ""


class BearNotFound(Exception):
    """The bear a sighting was submitted for does not exist."""


def rejection_detail(error: Exception) -> Dict[str, str]:
    """Build the user-facing error payload for a failed submission."""
    return {
        "error": type(error).__name__,
        "message": getattr(error, "user_message", "Error adding update. Try again."),
    }


async def _audit(user: str, bear_id: str, city: str, country: str, outcome: str, description: str = None):
    try:
        await asyncio.to_thread(
            AuditLogger.log_submission, user, bear_id, city, country, outcome, description
        )
    except SQLAlchemyError:
        logger.exception("Could not write audit entry for bear %s", bear_id)


async def submit_sighting(
    bear_id: str,
    city: str,
    country: str,
    message: Optional[str],
    *,
    store: BearStore,
    geocoder: GeocoderClient,
    config: Dict[str, Any],
    user: str = "anonymous",
) -> Dict[str, Any]:
    """Geocode, validate and store a sighting for a bear.

    Args:
        bear_id: Bear identifier.
        city: City as entered.
        country: Country as entered.
        message: Optional free-text message.
        store: Document store.
        geocoder: Geocoding client.
        config: Configuration dictionary (country aliases).
        user: Submitter identifier for the audit log.

    Returns:
        The stored report dictionary.

    Raises:
        HTTPException: If the input fails sanitising.
        BearNotFound: If the bear does not exist.
        GeocodeUnavailable: If the geocoding service failed.
        LocationRejected: If the top candidate failed an acceptance check.
        StoreUnavailable: If the store read or insert failed.
    """
    city = sanitise_place_name(city, "city")
    country = sanitise_place_name(country, "country")
    message = sanitise_message(message)

    bear = await store.get_bear(bear_id)
    if bear is None:
        raise BearNotFound(bear_id)

    query = build_place_query(city, country)
    try:
        try:
            candidates = await geocoder.lookup(query)
        except NoMatch:
            candidates = iter(())
        latitude, longitude = validate_location(
            next(candidates, None), city, country, config.get("country_aliases")
        )
    except (GeocodeUnavailable, LocationRejected) as e:
        logger.info("Rejected sighting for %s (%r): %s %s", bear_id, query, type(e).__name__, e)
        await _audit(user, bear_id, city, country, type(e).__name__, str(e))
        raise

    report = await store.insert_update(bear_id, city, country, message, latitude, longitude)
    logger.info("Stored sighting for %s at %s (%.4f, %.4f)", bear_id, query, latitude, longitude)

    await _audit(user, bear_id, city, country, ACCEPTED)
    await broadcast_report_added(bear_id, report)
    return report


@router.post("/api/bears/{bear_id}/updates", status_code=201)
async def add_update(
    bear_id: str,
    payload: SightingSubmission,
    user: str = Depends(get_current_user),
    store: BearStore = Depends(get_store),
    geocoder: GeocoderClient = Depends(get_geocoder),
    config: Dict[str, Any] = Depends(get_config),
):
    """Submit a sighting for a bear.

    Args:
        bear_id: Bear identifier.
        payload: City, country and optional message.

    Returns:
        The stored report.

    Raises:
        HTTPException: 400 on invalid input or rejected location, 404 if the
            bear does not exist, 502 if geocoding failed, 503 if the store failed.
    """
    try:
        return await submit_sighting(
            bear_id,
            payload.city,
            payload.country,
            payload.message,
            store=store,
            geocoder=geocoder,
            config=config,
            user=user,
        )
    except BearNotFound:
        raise HTTPException(404, f"Bear '{bear_id}' not found")
    except LocationRejected as e:
        raise HTTPException(400, rejection_detail(e))
    except GeocodeUnavailable as e:
        raise HTTPException(502, rejection_detail(e))
    except StoreUnavailable as e:
        raise HTTPException(503, rejection_detail(e))
