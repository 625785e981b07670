"""
Page and read API routes.

This module serves the overview and journey pages, the HTML form submission
endpoint, and the read-only JSON API for bears, updates and journeys.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from bear_store import BearStore, StoreUnavailable
from logic.geocoder import GeocodeUnavailable, GeocoderClient
from logic.journey import journey_for_bear, journey_to_dict
from logic.render import bear_color, render_journey_html, render_overview_html
from logic.validation import LocationRejected
from server.dependencies import get_config, get_geocoder, get_store
from server.pages import bear_page, index_page, loading_page, not_found_page
from server.updates import BearNotFound, rejection_detail, submit_sighting
from user_context import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


async def _journey_page(
    bear_id: str,
    store: BearStore,
    config: Dict[str, Any],
    error: Optional[str] = None,
    form: Optional[Dict[str, str]] = None,
    status_code: int = 200,
) -> HTMLResponse:
    try:
        bear = await store.get_bear(bear_id)
        if bear is None:
            return HTMLResponse(not_found_page(bear_id), status_code=404)
        updates = await store.list_updates(bear_id)
    except StoreUnavailable:
        return HTMLResponse(loading_page())

    journey = journey_for_bear(bear, updates)
    map_html = render_journey_html(bear, journey, updates, config)
    return HTMLResponse(
        bear_page(bear, map_html, bear_color(bear, config), error=error, form=form),
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def index(store: BearStore = Depends(get_store), config: Dict[str, Any] = Depends(get_config)):
    """Serve the overview page with every bear's current location and path.

    Returns:
        HTML page, or the loading placeholder if the store cannot be read.
    """
    try:
        bears = await store.list_bears()
        updates = await asyncio.gather(*(store.list_updates(b["id"]) for b in bears))
    except StoreUnavailable:
        return HTMLResponse(loading_page())

    entries = [(bear, journey_for_bear(bear, u)) for bear, u in zip(bears, updates)]
    colors = {b["id"]: bear_color(b, config) for b in bears}
    return HTMLResponse(index_page(bears, render_overview_html(entries, config), colors))


@router.get("/bear/{bear_id}", response_class=HTMLResponse)
async def bear_journey_page(
    bear_id: str,
    store: BearStore = Depends(get_store),
    config: Dict[str, Any] = Depends(get_config),
):
    """Serve the journey page for one bear."""
    return await _journey_page(bear_id, store, config)


@router.post("/bear/{bear_id}/update", response_class=HTMLResponse)
async def submit_update_form(
    bear_id: str,
    city: str = Form(""),
    country: str = Form(""),
    message: str = Form(""),
    user: str = Depends(get_current_user),
    store: BearStore = Depends(get_store),
    geocoder: GeocoderClient = Depends(get_geocoder),
    config: Dict[str, Any] = Depends(get_config),
):
    """Handle the sighting form on the journey page.

    Redirects back to the journey page on success, so the form is cleared.
    On failure the page is shown again with the message and the entered values.
    """
    form = {"city": city, "country": country, "message": message}
    try:
        await submit_sighting(
            bear_id, city, country, message,
            store=store, geocoder=geocoder, config=config, user=user,
        )
    except BearNotFound:
        return HTMLResponse(not_found_page(bear_id), status_code=404)
    except HTTPException as e:
        return await _journey_page(bear_id, store, config, str(e.detail), form, e.status_code)
    except LocationRejected as e:
        return await _journey_page(bear_id, store, config, rejection_detail(e)["message"], form, 400)
    except GeocodeUnavailable as e:
        return await _journey_page(bear_id, store, config, rejection_detail(e)["message"], form, 502)
    except StoreUnavailable:
        return HTMLResponse(loading_page(), status_code=503)

    return RedirectResponse(f"/bear/{bear_id}", status_code=303)


def _current_location(bear: Dict[str, Any], updates: List[Dict[str, Any]]) -> Dict[str, Any]:
    journey = journey_for_bear(bear, updates)
    latest = journey.latest or {}
    latitude, longitude = journey.current_location
    return {
        **bear,
        "current_latitude": latitude,
        "current_longitude": longitude,
        "latest_city": latest.get("city") or bear.get("city"),
        "latest_country": latest.get("country") or bear.get("country"),
        "latest_message": latest.get("message") or "",
    }


@router.get("/api/bears")
async def list_bears(store: BearStore = Depends(get_store)):
    """List every bear with its current location.

    Raises:
        HTTPException: 503 if the store cannot be read.
    """
    try:
        bears = await store.list_bears()
        updates = await asyncio.gather(*(store.list_updates(b["id"]) for b in bears))
    except StoreUnavailable:
        raise HTTPException(503, "Store unavailable")
    return [_current_location(b, u) for b, u in zip(bears, updates)]


@router.get("/api/bears/{bear_id}")
async def get_bear(bear_id: str, store: BearStore = Depends(get_store)):
    """Get a bear and its updates, most recent first.

    Raises:
        HTTPException: 404 if the bear does not exist, 503 if the store fails.
    """
    try:
        bear = await store.get_bear(bear_id)
        if bear is None:
            raise HTTPException(404, f"Bear '{bear_id}' not found")
        updates = await store.list_updates(bear_id, newest_first=True)
    except StoreUnavailable:
        raise HTTPException(503, "Store unavailable")
    return {"bear": bear, "updates": updates}


@router.get("/api/bears/{bear_id}/journey")
async def get_journey(bear_id: str, store: BearStore = Depends(get_store)):
    """Get the assembled journey (origin followed by updates, oldest first).

    Raises:
        HTTPException: 404 if the bear does not exist, 503 if the store fails.
    """
    try:
        bear = await store.get_bear(bear_id)
        if bear is None:
            raise HTTPException(404, f"Bear '{bear_id}' not found")
        updates = await store.list_updates(bear_id)
    except StoreUnavailable:
        raise HTTPException(503, "Store unavailable")
    return journey_to_dict(journey_for_bear(bear, updates))
