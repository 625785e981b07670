"""
Admin routes for bears and configuration management.

This module provides administrative endpoints for creating tracked bears,
directly editing the config.json file, and reading the submission audit log.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-01-03
"""

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from audit_service import AuditLogger
from bear_store import BearExists, BearStore, StoreUnavailable
from logic import config as config_module
from logic.validation import sanitise_coordinate, sanitise_place_name
from server.dependencies import get_store

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_BEAR_ID_LEN = 100


class ConfigUpdate(BaseModel):
    """Request model for updating configuration."""

    content: str


class BearCreate(BaseModel):
    """Request model for creating a tracked bear."""

    id: str
    name: str
    initial_latitude: float
    initial_longitude: float
    city: str
    country: str
    color: Optional[str] = None


@router.post("/api/admin/bears", status_code=201)
async def create_bear(data: BearCreate, store: BearStore = Depends(get_store)):
    """Create a new tracked bear with its origin point.

    Args:
        data: Bear identifier, name, origin coordinate and origin place.

    Returns:
        The stored bear.

    Raises:
        HTTPException: 400 on invalid fields, 409 if the id is taken,
            503 if the store fails.
    """
    bear_id = data.id.strip()
    if not bear_id or len(bear_id) > MAX_BEAR_ID_LEN or "/" in bear_id:
        raise HTTPException(400, "Invalid bear id")
    name = data.name.strip()
    if not name:
        raise HTTPException(400, "Missing name")

    bear = {
        "id": bear_id,
        "name": name,
        "initial_latitude": sanitise_coordinate(data.initial_latitude, minimum=-90, maximum=90),
        "initial_longitude": sanitise_coordinate(data.initial_longitude, minimum=-180, maximum=180),
        "city": sanitise_place_name(data.city, "city"),
        "country": sanitise_place_name(data.country, "country"),
        "color": data.color,
    }

    try:
        created = await store.create_bear(bear)
    except BearExists:
        raise HTTPException(409, f"Bear '{bear_id}' already exists")
    except StoreUnavailable:
        raise HTTPException(503, "Store unavailable")

    logger.info("Created bear %s (%s)", bear_id, name)
    return created


@router.get("/api/admin/config")
def get_config():
    """Get the raw config.json content.

    Returns:
        Dictionary containing the raw JSON content as a string.

    Raises:
        HTTPException: If config file cannot be read.
    """
    try:
        with open(config_module.CONFIG_PATH, "r", encoding="utf-8") as f:
            content = f.read()
        return {"content": content}
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Config file not found")
    except OSError as e:
        raise HTTPException(
            status_code=500, detail=f"Error reading config file: {str(e)}"
        )


@router.post("/api/admin/config")
def update_config(data: ConfigUpdate):
    """Update the config.json file with new content.

    Validates that the content is a JSON object before saving. Missing
    fields are filled with defaults.

    Args:
        data: ConfigUpdate object containing the new JSON content.

    Returns:
        Success message.

    Raises:
        HTTPException: If JSON is invalid or file cannot be saved.
    """
    try:
        parsed_config = json.loads(data.content)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {str(e)}")

    if not isinstance(parsed_config, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON: expected an object")

    try:
        config_module.save_config(config_module.ensure_config_fields(parsed_config))
    except OSError as e:
        raise HTTPException(
            status_code=500, detail=f"Error saving config file: {str(e)}"
        )

    return {"success": True, "message": "Configuration updated successfully"}


@router.get("/api/admin/audit")
async def get_audit_logs(
    bear_id: Optional[str] = None,
    outcome: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
):
    """Get recent submission audit entries, newest first."""
    limit = max(1, min(limit, 1000))
    return await asyncio.to_thread(
        AuditLogger.get_logs, bear_id, outcome, None, limit, max(0, offset)
    )


@router.get("/api/admin/audit.csv", response_class=PlainTextResponse)
async def export_audit_logs(bear_id: Optional[str] = None):
    """Download submission audit entries as CSV."""
    return await asyncio.to_thread(AuditLogger.export_logs_csv, bear_id)
