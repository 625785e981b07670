"""
Configuration management module.

This module provides utilities for loading, saving, and managing the application
configuration stored in config.json, plus the secrets read from the environment.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import json
import os
from typing import Dict, Any, Optional

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.getenv("BEAR_TRACKER_CONFIG", os.path.join(BASE_DIR, "config.json"))

DEFAULT_COLOR = "#ff7f0e"

DEFAULT_PALETTE = [
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#17becf",
]


def load_config() -> Dict[str, Any]:
    """Load configuration from config.json.

    Returns:
        Configuration dictionary with all required fields ensured.
    """
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        config = get_default_config()

    # Ensure all required fields are present
    config = ensure_config_fields(config)
    return config


def save_config(config: Dict[str, Any]):
    """Save configuration to config.json.

    Args:
        config: Configuration dictionary to save.
    """
    with open(CONFIG_PATH, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


def get_default_config() -> Dict[str, Any]:
    """Get default configuration structure.

    Returns:
        Default configuration dictionary.
    """
    return {
        "geocoder": {
            "base_url": "https://api.mapbox.com/geocoding/v5/mapbox.places",
            "place_types": "place",
            "limit": 1,
        },
        "map": {
            "tiles": "OpenStreetMap",
            "zoom_start": 2,
            "overview_center": [20, 0],
            "overview_zoom": 1.5,
        },
        "default_color": DEFAULT_COLOR,
        "palette": list(DEFAULT_PALETTE),
        "bear_colors": {},
        "country_aliases": {},
    }


def ensure_config_fields(config: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure all required fields are present in the configuration.

    Args:
        config: Configuration dictionary to update.

    Returns:
        Updated configuration dictionary.
    """
    defaults = get_default_config()

    # Nested sections are filled key by key so partial overrides survive
    for section in ("geocoder", "map"):
        current = config.setdefault(section, {})
        if not isinstance(current, dict):
            current = config[section] = {}
        for key, value in defaults[section].items():
            current.setdefault(key, value)

    config.setdefault("default_color", DEFAULT_COLOR)
    for key in ("bear_colors", "country_aliases"):
        if not isinstance(config.get(key), dict):
            config[key] = {}

    if not config.get("palette"):
        config["palette"] = list(DEFAULT_PALETTE)

    return config


def get_mapbox_token() -> Optional[str]:
    """Get the geocoding access token from the environment.

    Returns:
        The MAPBOX_TOKEN value, or None when it is not configured.
    """
    return os.getenv("MAPBOX_TOKEN")
