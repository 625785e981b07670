"""
Logging setup for the Bear Tracker application.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import logging
import os

from rich.logging import RichHandler


def configure(level: str = None) -> None:
    """Configure root logging with a rich console handler.

    Args:
        level: Log level name. Defaults to BEAR_TRACKER_LOG_LEVEL or INFO.
    """
    level = level or os.getenv("BEAR_TRACKER_LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=True, show_path=False)],
    )
