"""
Server-sent events (SSE) broadcasting module.

This module handles real-time updates via Server-Sent Events, managing
subscriber connections and announcing newly accepted sightings to all clients.
Delivery is best effort: a client that is not connected misses the event and
picks the sighting up on its next page load.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Dict, Set

# Global set of SSE subscribers (asyncio.Queue instances)
subscribers: Set[asyncio.Queue] = set()


async def event_generator(queue: asyncio.Queue):
    """Generate SSE events from the queue.

    Args:
        queue: Async queue to read events from.

    Yields:
        SSE formatted event strings.
    """
    try:
        while True:
            data = await queue.get()
            yield f"data: {json.dumps(data)}\n\n"
    except asyncio.CancelledError:
        pass
    finally:
        subscribers.discard(queue)


async def broadcast_report_added(bear_id: str, report: Dict[str, Any]):
    """Announce a newly stored sighting to all SSE subscribers.

    Args:
        bear_id: Bear the sighting belongs to.
        report: The stored report dictionary.
    """
    payload = {
        "type": "report_added",
        "time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "bear_id": bear_id,
        "city": report.get("city"),
        "country": report.get("country"),
    }
    for queue in list(subscribers):
        await queue.put(payload)
