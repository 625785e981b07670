"""
Bear Tracker FastAPI Application

Main entry point for the Bear Tracker application, serving the journey pages,
the sighting submission API and real-time update notifications.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import asyncio
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import StreamingResponse

# Load environment variables before modules read them
load_dotenv()

from database import init_db  # noqa: E402
from logic.logging_config import configure  # noqa: E402
from server.admin import router as admin_router  # noqa: E402
from server.broadcast import subscribers  # noqa: E402
from server.routes import router as routes_router  # noqa: E402
from server.updates import router as updates_router  # noqa: E402

configure()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Bear Tracker", lifespan=lifespan)

# Include all routers
app.include_router(routes_router)
app.include_router(updates_router)
app.include_router(admin_router)

# ============================================================
# SSE Endpoint
# ============================================================


@app.get("/api/stream")
async def stream():
    """Server-Sent Events (SSE) endpoint for real-time updates.

    Clients connect to this endpoint to be told when a new sighting has been
    stored, so they can reload the affected journey.

    Returns:
        StreamingResponse with text/event-stream content type.
    """
    from server.broadcast import event_generator

    queue = asyncio.Queue()
    subscribers.add(queue)

    return StreamingResponse(event_generator(queue), media_type="text/event-stream")
