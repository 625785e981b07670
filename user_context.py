"""Submitter identification for audit logging.

Sightings are public and unauthenticated; this only labels audit entries
with a header-supplied identifier or the client host.
"""

from fastapi import Header, Request
from typing import Optional


def get_current_user(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
) -> str:
    """Get current submitter identifier from request.

    Args:
        request: FastAPI request object.
        x_user_id: User ID from X-User-ID header.

    Returns:
        User identifier string. Defaults to 'anonymous' if nothing is known.
    """
    if x_user_id:
        return x_user_id[:100]

    # Use client host as fallback identifier
    if request.client and request.client.host:
        return f"user-{request.client.host}"

    return "anonymous"
