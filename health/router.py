# ============================================================================
# PING ROUTER
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - FastAPI ping endpoint
# PURPOSE: Expose the dependency ping over HTTP
# CREATED: 13 OCT 2026
# ============================================================================
"""
Ping Router

Endpoints:
    GET /_ping              - Run all probes, plain text status line
    GET /_ping?debug=<code> - Same, plus the Status and Profile tables
                              when the code matches

Response Codes:
    200 - Every probe succeeded (warnings allowed)
    500 - At least one probe reported an error
    503 - The ping never got as far as deciding

The handler is a plain def: probes block, so FastAPI runs it in its
threadpool instead of on the event loop.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request, Response

import health.checks  # noqa: F401  register all probes
from core.config.defaults import get_defaults
from health.app import App

logger = logging.getLogger(__name__)

ping_router = APIRouter(tags=["Ping"])

NO_CACHE_HEADERS = {"Cache-Control": "no-store"}


@ping_router.get("/_ping", response_class=Response)
def ping(request: Request, debug: Optional[str] = None) -> Response:
    """
    Dependency ping.

    Only the status line is returned unless the "debug" parameter
    matches the debug code, so callers without it learn nothing about
    the infrastructure.
    """
    app = App(
        defaults=get_defaults(),
        request_started_at=getattr(request.state, "received_at", None),
    )
    result = app.run(debug=debug)

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type="text/plain",
        headers=NO_CACHE_HEADERS,
    )


__all__ = [
    "ping_router",
]
