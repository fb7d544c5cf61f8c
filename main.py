# ============================================================================
# DEPENDENCY PING - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Serve the /_ping endpoint
# CREATED: 12 OCT 2026
# ============================================================================
"""
Dependency Ping Main Application

FastAPI application serving GET /_ping, which checks that the host
application's database, caches, search cluster, public files directory
and custom hook are functional.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
import os
import time

from fastapi import FastAPI, Request

from __version__ import __version__, BUILD_DATE, EPOCH

# Configure logging using our structured logging system
from core.config.defaults import get_defaults
from core.logging import configure_logging, get_logger

_defaults = get_defaults()
configure_logging(
    level=_defaults.log_level,
    json_output=_defaults.log_format == "json",
)
logger = get_logger(__name__)

from health import ping_router, get_registry  # noqa: E402

logger.info(
    f"Starting Dependency Ping v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE}), "
    f"{len(get_registry())} probes registered"
)

# Create FastAPI app
app = FastAPI(
    title="Dependency Ping",
    description="Checks that the application's runtime dependencies are functional",
    version=__version__,
)


@app.middleware("http")
async def stamp_received_at(request: Request, call_next):
    """Record when the request arrived, reported by the ping as preboot."""
    request.state.received_at = time.time()
    return await call_next(request)


# Include ping route (no prefix - /_ping)
app.include_router(ping_router)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
