"""
FastAPI control surface for the flow splitter.

Endpoints:
    POST /flow-splitter/reload         - Restore functions/templates and reload flows
    POST /flow-splitter/flows-started  - Deliver a flows-started event (sidecar mode)
    GET  /flow-splitter/health         - Health check

Usage:
    # For ASGI servers:
    uvicorn flowsplit.api.asgi:app --port 5002

    # Programmatic:
    from flowsplit.api import create_app
    app = create_app(service)
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..sync.host import FlowsStartedEvent
from ..sync.service import SplitterService

logger = logging.getLogger(__name__)

API_PREFIX = "/flow-splitter"


# =============================================================================
# Pydantic Models for Request/Response
# =============================================================================


class ReloadResponse(BaseModel):
    """Response for the reload endpoint."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class FlowsStartedRequest(BaseModel):
    """Flows-started event delivered over HTTP."""

    flows: List[Dict[str, Any]] = Field(default_factory=list)


class FlowsStartedResponse(BaseModel):
    """Response for the flows-started endpoint."""

    success: bool
    action: str


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str
    timestamp: str
    user_dir: str
    flow_file: str


# =============================================================================
# Routes
# =============================================================================


router = APIRouter(prefix=API_PREFIX, tags=["flow-splitter"])


def _service(request: Request) -> SplitterService:
    return request.app.state.splitter


@router.post("/reload", response_model=ReloadResponse)
def reload_flows(request: Request):
    """Restore functions/templates from their files and reload the flows.

    Returns 200 with ``{"success": true, "message": ...}`` on success and
    500 with ``{"success": false, "error": ...}`` on failure.
    """
    result = _service(request).manual_reload()
    status_code = 200 if result.success else 500
    return JSONResponse(content=result.to_dict(), status_code=status_code)


@router.post("/flows-started", response_model=FlowsStartedResponse)
def flows_started(payload: FlowsStartedRequest, request: Request):
    """Run a split (flows present) or rebuild (flows empty) pass."""
    action = "split" if payload.flows else "rebuild"
    ok = _service(request).on_flows_started(FlowsStartedEvent(flows=payload.flows))
    body = FlowsStartedResponse(success=ok, action=action)
    return JSONResponse(content=body.model_dump(), status_code=200 if ok else 500)


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    """Health check."""
    host = _service(request).host
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        user_dir=str(host.user_dir),
        flow_file=host.flow_file,
    )


# =============================================================================
# FastAPI Application Factory
# =============================================================================


def create_app(service: SplitterService) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: The splitter service the endpoints drive.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Flow Splitter API",
        description="Control surface for syncing the monolithic flows file with its source tree.",
        version="1.0.0",
    )
    app.state.splitter = service
    app.include_router(router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        logger.info(
            "%s %s %s %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response

    logger.info("Manual reload endpoint registered at POST %s/reload", API_PREFIX)
    return app
