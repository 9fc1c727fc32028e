"""
Flow splitter HTTP API.

To avoid import side effects, the app instance is NOT created at import
time. Use ``flowsplit.api.asgi:app`` for ASGI servers or ``create_app()``.
"""

from .server import (
    API_PREFIX,
    FlowsStartedRequest,
    FlowsStartedResponse,
    HealthResponse,
    ReloadResponse,
    create_app,
)

__all__ = [
    "API_PREFIX",
    "FlowsStartedRequest",
    "FlowsStartedResponse",
    "HealthResponse",
    "ReloadResponse",
    "create_app",
]
