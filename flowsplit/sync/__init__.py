"""
flowsplit/sync - Orchestration of split/rebuild passes.
"""

from .host import FlowHost, FlowsStartedEvent, LocalFlowHost
from .service import ReloadResult, SplitterService

__all__ = [
    "FlowHost",
    "FlowsStartedEvent",
    "LocalFlowHost",
    "ReloadResult",
    "SplitterService",
]
