"""
host.py - Capabilities the hosting flow runtime hands to the splitter.

The splitter never reaches into the host process on its own; whatever it
needs (where the user directory is, what the flows file is called, how to
make the runtime reload its flows) is passed in as a FlowHost.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class FlowHost(Protocol):
    """Host runtime capability."""

    @property
    def user_dir(self) -> Path:
        """Directory holding the runtime's settings and projects."""
        ...

    @property
    def flow_file(self) -> str:
        """Filename of the monolithic flows document."""
        ...

    def reload_flows(self) -> None:
        """Ask the runtime to stop its flows and load them again from disk."""
        ...


@dataclass
class FlowsStartedEvent:
    """Emitted by the host each time its flows (re)start.

    Attributes:
        flows: Current monolithic node list; empty means "rebuild from tree".
        monolith_written: Set by the host once it has finished writing the
            monolithic flows file, so the splitter can delete it safely.
    """

    flows: List[Dict[str, Any]] = field(default_factory=list)
    monolith_written: Optional[threading.Event] = None


class LocalFlowHost:
    """FlowHost for running the splitter outside a runtime (CLI, sidecar).

    There is no runtime to reload, so reload_flows() only logs.
    """

    def __init__(self, user_dir: Path, flow_file: str = "flows.json"):
        self._user_dir = Path(user_dir)
        self._flow_file = flow_file
        self.reload_count = 0

    @property
    def user_dir(self) -> Path:
        return self._user_dir

    @property
    def flow_file(self) -> str:
        return self._flow_file

    def reload_flows(self) -> None:
        self.reload_count += 1
        logger.info("Flows rebuilt in %s (no runtime attached to reload)", self._user_dir)
