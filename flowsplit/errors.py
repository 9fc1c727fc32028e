"""
errors.py - Exception hierarchy for flowsplit.

Per-file I/O problems are not represented here: they surface as OSError,
are logged as warnings by the component that hit them, and never abort a pass.
The types below cover the failures that abort an entity or a whole operation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class SplitterError(Exception):
    """Base exception for flow splitter errors."""

    pass


class ConfigError(SplitterError):
    """Raised when the splitter configuration cannot be loaded."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} ({path})"
        super().__init__(message)


class ManifestError(SplitterError):
    """Raised when a manifest file exists but cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid manifest {path}: {reason}")


class ExtractionDirectoryError(SplitterError):
    """Raised when an entity's extraction directory cannot be created."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot create extraction directory {path}: {reason}")


class FlowSetError(SplitterError):
    """Raised when the flow-set manager cannot build a tree or monolith."""

    pass
