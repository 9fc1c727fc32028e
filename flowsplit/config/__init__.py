"""
flowsplit/config - Splitter configuration.
"""

from .splitter_config import (
    CONFIG_FILENAME,
    SplitterConfig,
    load_config,
    resolve_project_path,
    write_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "SplitterConfig",
    "load_config",
    "resolve_project_path",
    "write_config",
]
