"""Splitter configuration registry.

Loads ``.config.flow-splitter.json`` from the project directory, layered as
defaults < file < environment. Environment variables take precedence over the
file so CI and sidecar deployments can override without touching the repo.

Usage:
    from flowsplit.config import load_config, write_config, resolve_project_path

    project = resolve_project_path(user_dir)
    cfg = load_config(project, flow_file="flows.json")
    if cfg.extract_enabled:
        ...
    write_config(cfg, project)

Environment overrides:
    FLOWSPLIT_FILE_FORMAT          yaml | json
    FLOWSPLIT_DESTINATION_FOLDER   source tree root, relative to the project
    FLOWSPLIT_EXTRACT              1/true/yes enables extraction, anything else disables
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigError
from ..fsio import atomic_write, read_text

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".config.flow-splitter.json"
PROJECTS_CONFIG_FILENAME = ".config.projects.json"

DEFAULT_FILE_FORMAT = "yaml"
DEFAULT_DESTINATION_FOLDER = "src"
DEFAULT_MONOLITH_FILENAME = "flows.json"

FILE_FORMATS = ("yaml", "json")

TABS_SUBDIR = "tabs"
SUBFLOWS_SUBDIR = "subflows"
CONFIG_NODES_BASENAME = "config-nodes"


TRUE_STRINGS = ("1", "true", "yes")


def _parse_flag(value: str) -> bool:
    return value.strip().lower() in TRUE_STRINGS


def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None:
        return None
    return _parse_flag(value)


def _config_flag(data: Dict[str, Any], key: str, default: bool = True) -> bool:
    """Read a boolean switch from the config file, accepting "true"/"false" strings."""
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_flag(value)
    raise ConfigError(f"Invalid {key}: {value!r}. Must be a boolean.")


@dataclass
class SplitterConfig:
    """Settings shared by the splitter, the flow-set manager and the engines.

    Attributes:
        file_format: Serialization of entity files ("yaml" or "json").
        destination_folder: Source tree root, relative to the project.
        tabs_order: Tab ids in monolith order, maintained by the flow-set manager.
        monolith_filename: Name of the monolithic flows file (never persisted).
        extract_functions_templates: Master switch for extraction and restoration.
        restore_functions_templates: Switch for restoration alone.
    """

    file_format: str = DEFAULT_FILE_FORMAT
    destination_folder: str = DEFAULT_DESTINATION_FOLDER
    tabs_order: List[str] = field(default_factory=list)
    monolith_filename: str = DEFAULT_MONOLITH_FILENAME
    extract_functions_templates: bool = True
    restore_functions_templates: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SplitterConfig":
        """Create config from the camelCase file form."""
        file_format = str(data.get("fileFormat", DEFAULT_FILE_FORMAT)).lower()
        if file_format not in FILE_FORMATS:
            raise ConfigError(
                f"Invalid fileFormat: {file_format}. Must be yaml or json."
            )
        return cls(
            file_format=file_format,
            destination_folder=data.get("destinationFolder") or DEFAULT_DESTINATION_FOLDER,
            tabs_order=list(data.get("tabsOrder") or []),
            monolith_filename=data.get("monolithFilename") or DEFAULT_MONOLITH_FILENAME,
            extract_functions_templates=_config_flag(data, "extractFunctionsTemplates"),
            restore_functions_templates=_config_flag(data, "restoreFunctionsTemplates"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the file form; monolithFilename is deliberately left out."""
        return {
            "fileFormat": self.file_format,
            "destinationFolder": self.destination_folder,
            "tabsOrder": list(self.tabs_order),
            "extractFunctionsTemplates": self.extract_functions_templates,
            "restoreFunctionsTemplates": self.restore_functions_templates,
        }

    def copy(self, **changes: Any) -> "SplitterConfig":
        changes.setdefault("tabs_order", list(self.tabs_order))
        return replace(self, **changes)

    # -------------------------------------------------------------------------
    # Derived settings
    # -------------------------------------------------------------------------

    @property
    def extract_enabled(self) -> bool:
        return self.extract_functions_templates

    @property
    def restore_enabled(self) -> bool:
        return self.extract_functions_templates and self.restore_functions_templates

    @property
    def entity_extension(self) -> str:
        return ".yaml" if self.file_format == "yaml" else ".json"

    def source_dir(self, project_path: Path) -> Path:
        return Path(project_path) / self.destination_folder

    def tabs_dir(self, project_path: Path) -> Path:
        return self.source_dir(project_path) / TABS_SUBDIR

    def subflows_dir(self, project_path: Path) -> Path:
        return self.source_dir(project_path) / SUBFLOWS_SUBDIR

    def config_nodes_path(self, project_path: Path) -> Path:
        return self.source_dir(project_path) / f"{CONFIG_NODES_BASENAME}{self.entity_extension}"

    def monolith_path(self, project_path: Path) -> Path:
        return Path(project_path) / self.monolith_filename


# =============================================================================
# Loading / Writing
# =============================================================================


def resolve_project_path(user_dir: Path) -> Path:
    """Return the active project directory under ``user_dir``.

    In project mode ``.config.projects.json`` names the active project, which
    lives under ``projects/``; otherwise the user directory itself is the project.
    """
    user_dir = Path(user_dir)
    projects_cfg = user_dir / PROJECTS_CONFIG_FILENAME
    if not projects_cfg.exists():
        return user_dir

    try:
        data = json.loads(read_text(projects_cfg))
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Cannot read projects config: {e}", projects_cfg) from e

    active = data.get("activeProject") if isinstance(data, dict) else None
    if not active:
        return user_dir
    return user_dir / "projects" / active


def _apply_env_overrides(cfg: SplitterConfig) -> SplitterConfig:
    file_format = os.environ.get("FLOWSPLIT_FILE_FORMAT")
    if file_format:
        file_format = file_format.lower()
        if file_format not in FILE_FORMATS:
            raise ConfigError(
                f"Invalid FLOWSPLIT_FILE_FORMAT: {file_format}. Must be yaml or json."
            )
        cfg.file_format = file_format

    destination = os.environ.get("FLOWSPLIT_DESTINATION_FOLDER")
    if destination:
        cfg.destination_folder = destination

    extract = _env_flag("FLOWSPLIT_EXTRACT")
    if extract is not None:
        cfg.extract_functions_templates = extract

    return cfg


def load_config(project_path: Path, flow_file: Optional[str] = None) -> SplitterConfig:
    """Load the splitter config for a project.

    Args:
        project_path: Project directory holding ``.config.flow-splitter.json``.
        flow_file: Host's monolith filename, used unless the file sets one.

    Returns:
        SplitterConfig with defaults, file values and env overrides applied.

    Raises:
        ConfigError: If the config file exists but cannot be parsed.
    """
    path = Path(project_path) / CONFIG_FILENAME
    data: Dict[str, Any] = {}

    if path.exists():
        try:
            loaded = json.loads(read_text(path))
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Cannot read splitter config: {e}", path) from e
        if not isinstance(loaded, dict):
            raise ConfigError("Splitter config must be a JSON object", path)
        data.update(loaded)

    if not data.get("monolithFilename") and flow_file:
        data["monolithFilename"] = flow_file

    cfg = SplitterConfig.from_dict(data)
    return _apply_env_overrides(cfg)


def write_config(cfg: SplitterConfig, project_path: Path) -> bool:
    """Persist the config; failures are logged, not raised."""
    path = Path(project_path) / CONFIG_FILENAME
    logger.info("Writing splitter config: %s", path)
    try:
        atomic_write(path, json.dumps(cfg.to_dict(), indent=2) + "\n")
    except OSError as e:
        logger.warning("Could not write splitter config '%s': %s", CONFIG_FILENAME, e)
        return False
    return True
