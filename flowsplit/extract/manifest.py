"""
manifest.py - Sidecar manifest mapping node ids to extracted files.

One ``.manifest.json`` lives in every extraction directory. It is the sole
authority restoration uses to find a node's files: filenames are never
re-derived from current node names, which is what lets a renamed node resolve
to its old files across an edit cycle.

File layout (pretty-printed JSON object keyed by node id):

    {
      "n1": {
        "nodeId": "n1",
        "name": "Process Data",
        "sanitizedName": "Process_Data",
        "fileName": "Process_Data",
        "isMarkup": false,
        "isScript": true,
        "hasCode": true,
        "hasInitialize": false,
        "hasFinalize": false,
        "hasInfo": false
      }
    }

The extraction engine is the only writer. Manifests written by older tooling
that used ``isVue``/``isFun`` are accepted on read.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ManifestError
from ..fsio import atomic_write, read_text
from .classifier import NodeKind

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = ".manifest.json"

INITIALIZE_SUFFIX = ".initialize.js"
FINALIZE_SUFFIX = ".finalize.js"
INFO_SUFFIX = ".info.md"

_LEGACY_ALIASES = {"isVue": "isMarkup", "isFun": "isScript"}


# =============================================================================
# Manifest Entry
# =============================================================================


@dataclass(frozen=True)
class ManifestEntry:
    """Evidence of one node's extraction in a single pass."""

    node_id: str
    name: str
    sanitized_name: str
    file_name: str
    is_markup: bool = False
    is_script: bool = False
    has_code: bool = False
    has_initialize: bool = False
    has_finalize: bool = False
    has_info: bool = False

    @property
    def kind(self) -> NodeKind:
        if self.is_markup:
            return NodeKind.MARKUP
        if self.is_script:
            return NodeKind.SCRIPT
        return NodeKind.NONE

    @property
    def code_file(self) -> str:
        return self.file_name + self.kind.code_extension

    @property
    def initialize_file(self) -> str:
        return self.file_name + INITIALIZE_SUFFIX

    @property
    def finalize_file(self) -> str:
        return self.file_name + FINALIZE_SUFFIX

    @property
    def info_file(self) -> str:
        return self.file_name + INFO_SUFFIX

    def expected_files(self) -> List[str]:
        """Filenames this entry vouches for: exactly the flagged side files."""
        files = []
        if self.has_code:
            files.append(self.code_file)
        if self.has_initialize:
            files.append(self.initialize_file)
        if self.has_finalize:
            files.append(self.finalize_file)
        if self.has_info:
            files.append(self.info_file)
        return files

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        """Create an entry from its JSON form, accepting legacy keys."""
        data = dict(data)
        for legacy, canonical in _LEGACY_ALIASES.items():
            if legacy in data and canonical not in data:
                data[canonical] = data[legacy]

        if not isinstance(data.get("fileName"), str) or not data["fileName"]:
            raise ValueError("entry has no fileName")

        return cls(
            node_id=str(data.get("nodeId", "")),
            name=str(data.get("name", "")),
            sanitized_name=str(data.get("sanitizedName", data["fileName"])),
            file_name=data["fileName"],
            is_markup=bool(data.get("isMarkup", False)),
            is_script=bool(data.get("isScript", False)),
            has_code=bool(data.get("hasCode", False)),
            has_initialize=bool(data.get("hasInitialize", False)),
            has_finalize=bool(data.get("hasFinalize", False)),
            has_info=bool(data.get("hasInfo", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "name": self.name,
            "sanitizedName": self.sanitized_name,
            "fileName": self.file_name,
            "isMarkup": self.is_markup,
            "isScript": self.is_script,
            "hasCode": self.has_code,
            "hasInitialize": self.has_initialize,
            "hasFinalize": self.has_finalize,
            "hasInfo": self.has_info,
        }


# =============================================================================
# Manifest Store
# =============================================================================


class ManifestStore:
    """Reads and writes ``.manifest.json`` inside extraction directories."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    @staticmethod
    def path_for(directory: Path) -> Path:
        return Path(directory) / MANIFEST_FILENAME

    def write(self, directory: Path, entries: Dict[str, ManifestEntry]) -> Path:
        """Overwrite the manifest with exactly ``entries``."""
        path = self.path_for(directory)
        payload = {node_id: entry.to_dict() for node_id, entry in entries.items()}
        content = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
        atomic_write(path, content)
        self._log.debug("Wrote manifest with %d entries: %s", len(entries), path)
        return path

    def read(self, directory: Path) -> Optional[Dict[str, ManifestEntry]]:
        """Load the manifest.

        Returns:
            Entries keyed by node id, or None when no manifest exists.

        Raises:
            ManifestError: If the file exists but is not a valid manifest.
        """
        path = self.path_for(directory)
        if not path.exists():
            return None

        try:
            data = json.loads(read_text(path))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise ManifestError(path, str(e)) from e

        if not isinstance(data, dict):
            raise ManifestError(path, f"expected object, got {type(data).__name__}")

        entries: Dict[str, ManifestEntry] = {}
        for node_id, raw in data.items():
            if not isinstance(raw, dict):
                raise ManifestError(path, f"entry '{node_id}' is not an object")
            try:
                entry = ManifestEntry.from_dict(raw)
            except ValueError as e:
                raise ManifestError(path, f"entry '{node_id}': {e}") from e
            if not entry.node_id:
                entry = ManifestEntry.from_dict({**raw, "nodeId": node_id})
            entries[node_id] = entry
        return entries

    def load(self, directory: Path, entity_name: str = "") -> Optional[Dict[str, ManifestEntry]]:
        """Like read(), but a malformed manifest is logged and treated as absent."""
        try:
            return self.read(directory)
        except ManifestError as e:
            self._log.warning(
                "Could not read manifest for \"%s\": %s", entity_name or directory, e.reason
            )
            return None

    def remove(self, directory: Path) -> bool:
        """Delete a stale manifest. Returns True if one was removed."""
        path = self.path_for(directory)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            self._log.warning("Could not remove stale manifest %s: %s", path, e)
            return False
        self._log.debug("Removed stale manifest: %s", path)
        return True
