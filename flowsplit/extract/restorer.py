"""
restorer.py - Fold extracted side files back into node records.

The manifest is the identity map: each entry names the node id and the file
stem its files were written under, so a node renamed since extraction still
resolves to its old files. Restoration never writes the manifest and never
creates directories.

Missing pieces are tolerated quietly:
- no manifest (or a malformed one) -> nodes returned unchanged
- manifest entry for a node that no longer exists -> warning, skipped
- flagged file deleted from disk -> skipped, field left as it was
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..fsio import normalize_eol, read_text
from .manifest import ManifestEntry, ManifestStore

logger = logging.getLogger(__name__)


@dataclass
class RestoreReport:
    """Outcome of restoring one entity."""

    nodes: List[Dict[str, Any]]
    changed: int = 0
    missing_nodes: int = 0
    manifest_found: bool = False


class Restorer:
    """Reads side files into node fields using the entity's manifest."""

    def __init__(
        self,
        manifest_store: Optional[ManifestStore] = None,
        log: Optional[logging.Logger] = None,
    ):
        self._log = log or logger
        self._manifests = manifest_store or ManifestStore(log=self._log)

    def restore(
        self,
        nodes: List[Dict[str, Any]],
        entity_name: str,
        parent_dir: Path,
    ) -> List[Dict[str, Any]]:
        """Restore embedded fields in place and return the same list."""
        return self.restore_with_report(nodes, entity_name, parent_dir).nodes

    def restore_with_report(
        self,
        nodes: List[Dict[str, Any]],
        entity_name: str,
        parent_dir: Path,
    ) -> RestoreReport:
        report = RestoreReport(nodes=nodes)
        if not nodes:
            return report

        directory = Path(parent_dir) / entity_name
        manifest = self._manifests.load(directory, entity_name)
        if manifest is None:
            return report
        report.manifest_found = True

        by_id = {
            node.get("id"): node
            for node in nodes
            if isinstance(node, dict) and node.get("id") is not None
        }

        for node_id, entry in manifest.items():
            node = by_id.get(node_id)
            if node is None:
                self._log.warning(
                    "Node %s not found in flow \"%s\"", node_id, entity_name
                )
                report.missing_nodes += 1
                continue
            report.changed += self._apply(node, entry, directory)

        if report.changed:
            self._log.info(
                "Collected %d functions/templates for \"%s\"", report.changed, entity_name
            )
        return report

    def _apply(self, node: Dict[str, Any], entry: ManifestEntry, directory: Path) -> int:
        """Assign file contents to ``node``; returns the number of fields changed."""
        changed = 0

        if entry.has_code:
            content = self._read(directory / entry.code_file)
            if content is not None:
                if entry.is_markup:
                    # func mirrors format on templates
                    if not _same_text(node.get("format"), content):
                        node["format"] = content
                        node["func"] = content
                        changed += 1
                elif entry.is_script:
                    changed += _assign(node, "func", content)

        if entry.has_initialize:
            changed += _assign(node, "initialize", self._read(directory / entry.initialize_file))
        if entry.has_finalize:
            changed += _assign(node, "finalize", self._read(directory / entry.finalize_file))
        if entry.has_info:
            changed += _assign(node, "info", self._read(directory / entry.info_file))

        return changed

    def _read(self, path: Path) -> Optional[str]:
        if not path.is_file():
            return None
        try:
            return read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            self._log.warning("Could not read %s: %s", path, e)
            return None


def _same_text(current: Any, content: str) -> bool:
    """Equal up to line endings; side files never hold CR."""
    return isinstance(current, str) and normalize_eol(current) == content


def _assign(node: Dict[str, Any], key: str, content: Optional[str]) -> int:
    if content is None or _same_text(node.get(key), content):
        return 0
    node[key] = content
    return 1
