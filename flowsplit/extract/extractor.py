"""
extractor.py - Decompose embedded code fields of an entity's nodes into files.

For every extractable node of a tab or subflow, up to four side files are
written into the entity's extraction directory (``<parent>/<entity_name>/``):

    <base>.js / <base>.vue     main body (func, or format for templates)
    <base>.initialize.js       function initializer
    <base>.finalize.js         function finalizer
    <base>.info.md             node documentation

followed by a full rewrite of ``.manifest.json`` and a GC sweep of files no
entry vouches for. A failed file write is recorded and skipped; only failing
to create the directory aborts the entity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ExtractionDirectoryError
from ..fsio import write_text
from .classifier import NodeKind, classify, extractable_fields
from .manifest import ManifestEntry, ManifestStore
from .naming import NameResolver
from .reconcile import OrphanReconciler

logger = logging.getLogger(__name__)


@dataclass
class ExtractionReport:
    """Outcome of extracting one entity."""

    entity_name: str
    directory: Path
    extracted: List[str] = field(default_factory=list)  # node ids, in order
    written: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    manifest_written: bool = False
    aborted: bool = False

    @property
    def count(self) -> int:
        return len(self.extracted)


class Extractor:
    """Writes side files and the manifest for one entity at a time.

    Usage:
        extractor = Extractor()
        report = extractor.extract(nodes, "dashboard", Path("src/tabs"))
    """

    def __init__(
        self,
        manifest_store: Optional[ManifestStore] = None,
        reconciler: Optional[OrphanReconciler] = None,
        log: Optional[logging.Logger] = None,
    ):
        self._log = log or logger
        self._manifests = manifest_store or ManifestStore(log=self._log)
        self._reconciler = reconciler or OrphanReconciler(log=self._log)

    def extract(
        self,
        nodes: List[Dict[str, Any]],
        entity_name: str,
        parent_dir: Path,
    ) -> ExtractionReport:
        """Extract the code fields of ``nodes`` into ``parent_dir/entity_name``.

        Args:
            nodes: The entity's node records, in file order.
            entity_name: Current basename of the entity file.
            parent_dir: Directory holding the entity file.

        Returns:
            ExtractionReport describing what was written and removed.
        """
        directory = Path(parent_dir) / entity_name
        report = ExtractionReport(entity_name=entity_name, directory=directory)

        if not nodes:
            return report

        resolver = NameResolver()
        entries: Dict[str, ManifestEntry] = {}

        for node in nodes:
            if not isinstance(node, dict):
                continue
            kind = classify(node)
            if not kind.extractable:
                continue

            fields = extractable_fields(node, kind)
            if not fields.any():
                continue

            node_id = node.get("id")
            if not node_id:
                msg = f"Skipping {node.get('type')} node \"{node.get('name') or ''}\" without id"
                self._log.warning(msg)
                report.warnings.append(msg)
                continue
            node_id = str(node_id)

            try:
                self._ensure_directory(directory)
            except ExtractionDirectoryError as e:
                self._log.error("Skipping extraction for \"%s\": %s", entity_name, e)
                report.warnings.append(str(e))
                report.aborted = True
                return report

            resolved = resolver.resolve(node.get("name"), kind.placeholder)
            base = resolved.file_name

            has_code = self._write(directory / f"{base}{kind.code_extension}", fields.code, report)
            has_init = self._write(directory / f"{base}.initialize.js", fields.initialize, report)
            has_fin = self._write(directory / f"{base}.finalize.js", fields.finalize, report)
            has_info = self._write(directory / f"{base}.info.md", fields.info, report)

            entries[node_id] = ManifestEntry(
                node_id=node_id,
                name=node.get("name") or kind.placeholder,
                sanitized_name=resolved.sanitized,
                file_name=base,
                is_markup=kind is NodeKind.MARKUP,
                is_script=kind is NodeKind.SCRIPT,
                has_code=has_code,
                has_initialize=has_init,
                has_finalize=has_fin,
                has_info=has_info,
            )
            report.extracted.append(node_id)

        if entries:
            try:
                self._manifests.write(directory, entries)
                report.manifest_written = True
            except OSError as e:
                msg = f"Could not write manifest for \"{entity_name}\": {e}"
                self._log.warning(msg)
                report.warnings.append(msg)
                return report
            self._log.info(
                "Extracted %d functions/templates for \"%s\"", report.count, entity_name
            )
        else:
            self._manifests.remove(directory)

        report.removed = self._reconciler.collect_unreferenced_files(directory, entries)

        if not entries:
            self._remove_if_empty(directory)

        return report

    def _ensure_directory(self, directory: Path) -> None:
        if directory.is_dir():
            return
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionDirectoryError(directory, str(e)) from e

    def _write(self, path: Path, content: Optional[str], report: ExtractionReport) -> bool:
        """Write one side file; returns whether it now holds ``content``."""
        if content is None:
            return False
        try:
            write_text(path, content)
        except OSError as e:
            msg = f"Could not write {path.name}: {e}"
            self._log.warning(msg)
            report.warnings.append(msg)
            return False
        report.written.append(path)
        return True

    def _remove_if_empty(self, directory: Path) -> None:
        if not directory.is_dir():
            return
        try:
            next(directory.iterdir())
        except StopIteration:
            try:
                directory.rmdir()
                self._log.debug("Removed empty extraction directory: %s", directory)
            except OSError as e:
                self._log.warning("Could not remove directory %s: %s", directory, e)
