"""
reconcile.py - Garbage collection of orphaned extraction artifacts.

Three independent duties, all idempotent and safe to run on every pass:

- Within-directory file GC: after a manifest write, delete side files in the
  extraction directory that no manifest entry vouches for.
- Orphan directories: after a category sweep (tabs/, subflows/), delete
  extraction directories that no longer have a sibling entity file.
- Renamed entities: before splitting, delete entity files (and their
  extraction directories) whose entity id now maps to a different basename.

Matching is exact: a file survives only if its name is in the set built from
the manifest entries. ``Foo.js`` never protects ``Foo2.js``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set

import yaml

from ..fsio import remove_tree
from .manifest import MANIFEST_FILENAME, ManifestEntry

if TYPE_CHECKING:
    from ..flowset.codec import DocumentCodec

logger = logging.getLogger(__name__)

RECOGNIZED_EXTENSIONS = (".vue", ".js", ".md")


def expected_filenames(entries: Iterable[ManifestEntry]) -> Set[str]:
    """Every side-file name the given entries account for."""
    names: Set[str] = set()
    for entry in entries:
        names.update(entry.expected_files())
    return names


class OrphanReconciler:
    """Removes files and directories that no longer belong to a live node or entity."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    # -------------------------------------------------------------------------
    # Within-directory file GC
    # -------------------------------------------------------------------------

    def collect_unreferenced_files(
        self,
        directory: Path,
        entries: Dict[str, ManifestEntry],
    ) -> List[Path]:
        """Delete recognized side files not referenced by ``entries``.

        Args:
            directory: The entity's extraction directory.
            entries: The manifest entries just written (may be empty).

        Returns:
            Paths that were removed.
        """
        directory = Path(directory)
        if not directory.is_dir():
            return []

        keep = expected_filenames(entries.values())
        removed: List[Path] = []

        for path in sorted(directory.iterdir()):
            if path.name == MANIFEST_FILENAME or not path.is_file():
                continue
            if not path.name.endswith(RECOGNIZED_EXTENSIONS):
                continue
            if path.name in keep:
                continue
            try:
                path.unlink()
            except OSError as e:
                self._log.warning("Could not remove file %s: %s", path.name, e)
                continue
            removed.append(path)
            self._log.info("Removed unused file: %s", path.name)

        return removed

    # -------------------------------------------------------------------------
    # Cross-entity orphan directories
    # -------------------------------------------------------------------------

    def remove_orphan_directories(self, category_dir: Path, extension: str) -> List[Path]:
        """Delete subdirectories with no matching ``<name><extension>`` entity file."""
        category_dir = Path(category_dir)
        if not category_dir.is_dir():
            return []

        entity_names = {
            p.name[: -len(extension)]
            for p in category_dir.iterdir()
            if p.is_file() and p.name.endswith(extension)
        }

        removed: List[Path] = []
        for subdir in sorted(p for p in category_dir.iterdir() if p.is_dir()):
            if subdir.name in entity_names:
                continue
            try:
                remove_tree(subdir)
            except OSError as e:
                self._log.warning(
                    "Could not remove orphaned directory %s: %s", subdir.name, e
                )
                continue
            removed.append(subdir)
            self._log.info("Removed orphaned directory: %s", subdir.name)

        return removed

    # -------------------------------------------------------------------------
    # Renamed entities
    # -------------------------------------------------------------------------

    def remove_renamed_entities(
        self,
        expected_basenames: Dict[str, str],
        category_dir: Path,
        entity_type: str,
        extension: str,
        codec: "DocumentCodec",
    ) -> List[Path]:
        """Delete entity files whose id now lives under a different basename.

        Args:
            expected_basenames: Entity id -> basename it would get right now.
            category_dir: Directory holding the entity files (tabs/ or subflows/).
            entity_type: "tab" or "subflow"; selects the entity node in each file.
            extension: Entity file extension including the dot.
            codec: DocumentCodec used to parse the entity files.

        Returns:
            Entity file paths that were removed.
        """
        category_dir = Path(category_dir)
        if not category_dir.is_dir():
            return []

        removed: List[Path] = []
        for path in sorted(category_dir.iterdir()):
            if not path.is_file() or not path.name.endswith(extension):
                continue
            basename = path.name[: -len(extension)]

            try:
                nodes = codec.node_list(codec.read(path))
            except (OSError, ValueError, yaml.YAMLError) as e:
                self._log.warning("Error checking %s file %s: %s", entity_type, path.name, e)
                continue

            entity = next(
                (n for n in nodes if isinstance(n, dict) and n.get("type") == entity_type),
                None,
            )
            if not entity or not entity.get("id"):
                continue

            expected = expected_basenames.get(entity["id"])
            if not expected or expected == basename:
                continue

            self._log.info(
                "Removing old %s file \"%s\" (renamed to \"%s%s\")",
                entity_type,
                path.name,
                expected,
                extension,
            )
            try:
                path.unlink()
            except OSError as e:
                self._log.warning("Could not remove %s file %s: %s", entity_type, path.name, e)
                continue
            removed.append(path)

            old_dir = category_dir / basename
            if old_dir.is_dir():
                try:
                    remove_tree(old_dir)
                    self._log.info("Removed old %s directory \"%s\"", entity_type, basename)
                except OSError as e:
                    self._log.warning(
                        "Could not remove old %s directory %s: %s", entity_type, basename, e
                    )

        return removed
