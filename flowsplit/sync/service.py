"""
service.py - SplitterService: keeps the monolith and the entity tree in sync.

Two entry points, both serialized on one lock since they mutate the same
files:

- on_flows_started(event): called on every runtime (re)start.
    * flows present -> split: clean up renamed entities, write the tree,
      extract functions/templates, delete the monolith once the host has
      finished writing it.
    * flows empty   -> rebuild: restore functions/templates into the tree,
      assemble the monolith, ask the host to reload.
- manual_reload(): the rebuild path on demand, reporting success/failure
  to the caller instead of only logging it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from ..config.splitter_config import (
    SplitterConfig,
    load_config,
    resolve_project_path,
    write_config,
)
from ..errors import FlowSetError, SplitterError
from ..extract.extractor import ExtractionReport, Extractor
from ..extract.reconcile import OrphanReconciler
from ..extract.restorer import Restorer
from ..flowset.codec import DocumentCodec
from ..flowset.manager import (
    SUBFLOW_TYPE,
    TAB_TYPE,
    FlowSetManager,
    TreeFlowSetManager,
    expected_entity_basenames,
)
from .host import FlowHost, FlowsStartedEvent

logger = logging.getLogger(__name__)

DEFAULT_MONOLITH_WAIT_TIMEOUT = 5.0

# Errors that affect a single entity file during a category sweep.
ENTITY_ERRORS = (OSError, ValueError, yaml.YAMLError)

# Errors that abort an automatic split/rebuild pass.
PASS_ERRORS = (SplitterError,) + ENTITY_ERRORS


@dataclass
class ReloadResult:
    """Outcome of a manual reload."""

    success: bool
    message: str = ""
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "message": self.message}
        return {"success": False, "error": self.error}


class SplitterService:
    """Orchestrates the flow-set manager and the extraction engines.

    Usage:
        service = SplitterService(host=LocalFlowHost(user_dir))
        service.on_flows_started(FlowsStartedEvent(flows=nodes))
        result = service.manual_reload()
    """

    def __init__(
        self,
        host: FlowHost,
        flow_set_manager: Optional[FlowSetManager] = None,
        extractor: Optional[Extractor] = None,
        restorer: Optional[Restorer] = None,
        reconciler: Optional[OrphanReconciler] = None,
        codec_factory: Callable[[str], DocumentCodec] = DocumentCodec,
        monolith_wait_timeout: float = DEFAULT_MONOLITH_WAIT_TIMEOUT,
        log: Optional[logging.Logger] = None,
    ):
        self.host = host
        self._log = log or logger
        self._reconciler = reconciler or OrphanReconciler(log=self._log)
        self._extractor = extractor or Extractor(reconciler=self._reconciler, log=self._log)
        self._restorer = restorer or Restorer(log=self._log)
        self._manager = flow_set_manager or TreeFlowSetManager(
            codec_factory=codec_factory, log=self._log
        )
        self._codec_factory = codec_factory
        self._monolith_wait_timeout = monolith_wait_timeout
        # Reentrant: a host may emit flows-started from inside reload_flows().
        self._lock = threading.RLock()

    # =========================================================================
    # Context
    # =========================================================================

    def project_path(self) -> Path:
        return resolve_project_path(self.host.user_dir)

    def load(self) -> Tuple[Path, SplitterConfig]:
        project = self.project_path()
        return project, load_config(project, flow_file=self.host.flow_file)

    def _categories(
        self, cfg: SplitterConfig, project: Path
    ) -> List[Tuple[str, Path]]:
        return [
            (TAB_TYPE, cfg.tabs_dir(project)),
            (SUBFLOW_TYPE, cfg.subflows_dir(project)),
        ]

    # =========================================================================
    # Entry Points
    # =========================================================================

    def on_flows_started(self, event: FlowsStartedEvent) -> bool:
        """Handle a flows-started event. Returns False if the pass aborted."""
        self._log.info("Flow restart event")
        with self._lock:
            try:
                if not event.flows:
                    self._log.info("Rebuilding monolithic flows file from source files")
                    self._rebuild()
                else:
                    self._split(event.flows, event.monolith_written)
            except PASS_ERRORS as e:
                self._log.error("Flow sync pass aborted: %s", e)
                return False
        return True

    def manual_reload(self) -> ReloadResult:
        """Restore functions/templates from files and reload the flows."""
        self._log.info("Manual reload triggered")
        with self._lock:
            try:
                self._rebuild()
            except Exception as e:
                self._log.error("Manual reload failed: %s", e)
                return ReloadResult(success=False, error=str(e))

        self._log.info("Manual reload completed successfully")
        return ReloadResult(
            success=True, message="Functions and templates reloaded successfully"
        )

    # =========================================================================
    # Split / Rebuild
    # =========================================================================

    def _split(
        self,
        flows: List[Dict[str, Any]],
        monolith_written: Optional[threading.Event] = None,
    ) -> None:
        project, cfg = self.load()

        self.cleanup_renamed_entities(flows, cfg, project)

        flow_set = self._manager.build_tree_from_monolith(flows)
        updated = self._manager.write_tree_files(flow_set, cfg, project)
        write_config(updated, project)

        self.extract_all(updated, project)
        self._delete_monolith(updated, project, monolith_written)

    def _rebuild(self) -> None:
        project, cfg = self.load()

        self.restore_all(cfg, project)

        flow_set = self._manager.read_tree_files(cfg, project)
        if flow_set is None:
            raise FlowSetError("Cannot build FlowSet from source tree files")

        monolith = self._manager.build_monolith_from_tree(flow_set, cfg)
        self._codec_factory("json").write(cfg.monolith_path(project), monolith)
        write_config(cfg, project)

        self._log.info("Stopping and loading nodes")
        self.host.reload_flows()
        self._log.info("Flows are rebuilt and available")

    def _delete_monolith(
        self,
        cfg: SplitterConfig,
        project: Path,
        monolith_written: Optional[threading.Event],
    ) -> None:
        if monolith_written is not None:
            if not monolith_written.wait(self._monolith_wait_timeout):
                self._log.warning(
                    "Host did not report the flows file as written within %.1fs",
                    self._monolith_wait_timeout,
                )

        path = cfg.monolith_path(project)
        try:
            path.unlink()
        except FileNotFoundError:
            self._log.debug("Flows file already absent: %s", path)
        except OSError as e:
            self._log.warning("Cannot erase file '%s': %s", path.name, e)

    # =========================================================================
    # Category Sweeps
    # =========================================================================

    def cleanup_renamed_entities(
        self, flows: List[Dict[str, Any]], cfg: SplitterConfig, project: Path
    ) -> List[Path]:
        """Remove entity files (and directories) left behind by renames."""
        codec = self._codec_factory(cfg.file_format)
        removed: List[Path] = []
        for entity_type, directory in self._categories(cfg, project):
            expected = expected_entity_basenames(flows, entity_type)
            removed += self._reconciler.remove_renamed_entities(
                expected, directory, entity_type, cfg.entity_extension, codec
            )
        return removed

    def extract_all(self, cfg: SplitterConfig, project: Path) -> List[ExtractionReport]:
        """Extract every tab and subflow, then drop orphaned directories."""
        if not cfg.extract_enabled:
            return []

        self._log.info("Extracting functions and templates...")
        codec = self._codec_factory(cfg.file_format)
        reports: List[ExtractionReport] = []

        for entity_type, directory in self._categories(cfg, project):
            for path, name in self._entity_files(directory, cfg.entity_extension):
                try:
                    nodes = codec.node_list(codec.read(path))
                    reports.append(self._extractor.extract(nodes, name, directory))
                except ENTITY_ERRORS as e:
                    self._log.warning("Error processing %s %s: %s", entity_type, name, e)

            self._reconciler.remove_orphan_directories(directory, cfg.entity_extension)

        return reports

    def restore_all(self, cfg: SplitterConfig, project: Path) -> int:
        """Restore functions/templates into the entity files.

        Returns:
            Number of node fields changed across all entities.
        """
        if not cfg.restore_enabled:
            return 0

        self._log.info("Restoring functions and templates...")
        codec = self._codec_factory(cfg.file_format)
        changed = 0

        for entity_type, directory in self._categories(cfg, project):
            for path, name in self._entity_files(directory, cfg.entity_extension):
                try:
                    nodes = codec.node_list(codec.read(path))
                    report = self._restorer.restore_with_report(nodes, name, directory)
                    if report.changed:
                        codec.write(path, report.nodes)
                        changed += report.changed
                except ENTITY_ERRORS as e:
                    self._log.warning("Error restoring %s %s: %s", entity_type, name, e)

        return changed

    @staticmethod
    def _entity_files(directory: Path, extension: str) -> List[Tuple[Path, str]]:
        if not directory.is_dir():
            return []
        return [
            (path, path.name[: -len(extension)])
            for path in sorted(directory.iterdir())
            if path.is_file() and path.name.endswith(extension)
        ]
