"""
manager.py - Decompose the monolithic flows document into a file tree and back.

Tree layout under ``<project>/<destinationFolder>/``:

    tabs/<tab-basename>.<ext>          tab node followed by its member nodes
    tabs/<tab-basename>/               extraction directory (see flowsplit.extract)
    subflows/<subflow-basename>.<ext>  subflow node followed by its member nodes
    subflows/<subflow-basename>/
    config-nodes.<ext>                 every node not owned by a tab or subflow

The splitter only talks to this module through the FlowSetManager protocol,
so a host may substitute its own implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

import yaml

from ..config.splitter_config import SplitterConfig
from ..errors import FlowSetError
from ..extract.naming import NameResolver, entity_basename
from .codec import DocumentCodec

logger = logging.getLogger(__name__)

TAB_TYPE = "tab"
SUBFLOW_TYPE = "subflow"

NodeList = List[Dict[str, Any]]


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class FlowSet:
    """The flow graph grouped by owning entity.

    ``tabs`` and ``subflows`` map entity id to the entity's node list, whose
    first element is the tab/subflow node itself. Insertion order is monolith
    order.
    """

    tabs: Dict[str, NodeList] = field(default_factory=dict)
    subflows: Dict[str, NodeList] = field(default_factory=dict)
    config_nodes: NodeList = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.tabs or self.subflows or self.config_nodes)


class FlowSetManager(Protocol):
    """Collaborator that owns the entity tree on disk."""

    def build_tree_from_monolith(self, nodes: NodeList) -> FlowSet: ...

    def build_monolith_from_tree(self, flow_set: FlowSet, config: SplitterConfig) -> NodeList: ...

    def write_tree_files(
        self, flow_set: FlowSet, config: SplitterConfig, project_path: Path
    ) -> SplitterConfig: ...

    def read_tree_files(self, config: SplitterConfig, project_path: Path) -> Optional[FlowSet]: ...


# =============================================================================
# Entity naming
# =============================================================================


def entity_label(node: Dict[str, Any]) -> str:
    """Human label of a tab (``label``) or subflow (``name``), falling back to its id."""
    if node.get("type") == TAB_TYPE:
        label = node.get("label")
    else:
        label = node.get("name")
    if isinstance(label, str) and label.strip():
        return label
    return str(node.get("id", ""))


def expected_entity_basenames(nodes: NodeList, entity_type: str) -> Dict[str, str]:
    """Map entity id -> file basename for every ``entity_type`` node, in order.

    Duplicate labels get ordinal suffixes exactly as the tree writer assigns
    them, so the renamed-entity cleanup and the writer always agree.
    """
    resolver = NameResolver()
    basenames: Dict[str, str] = {}
    for node in nodes:
        if not isinstance(node, dict) or node.get("type") != entity_type or not node.get("id"):
            continue
        basenames[node["id"]] = resolver.claim(entity_basename(entity_label(node)))
    return basenames


# =============================================================================
# TreeFlowSetManager
# =============================================================================


class TreeFlowSetManager:
    """Default FlowSetManager writing one file per tab and subflow."""

    def __init__(
        self,
        codec_factory: Callable[[str], DocumentCodec] = DocumentCodec,
        log: Optional[logging.Logger] = None,
    ):
        self._codec_factory = codec_factory
        self._log = log or logger

    def build_tree_from_monolith(self, nodes: NodeList) -> FlowSet:
        flow_set = FlowSet()
        for node in nodes:
            if not isinstance(node, dict):
                continue
            if node.get("type") == TAB_TYPE and node.get("id"):
                flow_set.tabs[node["id"]] = [node]
            elif node.get("type") == SUBFLOW_TYPE and node.get("id"):
                flow_set.subflows[node["id"]] = [node]

        for node in nodes:
            if not isinstance(node, dict) or node.get("type") in (TAB_TYPE, SUBFLOW_TYPE):
                continue
            owner = node.get("z")
            if owner in flow_set.tabs:
                flow_set.tabs[owner].append(node)
            elif owner in flow_set.subflows:
                flow_set.subflows[owner].append(node)
            else:
                flow_set.config_nodes.append(node)

        return flow_set

    def build_monolith_from_tree(self, flow_set: FlowSet, config: SplitterConfig) -> NodeList:
        ordered_ids = [tab_id for tab_id in config.tabs_order if tab_id in flow_set.tabs]
        ordered_ids += [tab_id for tab_id in flow_set.tabs if tab_id not in ordered_ids]

        monolith: NodeList = []
        for tab_id in ordered_ids:
            monolith.extend(flow_set.tabs[tab_id])
        for nodes in flow_set.subflows.values():
            monolith.extend(nodes)
        monolith.extend(flow_set.config_nodes)
        return monolith

    def write_tree_files(
        self, flow_set: FlowSet, config: SplitterConfig, project_path: Path
    ) -> SplitterConfig:
        """Write the tree and return a config whose tabsOrder matches it.

        Entity files of the configured format that were not written this pass
        belong to deleted entities and are removed; their extraction
        directories are left for the orphan reconciler.
        """
        codec = self._codec_factory(config.file_format)

        self._write_category(
            flow_set.tabs, TAB_TYPE, config.tabs_dir(project_path), codec
        )
        self._write_category(
            flow_set.subflows, SUBFLOW_TYPE, config.subflows_dir(project_path), codec
        )

        config_nodes_path = config.config_nodes_path(project_path)
        if flow_set.config_nodes:
            codec.write(config_nodes_path, flow_set.config_nodes)
        elif config_nodes_path.exists():
            config_nodes_path.unlink()

        return config.copy(tabs_order=list(flow_set.tabs.keys()))

    def _write_category(
        self,
        entities: Dict[str, NodeList],
        entity_type: str,
        directory: Path,
        codec: DocumentCodec,
    ) -> None:
        heads = [nodes[0] for nodes in entities.values() if nodes]
        basenames = expected_entity_basenames(heads, entity_type)

        written = set()
        for entity_id, nodes in entities.items():
            basename = basenames.get(entity_id)
            if basename is None:
                continue
            path = directory / f"{basename}{codec.extension}"
            codec.write(path, nodes)
            written.add(path.name)

        if not directory.is_dir():
            return
        for path in sorted(directory.glob(f"*{codec.extension}")):
            if path.is_file() and path.name not in written:
                self._log.info("Removing %s file of deleted entity: %s", entity_type, path.name)
                try:
                    path.unlink()
                except OSError as e:
                    self._log.warning("Could not remove %s: %s", path, e)

    def read_tree_files(self, config: SplitterConfig, project_path: Path) -> Optional[FlowSet]:
        """Load the tree. Returns None when there is nothing to build from.

        Raises:
            FlowSetError: If an entity or config-nodes file cannot be parsed.
        """
        source_dir = config.source_dir(project_path)
        if not source_dir.is_dir():
            self._log.debug("Source tree not found: %s", source_dir)
            return None

        codec = self._codec_factory(config.file_format)
        flow_set = FlowSet()
        self._read_category(flow_set.tabs, TAB_TYPE, config.tabs_dir(project_path), codec)
        self._read_category(
            flow_set.subflows, SUBFLOW_TYPE, config.subflows_dir(project_path), codec
        )

        config_nodes_path = config.config_nodes_path(project_path)
        if config_nodes_path.is_file():
            flow_set.config_nodes = _read_nodes(codec, config_nodes_path)

        if flow_set.is_empty():
            return None
        return flow_set

    def _read_category(
        self,
        target: Dict[str, NodeList],
        entity_type: str,
        directory: Path,
        codec: DocumentCodec,
    ) -> None:
        if not directory.is_dir():
            return
        for path in sorted(directory.glob(f"*{codec.extension}")):
            if not path.is_file():
                continue
            nodes = _read_nodes(codec, path)
            head = next(
                (n for n in nodes if isinstance(n, dict) and n.get("type") == entity_type),
                None,
            )
            if head is None or not head.get("id"):
                self._log.warning("No %s node found in %s, skipping", entity_type, path.name)
                continue
            target[head["id"]] = nodes


def _read_nodes(codec: DocumentCodec, path: Path) -> NodeList:
    try:
        return codec.node_list(codec.read(path))
    except (ValueError, yaml.YAMLError) as e:
        raise FlowSetError(f"Cannot parse {path.name}: {e}") from e
