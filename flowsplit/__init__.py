"""
flowsplit: Keep a monolithic flows file in sync with an editable source tree.

The monolithic flows document (tabs, subflows, config nodes) is decomposed
into one file per tab and subflow, and the code embedded in function and
ui-template nodes is extracted into its own ``.js`` / ``.vue`` / ``.md``
files next to them. On the way back, edited files are folded into the node
records before the monolith is rebuilt.

Quick Start:
    from flowsplit import FlowsStartedEvent, LocalFlowHost, SplitterService

    service = SplitterService(host=LocalFlowHost(user_dir))
    service.on_flows_started(FlowsStartedEvent(flows=nodes))   # split
    service.on_flows_started(FlowsStartedEvent())              # rebuild
    result = service.manual_reload()

Engines only:
    from flowsplit.extract import Extractor, Restorer

    Extractor().extract(nodes, "dashboard", tabs_dir)
    Restorer().restore(nodes, "dashboard", tabs_dir)
"""

__version__ = "0.1.0"

from .config import SplitterConfig, load_config, resolve_project_path, write_config
from .errors import (
    ConfigError,
    ExtractionDirectoryError,
    FlowSetError,
    ManifestError,
    SplitterError,
)
from .extract import (
    ExtractionReport,
    Extractor,
    ManifestEntry,
    ManifestStore,
    NameResolver,
    NodeKind,
    OrphanReconciler,
    RestoreReport,
    Restorer,
    classify,
    sanitize_name,
)
from .flowset import DocumentCodec, FlowSet, FlowSetManager, TreeFlowSetManager
from .sync import (
    FlowHost,
    FlowsStartedEvent,
    LocalFlowHost,
    ReloadResult,
    SplitterService,
)

__all__ = [
    # Version
    "__version__",
    # Config
    "SplitterConfig",
    "load_config",
    "resolve_project_path",
    "write_config",
    # Errors
    "SplitterError",
    "ConfigError",
    "ManifestError",
    "ExtractionDirectoryError",
    "FlowSetError",
    # Extraction
    "Extractor",
    "ExtractionReport",
    "Restorer",
    "RestoreReport",
    "ManifestEntry",
    "ManifestStore",
    "NameResolver",
    "NodeKind",
    "OrphanReconciler",
    "classify",
    "sanitize_name",
    # Flow set
    "DocumentCodec",
    "FlowSet",
    "FlowSetManager",
    "TreeFlowSetManager",
    # Sync
    "FlowHost",
    "FlowsStartedEvent",
    "LocalFlowHost",
    "ReloadResult",
    "SplitterService",
]
