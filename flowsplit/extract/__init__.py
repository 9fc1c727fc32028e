"""
flowsplit/extract - Extraction and restoration of embedded node code.

Usage:
    from flowsplit.extract import Extractor, Restorer

    report = Extractor().extract(nodes, "dashboard", tabs_dir)
    nodes = Restorer().restore(nodes, "dashboard", tabs_dir)
"""

from .classifier import ExtractableFields, NodeKind, classify, extractable_fields
from .extractor import ExtractionReport, Extractor
from .manifest import MANIFEST_FILENAME, ManifestEntry, ManifestStore
from .naming import NameResolver, ResolvedName, entity_basename, sanitize_name
from .reconcile import OrphanReconciler, expected_filenames
from .restorer import RestoreReport, Restorer

__all__ = [
    # Naming
    "NameResolver",
    "ResolvedName",
    "entity_basename",
    "sanitize_name",
    # Classifier
    "NodeKind",
    "ExtractableFields",
    "classify",
    "extractable_fields",
    # Manifest
    "MANIFEST_FILENAME",
    "ManifestEntry",
    "ManifestStore",
    # Engines
    "Extractor",
    "ExtractionReport",
    "Restorer",
    "RestoreReport",
    # Reconciler
    "OrphanReconciler",
    "expected_filenames",
]
