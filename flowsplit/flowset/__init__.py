"""
flowsplit/flowset - Monolith <-> entity tree decomposition.
"""

from .codec import DocumentCodec
from .manager import (
    FlowSet,
    FlowSetManager,
    TreeFlowSetManager,
    entity_label,
    expected_entity_basenames,
)

__all__ = [
    "DocumentCodec",
    "FlowSet",
    "FlowSetManager",
    "TreeFlowSetManager",
    "entity_label",
    "expected_entity_basenames",
]
