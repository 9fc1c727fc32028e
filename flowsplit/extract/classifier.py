"""
classifier.py - Decide which node records carry extractable code.

    type          markup in `format`   script fields   -> kind
    ui-template   yes                  -               -> MARKUP
    function      no                   yes             -> SCRIPT
    anything else                                      -> NONE

Markup wins: a node whose `format` looks like markup is never SCRIPT, even if
script fields are also populated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

FUNCTION_TYPE = "function"
TEMPLATE_TYPE = "ui-template"

MARKUP_MARKERS = ("<template>", "<script>")
SCRIPT_FIELDS = ("func", "initialize", "finalize")


class NodeKind(str, Enum):
    """Extraction policy for a node."""

    MARKUP = "markup"
    SCRIPT = "script"
    NONE = "none"

    @property
    def extractable(self) -> bool:
        return self is not NodeKind.NONE

    @property
    def code_extension(self) -> str:
        """Extension of the main body file for this kind."""
        return ".vue" if self is NodeKind.MARKUP else ".js"

    @property
    def placeholder(self) -> str:
        """Stem used when the node has no usable name."""
        if self is NodeKind.MARKUP:
            return "unnamed-template"
        return "unnamed-function"


@dataclass(frozen=True)
class ExtractableFields:
    """Non-empty extractable field values of a node (None when empty)."""

    code: Optional[str] = None
    initialize: Optional[str] = None
    finalize: Optional[str] = None
    info: Optional[str] = None

    def any(self) -> bool:
        return any(
            value is not None
            for value in (self.code, self.initialize, self.finalize, self.info)
        )


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def looks_like_markup(value: Any) -> bool:
    """True when a `format` value contains a Vue-style section marker."""
    if not isinstance(value, str) or not value.strip():
        return False
    return any(marker in value for marker in MARKUP_MARKERS)


def classify(node: Dict[str, Any]) -> NodeKind:
    node_type = node.get("type")
    if node_type == TEMPLATE_TYPE:
        if looks_like_markup(node.get("format")):
            return NodeKind.MARKUP
        return NodeKind.NONE
    if node_type == FUNCTION_TYPE:
        if looks_like_markup(node.get("format")):
            return NodeKind.NONE
        if any(_non_empty(node.get(f)) for f in SCRIPT_FIELDS):
            return NodeKind.SCRIPT
    return NodeKind.NONE


def extractable_fields(node: Dict[str, Any], kind: NodeKind) -> ExtractableFields:
    """Collect the values a node of the given kind would write to disk.

    Raw values are returned untrimmed so the side files keep the original
    content byte for byte; only the emptiness test trims.
    """
    if kind is NodeKind.MARKUP:
        return ExtractableFields(
            code=_non_empty(node.get("format")),
            info=_non_empty(node.get("info")),
        )
    if kind is NodeKind.SCRIPT:
        return ExtractableFields(
            code=_non_empty(node.get("func")),
            initialize=_non_empty(node.get("initialize")),
            finalize=_non_empty(node.get("finalize")),
            info=_non_empty(node.get("info")),
        )
    return ExtractableFields()
