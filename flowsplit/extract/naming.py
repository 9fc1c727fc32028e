"""
naming.py - Filesystem-safe basenames for extracted artifacts.

Two kinds of names are produced here:

- Node basenames: the stem shared by a node's side files inside its entity's
  extraction directory (``Process_Data.js``, ``Process_Data.info.md``).
- Entity basenames: the stem of a tab or subflow file in the source tree
  (``my-dashboard.yaml``). The extraction directory takes the same name.

Both are pure; nothing in this module touches the filesystem.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Set

UNSAFE_CHARS = re.compile(r'[/\\:*?"<>|]')
WHITESPACE_RUN = re.compile(r"\s+")

DEFAULT_PLACEHOLDER = "unnamed"


@dataclass(frozen=True)
class ResolvedName:
    """A sanitized name and the collision-free basename derived from it."""

    sanitized: str
    file_name: str


def sanitize_name(name: Optional[str], placeholder: str = DEFAULT_PLACEHOLDER) -> str:
    """Make a node label safe to use as a file stem.

    Characters in ``/ \\ : * ? " < > |`` become ``-`` and runs of whitespace
    become ``_``. Absent, non-string or blank labels fall back to ``placeholder``.
    """
    if not isinstance(name, str) or not name.strip():
        name = placeholder
    cleaned = UNSAFE_CHARS.sub("-", name.strip())
    return WHITESPACE_RUN.sub("_", cleaned)


def entity_basename(label: Optional[str], fallback: str = DEFAULT_PLACEHOLDER) -> str:
    """Basename of a tab/subflow file: sanitized, lowercased, spaces as dashes."""
    if not isinstance(label, str) or not label.strip():
        label = fallback
    cleaned = UNSAFE_CHARS.sub("-", label.strip()).lower()
    return WHITESPACE_RUN.sub("-", cleaned)


class NameResolver:
    """Assigns collision-free basenames within a single pass.

    The first occurrence of a sanitized name keeps it as-is; the k-th repeat
    gets an ordinal suffix ``(k+1)``, raised further while that name is already
    taken, so a literal ``Foo(2)`` and a second ``Foo`` never share a file.
    A fresh resolver must be used per pass so repeated passes over the same
    node order give the same names.

    Example:
        resolver = NameResolver()
        resolver.resolve("Foo").file_name   # "Foo"
        resolver.resolve("Foo").file_name   # "Foo(2)"
    """

    def __init__(self) -> None:
        self._seen: Dict[str, int] = {}
        self._issued: Set[str] = set()

    def resolve(
        self, name: Optional[str], placeholder: str = DEFAULT_PLACEHOLDER
    ) -> ResolvedName:
        sanitized = sanitize_name(name, placeholder)
        return ResolvedName(sanitized=sanitized, file_name=self.claim(sanitized))

    def claim(self, stem: str) -> str:
        """Register an already-sanitized stem and return its unique form."""
        count = self._seen.get(stem, 0) + 1
        candidate = stem if count == 1 else f"{stem}({count})"
        while candidate in self._issued:
            count += 1
            candidate = f"{stem}({count})"
        self._seen[stem] = count
        self._issued.add(candidate)
        return candidate

    def reset(self) -> None:
        self._seen.clear()
        self._issued.clear()
