"""
fsio.py - Small filesystem helpers shared by the extraction engine, the
manifest store and the structured-document codec.

All text is UTF-8. On write, CRLF is collapsed to LF and text-mode newline
translation then emits the host convention; on read, universal newlines turn
it back into LF.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def normalize_eol(content: str) -> str:
    """Collapse CRLF and lone CR line endings to LF."""
    return content.replace("\r\n", "\n").replace("\r", "\n")


def write_text(path: Path, content: str) -> None:
    """Write text with host line endings."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(normalize_eol(content))


def read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def atomic_write(path: Path, content: str) -> None:
    """Atomically write content to a file.

    Uses write-to-temp-then-rename so readers never see a partial file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        suffix=".tmp",
        prefix=path.stem + "_",
        dir=path.parent,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(normalize_eol(content))
        os.replace(tmp_path, path)
        logger.debug("Atomic write complete: %s", path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def remove_tree(path: Path) -> None:
    """Recursively delete a directory."""
    shutil.rmtree(path)
