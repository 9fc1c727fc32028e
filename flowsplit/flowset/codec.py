"""
codec.py - YAML/JSON codec for entity files and the monolithic flows file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..errors import ConfigError
from ..fsio import atomic_write, read_text


class _BlockDumper(yaml.SafeDumper):
    """SafeDumper that emits multi-line strings as literal blocks."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_BlockDumper.add_representer(str, _represent_str)


class DocumentCodec:
    """Serializes node lists in the configured file format.

    YAML output keeps key order and multi-line strings readable so entity
    files diff cleanly; JSON output is indented like the host's own flows file.
    """

    def __init__(self, file_format: str = "yaml"):
        file_format = file_format.lower()
        if file_format not in ("yaml", "json"):
            raise ConfigError(f"Unsupported file format: {file_format}")
        self.file_format = file_format

    @property
    def extension(self) -> str:
        return ".yaml" if self.file_format == "yaml" else ".json"

    def dumps(self, data: Any) -> str:
        if self.file_format == "yaml":
            return yaml.dump(
                data,
                Dumper=_BlockDumper,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
                width=float("inf"),
            )
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def loads(self, text: str) -> Any:
        if self.file_format == "yaml":
            return yaml.safe_load(text)
        return json.loads(text)

    def read(self, path: Path) -> Any:
        return self.loads(read_text(Path(path)))

    def write(self, path: Path, data: Any) -> None:
        atomic_write(Path(path), self.dumps(data))

    @staticmethod
    def node_list(data: Any) -> List[Dict[str, Any]]:
        """Normalize a parsed document to a list of node records."""
        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]
