"""Document loading utilities.

Migration files may be written as YAML or JSON. Both are read through
``yaml.safe_load`` for YAML suffixes and ``json.loads`` otherwise.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Sequence

import yaml

from .errors import SchemaError

logger = logging.getLogger(__name__)

YAML_SUFFIXES: frozenset[str] = frozenset({".yaml", ".yml"})
DOCUMENT_SUFFIXES: frozenset[str] = YAML_SUFFIXES | {".json"}


def load_document(path: Path) -> Any:
    """Load a YAML or JSON document.

    Returns:
        The parsed document; its root must be a mapping or a list.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    logger.debug("Loading %s", path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read file: {e}", str(path)) from e

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML: {e}", str(path)) from e
    else:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Invalid JSON: {e}", str(path)) from e

    if not isinstance(data, (dict, list)):
        raise SchemaError("Document root must be a mapping or a list", str(path))

    return data


def collect_document_paths(inputs: Sequence[Path]) -> list[Path]:
    """Collect all YAML/JSON files from the given inputs.

    Directories are scanned (non-recursively) and their files sorted by
    name, so migration files named by version load in order.

    Raises:
        FileNotFoundError: If any input path doesn't exist.
    """

    def _iter_paths() -> Iterator[Path]:
        for raw in inputs:
            path = raw.resolve()
            if not path.exists():
                raise FileNotFoundError(f"Path '{raw}' does not exist")
            if path.is_dir():
                yield from sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and p.suffix.lower() in DOCUMENT_SUFFIXES
                )
            else:
                yield path

    # dict preserves order while deduplicating
    seen: dict[Path, None] = {}
    for path in _iter_paths():
        seen.setdefault(path, None)

    return list(seen.keys())

