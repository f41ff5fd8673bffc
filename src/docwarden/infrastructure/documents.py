"""Reading document revisions from JSON or YAML files.

YAML timestamps are kept as strings so that date and datetime properties
are validated exactly as written, the same as in JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor
from ruamel.yaml.error import YAMLError

from docwarden.domain.errors import DocumentFileError

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


class _DocumentConstructor(SafeConstructor):
    """Safe constructor that leaves timestamps as plain strings."""


_DocumentConstructor.add_constructor("tag:yaml.org,2002:timestamp", SafeConstructor.construct_yaml_str)


def _new_yaml() -> YAML:
    """A fresh safe YAML parser; ruamel.yaml's YAML object is stateful."""
    y = YAML(typ="safe", pure=True)
    y.Constructor = _DocumentConstructor
    return y


def parse_document(text: str, *, yaml: bool = False) -> dict[str, Any] | None:
    """Parse one document revision.

    Returns ``None`` for an empty or ``null`` document (no previous revision).

    Raises:
        DocumentFileError: on a syntax error or a top level that is not an object.
    """
    if not text.strip():
        return None
    try:
        value = _new_yaml().load(text) if yaml else json.loads(text)
    except (json.JSONDecodeError, YAMLError) as exc:
        raise DocumentFileError(f"malformed document: {exc}") from exc

    if value is None:
        return None
    if not isinstance(value, dict):
        raise DocumentFileError(f"a document must be an object, got {type(value).__name__}")
    return value


def read_document(path: Path) -> dict[str, Any] | None:
    """Read a document revision from *path*; YAML by suffix, JSON otherwise."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentFileError(f"cannot read {path}: {exc.strerror or exc}") from exc
    try:
        return parse_document(text, yaml=path.suffix.lower() in YAML_SUFFIXES)
    except DocumentFileError as exc:
        raise DocumentFileError(f"{path}: {exc}") from exc
