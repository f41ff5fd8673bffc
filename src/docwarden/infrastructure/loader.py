"""Loading document definitions from Python modules.

A definitions source is either a path to a ``.py`` file or a dotted module
name. The module exposes the raw definition set under an attribute
(``definitions`` by default): a mapping of type names to definitions, or a
zero-argument function returning one.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from docwarden.domain.definitions import DocumentDefinitions, compile_definitions
from docwarden.domain.errors import ConfigurationError

DEFAULT_ATTRIBUTE = "definitions"

logger = logging.getLogger(__name__)


def _is_file_source(source: str | Path) -> bool:
    return isinstance(source, Path) or str(source).endswith(".py") or "/" in str(source)


def _import_file(path: Path) -> ModuleType:
    if not path.is_file():
        raise ConfigurationError(f"definitions file not found: {path}")
    module_name = f"docwarden_definitions_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"cannot load definitions from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise ConfigurationError(f"failed to import {path}: {exc}") from exc
    return module


def import_definitions_module(source: str | Path) -> ModuleType:
    """Import the module named or located by *source*.

    Raises:
        ConfigurationError: when the module cannot be found or fails to import.
    """
    if _is_file_source(source):
        return _import_file(Path(source).expanduser().resolve())
    try:
        return importlib.import_module(str(source))
    except Exception as exc:
        raise ConfigurationError(f"failed to import {source}: {exc}") from exc


def load_raw_definitions(source: str | Path, attribute: str = DEFAULT_ATTRIBUTE) -> Any:
    module = import_definitions_module(source)
    try:
        return getattr(module, attribute)
    except AttributeError:
        raise ConfigurationError(f"{source} does not define {attribute!r}") from None


def load_definitions(
    source: str | Path,
    attribute: str = DEFAULT_ATTRIBUTE,
    *,
    extra: Iterable[Mapping[str, Any]] = (),
) -> DocumentDefinitions:
    """Load and compile a definition set, then append any extra sets.

    Types from *source* win over extra types of the same name; extra sets
    typically come from plugins.

    Raises:
        ConfigurationError: when any set fails to load or compile.
    """
    definitions = compile_definitions(load_raw_definitions(source, attribute))
    for raw in extra:
        contributed = compile_definitions(raw)
        shadowed = sorted(set(contributed) & set(definitions))
        if shadowed:
            logger.warning("Ignoring contributed document types already defined: %s", ", ".join(shadowed))
        definitions = definitions.merged(contributed)
    logger.debug("Loaded %d document types from %s", len(definitions), source)
    return definitions
