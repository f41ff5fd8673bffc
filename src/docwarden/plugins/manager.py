"""Plugin discovery, loading and hook dispatch.

Plugins come from two places:

- the ``docwarden.plugins`` entry point group (pip-installed packages), and
- single ``.py`` files in a project's local plugin directory
  (``[plugins] local_dir``); files starting with ``_`` are ignored.

In both cases a plugin is a class with at least one ``@hookimpl`` method;
classes are instantiated with no arguments before registration.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

import pluggy

from docwarden.plugins.hookspecs import DocwardenHookSpec

PROJECT_NAME = "docwarden"
ENTRY_POINT_GROUP = "docwarden.plugins"
LOCAL_MODULE_PREFIX = "docwarden_local_plugin_"

logger = logging.getLogger(__name__)


def is_plugin_class(obj: object) -> bool:
    """Whether *obj* is a class with a method marked by ``@hookimpl``."""
    if not inspect.isclass(obj):
        return False
    marker = f"{PROJECT_NAME}_impl"
    return any(
        not name.startswith("_") and getattr(member, marker, None)
        for name, member in inspect.getmembers(obj, callable)
    )


def _import_local_file(py_file: Path) -> ModuleType | None:
    module_name = LOCAL_MODULE_PREFIX + py_file.stem
    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        logger.warning("Could not create module spec for %s", py_file)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
        return None
    return module


def _plugin_classes(module: ModuleType) -> Iterator[type]:
    """Plugin classes defined (not merely imported) in *module*."""
    for _name, obj in inspect.getmembers(module, is_plugin_class):
        if obj.__module__ == module.__name__:
            yield obj


class PluginManager:
    """Loads plugins and dispatches write lifecycle hooks to them."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(DocwardenHookSpec)
        self._loaded = False

    # --- registration ---

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry point plugins and, if given, the plugins in *local_dir*.

        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None and local_dir.is_dir():
            for py_file in sorted(local_dir.glob("*.py")):
                if not py_file.name.startswith("_"):
                    self._load_local_file(py_file)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance; the class name is the default plugin name."""
        plugin_name = name or type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        logger.debug("Registered plugin: %s", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._name_of(plugin) for plugin in self._pm.get_plugins()]

    # --- dispatch ---

    def notify(self, hook_name: str, **payload: Any) -> None:
        """Call a lifecycle hook. Failures are logged and never propagate."""
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            logger.warning("Unknown hook: %s", hook_name)
            return
        try:
            caller(**payload)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)

    def collect_document_definitions(self) -> list[Mapping[str, Any]]:
        """Raw definition sets contributed by plugins, in registration order.

        Each plugin is asked separately so that one broken contribution does
        not hide the others.
        """
        collected: list[Mapping[str, Any]] = []
        for plugin in self._pm.get_plugins():
            contribute = getattr(plugin, "register_document_definitions", None)
            if contribute is None:
                continue
            plugin_name = self._name_of(plugin)
            try:
                definitions = contribute()
            except Exception:
                logger.warning(
                    "Failed to collect document definitions from plugin %s", plugin_name, exc_info=True
                )
                continue
            if definitions is None:
                continue
            if isinstance(definitions, Mapping):
                collected.append(definitions)
            else:
                logger.warning("Plugin %s returned non-mapping document definitions", plugin_name)
        return collected

    # --- loading helpers ---

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or type(plugin).__name__

    def _load_local_file(self, py_file: Path) -> None:
        module = _import_local_file(py_file)
        if module is None:
            return
        for plugin_class in _plugin_classes(module):
            try:
                instance = plugin_class()
            except Exception:
                logger.warning(
                    "Failed to instantiate plugin class %s from %s",
                    plugin_class.__name__,
                    py_file,
                    exc_info=True,
                )
                continue
            self.register_plugin(instance, name=f"{module.__name__}.{plugin_class.__name__}")

    def _instantiate_entry_point_classes(self) -> None:
        """Entry points may name a class; swap each one for an instance."""
        for plugin in list(self._pm.get_plugins()):
            if not is_plugin_class(plugin):
                continue
            plugin_name = self._name_of(plugin)
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate entry-point plugin %s", plugin_name, exc_info=True)
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
