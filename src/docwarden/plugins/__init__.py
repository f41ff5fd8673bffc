"""Extension layer: write lifecycle observers via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from docwarden.plugins.hookspecs import hookimpl
from docwarden.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
