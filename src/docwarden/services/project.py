"""Command-facing operations over one definitions source.

Wraps loading, compilation and the write pipeline into ServiceResults for
the CLI. Definitions are loaded lazily and only once per service.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from docwarden.domain.definitions import DocumentDefinition, DocumentDefinitions
from docwarden.domain.documents import Document
from docwarden.domain.errors import ConfigurationError
from docwarden.infrastructure.loader import DEFAULT_ATTRIBUTE, load_definitions
from docwarden.services.dispatcher import WriteProcessor
from docwarden.services.expiry import Clock
from docwarden.services.host import SimulatedHost, UserContext
from docwarden.services.outcome import Accepted, Denied
from docwarden.services.result import ServiceResult

if TYPE_CHECKING:
    from docwarden.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

NO_DEFINITIONS = "no definitions configured: set [definitions] path in docwarden.toml or pass --definitions"


def _describe_type(name: str, definition: DocumentDefinition) -> dict[str, Any]:
    validators = definition.property_validators
    return {
        "name": name,
        "type_filter": "simple" if definition.uses_simple_type_filter else "custom",
        "properties": sorted(validators) if isinstance(validators, dict) else "dynamic",
        "attachments": bool(definition.allow_attachments),
    }


class DefinitionsService:
    """Check, list and exercise the document types from one source.

    Args:
        source: A ``.py`` file path or dotted module name, or None if unset.
        attribute: Module attribute holding the raw definitions.
        plugins: Loaded plugin manager contributing types and observing writes.
        clock: Source of "now" for relative expiry values.
    """

    def __init__(
        self,
        source: str | Path | None,
        attribute: str = DEFAULT_ATTRIBUTE,
        *,
        plugins: PluginManager | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._source = source
        self._attribute = attribute
        self._plugins = plugins
        self._clock = clock
        self._definitions: DocumentDefinitions | None = None

    @property
    def definitions(self) -> DocumentDefinitions:
        """The compiled definitions (loaded on first access).

        Raises:
            ConfigurationError: when the source is unset, unloadable or invalid.
        """
        if self._definitions is None:
            if self._source is None:
                raise ConfigurationError(NO_DEFINITIONS)
            extra = self._plugins.collect_document_definitions() if self._plugins is not None else []
            self._definitions = load_definitions(self._source, self._attribute, extra=extra)
        return self._definitions

    def check(self) -> ServiceResult:
        """Compile the definitions and report every problem found."""
        try:
            definitions = self.definitions
        except ConfigurationError as exc:
            return ServiceResult.failure("check", "invalid_definitions", str(exc), problems=exc.problems)
        warnings = [] if definitions else ["the definitions source declares no document types"]
        return ServiceResult.success(
            "check",
            {"source": str(self._source), "count": len(definitions), "types": list(definitions)},
            warnings,
        )

    def list_types(self) -> ServiceResult:
        types = [_describe_type(name, definition) for name, definition in self.definitions.items()]
        return ServiceResult.success("types", {"count": len(types), "types": types})

    def write(self, doc: Document, old_doc: Document | None, user: UserContext) -> ServiceResult:
        """Run one write against a simulated host acting as *user*."""
        processor = WriteProcessor(self.definitions, plugins=self._plugins, clock=self._clock)
        host = SimulatedHost(user)
        outcome = processor.process(doc, old_doc, host)
        data = {"outcome": outcome.model_dump(mode="json"), "host": host.summary()}

        if isinstance(outcome, Accepted):
            return ServiceResult.success("write", data)
        if isinstance(outcome, Denied):
            return ServiceResult.failure("write", "denied", outcome.message, data=data)
        return ServiceResult.failure(
            "write", "rejected", outcome.message, data=data, violations=list(outcome.violations)
        )
