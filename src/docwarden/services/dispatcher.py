"""Document dispatcher: runs one write through every stage.

Stages, in order: type identification, authorization, validation, access
assignment, expiry, channel assignment. The type's custom action for a stage
runs right after the stage succeeds and sees the metadata gathered so far.

INVARIANT: ``process`` returns exactly one outcome per write. Denials and
violations never raise; configuration problems raise ``ConfigurationError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog

from docwarden.domain import messages
from docwarden.domain.definitions import DocumentDefinition, DocumentDefinitions
from docwarden.domain.documents import (
    Document,
    document_id,
    effective_old_doc,
    is_deleted,
    operation_for,
)
from docwarden.domain.errors import AccessDenied
from docwarden.domain.types import PUBLIC_CHANNEL
from docwarden.services import authorization
from docwarden.services.access import assign_access
from docwarden.services.document import validate_document
from docwarden.services.expiry import Clock, resolve_expiry
from docwarden.services.host import Host
from docwarden.services.outcome import (
    Accepted,
    Authorized,
    CustomActionMetadata,
    Denied,
    Rejected,
    WriteOutcome,
)

if TYPE_CHECKING:
    from docwarden.plugins.manager import PluginManager

logger = logging.getLogger(__name__)
log = structlog.get_logger(__name__)


class WriteProcessor:
    """Validates and authorizes document writes against a definition set.

    Args:
        definitions: The compiled document types, consulted in order.
        plugins: Optional plugin manager notified of every outcome.
        clock: Source of "now" for relative expiry values.
    """

    def __init__(
        self,
        definitions: DocumentDefinitions,
        *,
        plugins: PluginManager | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._definitions = definitions
        self._plugins = plugins
        self._clock = clock

    @property
    def definitions(self) -> DocumentDefinitions:
        return self._definitions

    # --- stages ---

    def identify(self, doc: Document, old_doc: Document | None) -> str | None:
        """Name of the first type whose filter matches, or ``None``."""
        effective_old = effective_old_doc(old_doc)
        for doc_type, definition in self._definitions.items():
            if definition.type_filter(doc, effective_old, doc_type):
                return doc_type
        return None

    def authorize(
        self,
        doc_type: str,
        doc: Document,
        old_doc: Document | None,
        host: Host,
    ) -> Authorized | Denied:
        definition = self._definitions[doc_type]
        operation = operation_for(doc, old_doc)
        outcome: Authorized | Denied
        try:
            result = authorization.authorize(doc, effective_old_doc(old_doc), definition, host)
        except AccessDenied as exc:
            outcome = Denied(doc_type=doc_type, operation=operation, message=exc.forbidden)
        else:
            outcome = Authorized(doc_type=doc_type, operation=operation, authorization=result)

        self._notify(
            "post_authorize",
            doc_type=doc_type,
            doc_id=document_id(doc),
            operation=str(operation),
            authorized=isinstance(outcome, Authorized),
        )
        return outcome

    def validate(self, doc_type: str, doc: Document, old_doc: Document | None) -> list[str]:
        """Every violation of the write; empty when it is valid."""
        return validate_document(doc, effective_old_doc(old_doc), self._definitions[doc_type])

    # --- pipeline ---

    def process(self, doc: Document, old_doc: Document | None, host: Host) -> WriteOutcome:
        """Run the full pipeline for one write.

        Args:
            doc: The proposed revision (``{"_deleted": True, ...}`` for a deletion).
            old_doc: The current revision, if any. Tombstones count as absent.
            host: Enforces requirements and records grants.

        Raises:
            ConfigurationError: when a function-valued constraint resolves to
                an unusable value.
        """
        operation = operation_for(doc, old_doc)
        effective_old = effective_old_doc(old_doc)
        doc_id = document_id(doc)

        doc_type = self.identify(doc, old_doc)
        if doc_type is None:
            return self._process_unknown(doc, doc_id, host)

        log.debug("write_identified", doc_type=doc_type, doc_id=doc_id, operation=str(operation))
        definition = self._definitions[doc_type]
        metadata = CustomActionMetadata(document_type_id=doc_type, document_definition=definition)
        self._run_custom_action(definition, "on_type_identification_succeeded", doc, effective_old, metadata)

        authorized = self.authorize(doc_type, doc, old_doc, host)
        if isinstance(authorized, Denied):
            return self._deny(authorized, doc_id)
        metadata.authorization = authorized.authorization
        self._run_custom_action(definition, "on_authorization_succeeded", doc, effective_old, metadata)

        violations = self.validate(doc_type, doc, old_doc)
        if violations:
            return self._reject(Rejected(doc_type=doc_type, operation=operation, violations=violations), doc_id)
        self._run_custom_action(definition, "on_validation_succeeded", doc, effective_old, metadata)

        deleting = is_deleted(doc)
        if definition.access_assignments is not None and not deleting:
            assignments = assign_access(doc, effective_old, definition.access_assignments, host)
            if assignments:
                metadata.access_assignments = assignments
                self._run_custom_action(
                    definition, "on_access_assignments_succeeded", doc, effective_old, metadata
                )

        if definition.expiry is not None and not deleting:
            metadata.expiry_date = resolve_expiry(doc, effective_old, definition.expiry, host, self._clock)
            self._run_custom_action(definition, "on_expiry_assignment_succeeded", doc, effective_old, metadata)

        channels = authorization.all_document_channels(doc, effective_old, definition)
        host.channel(channels)
        metadata.document_channels = channels
        self._run_custom_action(
            definition, "on_document_channel_assignment_succeeded", doc, effective_old, metadata
        )

        accepted = Accepted(
            doc_type=doc_type,
            operation=operation,
            authorization=metadata.authorization,
            access_assignments=metadata.access_assignments,
            expiry=metadata.expiry_date,
            channels=channels,
        )
        return self._accept(accepted, doc_id)

    # --- helpers ---

    def _process_unknown(self, doc: Document, doc_id: str | None, host: Host) -> WriteOutcome:
        operation = operation_for(doc, None)
        if not is_deleted(doc):
            rejected = Rejected(doc_type=None, operation=operation, violations=[messages.UNKNOWN_DOCUMENT_TYPE])
            return self._reject(rejected, doc_id)

        # Deleting a document of an unknown type is an administrative operation.
        try:
            host.require_access([])
        except AccessDenied as exc:
            return self._deny(Denied(doc_type=None, operation=operation, message=exc.forbidden), doc_id)
        host.channel([PUBLIC_CHANNEL])
        return self._accept(Accepted(doc_type=None, operation=operation, channels=[PUBLIC_CHANNEL]), doc_id)

    @staticmethod
    def _run_custom_action(
        definition: DocumentDefinition,
        action_name: str,
        doc: Document,
        old_doc: Document | None,
        metadata: CustomActionMetadata,
    ) -> None:
        if definition.custom_actions is None:
            return
        action = getattr(definition.custom_actions, action_name)
        if action is not None:
            logger.debug("Running custom action %s for %s", action_name, metadata.document_type_id)
            action(doc, old_doc, metadata)

    def _accept(self, accepted: Accepted, doc_id: str | None) -> Accepted:
        log.info(
            "write_accepted",
            doc_type=accepted.doc_type,
            doc_id=doc_id,
            operation=str(accepted.operation),
            channels=accepted.channels,
        )
        self._notify(
            "post_accept",
            doc_type=accepted.doc_type,
            doc_id=doc_id,
            operation=str(accepted.operation),
            channels=list(accepted.channels),
        )
        return accepted

    def _reject(self, rejected: Rejected, doc_id: str | None) -> Rejected:
        log.info("write_rejected", doc_type=rejected.doc_type, doc_id=doc_id, violations=rejected.violations)
        self._notify(
            "post_reject",
            doc_type=rejected.doc_type,
            doc_id=doc_id,
            violations=list(rejected.violations),
        )
        return rejected

    def _deny(self, denied: Denied, doc_id: str | None) -> Denied:
        log.info("write_denied", doc_type=denied.doc_type, doc_id=doc_id, message=denied.message)
        self._notify("post_deny", doc_type=denied.doc_type, doc_id=doc_id, message=denied.message)
        return denied

    def _notify(self, hook_name: str, **payload: Any) -> None:
        if self._plugins is not None:
            self._plugins.notify(hook_name, **payload)
