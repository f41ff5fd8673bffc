"""Whole-document validation.

Document-level constraints run first (immutability, deletion and
replacement bans, the document ID pattern); property and attachment
validation follow unless the write is a deletion.
"""

from __future__ import annotations

import re

from docwarden.domain import messages
from docwarden.domain.definitions import DocumentDefinition, resolve_document_constraint
from docwarden.domain.documents import Document, document_id, is_deleted
from docwarden.services.properties import validate_properties


def validate_document_constraints(
    doc: Document,
    old_doc: Document | None,
    definition: DocumentDefinition,
) -> list[str]:
    """Constraints on the document as a whole.

    ``old_doc`` is the effective previous revision: replacement and deletion
    bans only apply when it exists, and the ID pattern only applies when it
    does not.
    """
    violations: list[str] = []
    deleting = is_deleted(doc)

    if old_doc is not None:
        if resolve_document_constraint(definition.immutable, doc, old_doc):
            violations.append(messages.CANNOT_REPLACE_OR_DELETE)
        elif deleting:
            if resolve_document_constraint(definition.cannot_delete, doc, old_doc):
                violations.append(messages.CANNOT_DELETE)
        elif resolve_document_constraint(definition.cannot_replace, doc, old_doc):
            violations.append(messages.CANNOT_REPLACE)

    if not deleting and old_doc is None:
        pattern = resolve_document_constraint(definition.document_id_regex_pattern, doc, old_doc)
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        if pattern is not None:
            doc_id = document_id(doc)
            if doc_id is None or not pattern.search(doc_id):
                violations.append(messages.document_id_pattern(pattern))

    return violations


def validate_document(
    doc: Document,
    old_doc: Document | None,
    definition: DocumentDefinition,
) -> list[str]:
    """Every violation of one write, in discovery order."""
    violations = validate_document_constraints(doc, old_doc, definition)
    if not is_deleted(doc):
        violations.extend(validate_properties(doc, old_doc, definition))
    return violations
