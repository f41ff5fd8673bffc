"""Helpers over raw document mappings.

A document is a plain ``dict`` decoded from JSON. Underscore-prefixed root
properties (``_id``, ``_deleted``, ``_attachments``) are store metadata.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docwarden.domain.types import Operation

Document = Mapping[str, Any]


def is_deleted(doc: Document | None) -> bool:
    return doc is not None and bool(doc.get("_deleted"))


def is_missing_or_deleted(doc: Document | None) -> bool:
    """True for an absent previous revision or a tombstone."""
    return doc is None or is_deleted(doc)


def effective_old_doc(old_doc: Document | None) -> Document | None:
    """The previous revision, or ``None`` if it is absent or a tombstone."""
    return None if is_missing_or_deleted(old_doc) else old_doc


def operation_for(doc: Document, old_doc: Document | None) -> Operation:
    if is_deleted(doc):
        return Operation.REMOVE
    if is_missing_or_deleted(old_doc):
        return Operation.ADD
    return Operation.REPLACE


def document_id(doc: Document) -> str | None:
    value = doc.get("_id")
    return value if isinstance(value, str) else None


def attachments_of(doc: Document) -> Mapping[str, Mapping[str, Any]]:
    """The ``_attachments`` map, or an empty mapping."""
    attachments = doc.get("_attachments")
    return attachments if isinstance(attachments, Mapping) else {}
