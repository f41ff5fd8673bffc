"""Attachment validation.

Two passes share one :class:`AttachmentValidator`:

1. While properties are validated, every ``attachmentReference`` value is
   checked and registered under the attachment name it points to, together
   with the rules its validator declared.
2. After properties, the document's whole ``_attachments`` set is checked
   against the type's ``attachmentConstraints``. A rule declared on the
   owning reference property takes precedence over the document-level rule
   of the same kind.

Content type and size of a referenced attachment are only checked once the
attachment is present; the binary is usually uploaded by a later write.

INVARIANT: one validator per write. The name registry is never shared
between documents.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from docwarden.domain import messages
from docwarden.domain.definitions import (
    AttachmentConstraints,
    DocumentDefinition,
    coerce_model,
    resolve_document_constraint,
)
from docwarden.domain.documents import Document, attachments_of
from docwarden.domain.items import ItemStack, build_item_path
from docwarden.domain.types import ValidatorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceRules:
    """Resolved constraints of one attachment reference property."""

    supported_extensions: Sequence[str] | None = None
    supported_content_types: Sequence[str] | None = None
    maximum_size: int | None = None
    regex_pattern: re.Pattern[str] | None = None


def supported_extensions_pattern(extensions: Sequence[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(extension) for extension in extensions)
    return re.compile(rf"\.({alternatives})$", re.IGNORECASE)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _size_of(attachment: Any) -> int:
    length = attachment.get("length") if isinstance(attachment, dict) else None
    if isinstance(length, (int, float)) and not isinstance(length, bool):
        return int(length)
    return 0


class AttachmentValidator:
    """Per-write attachment checks and reference registry."""

    def __init__(self, doc: Document, old_doc: Document | None) -> None:
        self._doc = doc
        self._old_doc = old_doc
        self._references: dict[str, ReferenceRules] = {}

    @property
    def referenced_names(self) -> list[str]:
        return list(self._references)

    def validate_reference(self, stack: ItemStack, rules: ReferenceRules) -> list[str]:
        """Check the reference value on top of ``stack`` and register it."""
        value = stack[-1].item_value
        path = build_item_path(stack)
        if not isinstance(value, str):
            return [messages.wrong_type(path, ValidatorKind.ATTACHMENT_REFERENCE)]

        self._references[value] = rules
        violations: list[str] = []

        if rules.supported_extensions:
            if not supported_extensions_pattern(rules.supported_extensions).search(value):
                violations.append(messages.reference_extension(path, rules.supported_extensions))

        if rules.regex_pattern is not None and not rules.regex_pattern.search(value):
            violations.append(messages.reference_pattern(path, rules.regex_pattern))

        attachment = attachments_of(self._doc).get(value)
        if attachment:
            content_type = attachment.get("content_type")
            if rules.supported_content_types and content_type not in rules.supported_content_types:
                violations.append(messages.reference_content_type(path, rules.supported_content_types))
            if rules.maximum_size is not None and _size_of(attachment) > rules.maximum_size:
                violations.append(messages.reference_too_large(path, rules.maximum_size))

        return violations

    def validate_attachments(self, definition: DocumentDefinition) -> list[str]:
        """Check the complete attachment set against the type's constraints."""

        def resolve(constraint: Any) -> Any:
            return resolve_document_constraint(constraint, self._doc, self._old_doc)

        constraints = coerce_model(
            AttachmentConstraints, resolve(definition.attachment_constraints), "attachment constraints"
        )
        maximum_count = maximum_individual = maximum_total = None
        extensions = content_types = filename_pattern = None
        require_references = False
        if constraints is not None:
            maximum_count = resolve(constraints.maximum_attachment_count)
            maximum_individual = resolve(constraints.maximum_individual_size)
            maximum_total = resolve(constraints.maximum_total_size)
            extensions = resolve(constraints.supported_extensions)
            content_types = resolve(constraints.supported_content_types)
            filename_pattern = resolve(constraints.filename_regex_pattern)
            require_references = bool(resolve(constraints.require_attachment_references))
        if isinstance(filename_pattern, str):
            filename_pattern = re.compile(filename_pattern)
        extensions_pattern = supported_extensions_pattern(extensions) if extensions else None

        violations: list[str] = []
        total_size = 0
        count = 0
        for name, attachment in attachments_of(self._doc).items():
            count += 1
            size = _size_of(attachment)
            total_size += size
            owner = self._references.get(name)

            if require_references and owner is None:
                violations.append(messages.unreferenced_attachment(name))

            if _is_integer(maximum_individual) and size > maximum_individual:
                if owner is None or not _is_integer(owner.maximum_size):
                    violations.append(messages.attachment_too_large(name, maximum_individual))

            if extensions_pattern is not None and not extensions_pattern.search(name):
                if owner is None or owner.supported_extensions is None:
                    violations.append(messages.attachment_extension(name, extensions))

            if content_types:
                content_type = attachment.get("content_type") if isinstance(attachment, dict) else None
                if content_type not in content_types:
                    if owner is None or owner.supported_content_types is None:
                        violations.append(messages.attachment_content_type(name, content_types))

            if filename_pattern is not None and not filename_pattern.search(name):
                if owner is None or owner.regex_pattern is None:
                    violations.append(messages.attachment_pattern(name, filename_pattern))

        if _is_integer(maximum_total) and total_size > maximum_total:
            violations.append(messages.attachments_total_too_large(maximum_total))

        if _is_integer(maximum_count) and count > maximum_count:
            violations.append(messages.too_many_attachments(maximum_count))

        if count > 0 and not resolve(definition.allow_attachments):
            violations.append(messages.ATTACHMENTS_NOT_SUPPORTED)

        if violations:
            logger.debug("Attachment violations: %d of %d attachments", len(violations), count)
        return violations
