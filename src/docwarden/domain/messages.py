"""Violation message wording.

Every user-visible violation string is produced here so that the engine,
the attachment checks and the document-level checks share one vocabulary.
Values embedded in messages are rendered the way document authors write
them in JSON: ``true``/``false``/``null``, integral floats without a
trailing ``.0``, and regular expressions as ``/pattern/flags``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Any

from docwarden.domain.types import ValidatorKind

TYPE_DESCRIPTIONS: dict[ValidatorKind, str] = {
    ValidatorKind.ARRAY: "an array",
    ValidatorKind.ATTACHMENT_REFERENCE: "an attachment reference string",
    ValidatorKind.BOOLEAN: "a boolean",
    ValidatorKind.DATE: (
        "an ECMAScript simplified ISO 8601 date string with no time or time zone components"
    ),
    ValidatorKind.DATETIME: (
        "an ECMAScript simplified ISO 8601 date string with optional time and time zone components"
    ),
    ValidatorKind.ENUM: "an integer or a string",
    ValidatorKind.FLOAT: "a floating point or integer number",
    ValidatorKind.HASHTABLE: "an object/hashtable",
    ValidatorKind.INTEGER: "an integer",
    ValidatorKind.OBJECT: "an object",
    ValidatorKind.STRING: "a string",
    ValidatorKind.TIME: (
        "an ECMAScript simplified ISO 8601 time string with no date or time zone components"
    ),
    ValidatorKind.TIMEZONE: "an ECMAScript simplified ISO 8601 time zone string",
    ValidatorKind.UUID: "a UUID string",
}

UNKNOWN_DOCUMENT_TYPE = "Unknown document type"
ATTACHMENTS_NOT_SUPPORTED = "document type does not support attachments"
CANNOT_REPLACE_OR_DELETE = "documents of this type cannot be replaced or deleted"
CANNOT_DELETE = "documents of this type cannot be deleted"
CANNOT_REPLACE = "documents of this type cannot be replaced"


# ---------------------------------------------------------------------------
# Value rendering
# ---------------------------------------------------------------------------


def _normalize(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, datetime):
        return _isoformat(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def _isoformat(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def to_json(value: Any) -> str:
    """Compact JSON rendering of a constraint value."""
    return json.dumps(_normalize(value), separators=(",", ":"), ensure_ascii=False)


def format_value(value: Any) -> str:
    """Plain rendering of a scalar constraint value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return _isoformat(value)
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(v) for v in value)
    return str(value)


def format_regex(pattern: re.Pattern[str] | str) -> str:
    """Render a compiled pattern in ``/source/flags`` notation."""
    if isinstance(pattern, str):
        return f"/{pattern}/"
    flags = ""
    if pattern.flags & re.IGNORECASE:
        flags += "i"
    if pattern.flags & re.MULTILINE:
        flags += "m"
    return f"/{pattern.pattern}/{flags}"


def join_values(values: Iterable[Any]) -> str:
    return ",".join(format_value(v) for v in values)


# ---------------------------------------------------------------------------
# Item violations
# ---------------------------------------------------------------------------


def required(path: str) -> str:
    return f'item "{path}" must not be null or missing'


def must_not_be_missing(path: str) -> str:
    return f'item "{path}" must not be missing'


def must_not_be_null(path: str) -> str:
    return f'item "{path}" must not be null'


def wrong_type(path: str, kind: ValidatorKind) -> str:
    return f'item "{path}" must be {TYPE_DESCRIPTIONS[kind]}'


def not_predefined(path: str, predefined: Iterable[Any]) -> str:
    return f'item "{path}" must be one of the predefined values: {join_values(predefined)}'


def no_predefined_values(path: str) -> str:
    return f'item "{path}" belongs to an enum that has no predefined values'


def out_of_range(path: str, description: str, bound: Any) -> str:
    return f'item "{path}" must not be {description} {format_value(bound)}'


def too_short(path: str, minimum: int) -> str:
    return f'length of item "{path}" must not be less than {format_value(minimum)}'


def too_long(path: str, maximum: int) -> str:
    return f'length of item "{path}" must not be greater than {format_value(maximum)}'


def empty(path: str) -> str:
    return f'item "{path}" must not be empty'


def bad_format(path: str, pattern: re.Pattern[str] | str) -> str:
    return f'item "{path}" must conform to expected format {format_regex(pattern)}'


def untrimmed(path: str) -> str:
    return f'item "{path}" must not have any leading or trailing whitespace'


def not_equal_ignore_case(path: str, expected: str) -> str:
    return f'value of item "{path}" must equal (case insensitive) "{expected}"'


def not_equal(path: str, expected: Any) -> str:
    return f'value of item "{path}" must equal {to_json(expected)}'


def modified(path: str) -> str:
    return f'item "{path}" cannot be modified'


def unsupported_property(path: str) -> str:
    return f'property "{path}" is not supported'


# ---------------------------------------------------------------------------
# Hashtable violations
# ---------------------------------------------------------------------------


def empty_hashtable_key(path: str) -> str:
    return f'hashtable "{path}" must not have an empty key'


def hashtable_key_not_string(key_path: str) -> str:
    return f'hashtable key "{key_path}" is not a string'


def hashtable_key_format(key_path: str, pattern: re.Pattern[str] | str) -> str:
    return f'hashtable key "{key_path}" must conform to expected format {format_regex(pattern)}'


def hashtable_too_large(path: str, maximum: int) -> str:
    return f'hashtable "{path}" must not be larger than {format_value(maximum)} elements'


def hashtable_too_small(path: str, minimum: int) -> str:
    return f'hashtable "{path}" must not be smaller than {format_value(minimum)} elements'


# ---------------------------------------------------------------------------
# Attachment violations
# ---------------------------------------------------------------------------


def reference_extension(path: str, extensions: Iterable[str]) -> str:
    return (
        f'attachment reference "{path}" must have a supported file extension '
        f"({join_values(extensions)})"
    )


def reference_content_type(path: str, content_types: Iterable[str]) -> str:
    return (
        f'attachment reference "{path}" must have a supported content type '
        f"({join_values(content_types)})"
    )


def reference_pattern(path: str, pattern: re.Pattern[str] | str) -> str:
    return f'attachment reference "{path}" must conform to expected pattern {format_regex(pattern)}'


def reference_too_large(path: str, maximum: int) -> str:
    return f'attachment reference "{path}" must not be larger than {format_value(maximum)} bytes'


def unreferenced_attachment(name: str) -> str:
    return f"attachment {name} must have a corresponding attachment reference property"


def attachment_too_large(name: str, maximum: int) -> str:
    return f"attachment {name} must not exceed {format_value(maximum)} bytes"


def attachment_extension(name: str, extensions: Iterable[str]) -> str:
    return f'attachment "{name}" must have a supported file extension ({join_values(extensions)})'


def attachment_content_type(name: str, content_types: Iterable[str]) -> str:
    return (
        f'attachment "{name}" must have a supported content type ({join_values(content_types)})'
    )


def attachment_pattern(name: str, pattern: re.Pattern[str] | str) -> str:
    return f'attachment "{name}" must conform to expected pattern {format_regex(pattern)}'


def attachments_total_too_large(maximum: int) -> str:
    return (
        "documents of this type must not have a combined attachment size greater than "
        f"{format_value(maximum)} bytes"
    )


def too_many_attachments(maximum: int) -> str:
    return f"documents of this type must not have more than {format_value(maximum)} attachments"


# ---------------------------------------------------------------------------
# Document violations
# ---------------------------------------------------------------------------


def document_id_pattern(pattern: re.Pattern[str] | str) -> str:
    return f"document ID must conform to expected pattern {format_regex(pattern)}"


def rejection(doc_type: str, violations: Iterable[str]) -> str:
    """The single message that surfaces every violation of one write."""
    return f"Invalid {doc_type} document: " + "; ".join(violations)
