"""Classification enums.

These enums name the property validator kinds, the three write operations,
and the two kinds of access assignment rule.
"""

from __future__ import annotations

from enum import StrEnum


class ValidatorKind(StrEnum):
    """Property validator kinds (the ``type`` discriminator)."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    TIMEZONE = "timezone"
    UUID = "uuid"
    ENUM = "enum"
    ATTACHMENT_REFERENCE = "attachmentReference"
    ARRAY = "array"
    OBJECT = "object"
    HASHTABLE = "hashtable"
    CONDITIONAL = "conditional"
    ANY = "any"


class Operation(StrEnum):
    """Write operation categories used to select permission grants."""

    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


class AssignmentType(StrEnum):
    """Access assignment rule types."""

    CHANNEL = "channel"
    ROLE = "role"


ROLE_PREFIX = "role:"
PUBLIC_CHANNEL = "!"
