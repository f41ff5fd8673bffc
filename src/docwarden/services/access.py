"""Access assignment.

An accepted write may grant other principals access as a side effect:
channel rules give users and roles access to channels, role rules add users
to roles. Role names are always sent to the host with the ``role:`` prefix.
"""

from __future__ import annotations

import logging
from typing import Any

from docwarden.domain import messages
from docwarden.domain.definitions import AccessAssignmentRule, coerce_model, resolve_document_constraint
from docwarden.domain.documents import Document
from docwarden.domain.types import ROLE_PREFIX, AssignmentType
from docwarden.services.host import Host
from docwarden.services.outcome import AccessAssignment

logger = logging.getLogger(__name__)


def _render(item: Any) -> str:
    return item if isinstance(item, str) else messages.format_value(item)


def resolve_principals(entry: Any, doc: Document, old_doc: Document | None, prefix: str = "") -> list[str]:
    """Flatten a rule entry (literal, list or function) into a list of names.

    ``None`` entries and ``None`` list items are skipped.
    """
    value = resolve_document_constraint(entry, doc, old_doc)
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    return [prefix + _render(item) for item in items if item is not None]


def resolve_rules(doc: Document, old_doc: Document | None, constraint: Any) -> list[AccessAssignmentRule]:
    raw = resolve_document_constraint(constraint, doc, old_doc)
    if raw is None:
        return []
    rules = []
    for index, rule in enumerate(raw):
        compiled = coerce_model(AccessAssignmentRule, rule, f"access assignment {index}")
        if compiled is not None:
            rules.append(compiled)
    return rules


def assign_access(
    doc: Document,
    old_doc: Document | None,
    constraint: Any,
    host: Host,
) -> list[AccessAssignment]:
    """Apply every rule through the host and describe what was granted.

    ``old_doc`` is the effective previous revision.

    Raises:
        ConfigurationError: when a function-valued rule list is malformed.
    """
    assignments: list[AccessAssignment] = []
    for rule in resolve_rules(doc, old_doc, constraint):
        roles = resolve_principals(rule.roles, doc, old_doc, ROLE_PREFIX)
        users = resolve_principals(rule.users, doc, old_doc)

        if rule.assignment_type is AssignmentType.ROLE:
            host.role(users, roles)
            assignments.append(AccessAssignment(type=AssignmentType.ROLE, users=users, roles=roles))
            continue

        users_and_roles = users + roles
        channels = resolve_principals(rule.channels, doc, old_doc)
        host.access(users_and_roles, channels)
        assignments.append(
            AccessAssignment(type=AssignmentType.CHANNEL, users_and_roles=users_and_roles, channels=channels)
        )

    logger.debug("Applied %d access assignments", len(assignments))
    return assignments
