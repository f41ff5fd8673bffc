"""Write authorization.

Each of the three categories (channels, roles, users) yields the principals
that may perform the current operation: the ``write`` grant plus the grant
for the specific operation. The user must match at least one principal of
at least one category that applies.

When exactly one category applies and the user fails it, the host's own
denial propagates unchanged. When several apply and all fail, the write is
refused with ``missing channel access``. When none applies, the host is
asked for an empty channel set, which only an administrator satisfies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from docwarden.domain.definitions import (
    ChannelMap,
    DocumentDefinition,
    PermissionMap,
    coerce_model,
    resolve_document_constraint,
)
from docwarden.domain.documents import Document, is_deleted
from docwarden.domain.errors import AccessDenied
from docwarden.services.host import MISSING_CHANNEL_ACCESS, Host
from docwarden.services.outcome import AuthorizationResult

logger = logging.getLogger(__name__)


def _append_unique(target: list[str], principals: str | Iterable[str] | None) -> None:
    if principals is None:
        return
    if isinstance(principals, str):
        principals = [principals]
    for principal in principals:
        if principal not in target:
            target.append(principal)


def _resolve_map(
    model: type[PermissionMap],
    constraint: Any,
    doc: Document,
    old_doc: Document | None,
    what: str,
) -> PermissionMap | None:
    return coerce_model(model, resolve_document_constraint(constraint, doc, old_doc), what)


def required_principals(doc: Document, old_doc: Document | None, grants: PermissionMap | None) -> list[str] | None:
    """Principals that may perform this write, or ``None`` if no grant applies.

    ``old_doc`` is the effective previous revision.
    """
    if grants is None:
        return None

    required: list[str] = []
    found = False
    if grants.write is not None:
        found = True
        _append_unique(required, grants.write)

    if is_deleted(doc):
        operation_grant = grants.remove
    elif old_doc is not None:
        operation_grant = grants.replace
    else:
        operation_grant = grants.add
    if operation_grant is not None:
        found = True
        _append_unique(required, operation_grant)

    return required if found else None


def all_document_channels(doc: Document, old_doc: Document | None, definition: DocumentDefinition) -> list[str]:
    """Every channel named in the type's channel map, de-duplicated in order."""
    channel_map = _resolve_map(ChannelMap, definition.channels, doc, old_doc, "channels")
    channels: list[str] = []
    if channel_map is not None:
        for grant in (
            channel_map.view,
            channel_map.write,
            channel_map.add,
            channel_map.replace,
            channel_map.remove,
        ):
            _append_unique(channels, grant)
    return channels


def authorize(
    doc: Document,
    old_doc: Document | None,
    definition: DocumentDefinition,
    host: Host,
) -> AuthorizationResult:
    """Check the acting user against the type's grants.

    Raises:
        AccessDenied: when the user matches no applicable grant.
        ConfigurationError: when a function-valued grant map is malformed.
    """
    channels = required_principals(
        doc, old_doc, _resolve_map(ChannelMap, definition.channels, doc, old_doc, "channels")
    )
    roles = required_principals(
        doc, old_doc, _resolve_map(PermissionMap, definition.authorized_roles, doc, old_doc, "authorized roles")
    )
    users = required_principals(
        doc, old_doc, _resolve_map(PermissionMap, definition.authorized_users, doc, old_doc, "authorized users")
    )

    categories: list[tuple[list[str] | None, Callable[[Sequence[str]], None]]] = [
        (channels, host.require_access),
        (roles, host.require_role),
        (users, host.require_user),
    ]
    applicable = [(principals, check) for principals, check in categories if principals is not None]

    if not applicable:
        logger.debug("No grant applies to this operation; deferring to the host")
        host.require_access([])
        return AuthorizationResult()

    for principals, check in applicable:
        try:
            check(principals)
        except AccessDenied:
            if len(applicable) == 1:
                raise
            continue
        return AuthorizationResult(channels=channels, roles=roles, users=users)

    raise AccessDenied(MISSING_CHANNEL_ACCESS)
