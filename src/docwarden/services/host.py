"""Host primitives: the document store's side of a write.

The engine never grants anything itself. It asks the host to enforce
requirements (``require_access``, ``require_role``, ``require_user``) and
to record grants (``channel``, ``access``, ``role``, ``expiry``).
Requirement calls signal refusal by raising
:class:`~docwarden.domain.errors.AccessDenied`.

:class:`SimulatedHost` evaluates requirements against a :class:`UserContext`
and records every grant, which is what the CLI and the tests use.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from docwarden.domain.errors import AccessDenied

MISSING_CHANNEL_ACCESS = "missing channel access"
MISSING_ROLE = "missing role"
WRONG_USER = "wrong user"


@runtime_checkable
class Host(Protocol):
    """What a document store must provide to run a write through the engine."""

    def require_access(self, channels: Sequence[str]) -> None: ...

    def require_role(self, roles: Sequence[str]) -> None: ...

    def require_user(self, users: Sequence[str]) -> None: ...

    def channel(self, channels: Sequence[str]) -> None: ...

    def access(self, users_and_roles: Sequence[str], channels: Sequence[str]) -> None: ...

    def role(self, users: Sequence[str], roles: Sequence[str]) -> None: ...

    def expiry(self, value: int | str) -> None: ...


class UserContext(BaseModel):
    """The principal performing a write.

    An ``admin`` context stands for a request made through the administrative
    interface: it satisfies every requirement, including an empty one.
    """

    model_config = {"frozen": True}

    name: str | None = None
    roles: tuple[str, ...] = ()
    channels: tuple[str, ...] = ()
    admin: bool = False


def _as_list(values: str | Iterable[str]) -> list[str]:
    if isinstance(values, str):
        return [values]
    return list(values)


class SimulatedHost:
    """In-memory host for one write.

    Attributes:
        user: The acting principal.
        channels: Every channel assigned to the document, in call order.
        access_grants: ``(users_and_roles, channels)`` pairs.
        role_grants: ``(users, roles)`` pairs.
        expiry_value: The last expiry directive, if any.
    """

    def __init__(self, user: UserContext | None = None) -> None:
        self.user = user or UserContext()
        self.channels: list[str] = []
        self.access_grants: list[tuple[list[str], list[str]]] = []
        self.role_grants: list[tuple[list[str], list[str]]] = []
        self.expiry_value: int | str | None = None

    # --- requirements ---

    def require_access(self, channels: Sequence[str]) -> None:
        if self.user.admin:
            return
        if not set(_as_list(channels)) & set(self.user.channels):
            raise AccessDenied(MISSING_CHANNEL_ACCESS)

    def require_role(self, roles: Sequence[str]) -> None:
        if self.user.admin:
            return
        if not set(_as_list(roles)) & set(self.user.roles):
            raise AccessDenied(MISSING_ROLE)

    def require_user(self, users: Sequence[str]) -> None:
        if self.user.admin:
            return
        if self.user.name is None or self.user.name not in _as_list(users):
            raise AccessDenied(WRONG_USER)

    # --- grants ---

    def channel(self, channels: Sequence[str]) -> None:
        for name in _as_list(channels):
            if name not in self.channels:
                self.channels.append(name)

    def access(self, users_and_roles: Sequence[str], channels: Sequence[str]) -> None:
        self.access_grants.append((_as_list(users_and_roles), _as_list(channels)))

    def role(self, users: Sequence[str], roles: Sequence[str]) -> None:
        self.role_grants.append((_as_list(users), _as_list(roles)))

    def expiry(self, value: int | str) -> None:
        self.expiry_value = value

    def summary(self) -> dict[str, Any]:
        """Recorded grants as plain data."""
        return {
            "channels": list(self.channels),
            "access": [{"users_and_roles": u, "channels": c} for u, c in self.access_grants],
            "roles": [{"users": u, "roles": r} for u, r in self.role_grants],
            "expiry": self.expiry_value,
        }

