"""Outcome types for a single document write.

INVARIANT: every call to ``WriteProcessor.process`` returns exactly one of
:class:`Accepted`, :class:`Rejected` or :class:`Denied`. Violations and
denials are data; only configuration problems raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from docwarden.domain import messages
from docwarden.domain.types import AssignmentType, Operation

if TYPE_CHECKING:
    from docwarden.domain.definitions import DocumentDefinition


class AuthorizationResult(BaseModel):
    """Principals that applied to the write, per category.

    A category is ``None`` when the definition grants nothing for the
    operation being performed.
    """

    model_config = {"frozen": True}

    channels: list[str] | None = None
    roles: list[str] | None = None
    users: list[str] | None = None


class Authorized(BaseModel):
    model_config = {"frozen": True}

    status: Literal["authorized"] = "authorized"
    doc_type: str
    operation: Operation
    authorization: AuthorizationResult


class AccessAssignment(BaseModel):
    """A grant made to other principals as a side effect of the write."""

    model_config = {"frozen": True}

    type: AssignmentType
    channels: list[str] | None = None
    users_and_roles: list[str] | None = None
    users: list[str] | None = None
    roles: list[str] | None = None


class Accepted(BaseModel):
    model_config = {"frozen": True}

    status: Literal["accepted"] = "accepted"
    doc_type: str | None
    operation: Operation
    authorization: AuthorizationResult | None = None
    access_assignments: list[AccessAssignment] = Field(default_factory=list)
    expiry: datetime | None = None
    channels: list[str] = Field(default_factory=list)


class Rejected(BaseModel):
    model_config = {"frozen": True}

    status: Literal["rejected"] = "rejected"
    doc_type: str | None
    operation: Operation
    violations: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        if self.doc_type is None:
            return "; ".join(self.violations)
        return messages.rejection(self.doc_type, self.violations)


class Denied(BaseModel):
    model_config = {"frozen": True}

    status: Literal["denied"] = "denied"
    doc_type: str | None
    operation: Operation
    message: str


WriteOutcome = Accepted | Rejected | Denied


@dataclass
class CustomActionMetadata:
    """Accumulated state handed to custom actions after each stage.

    Later stages add to the same object, so an action registered for a late
    stage sees everything the earlier stages produced.
    """

    document_type_id: str
    document_definition: DocumentDefinition
    authorization: AuthorizationResult | None = None
    access_assignments: list[AccessAssignment] = field(default_factory=list)
    expiry_date: datetime | None = None
    document_channels: list[str] = field(default_factory=list)
