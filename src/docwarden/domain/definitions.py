"""Document type definitions and their compilation.

A raw definition set is a mapping of type name to definition mapping (or a
zero-argument function returning one). :func:`compile_definitions` turns it
into an immutable :class:`DocumentDefinitions`, reporting every malformed
definition at once through :class:`~docwarden.domain.errors.ConfigurationError`.

Document-level constraints may be literals or functions of
``(doc, old_doc)``, where ``old_doc`` is the effective previous revision.

INVARIANT: a compiled definition set is shared read-only by every write it
validates.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from datetime import date, datetime
from typing import Annotated, Any, Literal, TypeVar

from pydantic import (
    BaseModel,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from docwarden.domain import iso8601
from docwarden.domain.documents import Document
from docwarden.domain.errors import ConfigurationError
from docwarden.domain.types import AssignmentType
from docwarden.domain.validators import (
    DEFINITION_MODEL_CONFIG,
    BoolConstraint,
    Dynamic,
    PatternConstraint,
    PropertyValidator,
    StringListConstraint,
    describe_validation_errors,
)

NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]
Principals = NonEmptyStr | list[NonEmptyStr]
AssignmentEntry = NonEmptyStr | Annotated[list[NonEmptyStr | None], Field(min_length=1)] | Dynamic

MAXIMUM_ATTACHMENT_SIZE = 20_971_520


def resolve_document_constraint(constraint: Any, doc: Document, old_doc: Document | None) -> Any:
    """Call a function-valued document constraint, or return a literal as is."""
    if callable(constraint):
        return constraint(doc, old_doc)
    return constraint


ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_model(model: type[ModelT], value: Any, what: str) -> ModelT | None:
    """Compile the result of a function-valued constraint into ``model``.

    Raises:
        ConfigurationError: when the value does not fit the model.
    """
    if value is None or isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid {what}", describe_validation_errors(exc)) from exc


def simple_type_filter(doc: Document, old_doc: Document | None, doc_type: str) -> bool:
    """Match documents whose ``type`` property names the candidate type.

    A replacement must keep the previous revision's type; a deletion is
    identified by the previous revision alone.
    """
    if old_doc:
        if doc.get("_deleted"):
            return old_doc.get("type") == doc_type
        return doc.get("type") == old_doc.get("type") and old_doc.get("type") == doc_type
    return doc.get("type") == doc_type


# --- permissions ---


class PermissionMap(BaseModel):
    """Principals granted each write operation."""

    model_config = DEFINITION_MODEL_CONFIG

    write: Principals | None = None
    add: Principals | None = None
    replace: Principals | None = None
    remove: Principals | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> PermissionMap:
        if not self.model_fields_set:
            raise ValueError("at least one operation must be declared")
        return self


class ChannelMap(PermissionMap):
    """Channel grants; ``view`` only contributes to the document's channels."""

    view: Principals | None = None


# --- access assignments ---


class AccessAssignmentRule(BaseModel):
    """Grants other principals channel access or role membership."""

    model_config = DEFINITION_MODEL_CONFIG

    type: Literal["channel", "role"] | None = None
    users: AssignmentEntry | None = None
    roles: AssignmentEntry | None = None
    channels: AssignmentEntry | None = None

    @property
    def assignment_type(self) -> AssignmentType:
        return AssignmentType(self.type or AssignmentType.CHANNEL)

    @model_validator(mode="after")
    def _check_shape(self) -> AccessAssignmentRule:
        if self.assignment_type is AssignmentType.ROLE:
            if self.users is None or self.roles is None:
                raise ValueError("role assignments require both users and roles")
            if self.channels is not None:
                raise ValueError("role assignments do not accept channels")
        else:
            if self.channels is None:
                raise ValueError("channel assignments require channels")
            if self.users is None and self.roles is None:
                raise ValueError("channel assignments require users or roles")
        return self


# --- attachments ---


class AttachmentConstraints(BaseModel):
    """Limits on the complete attachment set of one document."""

    model_config = DEFINITION_MODEL_CONFIG

    require_attachment_references: BoolConstraint = None
    maximum_attachment_count: Annotated[StrictInt, Field(ge=1)] | Dynamic | None = None
    maximum_individual_size: (
        Annotated[StrictInt, Field(ge=1, le=MAXIMUM_ATTACHMENT_SIZE)] | Dynamic | None
    ) = None
    maximum_total_size: Annotated[StrictInt, Field(ge=1)] | Dynamic | None = None
    supported_extensions: StringListConstraint = None
    supported_content_types: StringListConstraint = None
    filename_regex_pattern: PatternConstraint = None

    @model_validator(mode="after")
    def _check_sizes(self) -> AttachmentConstraints:
        if not self.model_fields_set:
            raise ValueError("at least one attachment constraint must be declared")
        individual, total = self.maximum_individual_size, self.maximum_total_size
        if isinstance(individual, int) and isinstance(total, int) and total < individual:
            raise ValueError("maximumTotalSize must not be less than maximumIndividualSize")
        return self


# --- custom actions ---


class CustomActions(BaseModel):
    """Lifecycle callbacks, each called with ``(doc, old_doc, metadata)``."""

    model_config = DEFINITION_MODEL_CONFIG

    on_type_identification_succeeded: Dynamic | None = None
    on_authorization_succeeded: Dynamic | None = None
    on_validation_succeeded: Dynamic | None = None
    on_access_assignments_succeeded: Dynamic | None = None
    on_expiry_assignment_succeeded: Dynamic | None = None
    on_document_channel_assignment_succeeded: Dynamic | None = None


# --- document definition ---


class DocumentDefinition(BaseModel):
    """One document type: identification, permissions, shape and side effects."""

    model_config = DEFINITION_MODEL_CONFIG

    type_filter: Callable[[Document, Document | None, str], bool]
    property_validators: dict[str, PropertyValidator | None] | Dynamic
    channels: ChannelMap | Dynamic | None = None
    authorized_roles: PermissionMap | Dynamic | None = None
    authorized_users: PermissionMap | Dynamic | None = None
    access_assignments: list[AccessAssignmentRule] | Dynamic | None = None
    allow_unknown_properties: BoolConstraint = None
    immutable: BoolConstraint = None
    cannot_replace: BoolConstraint = None
    cannot_delete: BoolConstraint = None
    allow_attachments: BoolConstraint = None
    attachment_constraints: AttachmentConstraints | Dynamic | None = None
    document_id_regex_pattern: PatternConstraint = None
    expiry: StrictInt | StrictFloat | StrictStr | datetime | date | Dynamic | None = None
    custom_actions: CustomActions | None = None

    @property
    def uses_simple_type_filter(self) -> bool:
        return self.type_filter is simple_type_filter

    @field_validator("property_validators", mode="after")
    @classmethod
    def _no_internal_properties(cls, value: Any) -> Any:
        if isinstance(value, dict):
            internal = sorted(name for name in value if name.startswith("_"))
            if internal:
                raise ValueError(
                    "top-level property names must not start with an underscore: " + ", ".join(internal)
                )
        return value

    @field_validator("expiry", mode="after")
    @classmethod
    def _check_expiry(cls, value: Any) -> Any:
        if isinstance(value, str) and not iso8601.is_iso8601_datetime_string(value):
            raise ValueError(f"{value!r} is not an ISO 8601 date or datetime")
        if isinstance(value, (int, float)) and value < 0:
            raise ValueError("expiry must not be negative")
        return value

    @model_validator(mode="after")
    def _check_definition(self) -> DocumentDefinition:
        problems: list[str] = []
        if self.channels is None and self.authorized_roles is None and self.authorized_users is None:
            problems.append("at least one of channels, authorizedRoles or authorizedUsers is required")
        if self.immutable is not None and (self.cannot_replace is not None or self.cannot_delete is not None):
            problems.append("immutable cannot be combined with cannotReplace or cannotDelete")
        if self.attachment_constraints is not None and (
            self.allow_attachments is None or self.allow_attachments is False
        ):
            problems.append("attachmentConstraints requires allowAttachments")
        if problems:
            raise ValueError("; ".join(problems))
        return self


# --- compiled set ---


class DocumentDefinitions(Mapping[str, DocumentDefinition]):
    """Immutable, ordered mapping of document type name to definition.

    Iteration follows declaration order, which is also the order in which
    type filters are consulted.
    """

    def __init__(self, definitions: Mapping[str, DocumentDefinition]) -> None:
        self._definitions = dict(definitions)

    def __getitem__(self, doc_type: str) -> DocumentDefinition:
        return self._definitions[doc_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"DocumentDefinitions({list(self._definitions)!r})"

    def merged(self, other: DocumentDefinitions) -> DocumentDefinitions:
        """A new set with ``other``'s types appended; existing names win."""
        combined = dict(self._definitions)
        for name, definition in other.items():
            combined.setdefault(name, definition)
        return DocumentDefinitions(combined)


RawDefinitions = Mapping[str, Any] | Callable[[], Mapping[str, Any]]


def compile_definitions(raw: RawDefinitions) -> DocumentDefinitions:
    """Validate and compile a raw definition set.

    Raises:
        ConfigurationError: listing every problem in every type, each
            prefixed with the type name.
    """
    if callable(raw) and not isinstance(raw, Mapping):
        raw = raw()
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            "invalid document definitions",
            [f"expected a mapping of type names to definitions, got {type(raw).__name__}"],
        )

    compiled: dict[str, DocumentDefinition] = {}
    problems: list[str] = []
    for name, raw_definition in raw.items():
        if not isinstance(name, str) or not name:
            problems.append(f"{name!r}: document type names must be non-empty strings")
            continue
        try:
            compiled[name] = DocumentDefinition.model_validate(raw_definition)
        except ValidationError as exc:
            problems.extend(f"{name}: {problem}" for problem in describe_validation_errors(exc))

    if problems:
        raise ConfigurationError("invalid document definitions", problems)
    return DocumentDefinitions(compiled)
