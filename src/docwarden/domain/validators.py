"""Property validator models: one frozen pydantic model per validator kind.

The ``type`` field discriminates a tagged union (:data:`PropertyValidator`),
so a constraint that does not belong to a kind (``regexPattern`` on an
``integer``, ``predefinedValues`` on a ``string``) is rejected when the
definition is compiled rather than silently ignored while documents are
validated.

Field names are snake_case in Python and camelCase in definition sources;
both spellings are accepted on input.

Almost every constraint may be given either as a literal or as a function.
Item-level functions are called with ``(doc, old_doc, value, old_value)``;
``customValidation`` and conditional ``condition`` functions receive
``(doc, old_doc, item_entry, parent_stack)`` instead. ``type`` itself is
always static.

INVARIANT: models are frozen. The engine never mutates a compiled tree; a
conditional candidate that inherits constraints from its conditional is a
copy (``model_copy``), never an edit.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from docwarden.domain import iso8601
from docwarden.domain.errors import ConfigurationError

Dynamic = Callable[..., Any]

BoolConstraint = StrictBool | Dynamic | None
CountConstraint = Annotated[StrictInt, Field(ge=0)] | Dynamic | None
PatternConstraint = re.Pattern[str] | Dynamic | None
StringListConstraint = Annotated[list[StrictStr], Field(min_length=1)] | Dynamic | None

DEFINITION_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
    arbitrary_types_allowed=True,
)

# Constraint families whose members are mutually exclusive.
PRESENCE_FAMILY = ("required", "must_not_be_missing", "must_not_be_null")
EQUALITY_FAMILY = ("must_equal", "must_equal_strict", "must_equal_ignore_case")
IMMUTABILITY_FAMILY = (
    "immutable",
    "immutable_strict",
    "immutable_when_set",
    "immutable_when_set_strict",
)
SKIP_FAMILY = (
    "skip_validation_when_value_unchanged",
    "skip_validation_when_value_unchanged_strict",
)
MINIMUM_FAMILY = ("minimum_value", "minimum_value_exclusive")
MAXIMUM_FAMILY = ("maximum_value", "maximum_value_exclusive")

# Universal constraints a conditional passes on to its selected candidate.
INHERITED_FAMILIES = (
    PRESENCE_FAMILY,
    ("must_equal", "must_equal_strict"),
    IMMUTABILITY_FAMILY,
    SKIP_FAMILY,
    ("custom_validation",),
)


def _is_static(value: Any) -> bool:
    return value is not None and not callable(value)


def _camel(names: Iterable[str]) -> str:
    return ", ".join(to_camel(name) for name in names)


# ---------------------------------------------------------------------------
# Base and shared constraint groups
# ---------------------------------------------------------------------------


class _ValidatorBase(BaseModel):
    """Constraints shared by every kind."""

    model_config = DEFINITION_MODEL_CONFIG

    required: BoolConstraint = None
    must_not_be_missing: BoolConstraint = None
    must_not_be_null: BoolConstraint = None
    immutable: BoolConstraint = None
    immutable_strict: BoolConstraint = None
    immutable_when_set: BoolConstraint = None
    immutable_when_set_strict: BoolConstraint = None
    skip_validation_when_value_unchanged: BoolConstraint = None
    skip_validation_when_value_unchanged_strict: BoolConstraint = None
    must_equal: Any = None
    must_equal_strict: Any = None
    custom_validation: Dynamic | None = None

    @property
    def has_must_equal(self) -> bool:
        """``mustEqual`` was declared (possibly as ``None``, meaning "must be null")."""
        return "must_equal" in self.model_fields_set

    @property
    def has_must_equal_strict(self) -> bool:
        return "must_equal_strict" in self.model_fields_set

    @model_validator(mode="after")
    def _check_exclusive_families(self) -> _ValidatorBase:
        declared = self.model_fields_set
        problems: list[str] = []
        for family in (
            PRESENCE_FAMILY,
            EQUALITY_FAMILY,
            IMMUTABILITY_FAMILY,
            SKIP_FAMILY,
            MINIMUM_FAMILY,
            MAXIMUM_FAMILY,
        ):
            present = [name for name in family if name in declared]
            if len(present) > 1:
                problems.append(f"only one of {_camel(present)} may be declared")

        ranged = [name for name in MINIMUM_FAMILY + MAXIMUM_FAMILY if getattr(self, name, None) is not None]
        equal = [name for name in EQUALITY_FAMILY if name in declared]
        if ranged and equal:
            problems.append(f"{_camel(ranged)} cannot be combined with {_camel(equal)}")

        problems.extend(self._static_bound_problems())
        if problems:
            raise ValueError("; ".join(problems))
        return self

    def _static_bound_problems(self) -> list[str]:
        problems: list[str] = []
        for low_name, high_name in (
            ("minimum_length", "maximum_length"),
            ("minimum_size", "maximum_size"),
        ):
            low = getattr(self, low_name, None)
            high = getattr(self, high_name, None)
            if _is_static(low) and _is_static(high) and high < low:
                problems.append(f"{to_camel(high_name)} must not be less than {to_camel(low_name)}")
        return problems


class _RangedValidator(_ValidatorBase):
    minimum_value: Any = None
    minimum_value_exclusive: Any = None
    maximum_value: Any = None
    maximum_value_exclusive: Any = None


class _NumericValidator(_RangedValidator):
    def _static_bound_problems(self) -> list[str]:
        problems = super()._static_bound_problems()
        low_inclusive, low_exclusive = self.minimum_value, self.minimum_value_exclusive
        high_inclusive, high_exclusive = self.maximum_value, self.maximum_value_exclusive

        if _is_static(low_inclusive) and _is_static(high_inclusive) and high_inclusive < low_inclusive:
            problems.append("maximumValue must not be less than minimumValue")
        for low in (low_inclusive, low_exclusive):
            if _is_static(low) and _is_static(high_exclusive) and high_exclusive <= low:
                problems.append("maximumValueExclusive must be greater than the minimum")
        if _is_static(low_exclusive) and _is_static(high_inclusive) and high_inclusive <= low_exclusive:
            problems.append("maximumValue must be greater than minimumValueExclusive")
        return problems


# ---------------------------------------------------------------------------
# Scalar kinds
# ---------------------------------------------------------------------------


class StringValidator(_RangedValidator):
    type: Literal["string"]
    minimum_value: StrictStr | Dynamic | None = None
    minimum_value_exclusive: StrictStr | Dynamic | None = None
    maximum_value: StrictStr | Dynamic | None = None
    maximum_value_exclusive: StrictStr | Dynamic | None = None
    must_not_be_empty: BoolConstraint = None
    must_be_trimmed: BoolConstraint = None
    regex_pattern: PatternConstraint = None
    minimum_length: CountConstraint = None
    maximum_length: CountConstraint = None
    must_equal_ignore_case: StrictStr | Dynamic | None = None


class IntegerValidator(_NumericValidator):
    type: Literal["integer"]
    minimum_value: StrictInt | Dynamic | None = None
    minimum_value_exclusive: StrictInt | Dynamic | None = None
    maximum_value: StrictInt | Dynamic | None = None
    maximum_value_exclusive: StrictInt | Dynamic | None = None


class FloatValidator(_NumericValidator):
    type: Literal["float"]
    minimum_value: StrictInt | StrictFloat | Dynamic | None = None
    minimum_value_exclusive: StrictInt | StrictFloat | Dynamic | None = None
    maximum_value: StrictInt | StrictFloat | Dynamic | None = None
    maximum_value_exclusive: StrictInt | StrictFloat | Dynamic | None = None


class BooleanValidator(_ValidatorBase):
    type: Literal["boolean"]


class _TemporalValidator(_RangedValidator):
    """Range bounds must be structurally valid for the kind."""

    bound_format: ClassVar[Callable[[object], bool]] = staticmethod(iso8601.is_iso8601_datetime_string)

    @field_validator(
        "minimum_value",
        "minimum_value_exclusive",
        "maximum_value",
        "maximum_value_exclusive",
        mode="after",
        check_fields=False,
    )
    @classmethod
    def _check_bound_format(cls, value: Any) -> Any:
        if isinstance(value, str) and not cls.bound_format(value):
            raise ValueError(f"{value!r} is not a valid range bound for this type")
        return value


class DatetimeValidator(_TemporalValidator):
    type: Literal["datetime"]
    minimum_value: StrictStr | datetime | date | Dynamic | None = None
    minimum_value_exclusive: StrictStr | datetime | date | Dynamic | None = None
    maximum_value: StrictStr | datetime | date | Dynamic | None = None
    maximum_value_exclusive: StrictStr | datetime | date | Dynamic | None = None


class DateValidator(_TemporalValidator):
    type: Literal["date"]
    minimum_value: StrictStr | datetime | date | Dynamic | None = None
    minimum_value_exclusive: StrictStr | datetime | date | Dynamic | None = None
    maximum_value: StrictStr | datetime | date | Dynamic | None = None
    maximum_value_exclusive: StrictStr | datetime | date | Dynamic | None = None

    bound_format = staticmethod(iso8601.is_iso8601_date_string)


class TimeValidator(_TemporalValidator):
    type: Literal["time"]
    minimum_value: StrictStr | Dynamic | None = None
    minimum_value_exclusive: StrictStr | Dynamic | None = None
    maximum_value: StrictStr | Dynamic | None = None
    maximum_value_exclusive: StrictStr | Dynamic | None = None

    bound_format = staticmethod(iso8601.is_iso8601_time_string)


class TimezoneValidator(_TemporalValidator):
    type: Literal["timezone"]
    minimum_value: StrictStr | Dynamic | None = None
    minimum_value_exclusive: StrictStr | Dynamic | None = None
    maximum_value: StrictStr | Dynamic | None = None
    maximum_value_exclusive: StrictStr | Dynamic | None = None

    bound_format = staticmethod(iso8601.is_iso8601_timezone_string)


class UuidValidator(_RangedValidator):
    type: Literal["uuid"]
    minimum_value: StrictStr | Dynamic | None = None
    minimum_value_exclusive: StrictStr | Dynamic | None = None
    maximum_value: StrictStr | Dynamic | None = None
    maximum_value_exclusive: StrictStr | Dynamic | None = None


class EnumValidator(_ValidatorBase):
    type: Literal["enum"]
    predefined_values: Annotated[list[StrictInt | StrictStr], Field(min_length=1)] | Dynamic


class AttachmentReferenceValidator(_ValidatorBase):
    type: Literal["attachmentReference"]
    maximum_size: Annotated[StrictInt, Field(ge=1)] | Dynamic | None = None
    supported_extensions: StringListConstraint = None
    supported_content_types: StringListConstraint = None
    regex_pattern: PatternConstraint = None


class AnyValidator(_ValidatorBase):
    type: Literal["any"]


# ---------------------------------------------------------------------------
# Composite kinds
# ---------------------------------------------------------------------------


class ArrayValidator(_ValidatorBase):
    type: Literal["array"]
    must_not_be_empty: BoolConstraint = None
    minimum_length: CountConstraint = None
    maximum_length: CountConstraint = None
    array_elements_validator: PropertyValidator | Dynamic | None = None


class ObjectValidator(_ValidatorBase):
    type: Literal["object"]
    allow_unknown_properties: BoolConstraint = None
    property_validators: dict[str, PropertyValidator | None] | Dynamic | None = None


class HashtableKeysValidator(BaseModel):
    """Constraints on the keys of a hashtable."""

    model_config = DEFINITION_MODEL_CONFIG

    must_not_be_empty: BoolConstraint = None
    regex_pattern: PatternConstraint = None


class HashtableValidator(_ValidatorBase):
    type: Literal["hashtable"]
    minimum_size: CountConstraint = None
    maximum_size: CountConstraint = None
    hashtable_keys_validator: HashtableKeysValidator | Dynamic | None = None
    hashtable_values_validator: PropertyValidator | Dynamic | None = None


class ValidationCandidate(BaseModel):
    """One ``(condition, validator)`` arm of a conditional validator."""

    model_config = DEFINITION_MODEL_CONFIG

    condition: Dynamic
    validator: PropertyValidator


class ConditionalValidator(_ValidatorBase):
    type: Literal["conditional"]
    validation_candidates: Annotated[list[ValidationCandidate], Field(min_length=1)] | Dynamic


PropertyValidator = Annotated[
    Union[
        StringValidator,
        IntegerValidator,
        FloatValidator,
        BooleanValidator,
        DatetimeValidator,
        DateValidator,
        TimeValidator,
        TimezoneValidator,
        UuidValidator,
        EnumValidator,
        AttachmentReferenceValidator,
        ArrayValidator,
        ObjectValidator,
        HashtableValidator,
        ConditionalValidator,
        AnyValidator,
    ],
    Field(discriminator="type"),
]

ArrayValidator.model_rebuild()
ObjectValidator.model_rebuild()
HashtableValidator.model_rebuild()
ValidationCandidate.model_rebuild()
ConditionalValidator.model_rebuild()

AnyPropertyValidator = (
    StringValidator
    | IntegerValidator
    | FloatValidator
    | BooleanValidator
    | DatetimeValidator
    | DateValidator
    | TimeValidator
    | TimezoneValidator
    | UuidValidator
    | EnumValidator
    | AttachmentReferenceValidator
    | ArrayValidator
    | ObjectValidator
    | HashtableValidator
    | ConditionalValidator
    | AnyValidator
)

# Validator applied to "type" for definitions that use the simple type filter.
TYPE_ID_VALIDATOR = StringValidator(type="string", required=True, must_not_be_empty=True, immutable=True)


# ---------------------------------------------------------------------------
# Runtime compilation of dynamic sub-schemas
# ---------------------------------------------------------------------------

_VALIDATOR_ADAPTER: TypeAdapter[Any] = TypeAdapter(PropertyValidator)
_VALIDATOR_MAP_ADAPTER: TypeAdapter[Any] = TypeAdapter(dict[str, PropertyValidator | None])
_CANDIDATES_ADAPTER: TypeAdapter[Any] = TypeAdapter(list[ValidationCandidate])
_KEYS_ADAPTER: TypeAdapter[Any] = TypeAdapter(HashtableKeysValidator)


def describe_validation_errors(exc: ValidationError) -> list[str]:
    """Flatten a pydantic error into ``location: message`` problem strings."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return problems


def _compile(adapter: TypeAdapter[Any], raw: Any, what: str) -> Any:
    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid {what}", describe_validation_errors(exc)) from exc


def compile_validator(raw: Any) -> AnyPropertyValidator:
    """Compile a single property validator from its raw mapping."""
    return _compile(_VALIDATOR_ADAPTER, raw, "property validator")


def compile_validator_map(raw: Any) -> dict[str, AnyPropertyValidator | None]:
    return _compile(_VALIDATOR_MAP_ADAPTER, raw, "property validators")


def compile_candidates(raw: Any) -> list[ValidationCandidate]:
    candidates = _compile(_CANDIDATES_ADAPTER, raw, "validation candidates")
    if not candidates:
        raise ConfigurationError("invalid validation candidates", ["at least one candidate is required"])
    return candidates


def compile_keys_validator(raw: Any) -> HashtableKeysValidator:
    return _compile(_KEYS_ADAPTER, raw, "hashtable keys validator")


def inherit_universal_constraints(
    candidate: AnyPropertyValidator,
    conditional: ConditionalValidator,
) -> AnyPropertyValidator:
    """Copy the conditional's universal constraints onto the selected candidate.

    A family the candidate declares itself (any of its members) is left as
    the candidate declares it.
    """
    update: dict[str, Any] = {}
    for family in INHERITED_FAMILIES:
        if any(name in candidate.model_fields_set for name in family):
            continue
        for name in family:
            if name in conditional.model_fields_set:
                update[name] = getattr(conditional, name)
    if not update:
        return candidate
    return candidate.model_copy(update=update)
