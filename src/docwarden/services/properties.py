"""Type validation engine.

Walks a document and its effective previous revision against a type's
property validator tree, depth first, keeping one
:class:`~docwarden.domain.items.ItemStackEntry` per nesting level. Every
violation is collected; the walk never raises for bad documents.

Per item, in order:

1. A conditional validator is replaced by its first matching candidate
   (no match: the item is valid).
2. ``skipValidationWhenValueUnchanged[Strict]`` ends the item early when the
   value equals the previous revision's.
3. Presence: a missing or null value that must be present is reported and
   nothing else is checked for the item.
4. For a present value: length, emptiness and range constraints, then the
   kind's own type check and recursion into children.
5. ``mustEqual`` / ``mustEqualStrict``.
6. Immutability (only when a previous revision exists).
7. ``customValidation``.

Unknown-property policy is per object level and never inherited. Root
properties starting with ``_`` are store metadata and never reported.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Mapping
from typing import Any

from docwarden.domain import messages
from docwarden.domain.comparison import (
    RangeBound,
    check_item_equality,
    validate_equality,
    validate_immutable,
    validate_range,
)
from docwarden.domain.definitions import DocumentDefinition, resolve_document_constraint
from docwarden.domain.documents import Document, attachments_of
from docwarden.domain.items import ItemStackEntry, build_item_path, child_path, element_name
from docwarden.domain.iso8601 import (
    is_iso8601_date_string,
    is_iso8601_datetime_string,
    is_iso8601_time_string,
    is_iso8601_timezone_string,
)
from docwarden.domain.types import ValidatorKind
from docwarden.domain.validators import (
    TYPE_ID_VALIDATOR,
    AnyPropertyValidator,
    ConditionalValidator,
    HashtableKeysValidator,
    compile_candidates,
    compile_keys_validator,
    compile_validator,
    compile_validator_map,
    inherit_universal_constraints,
)
from docwarden.services.attachments import AttachmentValidator, ReferenceRules

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[A-Fa-f0-9]{8}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{12}$"
)

DEFAULT_KEYS_VALIDATOR = HashtableKeysValidator(must_not_be_empty=True)

_RANGE_FIELDS: tuple[tuple[str, RangeBound], ...] = (
    ("minimum_value", RangeBound.MINIMUM),
    ("minimum_value_exclusive", RangeBound.MINIMUM_EXCLUSIVE),
    ("maximum_value", RangeBound.MAXIMUM),
    ("maximum_value_exclusive", RangeBound.MAXIMUM_EXCLUSIVE),
)

_FORMAT_CHECKS: dict[ValidatorKind, Callable[[object], bool]] = {
    ValidatorKind.DATETIME: is_iso8601_datetime_string,
    ValidatorKind.DATE: is_iso8601_date_string,
    ValidatorKind.TIME: is_iso8601_time_string,
    ValidatorKind.TIMEZONE: is_iso8601_timezone_string,
}


def is_integer_value(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def is_number_value(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has_length(value: Any) -> bool:
    return isinstance(value, (str, list, tuple))


def _as_pattern(value: Any) -> re.Pattern[str] | None:
    if value is None or isinstance(value, re.Pattern):
        return value
    return re.compile(value)


class _PropertyWalk:
    """State of one validation pass over one document."""

    def __init__(
        self,
        doc: Document,
        old_doc: Document | None,
        attachments: AttachmentValidator,
    ) -> None:
        self.doc = doc
        self.old_doc = old_doc
        self.attachments = attachments
        self.stack: list[ItemStackEntry] = [ItemStackEntry(None, doc, old_doc)]
        self.violations: list[str] = []
        self._type_checks: dict[ValidatorKind, Callable[[Any], None]] = {
            ValidatorKind.STRING: self._check_string,
            ValidatorKind.INTEGER: self._check_integer,
            ValidatorKind.FLOAT: self._check_float,
            ValidatorKind.BOOLEAN: self._check_boolean,
            ValidatorKind.DATETIME: self._check_format,
            ValidatorKind.DATE: self._check_format,
            ValidatorKind.TIME: self._check_format,
            ValidatorKind.TIMEZONE: self._check_format,
            ValidatorKind.UUID: self._check_uuid,
            ValidatorKind.ENUM: self._check_enum,
            ValidatorKind.ATTACHMENT_REFERENCE: self._check_attachment_reference,
            ValidatorKind.ARRAY: self._check_array,
            ValidatorKind.OBJECT: self._check_object,
            ValidatorKind.HASHTABLE: self._check_hashtable,
            ValidatorKind.ANY: self._check_any,
        }

    # --- helpers ---

    @property
    def path(self) -> str:
        return build_item_path(self.stack)

    def resolve(self, constraint: Any) -> Any:
        """Resolve an item-level constraint against the item on top of the stack."""
        if callable(constraint):
            entry = self.stack[-1]
            return constraint(self.doc, self.old_doc, entry.item_value, entry.old_item_value)
        return constraint

    def _resolve_sub_schema(self, raw: Any, compile_fn: Callable[[Any], Any]) -> Any:
        if not callable(raw):
            return raw
        resolved = raw(self.doc, self.old_doc, self.stack[-1].item_value, self.stack[-1].old_item_value)
        if resolved is None:
            return None
        logger.debug("Compiling dynamic sub-schema at %r", self.path)
        return compile_fn(resolved)

    def _store(self, violation: str | None) -> None:
        if violation is not None:
            self.violations.append(violation)

    def _descend(self, entry: ItemStackEntry, validator: AnyPropertyValidator) -> None:
        self.stack.append(entry)
        try:
            self.validate_item(validator)
        finally:
            self.stack.pop()

    # --- objects ---

    def validate_object_properties(
        self,
        validators: Mapping[str, AnyPropertyValidator | None],
        allow_unknown: bool,
        ignore_internal: bool,
    ) -> None:
        entry = self.stack[-1]
        current = entry.item_value
        previous = entry.old_item_value if isinstance(entry.old_item_value, Mapping) else None

        supported: set[str] = set()
        for name, validator in validators.items():
            if validator is None:
                continue
            supported.add(name)
            child = ItemStackEntry(
                item_name=name,
                item_value=current.get(name),
                old_item_value=previous.get(name) if previous is not None else None,
                is_missing=name not in current,
            )
            self._descend(child, validator)

        if allow_unknown:
            return
        object_path = self.path
        for name in current:
            if ignore_internal and isinstance(name, str) and name.startswith("_"):
                continue
            if name not in supported:
                self.violations.append(messages.unsupported_property(child_path(object_path, str(name))))

    # --- items ---

    def _select_candidate(self, conditional: ConditionalValidator) -> AnyPropertyValidator | None:
        candidates = self._resolve_sub_schema(conditional.validation_candidates, compile_candidates)
        entry = self.stack[-1]
        parents = list(self.stack[:-1])
        for candidate in candidates or ():
            if candidate.condition(self.doc, self.old_doc, entry, parents):
                return inherit_universal_constraints(candidate.validator, conditional)
        return None

    def validate_item(self, validator: AnyPropertyValidator) -> None:
        while isinstance(validator, ConditionalValidator):
            selected = self._select_candidate(validator)
            if selected is None:
                return
            validator = selected

        kind = ValidatorKind(validator.type)
        entry = self.stack[-1]
        value = entry.item_value

        if self.old_doc is not None:
            if self.resolve(validator.skip_validation_when_value_unchanged) and check_item_equality(
                value, entry.old_item_value, kind
            ):
                return
            if self.resolve(validator.skip_validation_when_value_unchanged_strict) and check_item_equality(
                value, entry.old_item_value
            ):
                return

        if value is None:
            if self.resolve(validator.required):
                self.violations.append(messages.required(self.path))
                return
            if entry.is_missing and self.resolve(validator.must_not_be_missing):
                self.violations.append(messages.must_not_be_missing(self.path))
                return
            if not entry.is_missing and self.resolve(validator.must_not_be_null):
                self.violations.append(messages.must_not_be_null(self.path))
                return
        else:
            self._check_present_value(validator, kind)

        self._check_equality(validator, kind)

        if self.old_doc is not None:
            self._check_immutability(validator, kind)

        if validator.custom_validation is not None:
            self._run_custom_validation(validator.custom_validation)

    def _check_present_value(self, validator: AnyPropertyValidator, kind: ValidatorKind) -> None:
        value = self.stack[-1].item_value

        if self.resolve(getattr(validator, "must_not_be_empty", None)) and _has_length(value) and not value:
            self.violations.append(messages.empty(self.path))

        for field_name, bound in _RANGE_FIELDS:
            constraint = self.resolve(getattr(validator, field_name, None))
            if constraint is not None:
                self._store(validate_range(self.stack, constraint, kind, bound))

        minimum_length = self.resolve(getattr(validator, "minimum_length", None))
        if minimum_length is not None and _has_length(value) and len(value) < minimum_length:
            self.violations.append(messages.too_short(self.path, minimum_length))

        maximum_length = self.resolve(getattr(validator, "maximum_length", None))
        if maximum_length is not None and _has_length(value) and len(value) > maximum_length:
            self.violations.append(messages.too_long(self.path, maximum_length))

        self._type_checks[kind](validator)

    def _check_equality(self, validator: AnyPropertyValidator, kind: ValidatorKind) -> None:
        for declared, raw, equality_kind in (
            (validator.has_must_equal, validator.must_equal, kind),
            (validator.has_must_equal_strict, validator.must_equal_strict, None),
        ):
            if not declared:
                continue
            expected = self.resolve(raw)
            if expected is None and callable(raw):
                continue
            self._store(validate_equality(self.stack, expected, equality_kind))

    def _check_immutability(self, validator: AnyPropertyValidator, kind: ValidatorKind) -> None:
        if self.resolve(validator.immutable):
            self._store(validate_immutable(self.stack, False, kind))
        if self.resolve(validator.immutable_strict):
            self._store(validate_immutable(self.stack, False, None))
        if self.resolve(validator.immutable_when_set):
            self._store(validate_immutable(self.stack, True, kind))
        if self.resolve(validator.immutable_when_set_strict):
            self._store(validate_immutable(self.stack, True, None))

    def _run_custom_validation(self, custom_validation: Callable[..., Any]) -> None:
        entry = self.stack[-1]
        result = custom_validation(self.doc, self.old_doc, entry, list(self.stack[:-1]))
        if isinstance(result, str):
            self.violations.append(result)
        elif isinstance(result, (list, tuple)):
            self.violations.extend(str(message) for message in result)

    # --- kind-specific checks ---

    def _check_string(self, validator: Any) -> None:
        value = self.stack[-1].item_value
        if not isinstance(value, str):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.STRING))
            return

        pattern = _as_pattern(self.resolve(validator.regex_pattern))
        if pattern is not None and not pattern.search(value):
            self.violations.append(messages.bad_format(self.path, pattern))

        if self.resolve(validator.must_be_trimmed) and value != value.strip():
            self.violations.append(messages.untrimmed(self.path))

        expected = self.resolve(validator.must_equal_ignore_case)
        if expected is not None and value.lower() != str(expected).lower():
            self.violations.append(messages.not_equal_ignore_case(self.path, expected))

    def _check_integer(self, validator: Any) -> None:
        if not is_integer_value(self.stack[-1].item_value):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.INTEGER))

    def _check_float(self, validator: Any) -> None:
        if not is_number_value(self.stack[-1].item_value):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.FLOAT))

    def _check_boolean(self, validator: Any) -> None:
        if not isinstance(self.stack[-1].item_value, bool):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.BOOLEAN))

    def _check_format(self, validator: Any) -> None:
        kind = ValidatorKind(validator.type)
        if not _FORMAT_CHECKS[kind](self.stack[-1].item_value):
            self.violations.append(messages.wrong_type(self.path, kind))

    def _check_uuid(self, validator: Any) -> None:
        value = self.stack[-1].item_value
        if not isinstance(value, str) or not UUID_PATTERN.match(value):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.UUID))

    def _check_enum(self, validator: Any) -> None:
        value = self.stack[-1].item_value
        predefined = self.resolve(validator.predefined_values)
        if not isinstance(predefined, (list, tuple)):
            self.violations.append(messages.no_predefined_values(self.path))
        elif not any(check_item_equality(value, candidate) for candidate in predefined):
            self.violations.append(messages.not_predefined(self.path, predefined))

    def _check_attachment_reference(self, validator: Any) -> None:
        rules = ReferenceRules(
            supported_extensions=self.resolve(validator.supported_extensions),
            supported_content_types=self.resolve(validator.supported_content_types),
            maximum_size=self.resolve(validator.maximum_size),
            regex_pattern=_as_pattern(self.resolve(validator.regex_pattern)),
        )
        self.violations.extend(self.attachments.validate_reference(self.stack, rules))

    def _check_array(self, validator: Any) -> None:
        entry = self.stack[-1]
        value = entry.item_value
        if not isinstance(value, (list, tuple)):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.ARRAY))
            return

        element_validator = self._resolve_sub_schema(validator.array_elements_validator, compile_validator)
        if element_validator is None:
            return

        previous = entry.old_item_value if isinstance(entry.old_item_value, (list, tuple)) else None
        for index, element in enumerate(value):
            old_element = previous[index] if previous is not None and index < len(previous) else None
            self._descend(ItemStackEntry(element_name(index), element, old_element), element_validator)

    def _check_object(self, validator: Any) -> None:
        value = self.stack[-1].item_value
        if not isinstance(value, Mapping):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.OBJECT))
            return

        validators = self._resolve_sub_schema(validator.property_validators, compile_validator_map)
        if validators is not None:
            allow_unknown = bool(self.resolve(validator.allow_unknown_properties))
            self.validate_object_properties(validators, allow_unknown, ignore_internal=False)

    def _check_hashtable(self, validator: Any) -> None:
        entry = self.stack[-1]
        value = entry.item_value
        if not isinstance(value, Mapping):
            self.violations.append(messages.wrong_type(self.path, ValidatorKind.HASHTABLE))
            return

        hashtable_path = self.path
        keys_validator = self._resolve_sub_schema(validator.hashtable_keys_validator, compile_keys_validator)
        if keys_validator is None:
            keys_validator = DEFAULT_KEYS_VALIDATOR
        values_validator = self._resolve_sub_schema(validator.hashtable_values_validator, compile_validator)
        key_must_not_be_empty = self.resolve(keys_validator.must_not_be_empty)
        key_pattern = _as_pattern(self.resolve(keys_validator.regex_pattern))
        previous = entry.old_item_value if isinstance(entry.old_item_value, Mapping) else None

        for key, element in value.items():
            name = element_name(key)
            key_path = hashtable_path + name if hashtable_path else name
            if not isinstance(key, str):
                self.violations.append(messages.hashtable_key_not_string(key_path))
            else:
                if key_must_not_be_empty and not key:
                    self.violations.append(messages.empty_hashtable_key(hashtable_path))
                if key_pattern is not None and not key_pattern.search(key):
                    self.violations.append(messages.hashtable_key_format(key_path, key_pattern))

            if values_validator is not None:
                old_element = previous.get(key) if previous is not None else None
                self._descend(ItemStackEntry(name, element, old_element), values_validator)

        size = len(value)
        maximum_size = self.resolve(validator.maximum_size)
        if maximum_size is not None and size > maximum_size:
            self.violations.append(messages.hashtable_too_large(hashtable_path, maximum_size))
        minimum_size = self.resolve(validator.minimum_size)
        if minimum_size is not None and size < minimum_size:
            self.violations.append(messages.hashtable_too_small(hashtable_path, minimum_size))

    def _check_any(self, validator: Any) -> None:
        return None


def resolve_property_validators(
    definition: DocumentDefinition,
    doc: Document,
    old_doc: Document | None,
) -> dict[str, AnyPropertyValidator | None]:
    """The root validator map for one write, including the implied ``type`` rule."""
    raw = definition.property_validators
    resolved = resolve_document_constraint(raw, doc, old_doc)
    if callable(raw):
        resolved = compile_validator_map(resolved or {})
    validators = dict(resolved)
    if definition.uses_simple_type_filter and validators.get("type") is None:
        validators["type"] = TYPE_ID_VALIDATOR
    return validators


def validate_properties(
    doc: Document,
    old_doc: Document | None,
    definition: DocumentDefinition,
) -> list[str]:
    """Validate every property of ``doc`` and then its attachments.

    Args:
        doc: The proposed revision.
        old_doc: The effective previous revision (``None`` if absent or deleted).
        definition: The document's compiled type definition.

    Returns:
        Violation strings in discovery order; empty when the document is valid.
    """
    attachments = AttachmentValidator(doc, old_doc)
    walk = _PropertyWalk(doc, old_doc, attachments)
    validators = resolve_property_validators(definition, doc, old_doc)
    allow_unknown = bool(resolve_document_constraint(definition.allow_unknown_properties, doc, old_doc))
    walk.validate_object_properties(validators, allow_unknown, ignore_internal=True)

    if attachments_of(doc):
        walk.violations.extend(attachments.validate_attachments(definition))
    return walk.violations
