"""Type-aware ordering and equality.

Range, equality and immutability constraints all dispatch on the validator
kind: ``date``/``datetime`` compare by instant, ``time`` by time of day,
``timezone`` by UTC offset and ``uuid`` case-insensitively. Every other
kind (and ``kind=None``, which callers use to request strict semantics)
compares natively.

Two operands that have no ordering (a string against a number, an
unparseable date) never violate a range constraint and are never equal.

Composite equality is always strict: arrays compare length first and then
element by element in order; objects compare over the union of both key
sets. An absent value (``None``) equals only another absent value.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from docwarden.domain import messages
from docwarden.domain.items import ItemStack, build_item_path
from docwarden.domain.iso8601 import compare_dates, compare_times, compare_timezones
from docwarden.domain.types import ValidatorKind

Comparator = Callable[[Any, Any], "int | None"]
ViolationPredicate = Callable[[Any, Any], bool]


class RangeBound(StrEnum):
    """The four range constraints, valued by their constraint names."""

    MINIMUM = "minimumValue"
    MINIMUM_EXCLUSIVE = "minimumValueExclusive"
    MAXIMUM = "maximumValue"
    MAXIMUM_EXCLUSIVE = "maximumValueExclusive"


# ---------------------------------------------------------------------------
# Scalar comparators
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _sign(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_native(a: Any, b: Any) -> int | None:
    """Order two numbers, two strings or two booleans."""
    if _is_number(a) and _is_number(b):
        if (isinstance(a, float) and math.isnan(a)) or (isinstance(b, float) and math.isnan(b)):
            return None
        return _sign(a, b)
    if isinstance(a, str) and isinstance(b, str):
        return _sign(a, b)
    if isinstance(a, bool) and isinstance(b, bool):
        return _sign(a, b)
    return None


def compare_uuids(a: Any, b: Any) -> int | None:
    if not isinstance(a, str) or not isinstance(b, str):
        return None
    return _sign(a.lower(), b.lower())


_KIND_COMPARATORS: dict[ValidatorKind, Comparator] = {
    ValidatorKind.TIME: compare_times,
    ValidatorKind.DATE: compare_dates,
    ValidatorKind.DATETIME: compare_dates,
    ValidatorKind.TIMEZONE: compare_timezones,
    ValidatorKind.UUID: compare_uuids,
}


def comparator_for(kind: ValidatorKind | str | None) -> Comparator:
    """The ordering function for ``kind`` (native ordering by default)."""
    if kind is None:
        return compare_native
    try:
        return _KIND_COMPARATORS.get(ValidatorKind(kind), compare_native)
    except ValueError:
        return compare_native


def _violation(kind: ValidatorKind | str | None, test: Callable[[int], bool]) -> ViolationPredicate:
    compare = comparator_for(kind)

    def violated(candidate: Any, constraint: Any) -> bool:
        result = compare(candidate, constraint)
        return result is not None and test(result)

    return violated


def min_inclusive_violated(kind: ValidatorKind | str | None = None) -> ViolationPredicate:
    return _violation(kind, lambda result: result < 0)


def min_exclusive_violated(kind: ValidatorKind | str | None = None) -> ViolationPredicate:
    return _violation(kind, lambda result: result <= 0)


def max_inclusive_violated(kind: ValidatorKind | str | None = None) -> ViolationPredicate:
    return _violation(kind, lambda result: result > 0)


def max_exclusive_violated(kind: ValidatorKind | str | None = None) -> ViolationPredicate:
    return _violation(kind, lambda result: result >= 0)


_RANGE_RULES: dict[RangeBound, tuple[Callable[..., ViolationPredicate], str]] = {
    RangeBound.MINIMUM: (min_inclusive_violated, "less than"),
    RangeBound.MINIMUM_EXCLUSIVE: (min_exclusive_violated, "less than or equal to"),
    RangeBound.MAXIMUM: (max_inclusive_violated, "greater than"),
    RangeBound.MAXIMUM_EXCLUSIVE: (max_exclusive_violated, "greater than or equal to"),
}


# ---------------------------------------------------------------------------
# Equality
# ---------------------------------------------------------------------------


def _strict_scalar_equal(a: Any, b: Any) -> bool:
    if _is_array(a) or _is_array(b) or isinstance(a, dict) or isinstance(b, dict):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if a is None or b is None:
        return a is None and b is None
    if _is_number(a) and _is_number(b):
        return a == b
    return type(a) is type(b) and a == b


def _scalar_equality(kind: ValidatorKind | str | None) -> Callable[[Any, Any], bool]:
    compare = comparator_for(kind)
    if compare is compare_native:
        return _strict_scalar_equal
    return lambda a, b: _strict_scalar_equal(a, b) or compare(a, b) == 0


def check_item_equality(value: Any, expected: Any, kind: ValidatorKind | str | None = None) -> bool:
    """Whether ``value`` equals ``expected`` under the semantics of ``kind``.

    Pass ``kind=None`` for strict equality. Nested values are always compared
    strictly, whatever ``kind`` is.
    """
    if _scalar_equality(kind)(value, expected):
        return True
    if value is None and expected is None:
        return True
    if (value is None) != (expected is None):
        return False
    if _is_array(value) or _is_array(expected):
        return _arrays_equal(value, expected)
    if isinstance(value, dict) or isinstance(expected, dict):
        return _objects_equal(value, expected)
    return False


def _arrays_equal(value: Any, expected: Any) -> bool:
    if not (_is_array(value) and _is_array(expected)):
        return False
    if len(value) != len(expected):
        return False
    return all(check_item_equality(a, b) for a, b in zip(value, expected))


def _objects_equal(value: Any, expected: Any) -> bool:
    if not (isinstance(value, dict) and isinstance(expected, dict)):
        return False
    keys = list(value)
    keys.extend(key for key in expected if key not in value)
    return all(check_item_equality(value.get(key), expected.get(key)) for key in keys)


# ---------------------------------------------------------------------------
# Constraint checks over an item stack
# ---------------------------------------------------------------------------


def validate_range(
    stack: ItemStack,
    constraint: Any,
    kind: ValidatorKind | str | None,
    bound: RangeBound,
) -> str | None:
    """Check the top item against one range constraint."""
    predicate_factory, description = _RANGE_RULES[bound]
    if predicate_factory(kind)(stack[-1].item_value, constraint):
        return messages.out_of_range(build_item_path(stack), description, constraint)
    return None


def validate_equality(stack: ItemStack, expected: Any, kind: ValidatorKind | str | None) -> str | None:
    if check_item_equality(stack[-1].item_value, expected, kind):
        return None
    return messages.not_equal(build_item_path(stack), expected)


def validate_immutable(
    stack: ItemStack,
    only_when_set: bool,
    kind: ValidatorKind | str | None,
) -> str | None:
    """Check that the top item matches its previous revision.

    The check only applies when the item's parent existed in the previous
    revision; an item inside a newly created container has nothing to be
    compared against. With ``only_when_set`` it also requires a previous
    value.
    """
    entry = stack[-1]
    if only_when_set and entry.old_item_value is None:
        return None

    old_parent = stack[-2].old_item_value if len(stack) >= 2 else None
    if old_parent is None:
        return None

    if check_item_equality(entry.item_value, entry.old_item_value, kind):
        return None
    return messages.modified(build_item_path(stack))
