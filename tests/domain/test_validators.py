"""Tests for property validator models and runtime compilation."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError

from docwarden.domain.errors import ConfigurationError
from docwarden.domain.validators import (
    TYPE_ID_VALIDATOR,
    ArrayValidator,
    ConditionalValidator,
    HashtableKeysValidator,
    ObjectValidator,
    StringValidator,
    compile_candidates,
    compile_keys_validator,
    compile_validator,
    compile_validator_map,
    inherit_universal_constraints,
)


def _problems(raw: dict[str, object]) -> list[str]:
    with pytest.raises(ConfigurationError) as exc_info:
        compile_validator(raw)
    return exc_info.value.problems


class TestCompileValidator:
    def test_discriminates_on_type(self) -> None:
        validator = compile_validator({"type": "string", "regexPattern": "^[a-z]+$", "mustBeTrimmed": True})
        assert isinstance(validator, StringValidator)
        assert isinstance(validator.regex_pattern, re.Pattern)
        assert validator.regex_pattern.search("abc")

    def test_nested_validators_compile(self) -> None:
        validator = compile_validator(
            {
                "type": "array",
                "arrayElementsValidator": {
                    "type": "object",
                    "propertyValidators": {"name": {"type": "string", "required": True}},
                },
            }
        )
        assert isinstance(validator, ArrayValidator)
        elements = validator.array_elements_validator
        assert isinstance(elements, ObjectValidator)
        assert elements.property_validators["name"].required is True

    def test_functions_are_accepted_for_constraints(self) -> None:
        def minimum(doc, old_doc, value, old_value):
            return 3

        validator = compile_validator({"type": "integer", "minimumValue": minimum})
        assert validator.minimum_value is minimum

    def test_unknown_type(self) -> None:
        assert _problems({"type": "color"})

    def test_constraint_of_another_kind_is_rejected(self) -> None:
        problems = _problems({"type": "integer", "regexPattern": "^1"})
        assert any("regexPattern" in p for p in problems)

    def test_enum_requires_values(self) -> None:
        assert _problems({"type": "enum"})
        assert _problems({"type": "enum", "predefinedValues": []})

    def test_models_are_frozen(self) -> None:
        validator = compile_validator({"type": "string"})
        with pytest.raises(ValidationError):
            validator.required = True


class TestConstraintConflicts:
    def test_presence_family_is_exclusive(self) -> None:
        problems = _problems({"type": "string", "required": True, "mustNotBeNull": True})
        assert any("only one of required, mustNotBeNull may be declared" in p for p in problems)

    def test_range_excludes_equality(self) -> None:
        problems = _problems({"type": "integer", "minimumValue": 1, "mustEqual": 2})
        assert any("cannot be combined with mustEqual" in p for p in problems)

    def test_static_numeric_bounds(self) -> None:
        problems = _problems({"type": "integer", "minimumValue": 5, "maximumValue": 1})
        assert any("maximumValue must not be less than minimumValue" in p for p in problems)

    def test_static_length_bounds(self) -> None:
        problems = _problems({"type": "string", "minimumLength": 5, "maximumLength": 1})
        assert any("maximumLength must not be less than minimumLength" in p for p in problems)

    def test_temporal_bounds_must_match_kind(self) -> None:
        assert _problems({"type": "date", "minimumValue": "2016-01-01T00:00"})
        compile_validator({"type": "date", "minimumValue": "2016-01-01"})
        compile_validator({"type": "time", "maximumValue": "23:59"})

    def test_dynamic_bounds_are_not_checked(self) -> None:
        compile_validator({"type": "integer", "minimumValue": lambda *a: 5, "maximumValue": 1})


class TestMustEqualPresence:
    def test_explicit_none_counts_as_declared(self) -> None:
        assert compile_validator({"type": "string", "mustEqual": None}).has_must_equal
        assert not compile_validator({"type": "string"}).has_must_equal


class TestRuntimeHelpers:
    def test_validator_map(self) -> None:
        validators = compile_validator_map({"a": {"type": "boolean"}, "b": None})
        assert validators["b"] is None

    def test_candidates_need_at_least_one(self) -> None:
        with pytest.raises(ConfigurationError):
            compile_candidates([])

    def test_keys_validator(self) -> None:
        keys = compile_keys_validator({"regexPattern": "^[a-z]+$"})
        assert isinstance(keys, HashtableKeysValidator)
        with pytest.raises(ConfigurationError):
            compile_keys_validator({"minimumLength": 1})

    def test_type_id_validator(self) -> None:
        assert TYPE_ID_VALIDATOR.required is True
        assert TYPE_ID_VALIDATOR.immutable is True


class TestInheritance:
    def _conditional(self, **constraints: object) -> ConditionalValidator:
        raw = {
            "type": "conditional",
            "validationCandidates": [{"condition": lambda *a: True, "validator": {"type": "string"}}],
        }
        raw.update(constraints)
        validator = compile_validator(raw)
        assert isinstance(validator, ConditionalValidator)
        return validator

    def test_candidate_receives_missing_families(self) -> None:
        conditional = self._conditional(required=True, mustEqual="x")
        candidate = compile_validator({"type": "string", "mustBeTrimmed": True})
        inherited = inherit_universal_constraints(candidate, conditional)
        assert inherited.required is True
        assert inherited.has_must_equal
        assert inherited.must_equal == "x"
        assert inherited.must_be_trimmed is True
        assert candidate.required is None

    def test_candidate_family_wins(self) -> None:
        conditional = self._conditional(required=True)
        candidate = compile_validator({"type": "string", "mustNotBeNull": True})
        inherited = inherit_universal_constraints(candidate, conditional)
        assert inherited.required is None
        assert inherited.must_not_be_null is True

    def test_nothing_to_inherit_returns_candidate(self) -> None:
        conditional = self._conditional()
        candidate = compile_validator({"type": "string"})
        assert inherit_universal_constraints(candidate, conditional) is candidate
