"""Tests for the property validation engine."""

from __future__ import annotations

from typing import Any

import pytest

from docwarden.domain.errors import ConfigurationError
from docwarden.services.properties import is_integer_value, is_number_value
from tests.conftest import processor_for, violations_for

WHEN_PACIFIC = "2016-06-23T21:52:17.123-08:00"
WHEN_UTC = "2016-06-24T05:52:17.123Z"


class TestPresence:
    def test_required(self) -> None:
        validators = {"name": {"type": "string", "required": True}}
        assert violations_for(validators, {}) == ['item "name" must not be null or missing']
        assert violations_for(validators, {"name": None}) == ['item "name" must not be null or missing']
        assert violations_for(validators, {"name": "x"}) == []

    def test_must_not_be_missing_allows_null(self) -> None:
        validators = {"name": {"type": "string", "mustNotBeMissing": True}}
        assert violations_for(validators, {"name": None}) == []
        assert violations_for(validators, {}) == ['item "name" must not be missing']

    def test_must_not_be_null_allows_missing(self) -> None:
        validators = {"name": {"type": "string", "mustNotBeNull": True}}
        assert violations_for(validators, {}) == []
        assert violations_for(validators, {"name": None}) == ['item "name" must not be null']

    def test_presence_violation_ends_item_checks(self) -> None:
        validators = {
            "name": {"type": "string", "required": True, "customValidation": lambda *args: "never reached"}
        }
        assert violations_for(validators, {}) == ['item "name" must not be null or missing']

    def test_optional_values_skip_type_checks(self) -> None:
        assert violations_for({"count": {"type": "integer", "minimumValue": 1}}, {"count": None}) == []


class TestScalarTypes:
    def test_integer(self) -> None:
        validators = {"count": {"type": "integer"}}
        assert violations_for(validators, {"count": 3}) == []
        assert violations_for(validators, {"count": 3.0}) == []
        assert violations_for(validators, {"count": "3"}) == ['item "count" must be an integer']
        assert violations_for(validators, {"count": True}) == ['item "count" must be an integer']

    def test_float_accepts_integers(self) -> None:
        validators = {"ratio": {"type": "float"}}
        assert violations_for(validators, {"ratio": 1}) == []
        assert violations_for(validators, {"ratio": "1.5"}) == [
            'item "ratio" must be a floating point or integer number'
        ]

    def test_boolean(self) -> None:
        assert violations_for({"on": {"type": "boolean"}}, {"on": 0}) == ['item "on" must be a boolean']

    def test_uuid(self) -> None:
        validators = {"id": {"type": "uuid"}}
        assert violations_for(validators, {"id": "1511FBA4-E039-42A3-9A6E-EC8D9E5E6A52"}) == []
        assert violations_for(validators, {"id": "not-a-uuid"}) == ['item "id" must be a UUID string']

    def test_temporal_formats(self) -> None:
        assert violations_for({"d": {"type": "date"}}, {"d": "2016-06-23"}) == []
        assert violations_for({"d": {"type": "date"}}, {"d": "2016-06-31"}) == [
            'item "d" must be an ECMAScript simplified ISO 8601 date string '
            "with no time or time zone components"
        ]
        assert violations_for({"t": {"type": "time"}}, {"t": "24:00"}) == []
        assert violations_for({"z": {"type": "timezone"}}, {"z": "+05:30"}) == []
        assert len(violations_for({"w": {"type": "datetime"}}, {"w": "2016-06-23 10:00"})) == 1

    def test_helpers(self) -> None:
        assert is_integer_value(2.0)
        assert not is_integer_value(float("inf"))
        assert not is_number_value(False)


class TestStringConstraints:
    def test_violations_are_reported_in_check_order(self) -> None:
        validators = {"s": {"type": "string", "mustNotBeEmpty": True, "regexPattern": "^a"}}
        assert violations_for(validators, {"s": ""}) == [
            'item "s" must not be empty',
            'item "s" must conform to expected format /^a/',
        ]

    def test_trimmed_and_length(self) -> None:
        validators = {"s": {"type": "string", "mustBeTrimmed": True, "maximumLength": 3}}
        assert violations_for(validators, {"s": " abcd"}) == [
            'length of item "s" must not be greater than 3',
            'item "s" must not have any leading or trailing whitespace',
        ]

    def test_equal_ignore_case(self) -> None:
        validators = {"s": {"type": "string", "mustEqualIgnoreCase": "Foo"}}
        assert violations_for(validators, {"s": "fOO"}) == []
        assert violations_for(validators, {"s": "bar"}) == [
            'value of item "s" must equal (case insensitive) "Foo"'
        ]

    def test_range(self) -> None:
        assert violations_for({"n": {"type": "integer", "maximumValue": 5}}, {"n": 10}) == [
            'item "n" must not be greater than 5'
        ]
        assert violations_for({"n": {"type": "integer", "minimumValueExclusive": 5}}, {"n": 5}) == [
            'item "n" must not be less than or equal to 5'
        ]


class TestEquality:
    def test_datetime_equality_compares_instants(self) -> None:
        lenient = {"when": {"type": "datetime", "mustEqual": WHEN_UTC}}
        strict = {"when": {"type": "datetime", "mustEqualStrict": WHEN_UTC}}
        assert violations_for(lenient, {"when": WHEN_PACIFIC}) == []
        assert violations_for(strict, {"when": WHEN_PACIFIC}) == [f'value of item "when" must equal "{WHEN_UTC}"']

    def test_array_equality_respects_order(self) -> None:
        validators = {"list": {"type": "array", "mustEqual": [1, 2]}}
        assert violations_for(validators, {"list": [1, 2]}) == []
        assert violations_for(validators, {"list": [2, 1]}) == ['value of item "list" must equal [1,2]']

    def test_must_equal_null(self) -> None:
        validators = {"x": {"type": "string", "mustEqual": None}}
        assert violations_for(validators, {}) == []
        assert violations_for(validators, {"x": "a"}) == ['value of item "x" must equal null']

    def test_dynamic_must_equal_returning_none_is_skipped(self) -> None:
        validators = {"x": {"type": "string", "mustEqual": lambda doc, old_doc, value, old_value: None}}
        assert violations_for(validators, {"x": "anything"}) == []

    def test_dynamic_must_equal(self) -> None:
        validators = {"copy": {"type": "string", "mustEqual": lambda doc, old_doc, value, old_value: doc["source"]}}
        assert violations_for(validators, {"source": "a", "copy": "a"}, allowUnknownProperties=True) == []
        assert violations_for(validators, {"source": "a", "copy": "b"}, allowUnknownProperties=True) == [
            'value of item "copy" must equal "a"'
        ]


class TestArrays:
    def test_elements_are_validated_in_order(self) -> None:
        validators = {"tags": {"type": "array", "arrayElementsValidator": {"type": "string"}}}
        assert violations_for(validators, {"tags": ["a", 1, "b", 2]}) == [
            'item "tags[1]" must be a string',
            'item "tags[3]" must be a string',
        ]

    def test_not_an_array(self) -> None:
        assert violations_for({"tags": {"type": "array"}}, {"tags": "a"}) == ['item "tags" must be an array']

    def test_length_and_emptiness(self) -> None:
        validators = {"tags": {"type": "array", "mustNotBeEmpty": True, "minimumLength": 1}}
        assert violations_for(validators, {"tags": []}) == [
            'item "tags" must not be empty',
            'length of item "tags" must not be less than 1',
        ]

    def test_dynamic_element_validator(self) -> None:
        def elements(doc, old_doc, value, old_value):
            return {"type": "integer"}

        validators = {"values": {"type": "array", "arrayElementsValidator": elements}}
        assert violations_for(validators, {"values": [1, "x"]}) == ['item "values[1]" must be an integer']

    def test_invalid_dynamic_sub_schema_is_a_configuration_error(self) -> None:
        validators = {"values": {"type": "array", "arrayElementsValidator": lambda *args: {"type": "color"}}}
        with pytest.raises(ConfigurationError):
            violations_for(validators, {"values": [1]})


class TestUnknownProperties:
    VALIDATORS: dict[str, Any] = {
        "nested": {
            "type": "object",
            "allowUnknownProperties": True,
            "propertyValidators": {
                "inner": {"type": "object", "propertyValidators": {"ok": {"type": "string"}}},
            },
        }
    }

    def test_policy_applies_per_level(self) -> None:
        doc = {"_id": "w1", "extra": 1, "nested": {"free": 1, "inner": {"ok": "x", "bad": 1}}}
        assert violations_for(self.VALIDATORS, doc) == [
            'property "nested.inner.bad" is not supported',
            'property "extra" is not supported',
        ]

    def test_empty_nested_map_rejects_every_property(self) -> None:
        validators = {"meta": {"type": "object", "propertyValidators": {}}}
        assert violations_for(validators, {"meta": {"surprise": 1}}) == ['property "meta.surprise" is not supported']
        assert violations_for(validators, {"meta": {}}) == []

    def test_dynamic_empty_nested_map(self) -> None:
        validators = {"meta": {"type": "object", "propertyValidators": lambda doc, old_doc, value, old_value: {}}}
        assert violations_for(validators, {"meta": {"surprise": 1}}) == ['property "meta.surprise" is not supported']

    def test_root_allowance(self) -> None:
        doc = {"extra": 1, "nested": {}}
        assert violations_for(self.VALIDATORS, doc, allowUnknownProperties=True) == []

    def test_underscore_names_are_only_ignored_at_the_root(self) -> None:
        doc = {"_rev": "1-a", "nested": {"inner": {"_hidden": True}}}
        assert violations_for(self.VALIDATORS, doc) == ['property "nested.inner._hidden" is not supported']

    def test_null_validator_leaves_property_unsupported(self) -> None:
        assert violations_for({"gone": None}, {"gone": 1}) == ['property "gone" is not supported']


class TestTypeProperty:
    def test_type_must_not_be_empty(self) -> None:
        processor = processor_for({})
        assert processor.validate("widget", {"type": ""}, None) == ['item "type" must not be empty']

    def test_type_cannot_change(self) -> None:
        processor = processor_for({})
        assert processor.validate("widget", {"type": "gadget"}, {"type": "widget"}) == [
            'item "type" cannot be modified'
        ]


class TestConditional:
    CANDIDATES: list[dict[str, Any]] = [
        {
            "condition": lambda doc, old_doc, entry, parents: isinstance(entry.item_value, str),
            "validator": {"type": "string", "mustBeTrimmed": True},
        },
        {
            "condition": lambda doc, old_doc, entry, parents: isinstance(entry.item_value, int),
            "validator": {"type": "integer", "minimumValue": 0},
        },
    ]

    def _validators(self, **constraints: Any) -> dict[str, Any]:
        return {"value": {"type": "conditional", "validationCandidates": self.CANDIDATES, **constraints}}

    def test_first_matching_candidate_applies(self) -> None:
        assert violations_for(self._validators(), {"value": " x"}) == [
            'item "value" must not have any leading or trailing whitespace'
        ]
        assert violations_for(self._validators(), {"value": -1}) == ['item "value" must not be less than 0']

    def test_no_match_is_valid(self) -> None:
        assert violations_for(self._validators(), {"value": [1]}) == []
        assert violations_for(self._validators(required=True), {}) == []

    def test_universal_constraints_are_inherited(self) -> None:
        validators = {
            "value": {
                "type": "conditional",
                "required": True,
                "validationCandidates": [
                    {"condition": lambda *args: True, "validator": {"type": "string"}},
                ],
            }
        }
        assert violations_for(validators, {}) == ['item "value" must not be null or missing']

    def test_condition_sees_parents(self) -> None:
        seen: list[Any] = []

        def condition(doc, old_doc, entry, parents):
            seen.append((entry.item_name, parents[-1].item_value["kind"]))
            return True

        validators = {
            "kind": {"type": "string"},
            "value": {
                "type": "conditional",
                "validationCandidates": [{"condition": condition, "validator": {"type": "integer"}}],
            },
        }
        assert violations_for(validators, {"kind": "number", "value": 1}) == []
        assert seen == [("value", "number")]


class TestHashtable:
    def test_keys_values_and_size(self) -> None:
        validators = {
            "labels": {
                "type": "hashtable",
                "maximumSize": 2,
                "hashtableValuesValidator": {"type": "integer"},
            }
        }
        assert violations_for(validators, {"labels": {"a": 1, "": 2, "c": "x"}}) == [
            'hashtable "labels" must not have an empty key',
            'item "labels[c]" must be an integer',
            'hashtable "labels" must not be larger than 2 elements',
        ]

    def test_key_pattern(self) -> None:
        validators = {"labels": {"type": "hashtable", "hashtableKeysValidator": {"regexPattern": "^[a-z]+$"}}}
        assert violations_for(validators, {"labels": {"ok": 1, "A1": 2}}) == [
            'hashtable key "labels[A1]" must conform to expected format /^[a-z]+$/'
        ]

    def test_minimum_size(self) -> None:
        validators = {"labels": {"type": "hashtable", "minimumSize": 1}}
        assert violations_for(validators, {"labels": {}}) == ['hashtable "labels" must not be smaller than 1 elements']

    def test_not_a_hashtable(self) -> None:
        assert violations_for({"labels": {"type": "hashtable"}}, {"labels": [1]}) == [
            'item "labels" must be an object/hashtable'
        ]


class TestEnum:
    def test_predefined_values(self) -> None:
        validators = {"color": {"type": "enum", "predefinedValues": ["red", 1]}}
        assert violations_for(validators, {"color": "red"}) == []
        assert violations_for(validators, {"color": 1}) == []
        assert violations_for(validators, {"color": "blue"}) == [
            'item "color" must be one of the predefined values: red,1'
        ]
        assert violations_for(validators, {"color": True}) == [
            'item "color" must be one of the predefined values: red,1'
        ]

    def test_dynamic_values_must_be_a_list(self) -> None:
        validators = {"color": {"type": "enum", "predefinedValues": lambda *args: None}}
        assert violations_for(validators, {"color": "red"}) == [
            'item "color" belongs to an enum that has no predefined values'
        ]


class TestSkipWhenUnchanged:
    VALIDATORS: dict[str, Any] = {
        "legacy": {"type": "string", "regexPattern": "^new-", "skipValidationWhenValueUnchanged": True}
    }

    def test_unchanged_value_is_not_validated(self) -> None:
        assert violations_for(self.VALIDATORS, {"legacy": "old"}, {"legacy": "old"}) == []

    def test_changed_value_is_validated(self) -> None:
        assert violations_for(self.VALIDATORS, {"legacy": "other"}, {"legacy": "old"}) == [
            'item "legacy" must conform to expected format /^new-/'
        ]

    def test_creation_is_validated(self) -> None:
        assert len(violations_for(self.VALIDATORS, {"legacy": "old"})) == 1


class TestImmutability:
    def test_immutable(self) -> None:
        validators = {"code": {"type": "string", "immutable": True}}
        assert violations_for(validators, {"code": "b"}, {"code": "a"}) == ['item "code" cannot be modified']
        assert violations_for(validators, {"code": "a"}, {"code": "a"}) == []
        assert violations_for(validators, {"code": "b"}) == []

    def test_items_in_new_containers_are_free(self) -> None:
        validators = {
            "meta": {"type": "object", "propertyValidators": {"code": {"type": "string", "immutable": True}}}
        }
        assert violations_for(validators, {"meta": {"code": "x"}}, {}) == []
        assert violations_for(validators, {"meta": {"code": "x"}}, {"meta": {"code": "y"}}) == [
            'item "meta.code" cannot be modified'
        ]

    def test_immutable_when_set(self) -> None:
        validators = {"code": {"type": "string", "immutableWhenSet": True}}
        assert violations_for(validators, {"code": "b"}, {}) == []
        assert violations_for(validators, {"code": "b"}, {"code": "a"}) == ['item "code" cannot be modified']

    def test_datetime_immutability_by_instant(self) -> None:
        lenient = {"when": {"type": "datetime", "immutable": True}}
        strict = {"when": {"type": "datetime", "immutableStrict": True}}
        assert violations_for(lenient, {"when": WHEN_PACIFIC}, {"when": WHEN_UTC}) == []
        assert violations_for(strict, {"when": WHEN_PACIFIC}, {"when": WHEN_UTC}) == [
            'item "when" cannot be modified'
        ]


class TestCustomValidation:
    def test_runs_last_and_appends_messages(self) -> None:
        def custom(doc, old_doc, entry, parents):
            return [f"custom {entry.item_value}"]

        validators = {"n": {"type": "integer", "customValidation": custom}}
        assert violations_for(validators, {"n": "x"}) == ['item "n" must be an integer', "custom x"]

    def test_single_string_and_empty_results(self) -> None:
        assert violations_for({"n": {"type": "any", "customValidation": lambda *args: "bad"}}, {"n": 1}) == ["bad"]
        assert violations_for({"n": {"type": "any", "customValidation": lambda *args: []}}, {"n": 1}) == []


class TestDynamicConstraints:
    def test_item_constraint_receives_document(self) -> None:
        def floor(doc, old_doc, value, old_value):
            return doc["floor"]

        validators = {"floor": {"type": "integer"}, "n": {"type": "integer", "minimumValue": floor}}
        assert violations_for(validators, {"floor": 5, "n": 4}) == ['item "n" must not be less than 5']

    def test_dynamic_root_validators(self) -> None:
        def validators(doc, old_doc):
            return {"a": {"type": "integer"}}

        assert violations_for(validators, {"a": "x"}) == ['item "a" must be an integer']
