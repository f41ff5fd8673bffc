"""Tests for violation wording and value rendering."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from docwarden.domain import messages
from docwarden.domain.types import ValidatorKind


class TestValueRendering:
    def test_to_json_is_compact(self) -> None:
        assert messages.to_json({"a": [1, True, None]}) == '{"a":[1,true,null]}'

    def test_integral_floats_drop_fraction(self) -> None:
        assert messages.to_json(2.0) == "2"
        assert messages.format_value(2.0) == "2"
        assert messages.format_value(2.5) == "2.5"

    def test_scalars(self) -> None:
        assert messages.format_value(None) == "null"
        assert messages.format_value(False) == "false"
        assert messages.format_value(["a", 1]) == "a,1"

    def test_temporal_values(self) -> None:
        moment = datetime(2016, 6, 24, 5, 52, 17, 123000, tzinfo=timezone.utc)
        assert messages.format_value(moment) == "2016-06-24T05:52:17.123Z"
        assert messages.to_json(date(2016, 6, 24)) == '"2016-06-24"'

    def test_regex_notation(self) -> None:
        assert messages.format_regex(re.compile(r"^\d+$")) == r"/^\d+$/"
        assert messages.format_regex(re.compile("abc", re.IGNORECASE | re.MULTILINE)) == "/abc/im"


class TestWording:
    def test_item_messages(self) -> None:
        assert messages.required("a.b") == 'item "a.b" must not be null or missing'
        assert messages.wrong_type("id", ValidatorKind.UUID) == 'item "id" must be a UUID string'
        assert messages.not_predefined("c", ["red", 2]) == 'item "c" must be one of the predefined values: red,2'
        assert messages.too_short("s", 3) == 'length of item "s" must not be less than 3'

    def test_hashtable_messages(self) -> None:
        assert messages.hashtable_too_large("h", 2) == 'hashtable "h" must not be larger than 2 elements'
        assert messages.empty_hashtable_key("h") == 'hashtable "h" must not have an empty key'

    def test_rejection_joins_violations(self) -> None:
        result = messages.rejection("widget", ["first", "second"])
        assert result == "Invalid widget document: first; second"
