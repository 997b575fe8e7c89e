"""
Tests for JSON extraction helpers
"""
import json

import pytest

from secretary.utils.json_utils import find_first_json_object, loads_lenient, repair_json


class TestFindFirstJsonObject:
    """find_first_json_object"""

    def test_object_in_prose(self):
        text = 'Here you go: {"intent": "other", "tool_calls": []} hope that helps'
        assert find_first_json_object(text) == '{"intent": "other", "tool_calls": []}'

    def test_nested_braces(self):
        text = 'x {"a": {"b": {"c": 1}}} y'
        assert json.loads(find_first_json_object(text)) == {"a": {"b": {"c": 1}}}

    def test_braces_inside_strings(self):
        text = '{"title": "party {bring snacks}", "note": "escaped \\" quote }"}'
        assert find_first_json_object(text) == text

    def test_unbalanced_then_balanced(self):
        assert find_first_json_object('{ broken and then {"ok": true}') == '{"ok": true}'

    @pytest.mark.parametrize("text", ["", "no json here", "{ never closed"])
    def test_nothing_found(self, text):
        assert find_first_json_object(text) is None


class TestRepair:
    """repair_json and loads_lenient"""

    def test_single_quotes_and_trailing_comma(self):
        assert json.loads(repair_json("{'name': 'list_calendar_events',}")) == {"name": "list_calendar_events"}

    def test_unquoted_keys(self):
        assert json.loads(repair_json('{name: "x", arguments: {}}')) == {"name": "x", "arguments": {}}

    def test_loads_lenient_valid_json_untouched(self):
        assert loads_lenient('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_loads_lenient_repairs(self):
        assert loads_lenient("{'a': 'b',}") == {"a": "b"}

    def test_loads_lenient_gives_up(self):
        with pytest.raises(json.JSONDecodeError):
            loads_lenient("{not: json: at all")
