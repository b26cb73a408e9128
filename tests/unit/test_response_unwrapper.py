import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from adapters.response_unwrapper import (
    extract_message,
    is_business_failure,
    unwrap,
    unwrap_collection,
    unwrap_entity,
)


def test_bare_list_is_returned_as_is():
    items = [{"id": 1}, {"id": 2}]
    assert unwrap(items) is items


def test_envelope_with_list_data():
    assert unwrap({"success": True, "data": [{"id": 1}]}) == [{"id": 1}]


def test_doubly_nested_envelope():
    raw = {"success": True, "data": {"data": [{"id": "a"}, {"id": "b"}], "total": 2}}
    assert unwrap(raw) == [{"id": "a"}, {"id": "b"}]


def test_envelope_with_single_entity():
    raw = {"success": True, "data": {"id": "d1", "name": "Eng"}, "message": "ok"}
    assert unwrap(raw) == {"id": "d1", "name": "Eng"}


def test_bare_entity_with_id():
    entity = {"id": 7, "name": "Ops"}
    assert unwrap(entity) is entity


def test_envelope_wins_over_bare_entity_check():
    raw = {"success": True, "data": [{"id": 2}], "id": "request-1"}
    assert unwrap(raw) == [{"id": 2}]


@pytest.mark.parametrize("raw", [
    None,
    "text",
    42,
    {},
    {"name": "no id"},
    {"success": True},
    {"data": [1, 2]},
    {"success": False, "id": 3},
])
def test_unrecognised_shapes_yield_none(raw):
    assert unwrap(raw) is None


def test_null_data_is_a_shape_failure():
    assert unwrap_entity({"success": True, "data": None}) is None


def test_collection_and_entity_narrowing():
    assert unwrap_collection({"id": 1}) is None
    assert unwrap_entity([{"id": 1}]) is None
    assert unwrap_collection({"success": True, "data": []}) == []


def test_business_failure_and_message():
    raw = {"success": False, "message": "Name already taken"}
    assert is_business_failure(raw)
    assert extract_message(raw) == "Name already taken"
    assert not is_business_failure({"success": True, "data": []})


def test_error_field_wins_over_message():
    assert extract_message({"error": "Forbidden", "message": "ignored"}) == "Forbidden"
    assert extract_message({"error": {"message": "Nested"}}) == "Nested"
    assert extract_message({"error": "  "}, "fallback") == "fallback"
    assert extract_message(None, "fallback") == "fallback"
