import json

import pytest

from cephalopod.jsonvalue import (
    JsonShapeError,
    JsonType,
    check_shape,
    dump,
    sort_key,
    type_of,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, JsonType.NUL),
        (True, JsonType.BOOL),
        (False, JsonType.BOOL),
        (3, JsonType.NUMBER),
        (2.5, JsonType.NUMBER),
        ("s", JsonType.STRING),
        ([1], JsonType.ARRAY),
        ((1, 2), JsonType.ARRAY),
        ({"a": 1}, JsonType.OBJECT),
    ],
)
def test_type_of(value, expected):
    assert type_of(value) is expected


def test_type_of_rejects_non_json():
    with pytest.raises(TypeError):
        type_of(object())


def test_dump_scalars():
    assert dump(None) == "null"
    assert dump(True) == "true"
    assert dump(False) == "false"


def test_dump_non_finite_is_null():
    assert dump(float("inf")) == "null"
    assert dump(float("nan")) == "null"


def test_dump_separators_and_key_order():
    text = dump({"b": [1, 2], "a": "x"})
    assert text == '{"a": "x", "b": [1, 2]}'


def test_dump_escapes_line_separators():
    assert dump("\u2028\u2029") == '"\\u2028\\u2029"'


def test_dump_control_character_uses_u_escape():
    text = dump("\x01")
    assert json.loads(text) == "\x01"
    assert "\\u0001" in text


def test_dump_rejects_non_string_keys():
    with pytest.raises(TypeError):
        dump({1: 2})


@pytest.mark.parametrize(
    "value",
    [
        0.1,
        -1234.5678e10,
        123456789,
        "quote \" back \\ tab \t newline \n",
        "unicode \u00e9\u4e2d",
        [None, True, [1.5, {"k": []}]],
        {"z": {"y": [1, 2, 3]}, "a": None},
    ],
)
def test_dump_round_trips_through_json(value):
    assert json.loads(dump(value)) == value


def test_float_dump_is_exact():
    value = 1.0 / 3.0
    assert float(dump(value)) == value


def test_sort_key_orders_by_type_first():
    values = [{"a": 1}, [1], "s", True, 5, None]
    ordered = sorted(values, key=sort_key)
    assert [type_of(v) for v in ordered] == sorted(type_of(v) for v in values)


def test_sort_key_distinguishes_bool_from_number():
    assert sort_key(True) != sort_key(1)
    assert sort_key(1) == sort_key(1.0)


def test_sort_key_numbers_and_strings():
    assert sort_key(1) < sort_key(2.5)
    assert sort_key("abc") < sort_key("abd")
    assert sort_key(False) < sort_key(True)


def test_sort_key_arrays_lexicographic():
    assert sort_key([1, 2]) < sort_key([1, 3])
    assert sort_key([1]) < sort_key([1, 0])


def test_sort_key_objects_ignore_insertion_order():
    assert sort_key({"a": 1, "b": 2}) == sort_key({"b": 2, "a": 1})
    assert sort_key({"a": 1}) < sort_key({"a": 2})


def test_check_shape_accepts_matching_object():
    obj = {"name": "n", "count": 2, "tags": []}
    check_shape(obj, {"name": JsonType.STRING, "count": JsonType.NUMBER})
    check_shape(obj, [("tags", JsonType.ARRAY), ("missing", JsonType.NUL)])
    assert obj["count"] == 2


def test_check_shape_rejects_non_object():
    with pytest.raises(JsonShapeError, match="expected JSON object, got"):
        check_shape([1], {})


def test_check_shape_reports_bad_field():
    with pytest.raises(JsonShapeError, match="bad type for count"):
        check_shape({"count": "x"}, [("count", JsonType.NUMBER)])


def test_check_shape_missing_field_is_null():
    with pytest.raises(JsonShapeError):
        check_shape({}, {"rect": JsonType.ARRAY})