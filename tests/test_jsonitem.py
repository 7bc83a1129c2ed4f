import pytest

from wifidog.jsonitem import (
    JsonItem,
    JsonType,
    create_array,
    create_bool,
    create_double_array,
    create_false,
    create_int_array,
    create_null,
    create_number,
    create_object,
    create_string,
    create_string_array,
    create_true,
)


def _sample_object():
    obj = create_object()
    obj.add_item_to_object("alpha", create_number(1))
    obj.add_item_to_object("Beta", create_string("two"))
    obj.add_item_to_object("gamma", create_true())
    return obj


def test_simple_constructors_have_header_type_codes():
    assert create_false().type == 0
    assert create_true().type == 1
    assert create_null().type == 2
    assert create_array().type == JsonType.ARRAY
    assert create_object().type == JsonType.OBJECT


@pytest.mark.parametrize("flag, expected", [(1, JsonType.TRUE), (0, JsonType.FALSE)])
def test_create_bool(flag, expected):
    assert create_bool(flag).type is expected


def test_create_number_keeps_double_and_truncates_int():
    item = create_number(3.75)
    assert item.type is JsonType.NUMBER
    assert item.value_double == 3.75
    assert item.value_int == 3


def test_create_number_truncates_toward_zero():
    assert create_number(-2.5).value_int == -2


def test_create_string():
    item = create_string("hello")
    assert item.type is JsonType.STRING
    assert item.value_string == "hello"


def test_int_array_members_in_order():
    arr = create_int_array([4, 5, 6])
    assert len(arr) == 3
    assert [c.value_int for c in arr] == [4, 5, 6]
    assert all(c.type is JsonType.NUMBER for c in arr)


def test_double_and_string_arrays():
    doubles = create_double_array([0.5, 1.5])
    assert [c.value_double for c in doubles] == [0.5, 1.5]
    strings = create_string_array(["a", "b"])
    assert [c.value_string for c in strings] == ["a", "b"]


def test_empty_arrays():
    assert len(create_int_array([])) == 0
    assert create_string_array([]).get_array_item(0) is None


def test_get_array_item_bounds():
    arr = create_string_array(["x", "y"])
    assert arr.get_array_item(1).value_string == "y"
    assert arr.get_array_item(2) is None
    assert arr.get_array_item(-1).value_string == "x"


def test_get_object_item_ignores_case():
    obj = _sample_object()
    assert obj.get_object_item("BETA").value_string == "two"
    assert obj.get_object_item("alpha").value_int == 1
    assert obj.get_object_item("delta") is None


def test_add_item_to_object_sets_name():
    obj = _sample_object()
    assert [c.name for c in obj] == ["alpha", "Beta", "gamma"]


def test_add_none_is_ignored():
    arr = create_array()
    arr.add_item_to_array(None)
    arr.add_item_to_object("k", None)
    assert len(arr) == 0


def test_reference_shares_contents():
    inner = create_int_array([1])
    outer = create_array()
    outer.add_reference_to_array(inner)
    ref = outer.get_array_item(0)
    assert ref is not inner
    assert ref.is_reference
    assert not inner.is_reference
    inner.add_item_to_array(create_number(2))
    assert [c.value_int for c in ref] == [1, 2]


def test_reference_to_object_takes_new_name():
    item = create_string("v")
    item.name = "original"
    obj = create_object()
    obj.add_reference_to_object("alias", item)
    assert obj.get_object_item("alias").value_string == "v"
    assert item.name == "original"


def test_detach_from_array():
    arr = create_string_array(["a", "b", "c"])
    taken = arr.detach_from_array(1)
    assert taken.value_string == "b"
    assert [c.value_string for c in arr] == ["a", "c"]
    assert arr.detach_from_array(5) is None


def test_delete_from_array():
    arr = create_int_array([7, 8])
    arr.delete_from_array(0)
    assert [c.value_int for c in arr] == [8]


def test_detach_and_delete_from_object():
    obj = _sample_object()
    taken = obj.detach_from_object("ALPHA")
    assert taken.name == "alpha"
    assert obj.get_object_item("alpha") is None
    obj.delete_from_object("beta")
    assert [c.name for c in obj] == ["gamma"]
    assert obj.detach_from_object("missing") is None


def test_replace_in_array():
    arr = create_string_array(["a", "b"])
    arr.replace_in_array(0, create_string("z"))
    assert [c.value_string for c in arr] == ["z", "b"]
    arr.replace_in_array(9, create_string("q"))
    assert [c.value_string for c in arr] == ["z", "b"]


def test_replace_in_object_renames_new_item():
    obj = _sample_object()
    obj.replace_in_object("BETA", create_false())
    replaced = obj.get_array_item(1)
    assert replaced.type is JsonType.FALSE
    assert replaced.name == "BETA"
    assert len(obj) == 3


def test_duplicate_recursive_is_deep():
    obj = _sample_object()
    obj.add_item_to_object("list", create_int_array([1, 2]))
    dup = obj.duplicate(True)
    assert [c.name for c in dup] == [c.name for c in obj]
    assert all(a is not b for a, b in zip(dup, obj))
    dup.get_object_item("list").delete_from_array(0)
    assert len(obj.get_object_item("list")) == 2


def test_duplicate_shallow_drops_children():
    obj = _sample_object()
    obj.name = "root"
    dup = obj.duplicate(False)
    assert len(dup) == 0
    assert dup.type is JsonType.OBJECT
    assert dup.name == "root"


def test_duplicate_of_reference_is_not_reference():
    holder = create_array()
    holder.add_reference_to_array(create_string("s"))
    dup = holder.get_array_item(0).duplicate(True)
    assert dup.is_reference is False
    assert dup.value_string == "s"


def test_default_item_is_null():
    item = JsonItem()
    assert item.type is JsonType.NULL
    assert list(item) == []