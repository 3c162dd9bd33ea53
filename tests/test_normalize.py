import pytest

from bookrunner.errors import MalformedSection
from bookrunner.normalize import Int64, MapSlice, UInt64, normalize, normalize_mapping, normalize_mapping_list


def test_negative_int_widens_to_signed():
    v = normalize(-5)
    assert isinstance(v, Int64)
    assert v == -5


def test_non_negative_int_widens_to_unsigned():
    assert isinstance(normalize(5), UInt64)
    assert isinstance(normalize(0), UInt64)


def test_bool_is_not_an_integer():
    assert normalize(True) is True
    assert normalize(False) is False


def test_keys_are_stringified():
    got = normalize({2: "a", True: "b", None: "c", "d": 2.5})
    assert got == {"2": "a", "true": "b", "null": "c", "d": 2.5}


def test_map_slice_keeps_order():
    got = normalize(MapSlice.of(("z", 1), ("a", 2)))
    assert list(got) == ["z", "a"]
    assert isinstance(got["z"], UInt64)


def test_normalize_is_idempotent():
    samples = [
        {1: [-1, {"a": MapSlice.of(("b", 2))}], "x": (1, 2), None: 1.5, False: "s"},
        [MapSlice.of((3, [-7, None]))],
        "plain",
        -9,
        12,
        None,
    ]
    for x in samples:
        once = normalize(x)
        twice = normalize(once)
        assert twice == once
        assert type(twice) is type(once)


def test_nested_ints_keep_their_width():
    got = normalize({"list": [-1, 2], "map": {3: -4}})
    assert isinstance(got["list"][0], Int64)
    assert isinstance(got["list"][1], UInt64)
    assert isinstance(got["map"]["3"], Int64)


def test_str_of_normalized_int_is_plain_decimal():
    assert str(normalize(-5)) == "-5"
    assert f"{normalize(7)}" == "7"


def test_normalize_mapping_requires_mapping():
    assert normalize_mapping(None, "vars") == {}
    with pytest.raises(MalformedSection) as exc:
        normalize_mapping(["a"], "vars")
    assert exc.value.section == "vars"


def test_mapping_list_names_offending_index():
    with pytest.raises(MalformedSection) as exc:
        normalize_mapping_list([{"a": 1}, [1, 2]], "steps")
    assert exc.value.section == "steps[1]"
