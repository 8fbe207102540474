"""Tests for the total tag accessors."""

import json

import pytest

from tags import (
    Tag,
    TagType,
    first_present,
    get_compound,
    get_compound_at,
    get_compound_list,
    get_double_at,
    get_int,
    get_list,
    get_string,
    get_string_at,
    get_tag,
    has_key,
    to_json,
    to_python,
)

WRONG_SHAPES = [
    None,
    Tag.end(),
    Tag.int(3),
    Tag.string("text"),
    Tag.byte_array(b"\x01"),
    Tag.list(TagType.INT, [Tag.int(1)]),
    Tag.compound({"other": Tag.byte(1)}),
]


@pytest.fixture
def book_tag():
    return Tag.compound(
        {
            "title": Tag.string("My Book"),
            "generation": Tag.byte(2),
            "pages": Tag.list(TagType.STRING, [Tag.string("p1"), Tag.string("p2")]),
            "display": Tag.compound({"Name": Tag.string("x")}),
            "Pos": Tag.list(TagType.DOUBLE, [Tag.double(10.7), Tag.double(-3.2), Tag.double(5.0)]),
        }
    )


class TestTotality:
    """Tests that accessors return defaults instead of raising."""

    @pytest.mark.parametrize("node", WRONG_SHAPES)
    def test_compound_accessors_on_wrong_shapes(self, node):
        assert has_key(node, "key") is False
        assert get_tag(node, "key") is None
        assert get_compound(node, "key") == Tag.compound()
        assert get_list(node, "key").value == []
        assert get_compound_list(node, "key") == []
        assert get_string(node, "key") == ""
        assert get_int(node, "key") == 0
        assert get_int(node, "key", default=-1) == -1

    @pytest.mark.parametrize("node", WRONG_SHAPES)
    def test_list_accessors_on_wrong_shapes(self, node):
        assert get_double_at(node, 5) == 0.0
        assert get_compound_at(node, 5) == Tag.compound()
        assert get_string_at(node, 5) == ""

    def test_defaults_are_fresh(self):
        first = get_compound(None, "a")
        first.value["x"] = Tag.int(1)
        assert get_compound(None, "a") == Tag.compound()

    def test_negative_index_is_out_of_range(self, book_tag):
        pos = get_list(book_tag, "Pos")
        assert get_double_at(pos, -1) == 0.0
        assert get_string_at(pos, -1) == ""


class TestCompoundAccessors:
    """Tests for typed access to compound children."""

    def test_get_string(self, book_tag):
        assert get_string(book_tag, "title") == "My Book"
        assert get_string(book_tag, "generation") == ""

    def test_get_int_coerces_numerics(self):
        compound = Tag.compound(
            {
                "b": Tag.byte(-3),
                "l": Tag.long(2**40),
                "d": Tag.double(-2.9),
                "f": Tag.float(7.5),
                "s": Tag.string("12"),
            }
        )
        assert get_int(compound, "b") == -3
        assert get_int(compound, "l") == 2**40
        assert get_int(compound, "d") == -2
        assert get_int(compound, "f") == 7
        assert get_int(compound, "s") == 0

    def test_get_int_non_finite_uses_default(self):
        compound = Tag.compound({"inf": Tag.double(float("inf"))})
        assert get_int(compound, "inf", default=4) == 4

    def test_get_list_empty_list_is_default(self):
        compound = Tag.compound({"pages": Tag.list(TagType.END)})
        assert get_list(compound, "pages").value == []

    def test_get_compound_list_requires_compound_elements(self, book_tag):
        assert get_compound_list(book_tag, "pages") == []
        items = Tag.compound(
            {"Items": Tag.list(TagType.COMPOUND, [Tag.compound({"id": Tag.string("a")})])}
        )
        assert len(get_compound_list(items, "Items")) == 1

    def test_first_present(self):
        legacy = Tag.compound({"TileEntities": Tag.list(TagType.END)})
        modern = Tag.compound(
            {"block_entities": Tag.list(TagType.END), "TileEntities": Tag.list(TagType.END)}
        )
        keys = ("block_entities", "TileEntities")
        assert first_present(legacy, keys) == "TileEntities"
        assert first_present(modern, keys) == "block_entities"
        assert first_present(Tag.compound(), keys) is None


class TestListAccessors:
    """Tests for indexed access to list elements."""

    def test_get_double_at(self, book_tag):
        pos = get_list(book_tag, "Pos")
        assert get_double_at(pos, 0) == pytest.approx(10.7)
        assert get_double_at(pos, 3) == 0.0

    def test_get_double_at_parses_strings(self):
        pos = Tag.list(TagType.STRING, [Tag.string("12.5"), Tag.string("north")])
        assert get_double_at(pos, 0) == 12.5
        assert get_double_at(pos, 1) == 0.0

    def test_get_string_at_compound_is_json(self):
        messages = Tag.list(
            TagType.COMPOUND, [Tag.compound({"text": Tag.string("Hi")})]
        )
        assert json.loads(get_string_at(messages, 0)) == {"text": "Hi"}

    def test_get_string_at_other_element_uses_text_form(self):
        numbers = Tag.list(TagType.INT, [Tag.int(42)])
        assert get_string_at(numbers, 0) == "42"

    def test_get_compound_at(self):
        items = Tag.list(TagType.COMPOUND, [Tag.compound({"id": Tag.string("x")})])
        assert get_string(get_compound_at(items, 0), "id") == "x"


class TestConversion:
    """Tests for plain-Python and JSON conversion."""

    def test_to_python(self, book_tag):
        converted = to_python(book_tag)
        assert converted["title"] == "My Book"
        assert converted["pages"] == ["p1", "p2"]
        assert converted["display"] == {"Name": "x"}

    def test_to_python_byte_array_is_signed(self):
        assert to_python(Tag.byte_array(b"\x01\xff")) == [1, -1]

    def test_to_python_keeps_key_order(self):
        tag = Tag.compound({"b": Tag.int(1), "a": Tag.compound({"z": Tag.int(2), "y": Tag.int(3)})})
        assert list(to_python(tag)) == ["b", "a"]
        assert list(to_python(tag)["a"]) == ["z", "y"]

    def test_to_python_handles_nesting_past_recursion_limit(self):
        tag = Tag.string("leaf")
        for _ in range(5000):
            tag = Tag.compound({"extra": Tag.list(TagType.COMPOUND, [Tag.compound({"c": tag})])})

        node = to_python(tag)
        depth = 0
        while isinstance(node, dict):
            node = node["extra"][0]["c"]
            depth += 1
        assert (depth, node) == (5000, "leaf")

    def test_to_json_is_compact(self):
        assert to_json(Tag.compound({"text": Tag.string("a")})) == '{"text":"a"}'
