# tests/test_resolver.py
"""
Tests for the resolution pass: reference linking, inheritance checks,
field validation, default coercion and override linking.
"""

from datetime import date, time

import pytest

from fudgeproto.codegen.core.loader import load_schema
from fudgeproto.codegen.core.resolver import MAX_ORDINAL, resolve
from fudgeproto.codegen.core.schema import (
    ArrayType,
    EnumType,
    MessageType,
    SchemaError,
    UserType,
)
from tests.conftest import LIBRARY_SCHEMA, SHAPES_SCHEMA, document, message, resolved


def _fail(doc, match):
    with pytest.raises(SchemaError, match=match):
        resolved(doc)


class TestReferences:

    def test_field_types_are_linked(self):
        model = resolved(SHAPES_SCHEMA)
        swatch = model.lookup("test.shapes.Swatch")
        color = model.lookup("test.shapes.Color")
        assert swatch.get_field("color").type == EnumType(color)
        palette = swatch.get_field("palette").type
        assert isinstance(palette, ArrayType)
        assert palette.base_type == EnumType(color)

    def test_extends_is_linked(self):
        model = resolved(SHAPES_SCHEMA)
        circle = model.lookup("test.shapes.Circle")
        shape = model.lookup("test.shapes.Shape")
        assert circle.extends is shape
        assert circle.extends_from(shape)
        assert list(circle.ancestors()) == [shape]

    def test_nested_scope_lookup(self):
        model = resolved(LIBRARY_SCHEMA)
        outer = model.lookup("test.library.Outer")
        inner = model.lookup("test.library.Outer.Inner")
        assert outer.get_field("inner").type == MessageType(inner)

    def test_flags_from_modifiers(self):
        model = resolved(SHAPES_SCHEMA)
        assert model.lookup("test.shapes.Shape").abstract
        assert not model.lookup("test.shapes.Circle").abstract

    def test_resolve_is_idempotent(self):
        model = load_schema(SHAPES_SCHEMA)
        assert resolve(model) is model
        assert resolve(model) is model
        assert model.resolved

    def test_alias_chain(self):
        model = resolved(document(
            {"kind": "typedef", "name": "Inner", "type": "int"},
            {"kind": "typedef", "name": "Outer", "type": "Inner[]"},
            message("M", ("v", "Outer", {"ordinal": 1})),
        ))
        outer = model.lookup("Outer")
        assert isinstance(outer.underlying, ArrayType)
        assert outer.underlying.base_type == UserType(model.lookup("Inner"))

    def test_undefined_type(self):
        _fail(document(message("M", ("p", "Missing"))), "undefined type 'Missing'")

    def test_undefined_type_reports_position(self):
        doc = document(message("M", ("p", "Missing", {"line": 4, "column": 9})))
        with pytest.raises(SchemaError) as info:
            resolved(doc)
        assert info.value.position.line == 4
        assert "test.proto:4(9)" in str(info.value)

    def test_taxonomy_is_not_a_type(self):
        _fail(
            document({"kind": "taxonomy", "name": "T"}, message("M", ("p", "T"))),
            "not a type",
        )

    def test_duplicate_definition(self):
        _fail(document(message("M"), message("M")), "duplicate definition")

    def test_alias_cycle(self):
        _fail(
            document(
                {"kind": "typedef", "name": "A", "type": "B"},
                {"kind": "typedef", "name": "B", "type": "A[]"},
            ),
            "defined in terms of itself",
        )


class TestInheritance:

    def test_undefined_base(self):
        _fail(document(message("M", extends="Nope")), "extends undefined message")

    def test_extends_non_message(self):
        _fail(
            document({"kind": "enum", "name": "E", "values": ["A"]}, message("M", extends="E")),
            "cannot extend non-message",
        )

    def test_extends_itself(self):
        _fail(document(message("M", extends="M")), "extends itself")

    def test_cycle(self):
        _fail(
            document(message("A", extends="B"), message("B", extends="C"), message("C", extends="A")),
            "inheritance cycle",
        )


class TestFieldValidation:

    def test_duplicate_field(self):
        _fail(document(message("M", ("x", "int"), ("x", "long"))), "duplicate field 'x'")

    @pytest.mark.parametrize("ordinal", [0, -1, MAX_ORDINAL + 1], ids=["header", "negative", "too_big"])
    def test_ordinal_range(self, ordinal):
        _fail(document(message("M", ("x", "int", {"ordinal": ordinal}))), "must be between")

    def test_duplicate_ordinal(self):
        _fail(
            document(message("M", ("x", "int", {"ordinal": 1}), ("y", "int", {"ordinal": 1}))),
            "reuses ordinal 1",
        )

    def test_same_ordinal_in_different_messages(self):
        resolved(document(
            message("A", ("x", "int", {"ordinal": 1})),
            message("B", ("x", "int", {"ordinal": 1})),
        ))

    @pytest.mark.parametrize("field", [
        ("flags", "indicator", {"repeated": True}),
        ("flags", "indicator[]"),
    ], ids=["repeated", "array"])
    def test_indicator_collections(self, field):
        _fail(document(message("M", field)), "indicator field")


class TestDefaults:

    def _default(self, field_type, value):
        model = resolved(document(message("M", ("f", field_type, {"default": value}))))
        return model.lookup("M").get_field("f").default

    def test_int(self):
        assert self._default("int", 5) == 5

    def test_float_from_int(self):
        value = self._default("double", 1)
        assert value == 1.0
        assert isinstance(value, float)

    def test_bool(self):
        assert self._default("bool", False) is False
        assert self._default("indicator", True) is True

    def test_string(self):
        assert self._default("string", "hi") == "hi"

    def test_date(self):
        assert self._default("date", "2024-01-15") == date(2024, 1, 15)

    def test_time(self):
        assert self._default("time", "10:30:00") == time(10, 30)

    def test_enum_member(self):
        model = resolved(document(
            {"kind": "enum", "name": "E", "values": ["A", "B"]},
            message("M", ("e", "E", {"default": "B"})),
        ))
        assert model.lookup("M").get_field("e").default == "B"

    @pytest.mark.parametrize("field_type,value", [
        ("int", "five"),
        ("int", 2**40),
        ("byte", 300),
        ("int", True),
        ("bool", 1),
        ("string", 3),
        ("double", "1.5"),
        ("time", "not a time"),
        ("int[]", [1]),
    ], ids=[
        "int_string", "int_overflow", "byte_overflow", "int_bool", "bool_int",
        "string_int", "double_string", "time_garbage", "array",
    ])
    def test_invalid(self, field_type, value):
        with pytest.raises(SchemaError):
            self._default(field_type, value)

    def test_enum_non_member(self):
        _fail(
            document(
                {"kind": "enum", "name": "E", "values": ["A"]},
                message("M", ("e", "E", {"default": "Z"})),
            ),
            "is not a member",
        )

    def test_repeated_default(self):
        _fail(
            document(message("M", ("x", "int", {"repeated": True, "default": 1}))),
            "repeated field",
        )

    def test_message_default(self):
        _fail(
            document(message("P"), message("M", ("p", "P", {"default": "x"}))),
            "cannot have a default",
        )


class TestOverrides:

    def _base(self, *fields):
        return message("Base", *(fields or (("x", "int", {"ordinal": 1, "required": True}),)))

    def test_override_is_linked(self):
        model = resolved(document(
            self._base(),
            message("Derived", ("x", "int", {"override": True, "default": 3}), extends="Base"),
        ))
        base_field = model.lookup("Base").get_field("x")
        derived = model.lookup("Derived")
        assert derived.get_field("x").override is base_field
        assert derived.overrides == {"x": derived.get_field("x")}

    def test_closest_override_wins(self):
        model = resolved(document(
            self._base(),
            message("Mid", ("x", "int", {"override": True, "default": 3}), extends="Base"),
            message("Leaf", ("y", "int"), extends="Mid"),
            message("Top", ("x", "int", {"override": True, "default": 9}), extends="Leaf"),
        ))
        mid_x = model.lookup("Mid").get_field("x")
        top_x = model.lookup("Top").get_field("x")
        assert model.lookup("Leaf").overrides == {"x": mid_x}
        assert model.lookup("Top").overrides == {"x": top_x}
        # linked to the closest ancestor declaration
        assert top_x.override is mid_x

    def test_override_without_base(self):
        _fail(document(message("M", ("x", "int", {"override": True}))), "has no base")

    def test_override_of_nothing(self):
        _fail(
            document(self._base(), message("D", ("z", "int", {"override": True}), extends="Base")),
            "does not override",
        )

    def test_override_changes_type(self):
        _fail(
            document(self._base(), message("D", ("x", "long", {"override": True, "default": 1}),
                                           extends="Base")),
            "must keep the type",
        )

    def test_override_changes_repeated(self):
        _fail(
            document(self._base(), message("D", ("x", "int", {"override": True, "repeated": True}),
                                           extends="Base")),
            "repeated flag",
        )

    def test_override_drops_required(self):
        _fail(
            document(self._base(), message("D", ("x", "int", {"override": True}), extends="Base")),
            "must be required or carry a default",
        )

    def test_hidden_field(self):
        _fail(
            document(self._base(), message("D", ("x", "int", {"ordinal": 2}), extends="Base")),
            "hides an inherited field",
        )


class TestEnumsAndTaxonomies:

    def test_symbolic_member_with_value(self):
        _fail(document({"kind": "enum", "name": "E", "values": [["A", 1]]}), "cannot declare a value")

    def test_integer_member_without_value(self):
        _fail(
            document({"kind": "enum", "name": "E", "encoding": "integer", "values": ["A"]}),
            "needs a int value",
        )

    def test_string_member_with_int(self):
        _fail(
            document({"kind": "enum", "name": "E", "encoding": "string", "values": [["A", 1]]}),
            "needs a str value",
        )

    def test_duplicate_member(self):
        _fail(document({"kind": "enum", "name": "E", "values": ["A", "A"]}), "duplicate member")

    def test_duplicate_value(self):
        _fail(
            document({"kind": "enum", "name": "E", "encoding": "integer",
                      "values": [["A", 1], ["B", 1]]}),
            "duplicate value",
        )

    def test_taxonomy_repeats(self):
        _fail(
            document({"kind": "taxonomy", "name": "T", "entries": [[1, "a"], [1, "b"]]}),
            "repeats entry",
        )

    def test_taxonomy_ordinal_range(self):
        _fail(document({"kind": "taxonomy", "name": "T", "entries": [[0, "a"]]}), "out of range")
