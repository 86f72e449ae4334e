# tests/test_manifest.py
"""
Tests for the manifest backend, which describes the generation plans of a
schema as a JSON document.
"""

import json

import pytest

from fudgeproto.codegen import generate_from_document, get_generator
from fudgeproto.codegen.core.generator import GeneratorError
from fudgeproto.codegen.core.schema import NULL_MESSAGE
from fudgeproto.codegen.languages.manifest import ManifestGenerator, create_manifest_generator
from tests.conftest import (
    ACCOUNTS_SCHEMA,
    ALL_SCHEMA_IDS,
    ALL_SCHEMAS,
    EVENTS_SCHEMA,
    LIBRARY_SCHEMA,
    POINT_SCHEMA,
    PRICES_SCHEMA,
    SHAPES_SCHEMA,
    document,
    message,
    resolved,
)


def _manifest(doc, **options):
    result = generate_from_document(doc, "manifest", options or None)
    assert result.success, result.error_message
    return json.loads(result.code)


def _entry(manifest, name):
    return next(m for m in manifest["messages"] if m["name"] == name)


def _field(entry, name):
    return next(f for f in entry["fields"] if f["name"] == name)


@pytest.mark.parametrize("doc", ALL_SCHEMAS, ids=ALL_SCHEMA_IDS)
def test_manifest_is_json(doc):
    manifest = _manifest(doc)
    assert set(manifest) == {"source", "namespace", "enums", "taxonomies", "messages"}
    assert manifest["source"] == doc["source"]


class TestMessages:

    def test_point(self):
        entry = _entry(_manifest(POINT_SCHEMA), "Point")
        assert entry["identifier"] == "test.geometry.Point"
        assert entry["position"] == "point.proto:3(1)"
        assert entry["base"] is None
        assert entry["abstract"] is False
        assert entry["type_token"] == "test.geometry.Point"
        assert entry["decode_order"] == ["x", "y"]

    def test_direct_constructor(self):
        entry = _entry(_manifest(SHAPES_SCHEMA), "Circle")
        assert entry["base"] == "test.shapes.Shape"
        assert entry["shape"] == "direct"
        assert entry["parameters"] == ["name", "radius"]
        assert entry["super_arguments"] == [{"name": "name", "source": "parameter"}]
        assert entry["bridge"] is None

    def test_builder_constructor(self):
        entry = _entry(_manifest(ACCOUNTS_SCHEMA), "Account")
        assert entry["shape"] == "builder"
        assert entry["bridge"] == "test.accounts.Entity"
        assert entry["defaults"] == ["balance"]
        assert entry["builder_setters"] == ["balance", "tags"]
        assert entry["equality"] == ["owner", "balance", "tags"]

    def test_abstract(self):
        entry = _entry(_manifest(SHAPES_SCHEMA), "Shape")
        assert entry["abstract"] is True

    def test_accessors(self):
        entry = _entry(_manifest(SHAPES_SCHEMA), "Swatch")
        assert entry["accessors"] == [
            {"name": "color", "mutable": False},
            {"name": "shade", "mutable": True},
            {"name": "finish", "mutable": True},
            {"name": "palette", "mutable": True},
        ]

    def test_bases_listed_first(self):
        names = [m["name"] for m in _manifest(SHAPES_SCHEMA)["messages"]]
        assert names.index("Shape") < names.index("Circle")
        assert names.index("Shape") < names.index("Square")

    def test_with_context(self):
        manifest = _manifest(PRICES_SCHEMA)
        assert _entry(manifest, "Price")["with_context"] is True
        assert _entry(_manifest(POINT_SCHEMA), "Point")["with_context"] is False

    def test_external_messages_are_skipped(self):
        manifest = _manifest(document(
            message("Ext", external=True),
            message("M", ("x", "int", {"ordinal": 1})),
        ))
        assert [m["name"] for m in manifest["messages"]] == ["M"]


class TestFields:

    def test_key_tagged_field(self):
        radius = _field(_entry(_manifest(SHAPES_SCHEMA), "Circle"), "radius")
        assert radius["type"] == "double"
        assert radius["ordinal"] is None
        assert radius["key"] == "radius"
        assert radius["required"] is True
        assert radius["override"] is None
        assert radius["copy"] == {"action": "alias"}
        assert radius["codec"] == {"kind": "scalar", "wire_type": "DOUBLE"}

    def test_array_codec(self):
        values = _field(_entry(_manifest(SHAPES_SCHEMA), "Matrix"), "values")
        assert values["type"] == "double[3]"
        assert values["codec"] == {
            "kind": "primitive_array",
            "wire_type": "DOUBLE_ARRAY",
            "element": {"kind": "scalar", "wire_type": "DOUBLE"},
            "fixed_length": 3,
        }

    def test_enum_codec(self):
        color = _field(_entry(_manifest(SHAPES_SCHEMA), "Swatch"), "color")
        assert color["codec"] == {
            "kind": "enum_int",
            "wire_type": "INT",
            "type_token": "test.shapes.Color",
        }

    def test_enum_array_copy(self):
        palette = _field(_entry(_manifest(SHAPES_SCHEMA), "Swatch"), "palette")
        assert palette["copy"] == {"action": "array", "non_null_elements": True}
        assert palette["codec"]["kind"] == "enum_int_array"

    def test_override(self):
        wheels = _field(_entry(_manifest(ACCOUNTS_SCHEMA), "Bike"), "wheels")
        assert wheels["override"] == "test.accounts.Vehicle"
        assert wheels["default"] == 2

    def test_temporal_default(self):
        day = _field(_entry(_manifest(EVENTS_SCHEMA), "Event"), "day")
        assert day["default"] == "2024-01-15"
        assert day["codec"]["kind"] == "temporal"

    def test_repeated_message(self):
        shapes = _field(_entry(_manifest(SHAPES_SCHEMA), "Drawing"), "shapes")
        assert shapes["type"] == "Shape message"
        assert shapes["repeated"] is True
        assert shapes["codec"]["kind"] == "message"
        assert shapes["codec"]["type_token"] == "test.shapes.Shape"


class TestEnumsAndTaxonomies:

    def test_enums(self):
        enums = {e["name"]: e for e in _manifest(SHAPES_SCHEMA)["enums"]}
        assert enums["Color"]["encoding"] == "integer"
        assert enums["Color"]["members"] == [["RED", 1], ["GREEN", 2], ["BLUE", 3]]
        assert enums["Shade"]["encoding"] == "symbolic"
        assert enums["Finish"]["members"] == [["MATT", "m"], ["GLOSS", "g"]]

    def test_nested_enum(self):
        enums = _manifest(LIBRARY_SCHEMA)["enums"]
        assert [e["identifier"] for e in enums] == ["test.library.Outer.Mode"]

    def test_taxonomies(self):
        taxonomies = _manifest(LIBRARY_SCHEMA)["taxonomies"]
        assert taxonomies[0]["name"] == "Names"
        assert taxonomies[0]["entries"] == [[1, "title"], [2, "tracks"]]


class TestOptions:

    def test_positions_can_be_dropped(self):
        entry = _entry(_manifest(POINT_SCHEMA, include_positions=False), "Point")
        assert "position" not in entry

    def test_indent(self):
        code = generate_from_document(POINT_SCHEMA, "manifest").code
        assert '\n  "source": "point.proto"' in code

    def test_alias_and_metadata(self):
        result = generate_from_document(POINT_SCHEMA, "json")
        assert result.metadata["language"] == "manifest"
        assert result.metadata["file_extension"] == ".json"
        assert result.metadata["output_file"] == "geometry.json"

    def test_factory(self):
        generator = create_manifest_generator()
        assert isinstance(generator, ManifestGenerator)
        assert generator.config.indent_size == 2
        assert generator.include_positions


class TestSingleDefinition:

    def test_message(self):
        generator = get_generator("manifest")
        model = resolved(POINT_SCHEMA)
        entry = json.loads(generator.generate_single_definition(model.lookup("test.geometry.Point")))
        assert entry["name"] == "Point"
        assert [f["name"] for f in entry["fields"]] == ["x", "y"]

    def test_enum(self):
        generator = get_generator("manifest")
        model = resolved(SHAPES_SCHEMA)
        entry = json.loads(generator.generate_single_definition(model.lookup("test.shapes.Shade")))
        assert entry["members"][0][0] == "LIGHT"

    def test_sentinel(self):
        with pytest.raises(GeneratorError, match="Cannot describe"):
            get_generator("manifest").generate_single_definition(NULL_MESSAGE)
