# tests/test_python_backend.py
"""
Tests for the Python backend: module layout, generator options, imports of
definitions living in other modules, model warnings and result metadata.
"""

import pytest

from fudgeproto.codegen import (
    RegistryError,
    generate_code,
    generate_from_document,
    get_generator,
    load_schema,
)
from fudgeproto.codegen.core.generator import GeneratorError
from fudgeproto.codegen.languages.python import (
    PythonGenerator,
    create_instant_generator,
    create_python_generator,
)
from tests.conftest import (
    ACCOUNTS_SCHEMA,
    ALL_SCHEMA_IDS,
    ALL_SCHEMAS,
    LIBRARY_SCHEMA,
    POINT_SCHEMA,
    SHAPES_SCHEMA,
    document,
    generate_module,
    generate_python,
    message,
    resolved,
)


def _warnings(doc, **options):
    result = generate_from_document(doc, "python", options or None)
    assert result.success, result.error_message
    return result.warnings


@pytest.mark.parametrize("doc", ALL_SCHEMAS, ids=ALL_SCHEMA_IDS)
def test_generated_code_compiles(doc):
    code = generate_python(doc)
    compile(code, "<test>", "exec")


@pytest.mark.parametrize("doc", ALL_SCHEMAS, ids=ALL_SCHEMA_IDS)
def test_generated_code_compiles_without_comments(doc):
    code = generate_python(doc, add_comments=False)
    compile(code, "<test>", "exec")


class TestModuleLayout:

    def test_header(self):
        code = generate_python(POINT_SCHEMA)
        lines = code.splitlines()
        assert lines[0] == "# Automatically created - do not modify"
        assert lines[1] == "# Created from point.proto"

    def test_runtime_import_and_registry(self):
        code = generate_python(POINT_SCHEMA)
        assert "import fudgeproto.runtime as fudge" in code
        assert "DECODERS = fudge.DecoderRegistry()" in code

    def test_class_declaration(self):
        code = generate_python(POINT_SCHEMA)
        assert "# Defined at point.proto:3(1)\nclass Point(fudge.Message):" in code
        assert 'TYPE_TOKEN = "test.geometry.Point"' in code
        assert '"""Message ``test.geometry.Point``."""' in code

    def test_registration(self):
        code = generate_python(POINT_SCHEMA)
        assert code.rstrip().endswith("DECODERS.register(Point.TYPE_TOKEN, Point._decode)")

    def test_context_registration(self):
        code = generate_python(POINT_SCHEMA, to_from_with_context=True)
        assert "DECODERS.register(Point.TYPE_TOKEN, Point._decode, True)" in code

    def test_abstract_message_not_registered(self):
        code = generate_python(SHAPES_SCHEMA)
        assert "register(Shape.TYPE_TOKEN" not in code
        assert "register(Circle.TYPE_TOKEN" in code
        assert "Abstract; decoded through its concrete subtypes." in code

    def test_bases_come_first(self):
        code = generate_python(SHAPES_SCHEMA)
        assert code.index("class Shape(") < code.index("class Circle(Shape):")
        assert code.index("class Shape(") < code.index("class Square(Shape):")

    def test_enum_classes(self):
        code = generate_python(SHAPES_SCHEMA)
        assert "class Color(fudge.IntegerEncodedEnum):" in code
        assert "class Shade(fudge.SymbolicEnum):" in code
        assert "class Finish(fudge.StringEncodedEnum):" in code
        assert "RED = 1" in code
        assert "LIGHT = 0" in code
        assert "MATT = 'm'" in code

    def test_enums_before_messages(self):
        code = generate_python(SHAPES_SCHEMA)
        assert code.index("class Finish(") < code.index("class Shape(")

    def test_array_validation(self):
        code = generate_python(SHAPES_SCHEMA)
        assert 'fudge.check_elements(list(value), "palette")' in code
        assert 'fudge.check_length(self._values, 3, "values"), fudge.WireType.DOUBLE_ARRAY)' in code
        assert "return None if self._values is None else list(self._values)" in code

    def test_dispatch_passes_static_class(self):
        code = generate_python(POINT_SCHEMA)
        assert "obj = DECODERS.dispatch(fudge_msg, Point)" in code

    def test_taxonomy_class(self):
        code = generate_python(LIBRARY_SCHEMA)
        assert "class Names(fudge.MapTaxonomy):" in code
        assert "ORDINAL_TITLE = 1" in code
        assert "NAME_TRACKS = 'tracks'" in code
        assert "Names.INSTANCE = Names()" in code

    def test_nested_aliases(self):
        code = generate_python(LIBRARY_SCHEMA)
        assert "class OuterInner(fudge.Message):" in code
        assert "Outer.Inner = OuterInner" in code
        assert "Outer.Mode = OuterMode" in code
        assert code.index("Outer.Inner = OuterInner") < code.index("DECODERS.register(")

    def test_no_comments(self):
        code = generate_python(POINT_SCHEMA, add_comments=False)
        assert code.startswith("import fudgeproto.runtime as fudge")
        assert "# Defined at" not in code
        assert '"""Message' not in code

    def test_docstrings_option(self):
        code = generate_python(POINT_SCHEMA, docstrings=False)
        assert "# Defined at point.proto:3(1)" in code
        assert '"""Message' not in code

    def test_indent_size(self):
        code = generate_python(POINT_SCHEMA, indent_size=2)
        assert '\n  TYPE_TOKEN = "test.geometry.Point"' in code

    def test_runtime_module(self):
        code = generate_python(POINT_SCHEMA, runtime_module="vendor.fudge_runtime")
        assert "import vendor.fudge_runtime as fudge" in code


class TestGeneratorOptions:

    def test_renamed_runtime_alias_and_registry(self):
        module = generate_module(
            SHAPES_SCHEMA, "renamed", runtime_alias="wire", registry_name="REGISTRY"
        )
        assert module.Circle.TYPE_TOKEN in module.REGISTRY
        assert not hasattr(module, "DECODERS")
        circle = module.Circle("c", 1.5)
        wire = module.wire.MessageFactory()
        assert module.Shape.from_wire(circle.to_wire(wire)) == circle

    @pytest.mark.parametrize("options", [
        {"runtime_alias": "not valid"},
        {"registry_name": "class"},
        {"runtime_alias": "same", "registry_name": "same"},
    ], ids=["bad_alias", "keyword_registry", "same_names"])
    def test_invalid_names(self, options):
        with pytest.raises(RegistryError, match="Failed to create"):
            generate_from_document(POINT_SCHEMA, "python", options)

    def test_create_python_generator(self):
        generator = create_python_generator(package_name="pkg", registry_name="REGISTRY")
        assert isinstance(generator, PythonGenerator)
        assert generator.config.package_name == "pkg"
        assert generator.python_config.registry_name == "REGISTRY"
        assert generator.config.add_comments

    def test_create_instant_generator(self):
        generator = create_instant_generator()
        assert generator.config.datetime_type == "instant"

    def test_generator_properties(self):
        generator = get_generator("py")
        assert generator.language_name == "python"
        assert generator.file_extension == ".py"
        assert generator.get_template_directory().joinpath("module.py.j2").exists()

    def test_single_definition(self):
        generator = get_generator("python")
        model = resolved(POINT_SCHEMA)
        code = generator.generate_single_definition(model.lookup("test.geometry.Point"))
        assert code.startswith("# Defined at point.proto:3(1)")
        assert "DECODERS.register" not in code

    def test_single_definition_rejects_external(self):
        generator = get_generator("python")
        model = resolved(document(message("Ext", external=True)))
        with pytest.raises(GeneratorError, match="Cannot generate a class"):
            generator.generate_single_definition(model.lookup("Ext"))


class TestImports:

    def test_external_base_with_module_binding(self):
        code = generate_python(document(
            message("Base", external=True, bindings={"module": "ext.base"}),
            message("Derived", ("x", "int", {"ordinal": 1}), extends="Base"),
        ))
        assert "from ext.base import Base" in code
        assert "class Derived(Base):" in code
        compile(code, "<test>", "exec")

    def test_non_target_definitions_are_imported(self):
        code = generate_python(document(
            message("Point", ("x", "int", {"ordinal": 1}), target=False),
            {"kind": "enum", "name": "Unit", "values": ["MM", "CM"], "target": False},
            message("Marker",
                    ("at", "Point", {"ordinal": 1}),
                    ("unit", "Unit", {"ordinal": 2})),
            namespace="test.geometry",
        ))
        assert "from geometry import Point, Unit" in code
        assert "class Point(" not in code

    def test_package_name_prefixes_module(self):
        code = generate_python(document(
            message("Point", ("x", "int", {"ordinal": 1}), target=False),
            message("Marker", ("at", "Point", {"ordinal": 1})),
            namespace="test.geometry",
        ), package_name="pkg")
        assert "from pkg.geometry import Point" in code

    def test_local_definitions_are_not_imported(self):
        code = generate_python(SHAPES_SCHEMA)
        assert "\nfrom " not in code


class TestModuleName:

    @pytest.fixture
    def generator(self):
        return get_generator("python")

    def test_binding(self, generator):
        model = resolved(document(message("M", bindings={"module": "custom.mod"})))
        assert generator.module_name(model.lookup("M")) == "custom.mod"

    def test_last_namespace_segment(self, generator):
        model = resolved(document(message("M"), namespace="com.example.OrderBook"))
        assert generator.module_name(model.lookup("com.example.OrderBook.M")) == "order_book"

    def test_nested_uses_top_level(self, generator):
        model = resolved(LIBRARY_SCHEMA)
        inner = model.lookup("test.library.Outer.Inner")
        assert generator.module_name(inner) == "library"

    def test_no_namespace(self, generator):
        model = resolved(document(message("M")))
        assert generator.module_name(model.lookup("M")) == "messages"


class TestWarnings:

    def test_renamed_fields(self):
        warnings = _warnings(document(message(
            "M",
            ("class", "int", {"ordinal": 1}),
            ("to_wire", "int", {"ordinal": 2}),
            ("userName", "string", {"ordinal": 3}),
        )))
        assert "Field M.class renamed to class_" in warnings
        assert "Field M.to_wire renamed to to_wire_" in warnings
        assert not any("userName" in w for w in warnings)

    def test_external_base_without_module(self):
        warnings = _warnings(document(
            message("Base", external=True),
            message("Derived", ("x", "int", {"ordinal": 1}), extends="Base"),
            namespace="test.ext",
        ))
        assert (
            "External base 'Base' of 'Derived' has no module binding; importing it from 'ext'"
            in warnings
        )

    def test_empty_definitions(self):
        warnings = _warnings(document(
            message("Empty"),
            message("Lonely", ("x", "int", {"ordinal": 1}), abstract=True),
            {"kind": "enum", "name": "Nothing", "values": []},
            {"kind": "taxonomy", "name": "Blank"},
        ))
        assert "Message 'Empty' has no fields" in warnings
        assert "Abstract message 'Lonely' has no concrete subtypes" in warnings
        assert "Enum 'Nothing' has no members" in warnings
        assert "Taxonomy 'Blank' has no entries" in warnings

    def test_clean_schema(self):
        assert _warnings(POINT_SCHEMA) == []


class TestResult:

    def test_metadata(self):
        result = generate_from_document(ACCOUNTS_SCHEMA, "python")
        assert result.success
        assert result.metadata["language"] == "python"
        assert result.metadata["file_extension"] == ".py"
        assert result.metadata["output_file"] == "accounts.py"
        assert result.metadata["source"] == "accounts.proto"
        assert result.metadata["namespace"] == "test.accounts"
        assert result.metadata["message_count"] == 5
        assert result.metadata["enum_count"] == 0
        assert result.metadata["builder_count"] == 4
        assert result.metadata["abstract_count"] == 0

    def test_shapes_counts(self):
        metadata = generate_from_document(SHAPES_SCHEMA, "python").metadata
        assert metadata["enum_count"] == 3
        assert metadata["abstract_count"] == 1

    def test_taxonomy_count(self):
        metadata = generate_from_document(LIBRARY_SCHEMA, "python").metadata
        assert metadata["taxonomy_count"] == 1

    def test_output_file_from_config(self):
        result = generate_from_document(POINT_SCHEMA, "python", {"output_file": "geo.py"})
        assert result.metadata["output_file"] == "geo.py"

    def test_source_override(self):
        result = generate_from_document(POINT_SCHEMA, "python", source="other.proto")
        assert "# Created from other.proto" in result.code

    def test_schema_error_is_reported(self):
        result = generate_from_document(document(message("M", ("p", "Missing"))), "python")
        assert not result.success
        assert result.error_message.startswith("Code generation failed:")
        assert "undefined type 'Missing'" in result.error_message
        assert result.code == ""

    def test_invalid_document(self):
        result = generate_from_document({"definitions": "nope"}, "python")
        assert not result.success
        assert result.error_message.startswith("Invalid schema document:")

    def test_generate_code_resolves_model(self):
        model = load_schema(POINT_SCHEMA)
        result = generate_code(get_generator("python"), model)
        assert result.success
        assert model.resolved

    def test_formatting(self):
        code = generate_python(SHAPES_SCHEMA)
        assert code.endswith("\n") and not code.endswith("\n\n")
        assert "\n\n\n\n" not in code
        assert all(line == line.rstrip() for line in code.splitlines())
