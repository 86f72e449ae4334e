# tests/conftest.py
"""
Shared schema documents and helpers for the fudgeproto test suite.

Documents follow the loader's JSON shape. ``generate_module`` compiles a
document with the Python backend and executes the result so tests can work
with the generated classes directly.
"""

import types

import pytest

from fudgeproto.codegen import generate_from_document
from fudgeproto.codegen.core.loader import load_schema
from fudgeproto.codegen.core.resolver import resolve


# ═══════════════════════════════════════════════════════════════════
#  SCHEMA DOCUMENTS
# ═══════════════════════════════════════════════════════════════════

POINT_SCHEMA = {
    "source": "point.proto",
    "namespace": "test.geometry",
    "definitions": [
        {
            "kind": "message",
            "name": "Point",
            "line": 3,
            "column": 1,
            "fields": [
                {"name": "x", "type": "int", "ordinal": 1, "required": True},
                {"name": "y", "type": "int", "ordinal": 2, "required": True},
            ],
        },
    ],
}

SAMPLE_SCHEMA = {
    "source": "sample.proto",
    "namespace": "test.sample",
    "definitions": [
        {
            "name": "Sample",
            "fields": [
                {"name": "value", "type": "int", "ordinal": 1, "default": 5},
                {"name": "label", "type": "string", "ordinal": 2},
            ],
        },
    ],
}

SHAPES_SCHEMA = {
    "source": "shapes.proto",
    "namespace": "test.shapes",
    "definitions": [
        {
            "kind": "enum",
            "name": "Color",
            "encoding": "integer",
            "values": [["RED", 1], ["GREEN", 2], ["BLUE", 3]],
        },
        {"kind": "enum", "name": "Shade", "values": ["LIGHT", "DARK"]},
        {
            "kind": "enum",
            "name": "Finish",
            "encoding": "string",
            "values": {"MATT": "m", "GLOSS": "g"},
        },
        {
            "name": "Shape",
            "abstract": True,
            "fields": [{"name": "name", "type": "string", "ordinal": 1, "required": True}],
        },
        {
            "name": "Circle",
            "extends": "Shape",
            "fields": [{"name": "radius", "type": "double", "required": True}],
        },
        {
            "name": "Square",
            "extends": "Shape",
            "fields": [{"name": "side", "type": "double", "ordinal": 2, "required": True}],
        },
        {
            "name": "Drawing",
            "fields": [
                {
                    "name": "shapes",
                    "type": "Shape",
                    "ordinal": 1,
                    "repeated": True,
                    "required": True,
                },
            ],
        },
        {
            "name": "Swatch",
            "fields": [
                {"name": "color", "type": "Color", "ordinal": 1, "required": True},
                {"name": "shade", "type": "Shade", "ordinal": 2, "mutable": True},
                {"name": "finish", "type": "Finish", "ordinal": 3, "mutable": True},
                {"name": "palette", "type": "Color[]", "ordinal": 4, "mutable": True},
            ],
        },
        {
            "name": "Matrix",
            "fields": [
                {"name": "values", "type": "double[3]", "ordinal": 1, "required": True},
                {"name": "grid", "type": "double[2][2]", "ordinal": 2, "mutable": True},
            ],
        },
    ],
}

ACCOUNTS_SCHEMA = {
    "source": "accounts.proto",
    "namespace": "test.accounts",
    "definitions": [
        {
            "name": "Entity",
            "fields": [{"name": "id", "type": "long", "ordinal": 1, "required": True}],
        },
        {
            "name": "Account",
            "extends": "Entity",
            "fields": [
                {"name": "owner", "type": "string", "ordinal": 2, "required": True},
                {"name": "balance", "type": "double", "ordinal": 3, "default": 0.0},
                {"name": "tags", "type": "string", "ordinal": 4, "repeated": True},
            ],
        },
        {
            "name": "Vehicle",
            "fields": [{"name": "wheels", "type": "int", "ordinal": 1, "default": 4}],
        },
        {
            "name": "Bike",
            "extends": "Vehicle",
            "fields": [{"name": "wheels", "type": "int", "override": True, "default": 2}],
        },
        {
            "name": "Flags",
            "fields": [
                {"name": "urgent", "type": "indicator", "ordinal": 1},
                {"name": "note", "type": "string", "ordinal": 2},
            ],
        },
    ],
}

LIBRARY_SCHEMA = {
    "source": "library.proto",
    "namespace": "test.library",
    "definitions": [
        {
            "name": "Playlist",
            "fields": [
                {"name": "title", "type": "string", "ordinal": 1, "required": True},
                {"name": "tracks", "type": "string", "ordinal": 2, "repeated": True,
                 "mutable": True},
            ],
        },
        {
            "name": "Library",
            "fields": [
                {"name": "favourite", "type": "Playlist", "ordinal": 1, "required": True},
            ],
        },
        {
            "name": "Outer",
            "fields": [{"name": "inner", "type": "Inner", "ordinal": 1}],
            "enums": [{"name": "Mode", "values": ["ON", "OFF"]}],
            "messages": [
                {
                    "name": "Inner",
                    "fields": [{"name": "v", "type": "int", "ordinal": 1, "required": True}],
                },
            ],
        },
        {
            "kind": "taxonomy",
            "name": "Names",
            "entries": [[1, "title"], [2, "tracks"]],
        },
    ],
}

EVENTS_SCHEMA = {
    "source": "events.proto",
    "namespace": "test.events",
    "definitions": [
        {
            "name": "Event",
            "fields": [
                {"name": "when", "type": "datetime", "ordinal": 1, "required": True},
                {"name": "day", "type": "date", "ordinal": 2, "default": "2024-01-15"},
                {"name": "at", "type": "time", "ordinal": 3},
            ],
        },
    ],
}

PRICES_SCHEMA = {
    "source": "prices.proto",
    "namespace": "test.prices",
    "definitions": [
        {
            "kind": "typedef",
            "name": "Currency",
            "type": "string",
            "external": True,
            "bindings": {"token": "Currency"},
        },
        {
            "name": "Price",
            "fields": [
                {"name": "currency", "type": "Currency", "ordinal": 1, "required": True},
                {"name": "amount", "type": "double", "ordinal": 2, "required": True},
            ],
        },
        {
            "name": "Quote",
            "fields": [{"name": "price", "type": "Price", "ordinal": 1, "required": True}],
        },
    ],
}

ALL_SCHEMAS = [
    POINT_SCHEMA,
    SAMPLE_SCHEMA,
    SHAPES_SCHEMA,
    ACCOUNTS_SCHEMA,
    LIBRARY_SCHEMA,
    EVENTS_SCHEMA,
    PRICES_SCHEMA,
]
ALL_SCHEMA_IDS = ["point", "sample", "shapes", "accounts", "library", "events", "prices"]


# ═══════════════════════════════════════════════════════════════════
#  HELPERS
# ═══════════════════════════════════════════════════════════════════

def document(*definitions, namespace=""):
    """Wrap bare definitions into a schema document."""
    return {"source": "test.proto", "namespace": namespace, "definitions": list(definitions)}


def message(name, *fields, **options):
    """Message definition entry; ``fields`` are (name, type, options) tuples."""
    entry = {"kind": "message", "name": name, "fields": []}
    for field in fields:
        field_name, field_type = field[0], field[1]
        field_entry = {"name": field_name, "type": field_type}
        if len(field) > 2:
            field_entry.update(field[2])
        entry["fields"].append(field_entry)
    entry.update(options)
    return entry


def resolved(doc):
    """Load and resolve a schema document."""
    return resolve(load_schema(doc))


def generate_python(doc, **options) -> str:
    """Generate Python source for ``doc``; fails the test on errors."""
    result = generate_from_document(doc, "python", options or None)
    assert result.success, result.error_message
    return result.code


def generate_module(doc, name="generated", **options):
    """Generate and execute a Python module for ``doc``."""
    code = generate_python(doc, **options)
    module = types.ModuleType(name)
    exec(compile(code, f"<{name}>", "exec"), module.__dict__)
    return module


# ═══════════════════════════════════════════════════════════════════
#  FIXTURES
# ═══════════════════════════════════════════════════════════════════

@pytest.fixture(scope="module")
def point_module():
    return generate_module(POINT_SCHEMA, "point")


@pytest.fixture(scope="module")
def sample_module():
    return generate_module(SAMPLE_SCHEMA, "sample")


@pytest.fixture(scope="module")
def shapes_module():
    return generate_module(SHAPES_SCHEMA, "shapes")


@pytest.fixture(scope="module")
def accounts_module():
    return generate_module(ACCOUNTS_SCHEMA, "accounts")


@pytest.fixture(scope="module")
def library_module():
    return generate_module(LIBRARY_SCHEMA, "library")


@pytest.fixture(scope="module")
def events_module():
    return generate_module(EVENTS_SCHEMA, "events")


@pytest.fixture(scope="module")
def instant_events_module():
    return generate_module(EVENTS_SCHEMA, "instant_events", datetime_type="instant")


@pytest.fixture(scope="module")
def prices_module():
    return generate_module(PRICES_SCHEMA, "prices")
