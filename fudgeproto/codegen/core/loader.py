"""
Schema document loader.

Builds an unresolved ``SchemaModel`` from a JSON-compatible document, as
produced by a schema front end or written by hand. Field types are kept as
``TypeReference`` placeholders until the resolver runs.
"""

import re
from typing import Any, Dict, List, Optional

from ...logging_config import get_logger
from .schema import (
    ANONYMOUS_MESSAGE_TYPE,
    NULL_MESSAGE,
    ArrayType,
    CodePosition,
    EnumEncoding,
    FieldType,
    MessageDefinition,
    PrimitiveKind,
    PrimitiveType,
    SchemaModel,
    TaxonomyDefinition,
    TypeDefinition,
    TypeReference,
)

logger = get_logger(__name__)

_ARRAY_SUFFIX = re.compile(r"\[\s*(\d*)\s*\]")
_TYPE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

_PRIMITIVES = {kind.value: kind for kind in PrimitiveKind}
_PRIMITIVES.update({"boolean": PrimitiveKind.BOOLEAN, "integer": PrimitiveKind.INT})

MESSAGE_MODIFIERS = {"abstract", "external"}


class SchemaLoadError(Exception):
    """The schema document is not well formed."""

    pass


def parse_type(text: str, position: Optional[CodePosition] = None) -> FieldType:
    """Parse a type string such as ``int``, ``Point[]`` or ``double[3][3]``.

    Array suffixes list the outermost dimension first.
    """
    if not isinstance(text, str) or not text.strip():
        raise SchemaLoadError(f"{position or '<schema>'}: invalid type {text!r}")
    text = text.strip()
    bracket = text.find("[")
    base_name = text if bracket < 0 else text[:bracket].strip()
    suffix = "" if bracket < 0 else text[bracket:]

    sizes: List[Optional[int]] = []
    consumed = 0
    for match in _ARRAY_SUFFIX.finditer(suffix):
        if match.start() != consumed:
            break
        sizes.append(int(match.group(1)) if match.group(1) else None)
        consumed = match.end()
    if consumed != len(suffix.rstrip()):
        raise SchemaLoadError(f"{position or '<schema>'}: invalid array suffix in {text!r}")

    if base_name in _PRIMITIVES:
        field_type: FieldType = PrimitiveType(_PRIMITIVES[base_name])
    elif base_name == "message":
        field_type = ANONYMOUS_MESSAGE_TYPE
    elif _TYPE_NAME.match(base_name):
        field_type = TypeReference(base_name, position)
    else:
        raise SchemaLoadError(f"{position or '<schema>'}: invalid type name {base_name!r}")

    for size in reversed(sizes):
        if size is not None and size <= 0:
            raise SchemaLoadError(f"{position or '<schema>'}: array length must be positive")
        field_type = ArrayType(field_type, size)
    return field_type


class SchemaLoader:
    """Converts schema documents into unresolved models."""

    def __init__(self, source: Optional[str] = None):
        self.source = source

    def load(self, document: Dict[str, Any]) -> SchemaModel:
        """Build a model from a document.

        Args:
            document: Mapping with ``namespace``, ``source`` and ``definitions``.

        Returns:
            The unresolved schema model.

        Raises:
            SchemaLoadError: If the document has the wrong shape.
        """
        if not isinstance(document, dict):
            raise SchemaLoadError("schema document must be a JSON object")

        source = self.source or document.get("source") or "<schema>"
        namespace = document.get("namespace", "")
        if not isinstance(namespace, str):
            raise SchemaLoadError("'namespace' must be a string")

        model = SchemaModel(source, namespace)
        definitions = document.get("definitions", [])
        if not isinstance(definitions, list):
            raise SchemaLoadError("'definitions' must be a list")

        for entry in definitions:
            model.add(self._load_definition(entry, NULL_MESSAGE, model))

        logger.debug(
            "Loaded %d top-level definitions from %s", len(model.definitions), source
        )
        return model

    def _position(self, entry: Dict[str, Any], model: SchemaModel) -> CodePosition:
        return CodePosition(model.source, entry.get("line", 0), entry.get("column", 0))

    def _load_definition(self, entry, scope: MessageDefinition, model: SchemaModel):
        if not isinstance(entry, dict):
            raise SchemaLoadError(f"definition must be an object, got {entry!r}")
        kind = entry.get("kind", "message")
        name = entry.get("name")
        if not isinstance(name, str) or not _TYPE_NAME.match(name) or "." in name:
            raise SchemaLoadError(f"invalid definition name {name!r}")

        if kind == "message":
            return self._load_message(entry, scope, model)
        if kind == "enum":
            return self._load_enum(entry, scope, model)
        if scope is not NULL_MESSAGE:
            raise SchemaLoadError(f"{kind} '{name}' must be declared at the top level")
        if kind == "taxonomy":
            return self._load_taxonomy(entry, model)
        if kind in ("typedef", "type"):
            return self._load_typedef(entry, model)
        raise SchemaLoadError(f"unknown definition kind {kind!r} for '{name}'")

    def _common(self, entry: Dict[str, Any], model: SchemaModel) -> Dict[str, Any]:
        return {
            "position": self._position(entry, model),
            "compilation_target": entry.get("target", True),
            "bindings": entry.get("bindings") or {},
        }

    def _load_message(self, entry, scope: MessageDefinition, model: SchemaModel):
        modifiers = tuple(entry.get("modifiers", ()))
        for flag in ("abstract", "external"):
            if entry.get(flag) and flag not in modifiers:
                modifiers += (flag,)
        unknown = set(modifiers) - MESSAGE_MODIFIERS
        if unknown:
            raise SchemaLoadError(
                f"unknown modifiers {sorted(unknown)} on message '{entry['name']}'"
            )

        message = scope.create_message(
            entry["name"],
            model.namespace,
            extends_name=entry.get("extends"),
            modifiers=modifiers,
            **self._common(entry, model),
        )

        for field_entry in entry.get("fields", []):
            self._load_field(field_entry, message, model)
        for nested in entry.get("enums", []):
            self._load_enum(nested, message, model)
        for nested in entry.get("messages", []):
            self._load_definition(nested, message, model)
        return message

    def _load_field(self, entry, message: MessageDefinition, model: SchemaModel):
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise SchemaLoadError(f"invalid field in message '{message.name}': {entry!r}")
        position = self._position(entry, model)
        if "type" not in entry:
            raise SchemaLoadError(f"{position}: field '{entry['name']}' has no type")

        ordinal = entry.get("ordinal")
        if ordinal is not None and (isinstance(ordinal, bool) or not isinstance(ordinal, int)):
            raise SchemaLoadError(f"{position}: ordinal of '{entry['name']}' must be an integer")

        message.add_field(
            entry["name"],
            parse_type(entry["type"], position),
            ordinal=ordinal,
            required=bool(entry.get("required", False)),
            mutable=bool(entry.get("mutable", False)),
            repeated=bool(entry.get("repeated", False)),
            default=entry.get("default"),
            override=bool(entry.get("override", False)),
            position=position,
        )

    def _load_enum(self, entry, scope: MessageDefinition, model: SchemaModel):
        encoding_name = entry.get("encoding", EnumEncoding.SYMBOLIC.value)
        try:
            encoding = EnumEncoding(encoding_name)
        except ValueError:
            raise SchemaLoadError(
                f"unknown encoding {encoding_name!r} for enum '{entry['name']}'"
            ) from None

        enum = scope.create_enum(
            entry["name"], model.namespace, encoding=encoding, **self._common(entry, model)
        )
        values = entry.get("values", [])
        if isinstance(values, dict):
            values = list(values.items())
        for value in values:
            if isinstance(value, str):
                enum.add_element(value)
            elif isinstance(value, (list, tuple)) and len(value) == 2:
                enum.add_element(value[0], value[1])
            else:
                raise SchemaLoadError(f"invalid member {value!r} in enum '{enum.name}'")
        return enum

    def _load_taxonomy(self, entry, model: SchemaModel) -> TaxonomyDefinition:
        identifier = _qualify(model.namespace, entry["name"])
        taxonomy = TaxonomyDefinition(identifier, **self._common(entry, model))
        entries = entry.get("entries", [])
        if isinstance(entries, dict):
            entries = [(int(k), v) for k, v in entries.items()]
        for item in entries:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise SchemaLoadError(f"invalid entry {item!r} in taxonomy '{taxonomy.name}'")
            taxonomy.add_entry(item[0], item[1])
        return taxonomy

    def _load_typedef(self, entry, model: SchemaModel) -> TypeDefinition:
        position = self._position(entry, model)
        if "type" not in entry:
            raise SchemaLoadError(f"{position}: type '{entry['name']}' has no underlying type")
        return TypeDefinition(
            _qualify(model.namespace, entry["name"]),
            parse_type(entry["type"], position),
            external=bool(entry.get("external", False)),
            **self._common(entry, model),
        )


def _qualify(namespace: str, name: str) -> str:
    return f"{namespace}.{name}" if namespace else name


def load_schema(document: Dict[str, Any], source: Optional[str] = None) -> SchemaModel:
    """Load an unresolved model from a schema document."""
    return SchemaLoader(source).load(document)
