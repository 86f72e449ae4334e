"""
Schema analyzer.

Pure queries over a resolved model that every generator consults: external
reference detection, builder and copy constructor adoption, object
classification of field types, wire scalar kinds and constructor field lists.
Graph walks carry a visited set keyed by message identity since message types
may reference themselves or each other.
"""

from typing import Dict, List, Optional, Set

from ...runtime.wire import WireType
from .schema import (
    ArrayType,
    EnumEncoding,
    EnumType,
    FieldDefinition,
    FieldType,
    MessageDefinition,
    MessageType,
    PrimitiveKind,
    PrimitiveType,
    UserType,
)

_PRIMITIVE_WIRE_TYPES = {
    PrimitiveKind.BOOLEAN: WireType.BOOLEAN,
    PrimitiveKind.BYTE: WireType.BYTE,
    PrimitiveKind.SHORT: WireType.SHORT,
    PrimitiveKind.INT: WireType.INT,
    PrimitiveKind.LONG: WireType.LONG,
    PrimitiveKind.FLOAT: WireType.FLOAT,
    PrimitiveKind.DOUBLE: WireType.DOUBLE,
    PrimitiveKind.STRING: WireType.STRING,
    PrimitiveKind.DATE: WireType.DATE,
    PrimitiveKind.TIME: WireType.TIME,
    PrimitiveKind.DATETIME: WireType.DATETIME,
    PrimitiveKind.INDICATOR: WireType.INDICATOR,
}

_PRIMITIVE_ARRAY_WIRE_TYPES = {
    PrimitiveKind.BYTE: WireType.BYTE_ARRAY,
    PrimitiveKind.SHORT: WireType.SHORT_ARRAY,
    PrimitiveKind.INT: WireType.INT_ARRAY,
    PrimitiveKind.LONG: WireType.LONG_ARRAY,
    PrimitiveKind.FLOAT: WireType.FLOAT_ARRAY,
    PrimitiveKind.DOUBLE: WireType.DOUBLE_ARRAY,
}


def resolve_alias(field_type: FieldType) -> FieldType:
    """Follow non-external type aliases down to the type they name."""
    while isinstance(field_type, UserType) and not field_type.definition.external:
        field_type = field_type.definition.underlying
    return field_type


def has_external_message_references(
    message: MessageDefinition, _visited: Optional[Set[int]] = None
) -> bool:
    """True if the message, a base or a field type transitively reaches an
    external message or external user type."""
    visited = _visited if _visited is not None else set()
    if id(message) in visited:
        return False
    visited.add(id(message))

    if message.external:
        return True
    if message.extends is not None and has_external_message_references(
        message.extends, visited
    ):
        return True
    return any(_type_has_external(field.type, visited) for field in message.fields)


def _type_has_external(field_type: FieldType, visited: Set[int]) -> bool:
    if isinstance(field_type, ArrayType):
        return _type_has_external(field_type.base_type, visited)
    if isinstance(field_type, UserType):
        if field_type.definition.external:
            return True
        return _type_has_external(field_type.definition.underlying, visited)
    if isinstance(field_type, MessageType):
        if field_type.is_anonymous:
            return False
        return has_external_message_references(field_type.definition, visited)
    return False


def _needs_builder(field: FieldDefinition) -> bool:
    return not field.mutable and (not field.required or field.has_default)


def use_builder_pattern(message: MessageDefinition) -> bool:
    """True when an immutable field is optional or defaulted, or a base needs
    a builder.

    Override declarations belong to the declaring message, so an overridden
    field is judged by the overriding declaration's flags. A base is judged
    by its own declarations since its builder is inherited. External bases
    never use a builder.
    """
    if message.external:
        return False
    if any(_needs_builder(field) for field in message.fields):
        return True
    if message.extends is not None:
        return use_builder_pattern(message.extends)
    return False


def is_object(field_type: FieldType) -> bool:
    """True for types whose stored value is a reference that may be None."""
    field_type = resolve_alias(field_type)
    if isinstance(field_type, (ArrayType, EnumType, MessageType, UserType)):
        return True
    if isinstance(field_type, PrimitiveType):
        kind = field_type.kind
        return kind is PrimitiveKind.STRING or kind.is_temporal
    return False


def is_big_object(field_type: FieldType) -> bool:
    """True for types that are never safely aliased and need a deep copy."""
    field_type = resolve_alias(field_type)
    if isinstance(field_type, ArrayType):
        return True
    if isinstance(field_type, MessageType):
        return not field_type.is_anonymous
    return False


def use_copy_constructor(message: MessageDefinition) -> bool:
    """True if the message is external, a base needs one or a field is mutable."""
    if message.external:
        return True
    if message.extends is not None and use_copy_constructor(message.extends):
        return True
    return any(field.mutable for field in message.fields)


def is_indicator(field_type: FieldType) -> bool:
    field_type = resolve_alias(field_type)
    return isinstance(field_type, PrimitiveType) and field_type.kind is PrimitiveKind.INDICATOR


def is_temporal(field_type: FieldType) -> bool:
    field_type = resolve_alias(field_type)
    return isinstance(field_type, PrimitiveType) and field_type.kind.is_temporal


def is_integer_enum(field_type: FieldType) -> bool:
    field_type = resolve_alias(field_type)
    return (
        isinstance(field_type, EnumType)
        and field_type.definition.encoding is EnumEncoding.INTEGER
    )


def wire_type(field_type: FieldType) -> WireType:
    """Wire type of a single value of ``field_type``."""
    field_type = resolve_alias(field_type)
    if isinstance(field_type, PrimitiveType):
        return _PRIMITIVE_WIRE_TYPES[field_type.kind]
    if isinstance(field_type, EnumType):
        return WireType.INT if is_integer_enum(field_type) else WireType.STRING
    if isinstance(field_type, ArrayType):
        base = resolve_alias(field_type.base_type)
        if isinstance(base, PrimitiveType) and base.kind in _PRIMITIVE_ARRAY_WIRE_TYPES:
            return _PRIMITIVE_ARRAY_WIRE_TYPES[base.kind]
        if is_integer_enum(base):
            return WireType.INT_ARRAY
        return WireType.SUB_MESSAGE
    return WireType.SUB_MESSAGE


def own_fields(message: MessageDefinition) -> List[FieldDefinition]:
    """Fields declared by ``message`` that do not override an ancestor."""
    return [field for field in message.fields if field.override is None]


def all_fields(
    include_optional: bool,
    message: MessageDefinition,
    overrides: Optional[Dict[str, FieldDefinition]] = None,
) -> List[FieldDefinition]:
    """Constructor fields of ``message`` and its bases, base first.

    Only required fields without a default are listed unless
    ``include_optional`` is set. Fields named in ``overrides`` are replaced by
    the overriding definition, which then decides whether the field is listed.
    """
    overrides = overrides or {}
    chain: List[MessageDefinition] = []
    current: Optional[MessageDefinition] = message
    while current is not None:
        chain.insert(0, current)
        current = current.extends

    fields: List[FieldDefinition] = []
    for level in chain:
        for field in level.fields:
            if field.override is not None:
                continue
            effective = overrides.get(field.name, field)
            if include_optional or (effective.required and not effective.has_default):
                fields.append(effective)
    return fields


def concrete_descendants(
    message: MessageDefinition, messages: List[MessageDefinition]
) -> List[MessageDefinition]:
    return [m for m in messages if m.extends_from(message) and not m.abstract]
