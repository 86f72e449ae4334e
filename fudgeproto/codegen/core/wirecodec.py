"""
Wire codec planning.

Maps every field of a message to the wire operations that encode and decode
it, and describes the polymorphic ``from_wire`` protocol of the message:

================================  =========================================
field type                        wire representation
================================  =========================================
scalar primitive                  one value of the matching wire type
indicator                         presence marker, written only when set
integer encoded enum              its integer code
string encoded / symbolic enum    its string code / member name
flat array of numbers             one wire array value
any other array                   sub-message with one entry per element
anonymous message                 the sub-message itself
named message                     sub-message led by ordinal-0 type headers
external message / user type      converter of the context, by type token
date / time / datetime            temporal wire value
================================  =========================================

Repeated fields are written as one occurrence per value and collected back in
wire order.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ...runtime.wire import WireType
from .analyzer import (
    is_indicator,
    is_object,
    own_fields,
    resolve_alias,
    use_builder_pattern,
    wire_type,
)
from .config import GeneratorConfig
from .constructors import datetime_target, uses_context
from .schema import (
    ArrayType,
    Definition,
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


class CodecKind(Enum):
    SCALAR = "scalar"
    TEMPORAL = "temporal"
    INDICATOR = "indicator"
    ENUM_INT = "enum_int"
    ENUM_STRING = "enum_string"
    PRIMITIVE_ARRAY = "primitive_array"
    ENUM_INT_ARRAY = "enum_int_array"
    CONTAINER_ARRAY = "container_array"
    ANON_MESSAGE = "anon_message"
    MESSAGE = "message"
    EXTERNAL_MESSAGE = "external_message"
    EXTERNAL_USER = "external_user"


@dataclass(frozen=True)
class ValueCodec:
    """Encode/decode rule for one value (a field value or an array element)."""

    kind: CodecKind
    field_type: FieldType
    wire_type: WireType
    element: Optional["ValueCodec"] = None
    fixed_length: Optional[int] = None
    definition: Optional[Definition] = None
    type_token: Optional[str] = None
    with_context: bool = False
    conversion: Optional[str] = None

    @property
    def is_array(self) -> bool:
        return self.kind in (
            CodecKind.PRIMITIVE_ARRAY,
            CodecKind.ENUM_INT_ARRAY,
            CodecKind.CONTAINER_ARRAY,
        )

    @property
    def needs_context(self) -> bool:
        """True if this value, or an element of it, needs the decode context."""
        if self.kind in (CodecKind.EXTERNAL_MESSAGE, CodecKind.EXTERNAL_USER):
            return True
        if self.kind is CodecKind.MESSAGE and self.with_context:
            return True
        return self.element is not None and self.element.needs_context


@dataclass(frozen=True)
class FieldCodec:
    """Encode/decode rule for one field of a message."""

    field: FieldDefinition
    value: ValueCodec
    name_key: Optional[str]
    ordinal: Optional[int]
    repeated: bool
    required: bool
    null_guard: bool
    guarded: bool

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def expected(self) -> str:
        """Description used in 'is not ...' decode errors."""
        return self.field.type.describe()


@dataclass(frozen=True)
class DispatchPlan:
    """The polymorphic ``from_wire`` protocol of one message."""

    type_token: str
    abstract: bool
    with_context: bool
    use_builder: bool

    @property
    def registered(self) -> bool:
        return not self.abstract


@dataclass
class MessageCodecPlan:
    message: MessageDefinition
    dispatch: DispatchPlan
    fields: List[FieldCodec] = field(default_factory=list)
    override_defaults: List[FieldDefinition] = field(default_factory=list)
    override_required: List[FieldDefinition] = field(default_factory=list)

    @property
    def decode_order(self) -> List[FieldCodec]:
        """Required fields first, each group in declaration order."""
        return [f for f in self.fields if f.required] + [
            f for f in self.fields if not f.required
        ]


def type_token(definition: Definition) -> str:
    """Type token written into headers and used to key converters."""
    return definition.bindings.get("token", definition.identifier)


def plan_value_codec(
    field_type: FieldType, config: GeneratorConfig, target: str = "datetime"
) -> ValueCodec:
    """Plan the encoding of a single value of ``field_type``."""
    if isinstance(field_type, UserType) and field_type.definition.external:
        return ValueCodec(
            CodecKind.EXTERNAL_USER,
            field_type,
            WireType.SUB_MESSAGE,
            definition=field_type.definition,
            type_token=type_token(field_type.definition),
        )

    resolved = resolve_alias(field_type)

    if isinstance(resolved, PrimitiveType):
        kind = resolved.kind
        if kind is PrimitiveKind.INDICATOR:
            return ValueCodec(CodecKind.INDICATOR, field_type, WireType.INDICATOR)
        if kind.is_temporal:
            conversion = target if kind is PrimitiveKind.DATETIME else kind.value
            return ValueCodec(
                CodecKind.TEMPORAL, field_type, wire_type(resolved), conversion=conversion
            )
        return ValueCodec(CodecKind.SCALAR, field_type, wire_type(resolved))

    if isinstance(resolved, EnumType):
        encoding = resolved.definition.encoding
        kind = CodecKind.ENUM_INT if encoding is EnumEncoding.INTEGER else CodecKind.ENUM_STRING
        return ValueCodec(
            kind,
            field_type,
            wire_type(resolved),
            definition=resolved.definition,
            type_token=type_token(resolved.definition),
        )

    if isinstance(resolved, ArrayType):
        element = plan_value_codec(resolved.base_type, config, target)
        array_wire_type = wire_type(resolved)
        if array_wire_type is WireType.INT_ARRAY and element.kind is CodecKind.ENUM_INT:
            kind = CodecKind.ENUM_INT_ARRAY
        elif array_wire_type is not WireType.SUB_MESSAGE:
            kind = CodecKind.PRIMITIVE_ARRAY
        else:
            kind = CodecKind.CONTAINER_ARRAY
        return ValueCodec(
            kind,
            field_type,
            array_wire_type,
            element=element,
            fixed_length=resolved.fixed_length,
        )

    if isinstance(resolved, MessageType):
        if resolved.is_anonymous:
            return ValueCodec(CodecKind.ANON_MESSAGE, field_type, WireType.SUB_MESSAGE)
        definition = resolved.definition
        if definition.external:
            return ValueCodec(
                CodecKind.EXTERNAL_MESSAGE,
                field_type,
                WireType.SUB_MESSAGE,
                definition=definition,
                type_token=type_token(definition),
            )
        return ValueCodec(
            CodecKind.MESSAGE,
            field_type,
            WireType.SUB_MESSAGE,
            definition=definition,
            type_token=type_token(definition),
            with_context=uses_context(definition, config),
        )

    raise TypeError(f"cannot plan a wire codec for {field_type!r}")


def plan_field_codec(
    field_def: FieldDefinition, config: GeneratorConfig, target: str = "datetime"
) -> FieldCodec:
    value = plan_value_codec(field_def.type, config, target)
    indicator = is_indicator(field_def.type)
    return FieldCodec(
        field=field_def,
        value=value,
        name_key=field_def.wire_key,
        ordinal=field_def.ordinal,
        repeated=field_def.repeated,
        required=field_def.required and not indicator,
        null_guard=field_def.repeated or is_object(field_def.type) or not field_def.required,
        guarded=not indicator,
    )


def plan_message_codec(message: MessageDefinition, config: GeneratorConfig) -> MessageCodecPlan:
    """Plan the encoder, decoder and dispatch protocol of ``message``."""
    target = datetime_target(message, config)
    plan = MessageCodecPlan(
        message=message,
        dispatch=DispatchPlan(
            type_token=type_token(message),
            abstract=message.abstract,
            with_context=uses_context(message, config),
            use_builder=use_builder_pattern(message),
        ),
    )
    plan.fields = [plan_field_codec(f, config, target) for f in own_fields(message)]

    overrides = [f for f in message.fields if f.override is not None]
    plan.override_defaults = [f for f in overrides if f.has_default]
    plan.override_required = [
        f
        for f in overrides
        if f.required and not f.has_default and not f.override.required
    ]
    return plan
