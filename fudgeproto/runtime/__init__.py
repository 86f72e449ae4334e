"""
Runtime support for generated message classes.

Generated modules import this package as ``fudge``.
"""

from .context import (
    HEADER_ORDINAL,
    Converter,
    DecoderRegistry,
    MessageFactory,
    WireContext,
    add_class_headers,
)
from .enums import IntegerEncodedEnum, StringEncodedEnum, SymbolicEnum, WireEnum
from .errors import (
    AbstractMessageError,
    ConverterError,
    DecodeError,
    EmptyListError,
    FieldLengthError,
    FudgeProtoError,
    InvalidEnumValueError,
    MissingValueError,
    NullElementError,
    ValidationError,
)
from .message import (
    HASH_MASK,
    Message,
    MessageBuilder,
    check_elements,
    check_length,
    deep_hash,
    hash_value,
    require,
    to_date,
    to_datetime,
    to_instant,
    to_time,
)
from .taxonomy import MapTaxonomy, Taxonomy
from .wire import INDICATOR, Indicator, WireField, WireMessage, WireType

__all__ = [
    "HASH_MASK",
    "HEADER_ORDINAL",
    "INDICATOR",
    "AbstractMessageError",
    "Converter",
    "ConverterError",
    "DecodeError",
    "DecoderRegistry",
    "EmptyListError",
    "FieldLengthError",
    "FudgeProtoError",
    "Indicator",
    "IntegerEncodedEnum",
    "InvalidEnumValueError",
    "MapTaxonomy",
    "Message",
    "MessageBuilder",
    "MessageFactory",
    "MissingValueError",
    "NullElementError",
    "StringEncodedEnum",
    "SymbolicEnum",
    "Taxonomy",
    "ValidationError",
    "WireContext",
    "WireEnum",
    "WireField",
    "WireMessage",
    "WireType",
    "add_class_headers",
    "check_elements",
    "check_length",
    "deep_hash",
    "hash_value",
    "require",
    "to_date",
    "to_datetime",
    "to_instant",
    "to_time",
]
