"""
Field-tagged wire messages.

A ``WireMessage`` is an ordered list of ``WireField`` values, each tagged with
a name, an ordinal, or both, and carrying an explicit ``WireType``. Byte level
framing is not handled here; the container is what generated classes read and
write.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional

from .message import deep_hash
from .taxonomy import Taxonomy


class WireType(Enum):
    """Wire value types, numbered after the Fudge type identifiers."""

    INDICATOR = 0
    BOOLEAN = 1
    BYTE = 2
    SHORT = 3
    INT = 4
    LONG = 5
    BYTE_ARRAY = 6
    SHORT_ARRAY = 7
    INT_ARRAY = 8
    LONG_ARRAY = 9
    FLOAT = 10
    DOUBLE = 11
    FLOAT_ARRAY = 12
    DOUBLE_ARRAY = 13
    STRING = 14
    SUB_MESSAGE = 15
    DATE = 26
    TIME = 27
    DATETIME = 28

    @property
    def is_array(self) -> bool:
        return self in _ARRAY_ELEMENTS


class Indicator:
    """Zero-payload presence marker."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "INDICATOR"

    def __reduce__(self):
        return (Indicator, ())


INDICATOR = Indicator()

_INTEGER_RANGES = {
    WireType.BYTE: (-(2**7), 2**7 - 1),
    WireType.SHORT: (-(2**15), 2**15 - 1),
    WireType.INT: (-(2**31), 2**31 - 1),
    WireType.LONG: (-(2**63), 2**63 - 1),
}

_FLOATING = (WireType.FLOAT, WireType.DOUBLE)

_ARRAY_ELEMENTS = {
    WireType.BYTE_ARRAY: WireType.BYTE,
    WireType.SHORT_ARRAY: WireType.SHORT,
    WireType.INT_ARRAY: WireType.INT,
    WireType.LONG_ARRAY: WireType.LONG,
    WireType.FLOAT_ARRAY: WireType.FLOAT,
    WireType.DOUBLE_ARRAY: WireType.DOUBLE,
}


@dataclass(frozen=True)
class WireField:
    """One tagged value in a wire message."""

    value: Any
    type: WireType
    name: Optional[str] = None
    ordinal: Optional[int] = None

    def __post_init__(self):
        if self.ordinal is not None and not -32768 <= self.ordinal <= 32767:
            raise ValueError(f"ordinal {self.ordinal} out of range")


def infer_wire_type(value: Any) -> WireType:
    """Pick the narrowest wire type able to carry ``value``."""
    if isinstance(value, Indicator) or value is None:
        return WireType.INDICATOR
    if isinstance(value, bool):
        return WireType.BOOLEAN
    if isinstance(value, int):
        for wire_type in (WireType.INT, WireType.LONG):
            low, high = _INTEGER_RANGES[wire_type]
            if low <= value <= high:
                return wire_type
        raise ValueError(f"integer {value} does not fit a wire type")
    if isinstance(value, float):
        return WireType.DOUBLE
    if isinstance(value, str):
        return WireType.STRING
    if isinstance(value, WireMessage):
        return WireType.SUB_MESSAGE
    # datetime before date: datetime is a date subclass
    if isinstance(value, datetime):
        return WireType.DATETIME
    if isinstance(value, date):
        return WireType.DATE
    if isinstance(value, time):
        return WireType.TIME
    if isinstance(value, (list, tuple)):
        if all(isinstance(v, float) for v in value) and value:
            return WireType.DOUBLE_ARRAY
        if all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            return WireType.LONG_ARRAY
    raise ValueError(f"cannot infer a wire type for {type(value).__name__}")


def _convert_scalar(expected: WireType, actual: WireType, value: Any) -> Any:
    if expected in _INTEGER_RANGES:
        if actual in _INTEGER_RANGES:
            low, high = _INTEGER_RANGES[expected]
            if low <= value <= high:
                return value
            raise ValueError(f"{value} is out of range for {expected.name}")
    elif expected in _FLOATING:
        if actual in _FLOATING or actual in _INTEGER_RANGES:
            return float(value)
    elif expected is WireType.DATE:
        if actual is WireType.DATE:
            return value
        if actual is WireType.DATETIME:
            return value.date()
    elif expected is WireType.DATETIME:
        if actual is WireType.DATETIME:
            return value
        if actual is WireType.DATE:
            return datetime.combine(value, time.min)
    elif expected is WireType.TIME:
        if actual is WireType.TIME:
            return value
        if actual is WireType.DATETIME:
            return value.timetz()
    elif expected is actual:
        return value
    raise ValueError(f"{actual.name} value cannot be read as {expected.name}")


def convert_value(expected: WireType, field: WireField) -> Any:
    """Read a field value as ``expected``, widening compatible types.

    Raises:
        ValueError: If the field's type cannot be read as ``expected``.
    """
    if expected in _ARRAY_ELEMENTS:
        element = _ARRAY_ELEMENTS[expected]
        if field.type in _ARRAY_ELEMENTS:
            actual = _ARRAY_ELEMENTS[field.type]
            return [_convert_scalar(element, actual, v) for v in field.value]
        raise ValueError(f"{field.type.name} value cannot be read as {expected.name}")
    return _convert_scalar(expected, field.type, field.value)


class WireMessage:
    """Ordered, mutable container of wire fields."""

    def __init__(
        self,
        fields: Optional[Iterable[WireField]] = None,
        taxonomy: Optional[Taxonomy] = None,
    ):
        self._fields: List[WireField] = list(fields or ())
        self.taxonomy = taxonomy

    def add(
        self,
        name: Optional[str],
        ordinal: Optional[int],
        value: Any,
        wire_type: Optional[WireType] = None,
    ) -> WireField:
        """Append a field and return it."""
        if wire_type is None:
            wire_type = infer_wire_type(value)
        if wire_type is WireType.INDICATOR:
            value = INDICATOR
        elif wire_type in _ARRAY_ELEMENTS:
            value = list(value)
        field = WireField(value, wire_type, name, ordinal)
        self._fields.append(field)
        return field

    def add_field(self, field: WireField) -> None:
        self._fields.append(field)

    def _matches_name(self, field: WireField, name: str) -> bool:
        if field.name is not None:
            return field.name == name
        if self.taxonomy is not None and field.ordinal is not None:
            return self.taxonomy.get_field_name(field.ordinal) == name
        return False

    def _matches_ordinal(self, field: WireField, ordinal: int) -> bool:
        if field.ordinal is not None:
            return field.ordinal == ordinal
        if self.taxonomy is not None and field.name is not None:
            return self.taxonomy.get_field_ordinal(field.name) == ordinal
        return False

    def get_by_name(self, name: str) -> Optional[WireField]:
        for field in self._fields:
            if self._matches_name(field, name):
                return field
        return None

    def get_by_ordinal(self, ordinal: int) -> Optional[WireField]:
        for field in self._fields:
            if self._matches_ordinal(field, ordinal):
                return field
        return None

    def get_all_by_name(self, name: str) -> List[WireField]:
        return [f for f in self._fields if self._matches_name(f, name)]

    def get_all_by_ordinal(self, ordinal: int) -> List[WireField]:
        return [f for f in self._fields if self._matches_ordinal(f, ordinal)]

    def get_field_value(self, wire_type: WireType, field: WireField) -> Any:
        """Return ``field``'s value read as ``wire_type``.

        Raises:
            ValueError: If the stored value is of an incompatible type.
        """
        return convert_value(wire_type, field)

    def compressed(self, taxonomy: Taxonomy) -> "WireMessage":
        """Copy of this message with taxonomy names replaced by ordinals."""
        result = WireMessage(taxonomy=taxonomy)
        for field in self._fields:
            value = field.value
            if isinstance(value, WireMessage):
                value = value.compressed(taxonomy)
            name, ordinal = field.name, field.ordinal
            if name is not None and ordinal is None:
                mapped = taxonomy.get_field_ordinal(name)
                if mapped is not None:
                    name, ordinal = None, mapped
            result.add_field(WireField(value, field.type, name, ordinal))
        return result

    def expanded(self, taxonomy: Taxonomy) -> "WireMessage":
        """Copy of this message with taxonomy ordinals replaced by names."""
        result = WireMessage()
        for field in self._fields:
            value = field.value
            if isinstance(value, WireMessage):
                value = value.expanded(taxonomy)
            name, ordinal = field.name, field.ordinal
            if name is None and ordinal is not None:
                mapped = taxonomy.get_field_name(ordinal)
                if mapped is not None:
                    name, ordinal = mapped, None
            result.add_field(WireField(value, field.type, name, ordinal))
        return result

    def __iter__(self) -> Iterator[WireField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other):
        if not isinstance(other, WireMessage):
            return NotImplemented
        return self._fields == other._fields

    def __hash__(self):
        return deep_hash([(f.name, f.ordinal, f.type, f.value) for f in self._fields])

    def __repr__(self):
        parts = []
        for field in self._fields:
            tag = field.name if field.name is not None else f"#{field.ordinal}"
            parts.append(f"{tag}={field.value!r}")
        return f"WireMessage({', '.join(parts)})"
