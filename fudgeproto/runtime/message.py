"""
Base classes and helpers used by generated message classes.
"""

from datetime import date, datetime, time, timezone
from typing import Any, List, Optional, Sequence, Tuple

from .errors import FieldLengthError, MissingValueError, NullElementError, EmptyListError

HASH_MASK = 0xFFFFFFFF

# ordinal of the type header fields leading a polymorphic message
HEADER_ORDINAL = 0


class Message:
    """Base class of every generated message class."""

    TYPE_TOKEN: Optional[str] = None

    def to_wire(self, serializer):
        """Encode this message into a new wire message.

        The message is led by type headers naming its class and every
        generated ancestor, most derived first, so decoding through a base
        class entry point yields this class.

        Args:
            serializer: A ``MessageFactory`` (or ``WireContext``) that creates
                the wire messages and resolves external converters.
        """
        require(serializer, "serializer")
        msg = serializer.new_message()
        for klass in type(self).__mro__:
            token = klass.__dict__.get("TYPE_TOKEN")
            if token is not None:
                msg.add(None, HEADER_ORDINAL, token)
        self._encode_fields(serializer, msg)
        return msg

    def _encode_fields(self, serializer, msg) -> None:
        pass

    def _decode_fields(self, deserializer, fudge_msg) -> None:
        pass

    def _copy_fields(self, other) -> None:
        pass

    def clone(self):
        """Deep copy of this message; mutable state is never shared."""
        obj = type(self).__new__(type(self))
        obj._copy_fields(self)
        return obj

    def _repr_fields(self) -> List[Tuple[str, Any]]:
        return []

    def __repr__(self):
        fields = ", ".join(f"{name}={value!r}" for name, value in self._repr_fields())
        return f"{type(self).__name__}({fields})"


class MessageBuilder:
    """Base class of generated builders that have no builder base."""

    # set when the builder was filled from a wire message
    _fudge_root = None
    _deserializer = None

    def _decode_fields(self, deserializer, fudge_msg) -> None:
        pass


def require(value, field_name: str):
    """Return ``value``, raising ``MissingValueError`` when it is None."""
    if value is None:
        raise MissingValueError(field_name)
    return value


def check_length(value: Sequence, expected: int, field_name: str):
    """Return ``value``, raising ``FieldLengthError`` on a length mismatch."""
    if len(value) != expected:
        raise FieldLengthError(field_name, expected, len(value))
    return value


def check_elements(values: List, field_name: str, required: bool = False) -> List:
    """Validate the elements of a repeated field value."""
    if required and not values:
        raise EmptyListError(field_name)
    for value in values:
        if value is None:
            raise NullElementError(field_name)
    return values


def to_date(value) -> date:
    """Convert a date provider to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    if hasattr(value, "to_date"):
        return value.to_date()
    raise TypeError(f"cannot convert {type(value).__name__} to a date")


def to_time(value) -> time:
    """Convert a time provider to a ``time``."""
    if isinstance(value, datetime):
        return value.timetz()
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        return time.fromisoformat(value)
    if hasattr(value, "to_time"):
        return value.to_time()
    raise TypeError(f"cannot convert {type(value).__name__} to a time")


def to_datetime(value) -> datetime:
    """Convert a date-time provider to a ``datetime``."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    if hasattr(value, "to_datetime"):
        return value.to_datetime()
    raise TypeError(f"cannot convert {type(value).__name__} to a datetime")


def to_instant(value) -> datetime:
    """Convert a date-time provider to an aware UTC ``datetime``.

    Naive values are taken to already be in UTC.
    """
    value = to_datetime(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hash_value(value) -> int:
    """Hash of a single component, treating None as 0."""
    if value is None:
        return 0
    if isinstance(value, (list, tuple)):
        return deep_hash(value)
    return hash(value)


def deep_hash(values) -> int:
    """Order-sensitive hash of a possibly nested sequence."""
    if values is None:
        return 0
    hc = 1
    for value in values:
        hc = (hc * 31 + hash_value(value)) & HASH_MASK
    return hc
