"""Enum base classes for the three wire encodings of a generated enum."""

from enum import Enum

from .errors import InvalidEnumValueError


class WireEnum(Enum):
    """Enum whose members know their own wire encoding."""

    @property
    def wire_encoding(self):
        return self.value

    @classmethod
    def from_wire_encoding(cls, encoding):
        for member in cls:
            if member.wire_encoding == encoding:
                return member
        raise InvalidEnumValueError(cls.__name__, encoding)


class IntegerEncodedEnum(WireEnum):
    """Members are encoded as their integer code."""

    @classmethod
    def from_wire_encoding(cls, encoding):
        if isinstance(encoding, bool) or not isinstance(encoding, int):
            raise InvalidEnumValueError(cls.__name__, encoding)
        try:
            return cls(encoding)
        except ValueError as e:
            raise InvalidEnumValueError(cls.__name__, encoding) from e


class StringEncodedEnum(WireEnum):
    """Members are encoded as their string code."""

    @classmethod
    def from_wire_encoding(cls, encoding):
        if not isinstance(encoding, str):
            raise InvalidEnumValueError(cls.__name__, encoding)
        try:
            return cls(encoding)
        except ValueError as e:
            raise InvalidEnumValueError(cls.__name__, encoding) from e


class SymbolicEnum(WireEnum):
    """Members are encoded by name."""

    @property
    def wire_encoding(self):
        return self.name

    @classmethod
    def from_wire_encoding(cls, encoding):
        member = cls.__members__.get(encoding) if isinstance(encoding, str) else None
        if member is None:
            raise InvalidEnumValueError(cls.__name__, encoding)
        return member
