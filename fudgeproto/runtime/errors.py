"""Exceptions raised by generated message classes and the wire runtime."""


class FudgeProtoError(Exception):
    """Base class for all runtime errors."""

    pass


class ValidationError(FudgeProtoError, ValueError):
    """A value passed to a constructor, builder or mutator was rejected."""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"'{field_name}' {reason}")


class MissingValueError(ValidationError):
    """None was given for a field that must hold a value."""

    def __init__(self, field_name: str):
        super().__init__(field_name, "cannot be null")


class EmptyListError(ValidationError):
    """An empty sequence was given for a required repeated field."""

    def __init__(self, field_name: str):
        super().__init__(field_name, "cannot be an empty list")


class NullElementError(ValidationError):
    """A repeated field received a sequence holding None."""

    def __init__(self, field_name: str):
        super().__init__(field_name, "cannot contain a null element")


class FieldLengthError(ValidationError):
    """An array did not match its declared fixed length."""

    def __init__(self, field_name: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(field_name, f"is not the expected length ({expected}), got {actual}")


class InvalidEnumValueError(FudgeProtoError, ValueError):
    """A wire encoding does not name any member of an enum."""

    def __init__(self, enum_name: str, value):
        self.enum_name = enum_name
        self.value = value
        super().__init__(f"invalid {enum_name} value: {value!r}")


class DecodeError(FudgeProtoError, ValueError):
    """A wire message could not be decoded into a message class."""

    def __init__(self, message_name: str, field_name: str, reason: str):
        self.message_name = message_name
        self.field_name = field_name
        self.reason = reason
        super().__init__(
            f"Fudge message is not a {message_name} - field '{field_name}' {reason}"
        )


class AbstractMessageError(FudgeProtoError, TypeError):
    """An abstract message was constructed or decoded directly."""

    def __init__(self, message_name: str):
        self.message_name = message_name
        super().__init__(f"{message_name} is abstract and cannot be instantiated")


class ConverterError(FudgeProtoError, LookupError):
    """No converter is registered for a type token."""

    def __init__(self, type_token: str):
        self.type_token = type_token
        super().__init__(f"no converter registered for type '{type_token}'")
