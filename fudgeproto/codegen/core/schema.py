"""
Semantic model of a compiled schema.

Definitions (messages, enums, taxonomies and type aliases) and the closed set
of field types. The model is built by the loader, completed by the resolver
and read-only afterwards.
"""

import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class SchemaError(Exception):
    """A schema is malformed or cannot be resolved."""

    def __init__(self, message: str, position: Optional["CodePosition"] = None):
        self.position = position
        if position is not None:
            message = f"{position}: {message}"
        super().__init__(message)


@dataclass(frozen=True)
class CodePosition:
    """Location of a definition in its schema source."""

    source: str
    line: int = 0
    column: int = 0

    def __str__(self):
        if self.line:
            return f"{self.source}:{self.line}({self.column})"
        return self.source


class PrimitiveKind(Enum):
    """Scalar field kinds."""

    BOOLEAN = "bool"
    BYTE = "byte"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    INDICATOR = "indicator"

    @property
    def is_integral(self) -> bool:
        return self in (PrimitiveKind.BYTE, PrimitiveKind.SHORT, PrimitiveKind.INT, PrimitiveKind.LONG)

    @property
    def is_floating(self) -> bool:
        return self in (PrimitiveKind.FLOAT, PrimitiveKind.DOUBLE)

    @property
    def is_temporal(self) -> bool:
        return self in (PrimitiveKind.DATE, PrimitiveKind.TIME, PrimitiveKind.DATETIME)


# Field types


class FieldType:
    """Base of the field type variants."""

    def __str__(self):
        return self.describe()

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class PrimitiveType(FieldType):
    kind: PrimitiveKind

    def describe(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class ArrayType(FieldType):
    """Array of ``base_type``; ``fixed_length`` applies at this dimension."""

    base_type: FieldType
    fixed_length: Optional[int] = None

    @property
    def is_fixed_length(self) -> bool:
        return self.fixed_length is not None

    @property
    def deep_fixed(self) -> bool:
        """True when this and every nested array dimension are fixed."""
        if self.fixed_length is None or not isinstance(self.base_type, ArrayType):
            return False
        base = self.base_type
        while isinstance(base, ArrayType):
            if base.fixed_length is None:
                return False
            base = base.base_type
        return True

    @property
    def dimensions(self) -> int:
        if isinstance(self.base_type, ArrayType):
            return self.base_type.dimensions + 1
        return 1

    def describe(self) -> str:
        size = "" if self.fixed_length is None else str(self.fixed_length)
        # outermost dimension first
        inner = self.base_type
        suffix = f"[{size}]"
        while isinstance(inner, ArrayType):
            suffix += f"[{'' if inner.fixed_length is None else inner.fixed_length}]"
            inner = inner.base_type
        return f"{inner.describe()}{suffix}"


@dataclass(frozen=True, eq=False)
class EnumType(FieldType):
    definition: "EnumDefinition"

    def describe(self) -> str:
        return self.definition.name

    def __eq__(self, other):
        return isinstance(other, EnumType) and other.definition is self.definition

    def __hash__(self):
        return id(self.definition)


@dataclass(frozen=True, eq=False)
class MessageType(FieldType):
    definition: "MessageDefinition"

    @property
    def is_anonymous(self) -> bool:
        return False

    def describe(self) -> str:
        return f"{self.definition.name} message"

    def __eq__(self, other):
        return isinstance(other, MessageType) and other.definition is self.definition

    def __hash__(self):
        return id(self.definition)


class AnonymousMessageType(MessageType):
    """Untyped wire sub-message."""

    def __init__(self):
        super().__init__(ANONYMOUS_MESSAGE)

    @property
    def is_anonymous(self) -> bool:
        return True

    def describe(self) -> str:
        return "message"


@dataclass(frozen=True, eq=False)
class UserType(FieldType):
    definition: "TypeDefinition"

    def describe(self) -> str:
        return self.definition.name

    def __eq__(self, other):
        return isinstance(other, UserType) and other.definition is self.definition

    def __hash__(self):
        return id(self.definition)


@dataclass(frozen=True)
class TypeReference(FieldType):
    """Named type awaiting resolution."""

    name: str
    position: Optional[CodePosition] = None

    def describe(self) -> str:
        return self.name


# Definitions


class Definition:
    """Named element of a schema."""

    def __init__(
        self,
        identifier: str,
        position: Optional[CodePosition] = None,
        outer: Optional["MessageDefinition"] = None,
        compilation_target: bool = True,
        bindings: Optional[Dict[str, Any]] = None,
    ):
        self.identifier = identifier
        self.position = position
        self._outer = weakref.ref(outer) if outer is not None else None
        self.compilation_target = compilation_target
        self.bindings: Dict[str, Any] = dict(bindings or {})

    @property
    def name(self) -> str:
        return self.identifier.rsplit(".", 1)[-1]

    @property
    def outer(self) -> Optional["MessageDefinition"]:
        return self._outer() if self._outer is not None else None

    @property
    def path(self) -> List[str]:
        """Names from the outermost enclosing definition down to this one."""
        names = [self.name]
        outer = self.outer
        while outer is not None:
            names.insert(0, outer.name)
            outer = outer.outer
        return names

    @property
    def namespace(self) -> str:
        outer = self.outer
        if outer is not None:
            return outer.namespace
        return self.identifier.rpartition(".")[0]

    def __repr__(self):
        return f"<{type(self).__name__} {self.identifier}>"


class MessageKind(Enum):
    DEFINED = "defined"
    NULL = "null"
    ANONYMOUS = "anonymous"


class FieldDefinition:
    """A field of a message."""

    def __init__(
        self,
        name: str,
        field_type: FieldType,
        ordinal: Optional[int] = None,
        required: bool = False,
        mutable: bool = False,
        repeated: bool = False,
        default: Any = None,
        override: bool = False,
        position: Optional[CodePosition] = None,
        outer: Optional["MessageDefinition"] = None,
    ):
        self.name = name
        self.type = field_type
        self.ordinal = ordinal
        self.required = required
        self.mutable = mutable
        self.repeated = repeated
        self.default = default
        self.is_override = override
        # ancestor field this one replaces, linked by the resolver
        self.override: Optional["FieldDefinition"] = None
        self.position = position
        self._outer = weakref.ref(outer) if outer is not None else None

    @property
    def outer(self) -> Optional["MessageDefinition"]:
        return self._outer() if self._outer is not None else None

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def wire_key(self) -> Optional[str]:
        """Name tag used on the wire, None when tagged by ordinal."""
        return None if self.ordinal is not None else self.name

    def __repr__(self):
        return f"<FieldDefinition {self.name}: {self.type}>"


class MessageDefinition(Definition):
    """A message with fields, nested definitions and an optional base."""

    def __init__(
        self,
        identifier: str,
        position: Optional[CodePosition] = None,
        outer: Optional["MessageDefinition"] = None,
        compilation_target: bool = True,
        bindings: Optional[Dict[str, Any]] = None,
        kind: MessageKind = MessageKind.DEFINED,
        extends_name: Optional[str] = None,
        modifiers: Tuple[str, ...] = (),
    ):
        super().__init__(identifier, position, outer, compilation_target, bindings)
        self.kind = kind
        self.fields: List[FieldDefinition] = []
        self.messages: List["MessageDefinition"] = []
        self.enums: List["EnumDefinition"] = []
        self.extends_name = extends_name
        self.extends: Optional["MessageDefinition"] = None
        self.modifiers = tuple(modifiers)
        self.abstract = False
        self.external = False
        # closest declaration per overridden field name, set by the resolver
        self.overrides: Dict[str, FieldDefinition] = {}

    @property
    def is_sentinel(self) -> bool:
        return self.kind is not MessageKind.DEFINED

    @property
    def field_type(self) -> MessageType:
        if self.kind is MessageKind.ANONYMOUS:
            return ANONYMOUS_MESSAGE_TYPE
        if self.kind is MessageKind.NULL:
            raise SchemaError("the null message cannot be used as a field type")
        return MessageType(self)

    def _child_outer(self) -> Optional["MessageDefinition"]:
        if self.kind is MessageKind.ANONYMOUS:
            raise SchemaError("the anonymous message cannot own definitions")
        return self if self.kind is MessageKind.DEFINED else None

    def _child_identifier(self, name: str, namespace: str) -> str:
        if self.kind is MessageKind.DEFINED:
            return f"{self.identifier}.{name}"
        return f"{namespace}.{name}" if namespace else name

    def create_message(self, name: str, namespace: str = "", **kwargs) -> "MessageDefinition":
        """Create a message scoped to this one (top-level for the null message)."""
        message = MessageDefinition(
            self._child_identifier(name, namespace), outer=self._child_outer(), **kwargs
        )
        if self.kind is MessageKind.DEFINED:
            self.messages.append(message)
        return message

    def create_enum(self, name: str, namespace: str = "", **kwargs) -> "EnumDefinition":
        enum = EnumDefinition(
            self._child_identifier(name, namespace), outer=self._child_outer(), **kwargs
        )
        if self.kind is MessageKind.DEFINED:
            self.enums.append(enum)
        return enum

    def add_field(self, name: str, field_type: FieldType, **kwargs) -> FieldDefinition:
        if self.kind is not MessageKind.DEFINED:
            raise SchemaError(f"cannot add fields to the {self.kind.value} message")
        field = FieldDefinition(name, field_type, outer=self, **kwargs)
        self.fields.append(field)
        return field

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def ancestors(self) -> Iterator["MessageDefinition"]:
        """Base messages, closest first."""
        base = self.extends
        while base is not None:
            yield base
            base = base.extends

    def extends_from(self, other: "MessageDefinition") -> bool:
        return any(base is other for base in self.ancestors())

    def find_inherited_field(self, name: str) -> Optional[FieldDefinition]:
        """Closest ancestor field called ``name``."""
        for base in self.ancestors():
            field = base.get_field(name)
            if field is not None:
                return field
        return None

    def collect_overrides(self) -> Dict[str, FieldDefinition]:
        """Override map: walks most-derived to least, first seen per name wins."""
        overrides: Dict[str, FieldDefinition] = {}
        message: Optional[MessageDefinition] = self
        while message is not None:
            for field in message.fields:
                if field.is_override and field.name not in overrides:
                    overrides[field.name] = field
            message = message.extends
        return overrides


class EnumEncoding(Enum):
    SYMBOLIC = "symbolic"
    INTEGER = "integer"
    STRING = "string"


class EnumDefinition(Definition):
    """Ordered (label, value) members and their wire encoding."""

    def __init__(
        self,
        identifier: str,
        position: Optional[CodePosition] = None,
        outer: Optional[MessageDefinition] = None,
        compilation_target: bool = True,
        bindings: Optional[Dict[str, Any]] = None,
        encoding: EnumEncoding = EnumEncoding.SYMBOLIC,
    ):
        super().__init__(identifier, position, outer, compilation_target, bindings)
        self.encoding = encoding
        self.elements: List[Tuple[str, Any]] = []

    def add_element(self, label: str, value: Any = None) -> None:
        self.elements.append((label, value))

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self.elements]

    @property
    def field_type(self) -> EnumType:
        return EnumType(self)


class TaxonomyDefinition(Definition):
    """Ordered (ordinal, field name) pairs."""

    def __init__(
        self,
        identifier: str,
        position: Optional[CodePosition] = None,
        compilation_target: bool = True,
        bindings: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(identifier, position, None, compilation_target, bindings)
        self.entries: List[Tuple[int, str]] = []

    def add_entry(self, ordinal: int, name: str) -> None:
        self.entries.append((ordinal, name))


class TypeDefinition(Definition):
    """Alias of an underlying field type, possibly opaque."""

    def __init__(
        self,
        identifier: str,
        underlying: FieldType,
        position: Optional[CodePosition] = None,
        external: bool = False,
        compilation_target: bool = True,
        bindings: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(identifier, position, None, compilation_target, bindings)
        self.underlying = underlying
        self.external = external

    @property
    def field_type(self) -> UserType:
        return UserType(self)


NULL_MESSAGE = MessageDefinition("", kind=MessageKind.NULL, compilation_target=False)
ANONYMOUS_MESSAGE = MessageDefinition(
    "message", kind=MessageKind.ANONYMOUS, compilation_target=False
)
ANONYMOUS_MESSAGE_TYPE = AnonymousMessageType()


class SchemaModel:
    """One compilation unit: top-level definitions and their symbol table."""

    def __init__(self, source: str = "<schema>", namespace: str = ""):
        self.source = source
        self.namespace = namespace
        self.definitions: List[Definition] = []
        self.symbols: Dict[str, Definition] = {}
        self.resolved = False

    def add(self, definition: Definition) -> Definition:
        self.definitions.append(definition)
        return definition

    def walk(self) -> Iterator[Definition]:
        """All definitions, depth-first in declaration order."""

        def visit(definition: Definition) -> Iterator[Definition]:
            yield definition
            if isinstance(definition, MessageDefinition):
                for enum in definition.enums:
                    yield enum
                for message in definition.messages:
                    yield from visit(message)

        for definition in self.definitions:
            yield from visit(definition)

    def messages(self) -> List[MessageDefinition]:
        return [d for d in self.walk() if isinstance(d, MessageDefinition)]

    def enums(self) -> List[EnumDefinition]:
        return [d for d in self.walk() if isinstance(d, EnumDefinition)]

    def taxonomies(self) -> List[TaxonomyDefinition]:
        return [d for d in self.walk() if isinstance(d, TaxonomyDefinition)]

    def type_definitions(self) -> List[TypeDefinition]:
        return [d for d in self.walk() if isinstance(d, TypeDefinition)]

    def compilation_targets(self) -> List[Definition]:
        return [
            d
            for d in self.walk()
            if d.compilation_target and not isinstance(d, TypeDefinition)
        ]

    def lookup(self, identifier: str) -> Optional[Definition]:
        return self.symbols.get(identifier)
