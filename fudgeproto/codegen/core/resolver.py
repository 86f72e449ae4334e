"""
Resolution pass.

Closes every forward reference of a freshly loaded model exactly once:
inheritance links, named field types and type aliases. Also sets the derived
``abstract``/``external`` flags, links override fields to the ancestor field
they replace and validates the structural invariants the generators rely on.
Every problem is reported as a ``SchemaError`` carrying its source position.
"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Set

import dateparser

from ...logging_config import get_logger
from .schema import (
    ArrayType,
    CodePosition,
    Definition,
    EnumDefinition,
    EnumEncoding,
    EnumType,
    FieldDefinition,
    FieldType,
    MessageDefinition,
    MessageType,
    PrimitiveKind,
    PrimitiveType,
    SchemaError,
    SchemaModel,
    TaxonomyDefinition,
    TypeDefinition,
    TypeReference,
    UserType,
)

logger = get_logger(__name__)

MAX_ORDINAL = 32767

_INTEGER_BOUNDS = {
    PrimitiveKind.BYTE: (-(2**7), 2**7 - 1),
    PrimitiveKind.SHORT: (-(2**15), 2**15 - 1),
    PrimitiveKind.INT: (-(2**31), 2**31 - 1),
    PrimitiveKind.LONG: (-(2**63), 2**63 - 1),
}


class Resolver:
    """Resolves and validates one schema model in place."""

    def __init__(self, model: SchemaModel):
        self.model = model

    def resolve(self) -> SchemaModel:
        if self.model.resolved:
            return self.model

        self._build_symbol_table()
        messages = self.model.messages()

        for message in messages:
            self._resolve_extends(message)
        for message in messages:
            self._check_inheritance_cycle(message)

        for type_definition in self.model.type_definitions():
            type_definition.underlying = self._resolve_type(
                type_definition.underlying, type_definition.outer, type_definition.position
            )
        for type_definition in self.model.type_definitions():
            self._check_alias_cycle(type_definition)

        for message in messages:
            message.abstract = "abstract" in message.modifiers
            message.external = "external" in message.modifiers
            for field in message.fields:
                field.type = self._resolve_type(field.type, message, field.position)

        for message in messages:
            self._validate_fields(message)
        for message in messages:
            self._link_overrides(message)
        for enum in self.model.enums():
            self._validate_enum(enum)
        for taxonomy in self.model.taxonomies():
            self._validate_taxonomy(taxonomy)

        self.model.resolved = True
        logger.info(
            "Resolved %d messages from %s", len(messages), self.model.source
        )
        return self.model

    # Symbols

    def _build_symbol_table(self) -> None:
        symbols: Dict[str, Definition] = {}
        for definition in self.model.walk():
            if definition.identifier in symbols:
                raise SchemaError(
                    f"duplicate definition '{definition.identifier}'", definition.position
                )
            symbols[definition.identifier] = definition
        self.model.symbols = symbols

    def _lookup(self, name: str, scope: Optional[Definition]) -> Optional[Definition]:
        """Find ``name`` from the innermost scope outward."""
        while scope is not None:
            found = self.model.symbols.get(f"{scope.identifier}.{name}")
            if found is not None:
                return found
            scope = scope.outer
        if self.model.namespace:
            found = self.model.symbols.get(f"{self.model.namespace}.{name}")
            if found is not None:
                return found
        return self.model.symbols.get(name)

    # Inheritance

    def _resolve_extends(self, message: MessageDefinition) -> None:
        if not message.extends_name:
            return
        base = self._lookup(message.extends_name, message.outer)
        if base is None:
            base = self._lookup(message.extends_name, message)
        if base is None:
            raise SchemaError(
                f"message '{message.name}' extends undefined message "
                f"'{message.extends_name}'",
                message.position,
            )
        if not isinstance(base, MessageDefinition):
            raise SchemaError(
                f"message '{message.name}' cannot extend non-message "
                f"'{message.extends_name}'",
                message.position,
            )
        if base is message:
            raise SchemaError(f"message '{message.name}' extends itself", message.position)
        message.extends = base

    def _check_inheritance_cycle(self, message: MessageDefinition) -> None:
        visited: Set[int] = {id(message)}
        base = message.extends
        while base is not None:
            if id(base) in visited:
                raise SchemaError(
                    f"inheritance cycle through message '{message.name}'", message.position
                )
            visited.add(id(base))
            base = base.extends

    # Types

    def _resolve_type(
        self,
        field_type: FieldType,
        scope: Optional[Definition],
        position: Optional[CodePosition],
    ) -> FieldType:
        if isinstance(field_type, ArrayType):
            base = self._resolve_type(field_type.base_type, scope, position)
            if base is field_type.base_type:
                return field_type
            return ArrayType(base, field_type.fixed_length)
        if not isinstance(field_type, TypeReference):
            return field_type

        target = self._lookup(field_type.name, scope)
        if target is None:
            raise SchemaError(
                f"undefined type '{field_type.name}'", field_type.position or position
            )
        if isinstance(target, MessageDefinition):
            return MessageType(target)
        if isinstance(target, EnumDefinition):
            return EnumType(target)
        if isinstance(target, TypeDefinition):
            return UserType(target)
        raise SchemaError(
            f"'{field_type.name}' is a {type(target).__name__}, not a type",
            field_type.position or position,
        )

    def _check_alias_cycle(self, type_definition: TypeDefinition) -> None:
        visited: Set[int] = set()
        current: FieldType = type_definition.underlying
        while True:
            while isinstance(current, ArrayType):
                current = current.base_type
            if not isinstance(current, UserType):
                return
            if current.definition is type_definition or id(current.definition) in visited:
                raise SchemaError(
                    f"type '{type_definition.name}' is defined in terms of itself",
                    type_definition.position,
                )
            visited.add(id(current.definition))
            current = current.definition.underlying

    # Fields

    def _validate_fields(self, message: MessageDefinition) -> None:
        names: Set[str] = set()
        ordinals: Dict[int, str] = {}
        for field in message.fields:
            if field.name in names:
                raise SchemaError(
                    f"duplicate field '{field.name}' in message '{message.name}'",
                    field.position,
                )
            names.add(field.name)

            if field.ordinal is not None:
                if not 1 <= field.ordinal <= MAX_ORDINAL:
                    raise SchemaError(
                        f"ordinal {field.ordinal} of field '{field.name}' must be "
                        f"between 1 and {MAX_ORDINAL}",
                        field.position,
                    )
                if field.ordinal in ordinals:
                    raise SchemaError(
                        f"field '{field.name}' reuses ordinal {field.ordinal} of "
                        f"'{ordinals[field.ordinal]}'",
                        field.position,
                    )
                ordinals[field.ordinal] = field.name

            if _is_indicator_collection(field):
                raise SchemaError(
                    f"indicator field '{field.name}' cannot be repeated or an array",
                    field.position,
                )

            if field.default is not None:
                field.default = self._coerce_default(field)

    def _coerce_default(self, field: FieldDefinition) -> Any:
        if field.repeated:
            raise SchemaError(
                f"repeated field '{field.name}' cannot have a default", field.position
            )
        field_type = field.type
        while isinstance(field_type, UserType) and not field_type.definition.external:
            field_type = field_type.definition.underlying
        value = field.default

        if isinstance(field_type, EnumType):
            if value not in field_type.definition.labels:
                raise SchemaError(
                    f"default {value!r} of field '{field.name}' is not a member of "
                    f"'{field_type.definition.name}'",
                    field.position,
                )
            return value
        if not isinstance(field_type, PrimitiveType):
            raise SchemaError(
                f"field '{field.name}' of type {field.type} cannot have a default",
                field.position,
            )

        kind = field_type.kind
        try:
            if kind is PrimitiveKind.BOOLEAN or kind is PrimitiveKind.INDICATOR:
                if isinstance(value, bool):
                    return value
            elif kind.is_integral:
                if isinstance(value, int) and not isinstance(value, bool):
                    low, high = _INTEGER_BOUNDS[kind]
                    if low <= value <= high:
                        return value
            elif kind.is_floating:
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    return float(value)
            elif kind is PrimitiveKind.STRING:
                if isinstance(value, str):
                    return value
            elif kind.is_temporal:
                return _parse_temporal(kind, value)
        except ValueError as e:
            raise SchemaError(
                f"invalid default for field '{field.name}': {e}", field.position
            ) from e
        raise SchemaError(
            f"default {value!r} is not a valid {kind.value} for field '{field.name}'",
            field.position,
        )

    def _link_overrides(self, message: MessageDefinition) -> None:
        for field in message.fields:
            inherited = message.find_inherited_field(field.name)
            if field.is_override:
                if message.extends is None:
                    raise SchemaError(
                        f"field '{field.name}' overrides nothing: message "
                        f"'{message.name}' has no base",
                        field.position,
                    )
                if inherited is None:
                    raise SchemaError(
                        f"field '{field.name}' does not override any field of an "
                        f"ancestor of '{message.name}'",
                        field.position,
                    )
                if field.repeated != inherited.repeated:
                    raise SchemaError(
                        f"override '{field.name}' must match the repeated flag of the "
                        f"field it replaces",
                        field.position,
                    )
                if field.type != inherited.type:
                    raise SchemaError(
                        f"override '{field.name}' must keep the type "
                        f"{inherited.type} of the field it replaces",
                        field.position,
                    )
                if (
                    inherited.required
                    and not inherited.has_default
                    and not field.required
                    and not field.has_default
                ):
                    raise SchemaError(
                        f"override '{field.name}' of a required field must be "
                        f"required or carry a default",
                        field.position,
                    )
                field.override = inherited
            elif inherited is not None:
                raise SchemaError(
                    f"field '{field.name}' hides an inherited field; declare it as an "
                    f"override",
                    field.position,
                )
        message.overrides = message.collect_overrides()

    # Enums and taxonomies

    def _validate_enum(self, enum: EnumDefinition) -> None:
        labels: Set[str] = set()
        values: Set[Any] = set()
        for label, value in enum.elements:
            if label in labels:
                raise SchemaError(
                    f"duplicate member '{label}' in enum '{enum.name}'", enum.position
                )
            labels.add(label)
            if enum.encoding is EnumEncoding.SYMBOLIC:
                if value is not None:
                    raise SchemaError(
                        f"member '{label}' of symbolic enum '{enum.name}' cannot "
                        f"declare a value",
                        enum.position,
                    )
                continue
            expected = int if enum.encoding is EnumEncoding.INTEGER else str
            if value is None or isinstance(value, bool) or not isinstance(value, expected):
                raise SchemaError(
                    f"member '{label}' of {enum.encoding.value} enum '{enum.name}' "
                    f"needs a {expected.__name__} value",
                    enum.position,
                )
            if value in values:
                raise SchemaError(
                    f"duplicate value {value!r} in enum '{enum.name}'", enum.position
                )
            values.add(value)
        if not labels:
            logger.warning("Enum '%s' declares no members", enum.name)

    def _validate_taxonomy(self, taxonomy: TaxonomyDefinition) -> None:
        ordinals: Set[int] = set()
        names: Set[str] = set()
        for ordinal, name in taxonomy.entries:
            if isinstance(ordinal, bool) or not isinstance(ordinal, int):
                raise SchemaError(
                    f"taxonomy '{taxonomy.name}' ordinal {ordinal!r} is not an integer",
                    taxonomy.position,
                )
            if not 1 <= ordinal <= MAX_ORDINAL:
                raise SchemaError(
                    f"taxonomy '{taxonomy.name}' ordinal {ordinal} out of range",
                    taxonomy.position,
                )
            if ordinal in ordinals or name in names:
                raise SchemaError(
                    f"taxonomy '{taxonomy.name}' repeats entry ({ordinal}, {name!r})",
                    taxonomy.position,
                )
            ordinals.add(ordinal)
            names.add(name)


def _is_indicator_collection(field: FieldDefinition) -> bool:
    field_type = field.type
    is_array = False
    while True:
        if isinstance(field_type, ArrayType):
            is_array = True
            field_type = field_type.base_type
        elif isinstance(field_type, UserType) and not field_type.definition.external:
            field_type = field_type.definition.underlying
        else:
            break
    indicator = (
        isinstance(field_type, PrimitiveType) and field_type.kind is PrimitiveKind.INDICATOR
    )
    return indicator and (is_array or field.repeated)


def _parse_temporal(kind: PrimitiveKind, value: Any):
    """Parse a date, time or datetime default literal."""
    if kind is PrimitiveKind.DATETIME and isinstance(value, datetime):
        return value
    if kind is PrimitiveKind.DATE and isinstance(value, date) and not isinstance(value, datetime):
        return value
    if kind is PrimitiveKind.TIME and isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f"{value!r} is not a {kind.value} literal")

    if kind is PrimitiveKind.TIME:
        return time.fromisoformat(value)
    parsed = dateparser.parse(
        value, settings={"STRICT_PARSING": kind is PrimitiveKind.DATE, "RETURN_AS_TIMEZONE_AWARE": False}
    )
    if parsed is None:
        raise ValueError(f"cannot parse {value!r} as a {kind.value}")
    if kind is PrimitiveKind.DATE:
        return parsed.date()
    return parsed


def resolve(model: SchemaModel) -> SchemaModel:
    """Resolve ``model`` in place and return it.

    Raises:
        SchemaError: On undefined references, inheritance cycles or invalid
            fields, enums or taxonomies.
    """
    return Resolver(model).resolve()
