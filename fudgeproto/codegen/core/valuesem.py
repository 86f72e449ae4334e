"""
Value semantics planning: equality, hashing and string rendering.

Equality and hashing walk the same field list so they cannot diverge. Own
fields come first, then the base message is consulted for inherited state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .analyzer import own_fields, resolve_alias
from .schema import ArrayType, FieldDefinition, MessageDefinition

HASH_SEED = 1
HASH_MULTIPLIER = 31


class ComparisonKind(Enum):
    VALUE = "value"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class EqualityField:
    field: FieldDefinition
    comparison: ComparisonKind

    @property
    def name(self) -> str:
        return self.field.name


@dataclass
class ValueSemanticsPlan:
    message: MessageDefinition
    fields: List[EqualityField] = field(default_factory=list)
    has_base: bool = False
    seed: int = HASH_SEED
    multiplier: int = HASH_MULTIPLIER

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.fields]


def plan_value_semantics(message: MessageDefinition) -> ValueSemanticsPlan:
    fields = []
    for field_def in own_fields(message):
        is_sequence = field_def.repeated or isinstance(
            resolve_alias(field_def.type), ArrayType
        )
        comparison = ComparisonKind.SEQUENCE if is_sequence else ComparisonKind.VALUE
        fields.append(EqualityField(field_def, comparison))
    return ValueSemanticsPlan(message, fields, has_base=message.extends is not None)
