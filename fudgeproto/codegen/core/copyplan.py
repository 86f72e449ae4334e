"""
Defensive-copy planning.

``plan_copy`` turns a field type into a ``CopyPlan`` tree describing how a
value handed to a constructor, builder setter or mutator becomes a value that
is safe to store in the message. Every backend renders the same tree at all of
those call sites so the copy policy cannot drift between them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .analyzer import is_big_object, is_integer_enum, resolve_alias, use_copy_constructor
from .schema import (
    ArrayType,
    FieldType,
    MessageType,
    PrimitiveKind,
    PrimitiveType,
    UserType,
)

DATETIME_TARGETS = ("datetime", "instant")


class CopyAction(Enum):
    ALIAS = "alias"
    CLONE = "clone"
    CONVERT = "convert"
    ARRAY = "array"


@dataclass(frozen=True)
class CopyPlan:
    """How to copy one value of ``field_type``.

    ``element`` is set for arrays whose elements need more than an alias;
    ``check_length`` holds the declared length to re-validate, if any;
    ``non_null_elements`` rejects None elements the wire cannot carry;
    ``conversion`` names the value-domain target of a temporal conversion
    (``date``, ``time``, ``datetime`` or ``instant``).
    """

    action: CopyAction
    field_type: FieldType
    display_name: str
    element: Optional["CopyPlan"] = None
    check_length: Optional[int] = None
    non_null_elements: bool = False
    conversion: Optional[str] = None

    @property
    def is_alias(self) -> bool:
        return self.action is CopyAction.ALIAS

    @property
    def depth(self) -> int:
        """Number of nested array levels that need a per-element pass."""
        if self.action is CopyAction.ARRAY and self.element is not None:
            return 1 + self.element.depth
        return 0


def plan_copy(
    field_type: FieldType,
    display_name: str,
    datetime_target: str = "datetime",
    include_checks: bool = True,
) -> CopyPlan:
    """Plan the defensive copy of a value of ``field_type``.

    Args:
        field_type: Declared type of the value.
        display_name: Field name quoted in length errors.
        datetime_target: Stored representation of ``datetime`` values.
        include_checks: Re-validate fixed array lengths while copying.

    Returns:
        The copy plan. Element plans of arrays are omitted when every element
        can be aliased.
    """
    if datetime_target not in DATETIME_TARGETS:
        raise ValueError(f"unknown datetime target {datetime_target!r}")

    if isinstance(field_type, UserType) and field_type.definition.external:
        return CopyPlan(CopyAction.ALIAS, field_type, display_name)

    resolved = resolve_alias(field_type)

    if isinstance(resolved, ArrayType):
        element = None
        if is_big_object(resolved.base_type) or _is_converted(resolved.base_type):
            element_plan = plan_copy(
                resolved.base_type, display_name, datetime_target, include_checks
            )
            if not element_plan.is_alias:
                element = element_plan
        return CopyPlan(
            CopyAction.ARRAY,
            field_type,
            display_name,
            element=element,
            check_length=resolved.fixed_length if include_checks else None,
            non_null_elements=include_checks and is_integer_enum(resolved.base_type),
        )

    if isinstance(resolved, MessageType):
        if not resolved.is_anonymous and use_copy_constructor(resolved.definition):
            return CopyPlan(CopyAction.CLONE, field_type, display_name)
        return CopyPlan(CopyAction.ALIAS, field_type, display_name)

    if isinstance(resolved, PrimitiveType) and resolved.kind.is_temporal:
        if resolved.kind is PrimitiveKind.DATETIME:
            conversion = datetime_target
        else:
            conversion = resolved.kind.value
        return CopyPlan(CopyAction.CONVERT, field_type, display_name, conversion=conversion)

    return CopyPlan(CopyAction.ALIAS, field_type, display_name)


def _is_converted(field_type: FieldType) -> bool:
    if isinstance(field_type, UserType) and field_type.definition.external:
        return False
    resolved = resolve_alias(field_type)
    return isinstance(resolved, PrimitiveType) and resolved.kind.is_temporal
