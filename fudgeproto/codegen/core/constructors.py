"""
Constructor and accessor planning.

Chooses the construction shape of each message (direct constructor or
builder), the public parameter list, the arguments handed to the base
constructor, the builder bridge onto a non-builder base, the field order of
the wire-decode constructor, the copy constructor, and the per-field
assignment rules shared by constructors, builder setters and mutators.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .analyzer import (
    all_fields,
    has_external_message_references,
    is_indicator,
    own_fields,
    use_builder_pattern,
    use_copy_constructor,
)
from .config import GeneratorConfig
from .copyplan import CopyPlan, plan_copy
from .schema import FieldDefinition, MessageDefinition


class ConstructorShape(Enum):
    DIRECT = "direct"
    BUILDER = "builder"


class ArgumentSource(Enum):
    PARAMETER = "parameter"
    DEFAULT = "default"


@dataclass(frozen=True)
class SuperArgument:
    """One argument of the base constructor call.

    ``field`` is the base's declaration; ``effective`` is the declaration
    that supplies the value, which differs when the field is overridden.
    """

    field: FieldDefinition
    source: ArgumentSource
    effective: FieldDefinition

    @property
    def name(self) -> str:
        return self.field.name


@dataclass(frozen=True)
class AssignmentPlan:
    """Validation and copy rules for storing a value into one field.

    For repeated fields ``copy`` applies to each element.
    """

    field: FieldDefinition
    copy: CopyPlan
    null_check: bool
    non_empty: bool
    element_check: bool
    indicator: bool = False

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def repeated(self) -> bool:
        return self.field.repeated

    @property
    def default(self) -> Any:
        return self.field.default


@dataclass
class ConstructorPlan:
    """Everything a backend needs to emit the construction paths of a message."""

    message: MessageDefinition
    shape: ConstructorShape
    abstract: bool
    with_context: bool
    parameters: List[FieldDefinition] = field(default_factory=list)
    assigned_parameters: List[FieldDefinition] = field(default_factory=list)
    super_arguments: List[SuperArgument] = field(default_factory=list)
    defaults: List[FieldDefinition] = field(default_factory=list)
    builder_setters: List[FieldDefinition] = field(default_factory=list)
    base_uses_builder: bool = False
    bridge: Optional[MessageDefinition] = None
    decode_required: List[FieldDefinition] = field(default_factory=list)
    decode_optional: List[FieldDefinition] = field(default_factory=list)
    override_fields: List[FieldDefinition] = field(default_factory=list)
    copy_constructor: bool = False
    copy_fields: List[FieldDefinition] = field(default_factory=list)
    accessors: List[FieldDefinition] = field(default_factory=list)
    assignments: Dict[str, AssignmentPlan] = field(default_factory=dict)

    @property
    def uses_builder(self) -> bool:
        return self.shape is ConstructorShape.BUILDER

    @property
    def base(self) -> Optional[MessageDefinition]:
        return self.message.extends

    @property
    def mutators(self) -> List[FieldDefinition]:
        return [f for f in self.accessors if f.mutable]

    def assignment(self, field_def: FieldDefinition) -> AssignmentPlan:
        return self.assignments[field_def.name]


def datetime_target(message: MessageDefinition, config: GeneratorConfig) -> str:
    """Stored representation of datetime fields declared by ``message``."""
    return message.bindings.get("datetime", config.datetime_type)


def uses_context(message: MessageDefinition, config: GeneratorConfig) -> bool:
    """True when the message's wire-decode constructor threads a context."""
    return config.to_from_with_context or has_external_message_references(message)


def plan_assignment(
    field_def: FieldDefinition, target: str, include_checks: bool = True
) -> AssignmentPlan:
    indicator = is_indicator(field_def.type)
    return AssignmentPlan(
        field=field_def,
        copy=plan_copy(field_def.type, field_def.name, target, include_checks),
        null_check=field_def.required and not indicator,
        non_empty=field_def.repeated and field_def.required,
        element_check=field_def.repeated,
        indicator=indicator,
    )


def plan_super_arguments(message: MessageDefinition) -> List[SuperArgument]:
    """Arguments of the base constructor, in the base's parameter order."""
    base = message.extends
    if base is None:
        return []
    arguments = []
    for base_field in all_fields(False, base, base.overrides):
        effective = message.overrides.get(base_field.name, base_field)
        if effective is base_field or (effective.required and not effective.has_default):
            source = ArgumentSource.PARAMETER
        else:
            source = ArgumentSource.DEFAULT
        arguments.append(SuperArgument(base_field, source, effective))
    return arguments


def plan_constructors(message: MessageDefinition, config: GeneratorConfig) -> ConstructorPlan:
    """Plan the constructors, builder and accessors of ``message``."""
    shape = (
        ConstructorShape.BUILDER if use_builder_pattern(message) else ConstructorShape.DIRECT
    )
    plan = ConstructorPlan(
        message=message,
        shape=shape,
        abstract=message.abstract,
        with_context=uses_context(message, config),
    )

    overrides = [f for f in message.fields if f.override is not None]
    declared = own_fields(message)

    plan.parameters = all_fields(False, message, message.overrides)
    plan.super_arguments = plan_super_arguments(message)
    passed_up = {arg.name for arg in plan.super_arguments}
    plan.assigned_parameters = [f for f in plan.parameters if f.name not in passed_up]

    plan.defaults = [f for f in declared if f.has_default]
    plan.defaults += [f for f in overrides if f.has_default and f.name not in passed_up]

    parameter_names = {f.name for f in plan.parameters}
    plan.builder_setters = [
        f for f in declared + overrides if f.name not in parameter_names
    ]

    base = message.extends
    if base is not None:
        plan.base_uses_builder = use_builder_pattern(base)
        if shape is ConstructorShape.BUILDER and not plan.base_uses_builder:
            plan.bridge = base

    plan.decode_required = [f for f in declared if f.required]
    plan.decode_optional = [f for f in declared if not f.required]
    plan.override_fields = overrides

    plan.copy_constructor = use_copy_constructor(message)
    plan.copy_fields = list(declared)

    plan.accessors = declared + overrides

    target = datetime_target(message, config)
    for field_def in plan.accessors:
        plan.assignments[field_def.name] = plan_assignment(field_def, target)
    return plan
