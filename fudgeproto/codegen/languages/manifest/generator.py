"""
Manifest generator implementation.

Emits the planner's decisions for a schema as a JSON document, one entry per
enum, taxonomy and message, for tooling that consumes the model without
generated code.
"""

import json
from datetime import date, time
from typing import Any, Dict, List, Optional

from ...core.config import GeneratorConfig
from ...core.copyplan import CopyPlan
from ...core.generator import BackendCapabilities, CodeGenerator, GeneratorError
from ...core.naming import NamingCase
from ...core.planner import MessagePlan, base_first
from ...core.schema import (
    Definition,
    EnumDefinition,
    FieldDefinition,
    MessageDefinition,
    SchemaModel,
    TaxonomyDefinition,
)
from ...core.wirecodec import ValueCodec


class ManifestGenerator(CodeGenerator):
    """Code generator producing a JSON manifest of the generation plans."""

    CAPABILITIES = BackendCapabilities(field_case=NamingCase.PRESERVE)

    def __init__(self, config: Optional[GeneratorConfig] = None, capabilities=None):
        """Initialize manifest generator with configuration."""
        super().__init__(config, capabilities)
        self.include_positions = self.config.custom.get("include_positions", True)

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "manifest"

    @property
    def file_extension(self) -> str:
        """Return the manifest file extension."""
        return ".json"

    def generate(self, model: SchemaModel) -> str:
        """Generate the manifest for every compilation target of ``model``."""
        targets = model.compilation_targets()
        messages = base_first(
            [d for d in targets if isinstance(d, MessageDefinition) and not d.external]
        )
        document = {
            "source": model.source,
            "namespace": model.namespace,
            "enums": [self._enum(d) for d in targets if isinstance(d, EnumDefinition)],
            "taxonomies": [
                self._taxonomy(d) for d in targets if isinstance(d, TaxonomyDefinition)
            ],
            "messages": [self._message(self.plan(m)) for m in messages],
        }
        return self._dump(document)

    def generate_single_definition(self, definition: Definition) -> str:
        if isinstance(definition, EnumDefinition):
            return self._dump(self._enum(definition))
        if isinstance(definition, TaxonomyDefinition):
            return self._dump(self._taxonomy(definition))
        if isinstance(definition, MessageDefinition) and not definition.is_sentinel:
            return self._dump(self._message(self.plan(definition)))
        raise GeneratorError(f"Cannot describe {definition!r}")

    def _dump(self, document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=self.config.indent_size, default=_json_default)

    def _common(self, definition: Definition) -> Dict[str, Any]:
        entry = {"name": definition.name, "identifier": definition.identifier}
        if self.include_positions and definition.position is not None:
            entry["position"] = str(definition.position)
        return entry

    def _enum(self, enum: EnumDefinition) -> Dict[str, Any]:
        entry = self._common(enum)
        entry["encoding"] = enum.encoding.value
        entry["members"] = [[label, value] for label, value in enum.elements]
        return entry

    def _taxonomy(self, taxonomy: TaxonomyDefinition) -> Dict[str, Any]:
        entry = self._common(taxonomy)
        entry["entries"] = [[ordinal, name] for ordinal, name in taxonomy.entries]
        return entry

    def _message(self, plan: MessagePlan) -> Dict[str, Any]:
        message = plan.message
        ctor = plan.constructors
        dispatch = plan.codec.dispatch

        entry = self._common(message)
        entry.update(
            {
                "base": message.extends.identifier if message.extends else None,
                "abstract": message.abstract,
                "type_token": dispatch.type_token,
                "shape": ctor.shape.value,
                "with_context": ctor.with_context,
                "parameters": _names(ctor.parameters),
                "super_arguments": [
                    {"name": arg.name, "source": arg.source.value}
                    for arg in ctor.super_arguments
                ],
                "defaults": _names(ctor.defaults),
                "builder_setters": _names(ctor.builder_setters),
                "bridge": ctor.bridge.identifier if ctor.bridge else None,
                "copy_constructor": ctor.copy_constructor,
                "accessors": [
                    {"name": f.name, "mutable": f.mutable} for f in ctor.accessors
                ],
                "decode_order": [c.name for c in plan.codec.decode_order],
                "equality": plan.value_semantics.names,
                "fields": [self._field(f, plan) for f in message.fields],
            }
        )
        return entry

    def _field(self, field: FieldDefinition, plan: MessagePlan) -> Dict[str, Any]:
        entry = {
            "name": field.name,
            "type": field.type.describe(),
            "ordinal": field.ordinal,
            "key": field.wire_key,
            "required": field.required,
            "mutable": field.mutable,
            "repeated": field.repeated,
            "default": field.default,
            "override": field.override.outer.identifier if field.override else None,
        }
        assignment = plan.constructors.assignments.get(field.name)
        if assignment is not None and assignment.field is field:
            entry["copy"] = _copy_plan(assignment.copy)
        for codec in plan.codec.fields:
            if codec.field is field:
                entry["codec"] = _value_codec(codec.value)
        return entry


def _names(fields: List[FieldDefinition]) -> List[str]:
    return [f.name for f in fields]


def _copy_plan(plan: CopyPlan) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"action": plan.action.value}
    if plan.element is not None:
        entry["element"] = _copy_plan(plan.element)
    if plan.check_length is not None:
        entry["check_length"] = plan.check_length
    if plan.non_null_elements:
        entry["non_null_elements"] = True
    if plan.conversion is not None:
        entry["conversion"] = plan.conversion
    return entry


def _value_codec(codec: ValueCodec) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"kind": codec.kind.value, "wire_type": codec.wire_type.name}
    if codec.element is not None:
        entry["element"] = _value_codec(codec.element)
    if codec.fixed_length is not None:
        entry["fixed_length"] = codec.fixed_length
    if codec.type_token is not None:
        entry["type_token"] = codec.type_token
    return entry


def _json_default(value: Any) -> Any:
    if isinstance(value, (date, time)):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def create_manifest_generator(config: GeneratorConfig = None) -> ManifestGenerator:
    """Create a manifest generator."""
    if config is None:
        config = GeneratorConfig(indent_size=2, add_comments=False)
    return ManifestGenerator(config)
