"""
Renders the planner's decisions for one message as Python class members.

The class skeleton (header, constants, storage slots) goes through the
``message.py.j2`` template; every method body is written here with a
``CodeWriter`` so nested blocks keep their indentation.
"""

from typing import Any, Dict, List, Optional, Tuple

from ...core.analyzer import is_indicator, resolve_alias, use_builder_pattern
from ...core.config import GeneratorConfig
from ...core.constructors import (
    ArgumentSource,
    AssignmentPlan,
    ConstructorPlan,
    datetime_target,
    plan_assignment,
)
from ...core.copyplan import CopyAction, CopyPlan
from ...core.planner import MessagePlan
from ...core.schema import (
    ArrayType,
    EnumType,
    FieldDefinition,
    MessageDefinition,
    PrimitiveKind,
    PrimitiveType,
)
from ...core.wirecodec import CodecKind, FieldCodec, ValueCodec
from .naming import PythonNames
from .writer import CodeWriter


def root_declaration(field: FieldDefinition) -> FieldDefinition:
    """The ancestor declaration an override chain ends at."""
    while field.override is not None:
        field = field.override
    return field


class MessageEmitter:
    """Writes the members of one generated message class."""

    def __init__(
        self,
        plan: MessagePlan,
        names: PythonNames,
        config: GeneratorConfig,
        runtime_alias: str = "fudge",
        registry_name: str = "DECODERS",
    ):
        self.plan = plan
        self.message = plan.message
        self.ctor: ConstructorPlan = plan.constructors
        self.names = names
        self.config = config
        self.rt = runtime_alias
        self.registry = registry_name
        self.cls = names.class_name(self.message)

    # Naming helpers

    def _name(self, field: FieldDefinition) -> str:
        return self.names.field_name(field)

    def _slot(self, field: FieldDefinition) -> str:
        return self.names.storage(field)

    def _class_of(self, field: FieldDefinition) -> str:
        return self.names.class_name(field.outer)

    def _tag(self, field: FieldDefinition) -> Tuple[str, str]:
        """(name, ordinal) arguments of ``msg.add`` for ``field``'s wire tag."""
        root = root_declaration(field)
        owner = self._class_of(root)
        if root.ordinal is not None:
            return "None", f"{owner}.{self.names.constant(root, 'ORDINAL')}"
        return f"{owner}.{self.names.constant(root, 'KEY')}", "None"

    def _lookup(self, field: FieldDefinition, source: str, repeated: bool = False) -> str:
        name, ordinal = self._tag(field)
        suffix = "all_by" if repeated else "by"
        if ordinal != "None":
            return f"{source}.get_{suffix}_ordinal({ordinal})"
        return f"{source}.get_{suffix}_name({name})"

    def _default(self, field: FieldDefinition) -> str:
        return f"{self._class_of(field)}.{self.names.constant(field, 'DEFAULT')}"

    def _wire_type(self, wire_type) -> str:
        return f"{self.rt}.WireType.{wire_type.name}"

    def _assignment(self, field: FieldDefinition) -> AssignmentPlan:
        if field.name in self.ctor.assignments and (
            self.ctor.assignments[field.name].field is field
        ):
            return self.ctor.assignments[field.name]
        return plan_assignment(field, datetime_target(field.outer, self.config))

    def _uses_builder(self, message: MessageDefinition) -> bool:
        return not message.external and use_builder_pattern(message)

    # Class skeleton

    def constants(self) -> List[Tuple[str, str]]:
        constants = []
        for field in self.message.fields:
            if field.override is None:
                if field.ordinal is not None:
                    constants.append((self.names.constant(field, "ORDINAL"), str(field.ordinal)))
                else:
                    constants.append((self.names.constant(field, "KEY"), f'"{field.name}"'))
        for field in self.message.fields:
            if field.has_default:
                constants.append(
                    (self.names.constant(field, "DEFAULT"), self.default_literal(field))
                )
        return constants

    def storage(self) -> List[Tuple[str, str]]:
        return [
            (self._slot(f), "False" if self._assignment(f).indicator else "None")
            for f in self.message.fields
            if f.override is None
        ]

    def default_literal(self, field: FieldDefinition) -> str:
        value = field.default
        field_type = resolve_alias(field.type)
        if isinstance(field_type, EnumType):
            enum_class = self.names.class_name(field_type.definition)
            return f"{enum_class}.{self.names.member_name(value)}"
        if isinstance(field_type, PrimitiveType) and field_type.kind.is_temporal:
            if field_type.kind is PrimitiveKind.DATETIME:
                conversion = datetime_target(field.outer, self.config)
            else:
                conversion = field_type.kind.value
            return f'{self.rt}.to_{conversion}("{value.isoformat()}")'
        return repr(value)

    def base_class(self) -> str:
        base = self.message.extends
        if base is None:
            return f"{self.rt}.Message"
        return self.names.class_name(base)

    def body(self) -> str:
        w = CodeWriter(self.config.indent_size)
        if self.ctor.uses_builder:
            self._write_builder(w)
            self._write_builder_init(w)
        else:
            self._write_direct_init(w)
        self._write_accessors(w)
        self._write_from_wire(w)
        if not self.ctor.uses_builder:
            with w.method("_decode_fields(self, deserializer, fudge_msg)") as m:
                self._write_decode_body(m, "self", builder=False)
        self._write_encode(w)
        self._write_copy(w)
        self._write_value_semantics(w)
        return w.getvalue()

    # Copy and assignment expressions

    def render_copy(self, plan: CopyPlan, expr: str, depth: int = 0) -> str:
        if plan.action is CopyAction.CLONE:
            return f"{expr}.clone()"
        if plan.action is CopyAction.CONVERT:
            return f"{self.rt}.to_{plan.conversion}({expr})"
        if plan.action is CopyAction.ARRAY:
            source = expr
            if plan.check_length is not None:
                source = (
                    f'{self.rt}.check_length({expr}, {plan.check_length}, "{plan.display_name}")'
                )
            if plan.non_null_elements and plan.element is None:
                return f'{self.rt}.check_elements(list({source}), "{plan.display_name}")'
            if plan.element is None:
                return f"list({source})"
            var = f"e{depth}"
            element = self.render_copy(plan.element, var, depth + 1)
            return f"[{element} if {var} is not None else None for {var} in {source}]"
        return expr

    def assign_expr(self, assignment: AssignmentPlan, expr: str) -> str:
        """Expression storing ``expr`` into a field, validated and copied."""
        name = assignment.field.name
        if assignment.indicator:
            return f"bool({expr})"
        if assignment.repeated:
            source = f"{self.rt}.require({expr}, \"{name}\")" if assignment.null_check else expr
            flag = ", True" if assignment.non_empty else ""
            checked = f'{self.rt}.check_elements({source}, "{name}"{flag})'
            if assignment.copy.is_alias:
                stored = f"list({checked})"
            else:
                stored = f"[{self.render_copy(assignment.copy, 'v')} for v in {checked}]"
            if assignment.null_check:
                return stored
            return f"None if {expr} is None else {stored}"
        if assignment.null_check:
            return self.render_copy(assignment.copy, f'{self.rt}.require({expr}, "{name}")')
        if assignment.copy.is_alias:
            return expr
        return f"None if {expr} is None else {self.render_copy(assignment.copy, expr)}"

    def element_expr(self, assignment: AssignmentPlan, expr: str) -> str:
        """Expression for one value appended to a repeated field."""
        required = f'{self.rt}.require({expr}, "{assignment.field.name}")'
        return self.render_copy(assignment.copy, required)

    # Constructors

    def _super_argument(self, argument, source: Optional[str] = None) -> str:
        if source is not None:
            return f"{source}.{self._slot(argument.field)}"
        if argument.source is ArgumentSource.DEFAULT:
            return self._default(argument.effective)
        return self._name(argument.field)

    def _write_abstract_guard(self, w: CodeWriter) -> None:
        if self.ctor.abstract:
            with w.block(f"if type(self) is {self.cls}:"):
                w.line(f'raise {self.rt}.AbstractMessageError("{self.message.name}")')

    def _write_direct_init(self, w: CodeWriter) -> None:
        params = ", ".join(["self"] + [self._name(f) for f in self.ctor.parameters])
        with w.method(f"__init__({params})") as m:
            self._write_abstract_guard(m)
            if self.ctor.base is not None:
                args = ", ".join(self._super_argument(a) for a in self.ctor.super_arguments)
                m.line(f"super().__init__({args})")
            for field in self.ctor.assigned_parameters:
                m.line(
                    f"self.{self._slot(field)} = "
                    f"{self.assign_expr(self._assignment(field), self._name(field))}"
                )
            for field in self.ctor.defaults:
                m.line(f"self.{self._slot(field)} = {self._default(field)}")

    def _builder_storage(self) -> List[FieldDefinition]:
        fields = [f for f in self.message.fields if f.override is None]
        fields += list(self.ctor.override_fields)
        if self.ctor.bridge is not None:
            fields += [a.field for a in self.ctor.super_arguments]
        seen = set()
        unique = []
        for field in fields:
            slot = self._slot(field)
            if slot not in seen:
                seen.add(slot)
                unique.append(field)
        return unique

    def _write_builder(self, w: CodeWriter) -> None:
        base = self.ctor.base
        if base is not None and self.ctor.base_uses_builder:
            builder_base = f"{self.names.class_name(base)}.Builder"
        else:
            builder_base = f"{self.rt}.MessageBuilder"

        w.blank()
        with w.block(f"class Builder({builder_base}):"):
            if self.config.add_comments:
                w.line(f'"""Builder of ``{self.cls}`` instances."""')
                w.blank()
            for field in self._builder_storage():
                indicator = self._assignment(field).indicator
                w.line(f"{self._slot(field)} = {'False' if indicator else 'None'}")

            params = ", ".join(["self"] + [self._name(f) for f in self.ctor.parameters])
            with w.method(f"__init__({params})") as m:
                if base is not None and self.ctor.base_uses_builder:
                    args = ", ".join(
                        self._super_argument(a) for a in self.ctor.super_arguments
                    )
                    m.line(f"super().__init__({args})")
                    assigned = self.ctor.assigned_parameters
                else:
                    assigned = self.ctor.parameters
                for field in assigned:
                    m.line(
                        f"self.{self._slot(field)} = "
                        f"{self.assign_expr(self._assignment(field), self._name(field))}"
                    )
                if self.ctor.bridge is not None:
                    for argument in self.ctor.super_arguments:
                        if argument.source is ArgumentSource.DEFAULT:
                            m.line(
                                f"self.{self._slot(argument.field)} = "
                                f"{self._default(argument.effective)}"
                            )
                for field in self.ctor.defaults:
                    m.line(f"self.{self._slot(field)} = {self._default(field)}")

            for field in self.ctor.builder_setters:
                assignment = self._assignment(field)
                name = self._name(field)
                with w.method(f"{name}(self, {name})") as m:
                    m.line(f"self.{self._slot(field)} = {self.assign_expr(assignment, name)}")
                    m.line("return self")
                if field.repeated:
                    self._write_append(w, field, "return self")

            with w.method("_decode_fields(self, deserializer, fudge_msg)") as m:
                self._write_decode_body(m, "self", builder=True)

            if not self.ctor.abstract:
                with w.method("build(self)") as m:
                    m.line(f"return {self.cls}(self)")

    def _override_groups(self) -> Tuple[List[FieldDefinition], List[FieldDefinition]]:
        """Overrides decoded by a builder, and overrides of non-builder ancestors."""
        builder_side, direct_side = [], []
        for field in self.ctor.override_fields:
            if self._uses_builder(root_declaration(field).outer):
                builder_side.append(field)
            else:
                direct_side.append(field)
        return builder_side, direct_side

    def _write_builder_init(self, w: CodeWriter) -> None:
        builder_side, direct_side = self._override_groups()

        with w.method("__init__(self, builder)") as m:
            self._write_abstract_guard(m)
            if self.ctor.base_uses_builder:
                m.line("super().__init__(builder)")
            elif self.ctor.bridge is not None:
                with m.block("if builder._fudge_root is not None:"):
                    m.line(
                        f"{self.names.class_name(self.ctor.bridge)}._decode_fields("
                        f"self, builder._deserializer, builder._fudge_root)"
                    )
                with m.block("else:"):
                    args = ", ".join(
                        self._super_argument(a, "builder") for a in self.ctor.super_arguments
                    )
                    m.line(f"super().__init__({args})")

            for field in self.message.fields:
                if field.override is None:
                    m.line(
                        f"self.{self._slot(field)} = "
                        f"{self.assign_expr(self._assignment(field), 'builder.' + self._slot(field))}"
                    )
            for field in builder_side:
                m.line(
                    f"self.{self._slot(field)} = "
                    f"{self.assign_expr(self._assignment(field), 'builder.' + self._slot(field))}"
                )
            if direct_side:
                with m.block("if builder._fudge_root is None:"):
                    for field in direct_side:
                        m.line(
                            f"self.{self._slot(field)} = "
                            f"{self.assign_expr(self._assignment(field), 'builder.' + self._slot(field))}"
                        )
                with m.block("else:"):
                    self._write_override_decode(m, direct_side, "self", "builder._fudge_root")

    # Accessors

    def _write_append(self, w: CodeWriter, field: FieldDefinition, tail: Optional[str]) -> None:
        slot = self._slot(field)
        with w.method(f"add_{self._name(field)}(self, value)") as m:
            with m.block(f"if self.{slot} is None:"):
                m.line(f"self.{slot} = []")
            m.line(f"self.{slot}.append({self.element_expr(self._assignment(field), 'value')})")
            if tail:
                m.line(tail)

    def _array_copy(self, field_type, expr: str, depth: int = 0) -> str:
        """List copy of a stored array, one level per dimension."""
        base = resolve_alias(field_type).base_type
        if isinstance(resolve_alias(base), ArrayType):
            var = f"e{depth}"
            inner = self._array_copy(base, var, depth + 1)
            return f"[{inner} if {var} is not None else None for {var} in {expr}]"
        return f"list({expr})"

    def _write_accessors(self, w: CodeWriter) -> None:
        for field in self.ctor.accessors:
            name = self._name(field)
            slot = self._slot(field)
            with w.method(f"{name}(self)", decorator="@property") as m:
                if field.repeated:
                    m.line(f"return None if self.{slot} is None else tuple(self.{slot})")
                elif isinstance(resolve_alias(field.type), ArrayType):
                    copied = self._array_copy(field.type, f"self.{slot}")
                    m.line(f"return None if self.{slot} is None else {copied}")
                else:
                    m.line(f"return self.{slot}")
            if field.mutable:
                with w.method(f"{name}(self, value)", decorator=f"@{name}.setter") as m:
                    m.line(f"self.{slot} = {self.assign_expr(self._assignment(field), 'value')}")
                if field.repeated:
                    self._write_append(w, field, None)

    # Wire decoding

    def _write_from_wire(self, w: CodeWriter) -> None:
        dispatch = self.plan.codec.dispatch
        context = dispatch.with_context
        params = "cls, deserializer, fudge_msg" if context else "cls, fudge_msg"
        args = "deserializer, fudge_msg" if context else "fudge_msg"
        registry_args = f"fudge_msg, {self.cls}"
        if context:
            registry_args += ", deserializer"

        with w.method(f"from_wire({params})", decorator="@classmethod") as m:
            if self.config.add_comments:
                m.line(
                    '"""Decode a wire message, yielding the most derived class named '
                    'by its type headers."""'
                )
            m.line(f"obj = {self.registry}.dispatch({registry_args})")
            with m.block("if obj is None:"):
                if dispatch.abstract:
                    m.line(f'raise {self.rt}.AbstractMessageError("{self.message.name}")')
                else:
                    m.line(f"obj = {self.cls}._decode({args})")
            m.line("return obj")

        if dispatch.abstract:
            return
        with w.method(f"_decode({params})", decorator="@classmethod") as m:
            deserializer = "deserializer" if context else "None"
            if dispatch.use_builder:
                m.line(f"builder = {self.cls}.Builder.__new__({self.cls}.Builder)")
                m.line(f"builder._decode_fields({deserializer}, fudge_msg)")
                m.line("return builder.build()")
            else:
                m.line(f"obj = {self.cls}.__new__({self.cls})")
                m.line(f"obj._decode_fields({deserializer}, fudge_msg)")
                m.line("return obj")

    def _decode_error(self, field: FieldDefinition, reason: str) -> str:
        return f'{self.rt}.DecodeError("{self.message.name}", "{field.name}", "{reason}")'

    def _write_decode_body(self, w: CodeWriter, target: str, builder: bool) -> None:
        codec = self.plan.codec
        if builder and self.ctor.bridge is not None:
            w.line(f"{target}._fudge_root = fudge_msg")
            w.line(f"{target}._deserializer = deserializer")
        w.line("super()._decode_fields(deserializer, fudge_msg)")
        for field in self.message.fields:
            if field.override is None and field.has_default and not is_indicator(field.type):
                w.line(f"{target}.{self._slot(field)} = {self._default(field)}")
        for field_codec in codec.decode_order:
            self._write_field_decode(w, field_codec, target)

        builder_side, direct_side = self._override_groups()
        overrides = builder_side if builder else direct_side
        if overrides:
            self._write_override_decode(w, overrides, target, "fudge_msg")

    def _write_override_decode(
        self, w: CodeWriter, overrides: List[FieldDefinition], target: str, source: str
    ) -> None:
        for field in overrides:
            slot = f"{target}.{self._slot(field)}"
            if field.has_default:
                with w.block(f"if {self._lookup(field, source)} is None:"):
                    w.line(f"{slot} = {self._default(field)}")
            if field.required and not field.has_default and not field.override.required:
                with w.block(f"if {slot} is None:"):
                    w.line(f"raise {self._decode_error(field, 'is not present')}")

    def _write_field_decode(self, w: CodeWriter, field_codec: FieldCodec, target: str) -> None:
        field = field_codec.field
        slot = f"{target}.{self._slot(field)}"

        if field_codec.value.kind is CodecKind.INDICATOR:
            w.line(f"{slot} = {self._lookup(field, 'fudge_msg')} is not None")
            return

        expected = f"is not {field_codec.expected}"
        if field_codec.repeated:
            w.line(f"fields = {self._lookup(field, 'fudge_msg', repeated=True)}")
            if field_codec.required:
                with w.block("if not fields:"):
                    w.line(f"raise {self._decode_error(field, 'is not present')}")
                self._write_guarded(
                    w, slot, f"[{self.decode_expr(field_codec.value, 'f', field.name)} for f in fields]",
                    field, expected,
                )
            else:
                with w.block("if fields:"):
                    self._write_guarded(
                        w, slot,
                        f"[{self.decode_expr(field_codec.value, 'f', field.name)} for f in fields]",
                        field, expected,
                    )
            return

        w.line(f"field = {self._lookup(field, 'fudge_msg')}")
        value = self.decode_expr(field_codec.value, "field", field.name)
        if field_codec.required:
            with w.block("if field is None:"):
                w.line(f"raise {self._decode_error(field, 'is not present')}")
            self._write_guarded(w, slot, value, field, expected)
        else:
            with w.block("if field is not None:"):
                self._write_guarded(w, slot, value, field, expected)

    def _write_guarded(
        self, w: CodeWriter, slot: str, value: str, field: FieldDefinition, expected: str
    ) -> None:
        with w.block("try:"):
            w.line(f"{slot} = {value}")
        with w.block("except ValueError as e:"):
            w.line(f"raise {self._decode_error(field, expected)} from e")

    def decode_expr(self, codec: ValueCodec, source: str, field_name: str, depth: int = 0) -> str:
        """Expression reading the wire field ``source`` as ``codec`` describes."""
        kind = codec.kind

        def read(wire_type, expr=source):
            return f"fudge_msg.get_field_value({self._wire_type(wire_type)}, {expr})"

        def sized(expr):
            if codec.fixed_length is None:
                return expr
            return f'{self.rt}.check_length({expr}, {codec.fixed_length}, "{field_name}")'

        if kind is CodecKind.SCALAR:
            return read(codec.wire_type)
        if kind is CodecKind.TEMPORAL:
            if codec.conversion == "instant":
                return f"{self.rt}.to_instant({read(codec.wire_type)})"
            return read(codec.wire_type)
        if kind in (CodecKind.ENUM_INT, CodecKind.ENUM_STRING):
            enum_class = self.names.class_name(codec.definition)
            return f"{enum_class}.from_wire_encoding({read(codec.wire_type)})"
        if kind is CodecKind.PRIMITIVE_ARRAY:
            return sized(read(codec.wire_type))
        if kind is CodecKind.ENUM_INT_ARRAY:
            enum_class = self.names.class_name(codec.element.definition)
            var = f"c{depth}"
            return sized(
                f"[{enum_class}.from_wire_encoding({var}) for {var} in {read(codec.wire_type)}]"
            )
        if kind is CodecKind.CONTAINER_ARRAY:
            var = f"e{depth}"
            element = self.decode_expr(codec.element, var, field_name, depth + 1)
            container = read(codec.wire_type)
            return sized(
                f"[None if {var}.type is {self.rt}.WireType.INDICATOR else {element} "
                f"for {var} in {container}]"
            )
        if kind is CodecKind.ANON_MESSAGE:
            return read(codec.wire_type)
        if kind is CodecKind.MESSAGE:
            message_class = self.names.class_name(codec.definition)
            args = "deserializer, " if codec.with_context else ""
            return f"{message_class}.from_wire({args}{read(codec.wire_type)})"
        if kind in (CodecKind.EXTERNAL_MESSAGE, CodecKind.EXTERNAL_USER):
            return f'deserializer.field_value_to_object("{codec.type_token}", {source})'
        raise ValueError(f"cannot decode {codec.kind.value} values")

    # Wire encoding

    def _write_encode(self, w: CodeWriter) -> None:
        with w.method("_encode_fields(self, serializer, msg)") as m:
            for field_codec in self.plan.codec.fields:
                self._write_field_encode(m, field_codec)
            m.line("super()._encode_fields(serializer, msg)")

    def _write_field_encode(self, w: CodeWriter, field_codec: FieldCodec) -> None:
        field = field_codec.field
        slot = f"self.{self._slot(field)}"
        name, ordinal = self._tag(field)

        if field_codec.value.kind is CodecKind.INDICATOR:
            with w.block(f"if {slot}:"):
                w.line(
                    f"msg.add({name}, {ordinal}, {self.rt}.INDICATOR, "
                    f"{self._wire_type(field_codec.value.wire_type)})"
                )
            return
        if field_codec.repeated:
            with w.block(f"if {slot} is not None:"):
                with w.block(f"for v in {slot}:"):
                    self.encode_value(
                        w, field_codec.value, "v", "msg", name, ordinal, label=field.name
                    )
            return
        if field_codec.null_guard:
            with w.block(f"if {slot} is not None:"):
                self.encode_value(
                    w, field_codec.value, slot, "msg", name, ordinal, label=field.name
                )
            return
        self.encode_value(
            w, field_codec.value, slot, "msg", name, ordinal, label=field.name
        )

    def encode_value(
        self,
        w: CodeWriter,
        codec: ValueCodec,
        expr: str,
        target: str,
        name: str,
        ordinal: str,
        depth: int = 0,
        label: str = "",
    ) -> None:
        """Write the statements adding the value ``expr`` to ``target``.

        Arrays with a declared length are checked first, ``label`` naming the
        field in the error.
        """
        kind = codec.kind
        wire_type = self._wire_type(codec.wire_type)
        if codec.is_array and codec.fixed_length is not None:
            expr = f'{self.rt}.check_length({expr}, {codec.fixed_length}, "{label}")'

        if kind in (CodecKind.SCALAR, CodecKind.TEMPORAL, CodecKind.PRIMITIVE_ARRAY,
                    CodecKind.ANON_MESSAGE):
            w.line(f"{target}.add({name}, {ordinal}, {expr}, {wire_type})")
        elif kind in (CodecKind.ENUM_INT, CodecKind.ENUM_STRING):
            w.line(f"{target}.add({name}, {ordinal}, {expr}.wire_encoding, {wire_type})")
        elif kind is CodecKind.ENUM_INT_ARRAY:
            var = f"c{depth}"
            w.line(
                f"{target}.add({name}, {ordinal}, "
                f"[{var}.wire_encoding for {var} in {expr}], {wire_type})"
            )
        elif kind is CodecKind.CONTAINER_ARRAY:
            sub = f"sub{depth}"
            var = f"e{depth}"
            w.line(f"{sub} = serializer.new_message()")
            with w.block(f"for {var} in {expr}:"):
                with w.block(f"if {var} is None:"):
                    w.line(
                        f"{sub}.add(None, None, {self.rt}.INDICATOR, "
                        f"{self.rt}.WireType.INDICATOR)"
                    )
                with w.block("else:"):
                    self.encode_value(
                        w, codec.element, var, sub, "None", "None", depth + 1, label
                    )
            w.line(f"{target}.add({name}, {ordinal}, {sub}, {wire_type})")
        elif kind is CodecKind.MESSAGE:
            sub = f"sub{depth}"
            message_class = self.names.class_name(codec.definition)
            w.line(
                f"{sub} = {self.rt}.add_class_headers(serializer.new_message(), "
                f"{expr}, {message_class})"
            )
            w.line(f"{expr}._encode_fields(serializer, {sub})")
            w.line(f"{target}.add({name}, {ordinal}, {sub}, {wire_type})")
        elif kind is CodecKind.EXTERNAL_MESSAGE:
            w.line(
                f"serializer.add_to_message_with_class_headers("
                f'{target}, {name}, {ordinal}, {expr}, "{codec.type_token}")'
            )
        elif kind is CodecKind.EXTERNAL_USER:
            w.line(
                f'serializer.add_to_message({target}, {name}, {ordinal}, {expr}, '
                f'"{codec.type_token}")'
            )
        else:
            raise ValueError(f"cannot encode {kind.value} values")

    # Copying

    def _write_copy(self, w: CodeWriter) -> None:
        with w.method("_copy_fields(self, other)") as m:
            m.line("super()._copy_fields(other)")
            for field in self.ctor.copy_fields:
                m.line(f"self.{self._slot(field)} = {self._copy_expr(field)}")

    def _copy_expr(self, field: FieldDefinition) -> str:
        assignment = self._assignment(field)
        source = f"other.{self._slot(field)}"
        if assignment.indicator:
            return source
        if field.repeated:
            if assignment.copy.is_alias:
                copied = f"list({source})"
            else:
                copied = f"[{self.render_copy(assignment.copy, 'v')} for v in {source}]"
        else:
            copied = self.render_copy(assignment.copy, source)
        if copied == source:
            return source
        fallback = self._default(field) if field.has_default else "None"
        return f"{fallback} if {source} is None else {copied}"

    # Value semantics

    def _write_value_semantics(self, w: CodeWriter) -> None:
        semantics = self.plan.value_semantics
        slots = [self._slot(f.field) for f in semantics.fields]

        with w.method("__eq__(self, other)") as m:
            with m.block("if other is self:"):
                m.line("return True")
            with m.block("if type(other) is not type(self):"):
                m.line("return False")
            for slot in slots:
                with m.block(f"if self.{slot} != other.{slot}:"):
                    m.line("return False")
            m.line("return super().__eq__(other)" if semantics.has_base else "return True")

        with w.method("__hash__(self)") as m:
            seed = "super().__hash__()" if semantics.has_base else str(semantics.seed)
            m.line(f"hc = {seed}")
            for slot in slots:
                m.line(
                    f"hc = (hc * {semantics.multiplier} + {self.rt}.hash_value(self.{slot})) "
                    f"& {self.rt}.HASH_MASK"
                )
            m.line("return hc")

        with w.method("_repr_fields(self)") as m:
            items = ", ".join(
                f'("{self._name(f.field)}", self.{self._slot(f.field)})' for f in semantics.fields
            )
            m.line(f"return super()._repr_fields() + [{items}]")

    # Template context

    def context(self, comment: Optional[str] = None, docstring: Optional[str] = None) -> Dict[str, Any]:
        return {
            "class_name": self.cls,
            "base": self.base_class(),
            "token": f'"{self.plan.codec.dispatch.type_token}"',
            "constants": self.constants(),
            "storage": self.storage(),
            "body": self.body(),
            "comment": comment,
            "docstring": docstring,
        }
