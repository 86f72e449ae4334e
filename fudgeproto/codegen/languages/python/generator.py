"""
Python code generator implementation.

Generates one Python module per schema: wire enums, taxonomies and message
classes backed by the ``fudgeproto.runtime`` support library.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from ....logging_config import get_logger
from ...core.analyzer import resolve_alias
from ...core.config import GeneratorConfig
from ...core.generator import BackendCapabilities, CodeGenerator, GeneratorError
from ...core.naming import to_snake_case
from ...core.planner import base_first
from ...core.schema import (
    ArrayType,
    Definition,
    EnumDefinition,
    EnumEncoding,
    EnumType,
    FieldType,
    MessageDefinition,
    MessageType,
    SchemaModel,
    TaxonomyDefinition,
)
from .config import PythonConfig
from .emitter import MessageEmitter
from .naming import PYTHON_BUILTIN_TYPES, PYTHON_RESERVED_WORDS, PythonNames
from .writer import CodeWriter

logger = get_logger(__name__)

_ENUM_BASES = {
    EnumEncoding.INTEGER: "IntegerEncodedEnum",
    EnumEncoding.STRING: "StringEncodedEnum",
    EnumEncoding.SYMBOLIC: "SymbolicEnum",
}


class PythonGenerator(CodeGenerator):
    """Code generator for Python message modules."""

    CAPABILITIES = BackendCapabilities(
        nested_types=False,
        reserved_words=frozenset(PYTHON_RESERVED_WORDS),
        builtin_names=frozenset(PYTHON_BUILTIN_TYPES),
    )

    def __init__(self, config: Optional[GeneratorConfig] = None, capabilities=None):
        """Initialize Python generator with configuration."""
        super().__init__(config, capabilities)

        # Initialize Python-specific configuration
        self.python_config = PythonConfig(**self.config.custom)
        self.names = PythonNames(self.python_config.runtime_alias)

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "python"

    @property
    def file_extension(self) -> str:
        """Return Python file extension."""
        return ".py"

    def get_template_directory(self) -> Path:
        """Return the Python templates directory."""
        return Path(__file__).parent / "templates"

    @property
    def _docstrings(self) -> bool:
        return self.config.add_comments and self.python_config.docstrings

    def generate(self, model: SchemaModel) -> str:
        """Generate the complete module for every compilation target of ``model``."""
        self.names = PythonNames(self.python_config.runtime_alias)

        targets = model.compilation_targets()
        enums = [d for d in targets if isinstance(d, EnumDefinition)]
        taxonomies = [d for d in targets if isinstance(d, TaxonomyDefinition)]
        messages = base_first(
            [d for d in targets if isinstance(d, MessageDefinition) and not d.external]
        )
        local = {id(d) for d in enums + taxonomies + messages}

        blocks = [self.generate_single_definition(d) for d in enums + taxonomies + messages]

        aliases = []
        for definition in enums + messages:
            outer = definition.outer
            if outer is not None and id(outer) in local:
                aliases.append(
                    f"{self.names.class_name(outer)}.{definition.name} = "
                    f"{self.names.class_name(definition)}"
                )

        registry = self.python_config.registry_name
        registrations = []
        for message in messages:
            dispatch = self.plan(message).codec.dispatch
            if not dispatch.registered:
                continue
            class_name = self.names.class_name(message)
            context_flag = ", True" if dispatch.with_context else ""
            registrations.append(
                f"{registry}.register({class_name}.TYPE_TOKEN, {class_name}._decode{context_flag})"
            )

        logger.debug(
            "Rendering module with %d enums, %d taxonomies, %d messages",
            len(enums),
            len(taxonomies),
            len(messages),
        )
        context = {
            "add_comments": self.config.add_comments,
            "source": model.source,
            "runtime_module": self.config.runtime_module,
            "runtime_alias": self.python_config.runtime_alias,
            "registry_name": registry,
            "imports": self._get_imports(messages, local),
            "blocks": blocks,
            "aliases": aliases,
            "registrations": registrations,
        }
        return self.render_template("module.py.j2", context)

    def generate_single_definition(self, definition: Definition) -> str:
        if isinstance(definition, EnumDefinition):
            return self._render_enum(definition)
        if isinstance(definition, TaxonomyDefinition):
            return self._render_taxonomy(definition)
        if isinstance(definition, MessageDefinition):
            if definition.external or definition.is_sentinel:
                raise GeneratorError(f"Cannot generate a class for '{definition.identifier}'")
            return self._render_message(definition)
        raise GeneratorError(f"Cannot generate code for {definition!r}")

    # Definitions

    def _comment(self, definition: Definition) -> Optional[str]:
        position = definition.position
        if self.config.add_comments and position is not None and position.line:
            return f"Defined at {position}"
        return None

    def _render_enum(self, enum: EnumDefinition) -> str:
        members = []
        for index, (label, value) in enumerate(enum.elements):
            if enum.encoding is EnumEncoding.SYMBOLIC:
                literal = str(index)
            else:
                literal = repr(value)
            members.append((self.names.member_name(label), literal))

        context = {
            "class_name": self.names.class_name(enum),
            "base": f"{self.python_config.runtime_alias}.{_ENUM_BASES[enum.encoding]}",
            "members": members,
            "comment": self._comment(enum),
            "docstring": f"Enum ``{enum.identifier}``." if self._docstrings else None,
            "indent_size": self.config.indent_size,
        }
        return self.render_template("enum.py.j2", context)

    def _render_taxonomy(self, taxonomy: TaxonomyDefinition) -> str:
        constants = []
        for ordinal, name in taxonomy.entries:
            constant = to_snake_case(name).upper().strip("_")
            constants.append((f"ORDINAL_{constant}", str(ordinal)))
            constants.append((f"NAME_{constant}", repr(name)))

        body = CodeWriter(self.config.indent_size)
        with body.method("__init__(self)") as m:
            m.line("super().__init__(self.ENTRIES)")

        context = {
            "class_name": self.names.class_name(taxonomy),
            "base": f"{self.python_config.runtime_alias}.MapTaxonomy",
            "constants": constants,
            "entries": taxonomy.entries,
            "body": body.getvalue(),
            "comment": self._comment(taxonomy),
            "docstring": f"Taxonomy ``{taxonomy.identifier}``." if self._docstrings else None,
            "indent_size": self.config.indent_size,
        }
        return self.render_template("taxonomy.py.j2", context)

    def _render_message(self, message: MessageDefinition) -> str:
        emitter = MessageEmitter(
            self.plan(message),
            self.names,
            self.config,
            runtime_alias=self.python_config.runtime_alias,
            registry_name=self.python_config.registry_name,
        )
        docstring = None
        if self._docstrings:
            docstring = f"Message ``{message.identifier}``."
            if message.abstract:
                docstring += " Abstract; decoded through its concrete subtypes."
        context = emitter.context(self._comment(message), docstring)
        context["indent_size"] = self.config.indent_size
        return self.render_template("message.py.j2", context)

    # Imports

    def module_name(self, definition: Definition) -> str:
        """Python module a definition is generated into."""
        bound = definition.bindings.get("module")
        if bound:
            return bound
        top = definition
        while top.outer is not None:
            top = top.outer
        namespace = top.namespace
        stem = to_snake_case(namespace.rsplit(".", 1)[-1]) if namespace else "messages"
        if self.config.package_name:
            return f"{self.config.package_name}.{stem}"
        return stem

    def _get_imports(self, messages: List[MessageDefinition], local: Set[int]) -> List[str]:
        """``from`` imports of the classes defined in other modules."""
        needed: Dict[str, Set[str]] = {}

        def want(definition: Definition) -> None:
            if id(definition) in local:
                return
            module = self.module_name(definition)
            needed.setdefault(module, set()).add(self.names.class_name(definition))

        for message in messages:
            if message.extends is not None:
                want(message.extends)
            for field in message.fields:
                _walk_type(field.type, want)

        return [
            f"from {module} import {', '.join(sorted(names))}"
            for module, names in sorted(needed.items())
        ]

    def validate_model(self, model: SchemaModel) -> List[str]:
        """Validate a model for Python generation."""
        warnings = super().validate_model(model)

        names = PythonNames(self.python_config.runtime_alias)
        for message in model.messages():
            if message.external or not message.compilation_target:
                continue
            for field in message.fields:
                if field.override is not None:
                    continue
                python_name = names.field_name(field)
                if python_name != to_snake_case(field.name):
                    warnings.append(f"Field {message.name}.{field.name} renamed to {python_name}")

            base = message.extends
            if base is not None and base.external and "module" not in base.bindings:
                warnings.append(
                    f"External base '{base.name}' of '{message.name}' has no module "
                    f"binding; importing it from '{self.module_name(base)}'"
                )

        return warnings


def _walk_type(field_type: FieldType, visit: Callable[[Definition], Any]) -> None:
    """Report the generated definitions a field type's decoder refers to."""
    resolved = resolve_alias(field_type)
    if isinstance(resolved, ArrayType):
        _walk_type(resolved.base_type, visit)
    elif isinstance(resolved, EnumType):
        visit(resolved.definition)
    elif isinstance(resolved, MessageType):
        if not resolved.is_anonymous and not resolved.definition.external:
            visit(resolved.definition)


# Factory functions
def create_python_generator(config: GeneratorConfig = None, **options) -> PythonGenerator:
    """Create a Python generator; ``options`` override configuration fields."""
    if config is None:
        config = GeneratorConfig(add_comments=True)
    for key, value in options.items():
        if hasattr(config, key) and key != "custom":
            setattr(config, key, value)
        else:
            config.custom[key] = value
    return PythonGenerator(config)


def create_instant_generator(config: GeneratorConfig = None) -> PythonGenerator:
    """Create a generator storing datetime fields as UTC instants."""
    return create_python_generator(config, datetime_type="instant")
