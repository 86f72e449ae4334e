"""
Python-specific naming utilities and sanitization.

Handles Python reserved words, builtins, and the member names generated
classes already use.
"""

from typing import Dict, List, Set

from ...core.naming import NameSanitizer, NamingCase, to_snake_case
from ...core.schema import Definition, FieldDefinition, MessageDefinition


# Python reserved keywords
PYTHON_RESERVED_WORDS = {
    "False",
    "None",
    "True",
    "and",
    "as",
    "assert",
    "async",
    "await",
    "break",
    "class",
    "continue",
    "def",
    "del",
    "elif",
    "else",
    "except",
    "finally",
    "for",
    "from",
    "global",
    "if",
    "import",
    "in",
    "is",
    "lambda",
    "nonlocal",
    "not",
    "or",
    "pass",
    "raise",
    "return",
    "try",
    "while",
    "with",
    "yield",
}

# Python built-in types and functions, avoided as class names
PYTHON_BUILTIN_TYPES = {
    # Types
    "int",
    "float",
    "str",
    "bool",
    "list",
    "dict",
    "set",
    "tuple",
    "bytes",
    "bytearray",
    "frozenset",
    "range",
    "object",
    "type",
    "complex",
    "memoryview",
    # Special attributes
    "property",
    "staticmethod",
    "classmethod",
    "super",
    # Exceptions
    "Exception",
    "BaseException",
    "ValueError",
    "TypeError",
    "KeyError",
    "AttributeError",
    "IndexError",
    "RuntimeError",
    "NotImplementedError",
    "StopIteration",
}

# Names a field must not take because generated code already binds them
GENERATED_MEMBER_NAMES = {
    "self",
    "cls",
    "builder",
    "build",
    "clone",
    "from_wire",
    "to_wire",
}


def create_python_sanitizer() -> NameSanitizer:
    """Create a name sanitizer for class names."""
    return NameSanitizer(PYTHON_RESERVED_WORDS, PYTHON_BUILTIN_TYPES)


def create_field_sanitizer(runtime_alias: str = "fudge") -> NameSanitizer:
    """Create a name sanitizer for field, parameter and property names.

    Builtin names are allowed since they only shadow inside one method.
    """
    return NameSanitizer(PYTHON_RESERVED_WORDS | GENERATED_MEMBER_NAMES | {runtime_alias})


class PythonNames:
    """Python identifiers for the definitions and fields of one model."""

    def __init__(self, runtime_alias: str = "fudge"):
        self.runtime_alias = runtime_alias
        self._class_sanitizer = create_python_sanitizer()
        self._classes: Dict[int, str] = {}
        self._fields: Dict[int, str] = {}
        self._named: Set[int] = set()

    def class_name(self, definition: Definition) -> str:
        """Flattened class name; nested definitions are prefixed by their outers."""
        key = id(definition)
        if key not in self._classes:
            bound = definition.bindings.get("class")
            if bound:
                self._classes[key] = bound
            else:
                self._classes[key] = self._class_sanitizer.sanitize_name(
                    "_".join(definition.path), NamingCase.PASCAL_CASE
                )
        return self._classes[key]

    def field_name(self, field: FieldDefinition) -> str:
        """Property name of ``field``; overrides reuse the overridden name."""
        if id(field) not in self._fields:
            self._name_message(field.outer)
        return self._fields[id(field)]

    def _name_message(self, message: MessageDefinition) -> None:
        if id(message) in self._named:
            return
        inherited: List[str] = []
        for base in message.ancestors():
            self._name_message(base)
            inherited.extend(self._fields[id(f)] for f in base.fields)

        sanitizer = create_field_sanitizer(self.runtime_alias)
        sanitizer.add_used_names(inherited)
        for field in message.fields:
            if field.override is not None:
                self._fields[id(field)] = self.field_name(field.override)
            else:
                self._fields[id(field)] = sanitizer.sanitize_name(
                    field.name, NamingCase.SNAKE_CASE
                )
        self._named.add(id(message))

    def storage(self, field: FieldDefinition) -> str:
        return f"_{self.field_name(field)}"

    def constant(self, field: FieldDefinition, suffix: str) -> str:
        return f"{to_snake_case(self.field_name(field)).upper().strip('_')}_{suffix}"

    def member_name(self, label: str) -> str:
        """Enum member name for ``label``."""
        if label in PYTHON_RESERVED_WORDS:
            return f"{label}_"
        return label
