"""
Naming utilities for safe code generation.

Handles name sanitization, case conversions and keyword conflicts for the
identifiers a backend derives from schema names.
"""

import re
from enum import Enum
from typing import Dict, Iterable, Set


class NamingCase(Enum):
    """Different naming case styles."""

    SNAKE_CASE = "snake"  # user_name
    CAMEL_CASE = "camel"  # userName
    PASCAL_CASE = "pascal"  # UserName
    SCREAMING_SNAKE = "screaming_snake"  # USER_NAME
    PRESERVE = "preserve"  # as written in the schema


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, reserved_words: Set[str] = None, builtin_types: Set[str] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Set of language reserved words
            builtin_types: Set of builtin names that might conflict
        """
        self.reserved_words = reserved_words or set()
        self.builtin_types = builtin_types or set()
        self._name_cache: Dict[str, str] = {}
        self._used_names: Set[str] = set()

    def sanitize_name(
        self,
        name: str,
        target_case: NamingCase = NamingCase.SNAKE_CASE,
        suffix_on_conflict: str = "_",
    ) -> str:
        """
        Sanitize a name for safe use in the target language.

        The same input always maps to the same output; distinct inputs that
        collapse onto one name are told apart with a numeric suffix.

        Args:
            name: Original name to sanitize
            target_case: Desired case style
            suffix_on_conflict: Suffix to add for keyword conflicts

        Returns:
            Sanitized name safe for use
        """
        cache_key = f"{name}\0{target_case.value}\0{suffix_on_conflict}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        cleaned = self._clean_basic(name)
        converted = self._convert_case(cleaned, target_case)
        final_name = self._resolve_conflicts(converted, suffix_on_conflict)

        self._name_cache[cache_key] = final_name
        self._used_names.add(final_name)
        return final_name

    def _clean_basic(self, name: str) -> str:
        """Basic name cleanup - remove invalid characters."""
        cleaned = re.sub(r"[^a-zA-Z0-9_]", "_", name)

        if cleaned and cleaned[0].isdigit():
            cleaned = f"_{cleaned}"

        if not cleaned.strip("_"):
            cleaned = "field"

        return cleaned

    def _convert_case(self, name: str, target_case: NamingCase) -> str:
        """Convert name to target case style."""
        if target_case == NamingCase.SNAKE_CASE:
            return to_snake_case(name)
        elif target_case == NamingCase.CAMEL_CASE:
            return to_camel_case(name)
        elif target_case == NamingCase.PASCAL_CASE:
            return to_pascal_case(name)
        elif target_case == NamingCase.SCREAMING_SNAKE:
            return to_snake_case(name).upper()
        return name

    def _resolve_conflicts(self, name: str, suffix: str) -> str:
        """Resolve naming conflicts with reserved words and existing names."""
        if name in self.reserved_words or name in self.builtin_types:
            name = f"{name}{suffix}"

        original_name = name
        counter = 1
        while name in self._used_names:
            name = f"{original_name}_{counter}"
            counter += 1

        return name

    def reset_used_names(self):
        """Reset the tracking of used names, starting a new scope."""
        self._used_names.clear()
        self._name_cache.clear()

    def add_used_names(self, names: Iterable[str]):
        """Mark names as taken in the current scope."""
        self._used_names.update(names)


def to_snake_case(name: str) -> str:
    """Convert to snake_case, keeping a leading underscore."""
    leading = "_" if name.startswith("_") else ""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"_+", "_", name.lower())
    return leading + name.strip("_")


def to_camel_case(name: str) -> str:
    parts = to_snake_case(name).split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase, keeping the case of already capitalised parts."""
    parts = re.split(r"_+", name)
    return "".join(part[:1].upper() + part[1:] for part in parts if part)
