"""
Python-specific configuration.

Settings read from ``GeneratorConfig.custom`` when generating Python modules.
"""

import keyword
from typing import Set

from ...core.config import ConfigError
from .naming import PYTHON_BUILTIN_TYPES, PYTHON_RESERVED_WORDS


class PythonConfig:
    """Python-specific configuration."""

    def __init__(self, **kwargs):
        """Initialize Python configuration."""
        # Name the runtime package is imported under in generated modules
        self.runtime_alias = kwargs.get("runtime_alias", "fudge")

        # Module-level decoder registry of each generated module
        self.registry_name = kwargs.get("registry_name", "DECODERS")

        # Class docstrings naming the schema definition
        self.docstrings = kwargs.get("docstrings", True)

        for setting in ("runtime_alias", "registry_name"):
            value = getattr(self, setting)
            if not isinstance(value, str) or not value.isidentifier() or keyword.iskeyword(value):
                raise ConfigError(f"{setting} must be a Python identifier, got {value!r}")
        if self.runtime_alias == self.registry_name:
            raise ConfigError("runtime_alias and registry_name must differ")


def get_python_reserved_words() -> Set[str]:
    """Get Python reserved words."""
    return PYTHON_RESERVED_WORDS


def get_python_builtin_types() -> Set[str]:
    """Get Python builtin types."""
    return PYTHON_BUILTIN_TYPES


def get_default_config() -> PythonConfig:
    return PythonConfig()
