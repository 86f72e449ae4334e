"""
Python code generator module.

Generates Python message modules that run on ``fudgeproto.runtime``.
"""

from .generator import PythonGenerator, create_instant_generator, create_python_generator
from .naming import PythonNames, create_field_sanitizer, create_python_sanitizer
from .config import (
    PythonConfig,
    get_default_config,
    get_python_builtin_types,
    get_python_reserved_words,
)
from .emitter import MessageEmitter
from .writer import CodeWriter

__all__ = [
    # Generator
    "PythonGenerator",
    "create_python_generator",
    "create_instant_generator",
    "MessageEmitter",
    "CodeWriter",
    # Naming
    "PythonNames",
    "create_python_sanitizer",
    "create_field_sanitizer",
    # Configuration
    "PythonConfig",
    "get_default_config",
    "get_python_reserved_words",
    "get_python_builtin_types",
]
