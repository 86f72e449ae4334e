"""
Language-specific code generators.

This module contains the backends a schema can be compiled with.
"""

from .manifest import ManifestGenerator, create_manifest_generator
from .python import PythonGenerator, create_python_generator

__all__ = [
    "ManifestGenerator",
    "PythonGenerator",
    "create_manifest_generator",
    "create_python_generator",
]
