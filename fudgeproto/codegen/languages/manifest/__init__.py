"""
Manifest generator module.

Describes the generation plans of a schema as JSON.
"""

from .generator import ManifestGenerator, create_manifest_generator

__all__ = ["ManifestGenerator", "create_manifest_generator"]
