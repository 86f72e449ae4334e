"""
fudgeproto code generation module.

Compiles schema documents into code for the registered backends.
"""

from typing import Any, Dict, Optional

from .registry import (
    GeneratorRegistry,
    RegistryError,
    get_generator,
    get_language_info,
    get_registry,
    list_all_language_info,
    list_supported_languages,
)
from .core.generator import CodeGenerator, GenerationResult, GeneratorError, generate_code
from .core.schema import SchemaError, SchemaModel
from .core.loader import SchemaLoadError, load_schema
from .core.resolver import resolve
from .core.config import ConfigError, ConfigManager, GeneratorConfig, load_config


def generate_from_document(
    document: Dict[str, Any],
    language: str = "python",
    config=None,
    source: Optional[str] = None,
) -> GenerationResult:
    """
    Generate code from a schema document.

    Args:
        document: Schema document (see ``load_schema``)
        language: Target language name or alias
        config: Generator configuration as GeneratorConfig, dict or file path
        source: Source name recorded in the model, overriding the document's

    Returns:
        GenerationResult with generated code
    """
    try:
        model = load_schema(document, source)
    except SchemaLoadError as e:
        return GenerationResult.error(f"Invalid schema document: {e}", exception=e)

    generator = get_generator(language, config)
    return generate_code(generator, model)


def quick_generate(document: Dict[str, Any], language: str = "python", **options) -> str:
    """
    Quick code generation from a schema document.

    Args:
        document: Schema document
        language: Target language
        **options: Generator configuration overrides

    Returns:
        Generated code string

    Raises:
        GeneratorError: If generation fails
    """
    result = generate_from_document(document, language, options or None)
    if not result.success:
        raise GeneratorError(result.error_message)
    return result.code


__all__ = [
    # Registry
    "GeneratorRegistry",
    "RegistryError",
    "get_generator",
    "get_registry",
    "get_language_info",
    "list_all_language_info",
    "list_supported_languages",
    # Generation
    "CodeGenerator",
    "GenerationResult",
    "GeneratorError",
    "generate_code",
    "generate_from_document",
    "quick_generate",
    # Model
    "SchemaError",
    "SchemaLoadError",
    "SchemaModel",
    "load_schema",
    "resolve",
    # Configuration
    "ConfigError",
    "ConfigManager",
    "GeneratorConfig",
    "load_config",
]
