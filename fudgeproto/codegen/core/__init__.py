"""
Core code generation components.

The schema model, the resolution pass, the analyzer and planners that decide
what each message needs, and the base classes every backend builds on.
"""

from .generator import (
    BackendCapabilities,
    CodeGenerator,
    GenerationResult,
    GeneratorError,
    generate_code,
)
from .schema import (
    ANONYMOUS_MESSAGE,
    ANONYMOUS_MESSAGE_TYPE,
    NULL_MESSAGE,
    ArrayType,
    CodePosition,
    EnumDefinition,
    EnumEncoding,
    EnumType,
    FieldDefinition,
    MessageDefinition,
    MessageType,
    PrimitiveKind,
    PrimitiveType,
    SchemaError,
    SchemaModel,
    TaxonomyDefinition,
    TypeDefinition,
    UserType,
)
from .loader import SchemaLoadError, load_schema
from .resolver import resolve
from .planner import MessagePlan, plan_message, plan_model
from .naming import NameSanitizer, NamingCase
from .config import ConfigError, ConfigManager, GeneratorConfig, load_config
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "BackendCapabilities",
    "CodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    # Schema model
    "ANONYMOUS_MESSAGE",
    "ANONYMOUS_MESSAGE_TYPE",
    "NULL_MESSAGE",
    "ArrayType",
    "CodePosition",
    "EnumDefinition",
    "EnumEncoding",
    "EnumType",
    "FieldDefinition",
    "MessageDefinition",
    "MessageType",
    "PrimitiveKind",
    "PrimitiveType",
    "SchemaError",
    "SchemaModel",
    "TaxonomyDefinition",
    "TypeDefinition",
    "UserType",
    # Loading and resolution
    "SchemaLoadError",
    "load_schema",
    "resolve",
    # Planning
    "MessagePlan",
    "plan_message",
    "plan_model",
    # Naming utilities
    "NameSanitizer",
    "NamingCase",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
