"""
Base generator interface for all code generation targets.

Defines the contract that all backends implement and the capability object
each backend is configured with for one compilation run.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from ...logging_config import get_logger
from .analyzer import concrete_descendants, use_builder_pattern
from .config import GeneratorConfig
from .naming import NameSanitizer, NamingCase
from .planner import MessagePlan, plan_message
from .resolver import resolve
from .schema import (
    Definition,
    EnumDefinition,
    MessageDefinition,
    SchemaModel,
    TaxonomyDefinition,
)
from .templates import TemplateEngine, create_template_engine

logger = get_logger(__name__)


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


@dataclass(frozen=True)
class BackendCapabilities:
    """What a backend's target can express, fixed per compilation run."""

    nested_types: bool = True
    type_case: NamingCase = NamingCase.PASCAL_CASE
    field_case: NamingCase = NamingCase.SNAKE_CASE
    constant_case: NamingCase = NamingCase.SCREAMING_SNAKE
    reserved_words: FrozenSet[str] = frozenset()
    builtin_names: FrozenSet[str] = frozenset()
    extra: Dict[str, Any] = field(default_factory=dict)

    def create_sanitizer(self) -> NameSanitizer:
        return NameSanitizer(set(self.reserved_words), set(self.builtin_names))


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    CAPABILITIES = BackendCapabilities()

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        capabilities: Optional[BackendCapabilities] = None,
    ):
        """Initialize generator with optional configuration."""
        self.config = config or GeneratorConfig()
        self.capabilities = capabilities or self.CAPABILITIES
        self._template_engine = None
        self._plans: Dict[int, MessagePlan] = {}
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        template_dir = self.get_template_directory()
        if template_dir:
            self._template_engine = create_template_engine(template_dir)
        else:
            self._template_engine = create_template_engine()

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'python')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.py')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Subclasses should override this to provide their template directory.
        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate(self, model: SchemaModel) -> str:
        """
        Generate code for every compilation target of a resolved model.

        Args:
            model: Resolved schema model

        Returns:
            Generated code as a string
        """
        pass

    @abstractmethod
    def generate_single_definition(self, definition: Definition) -> str:
        """
        Generate code for a single message, enum or taxonomy.

        Args:
            definition: Definition to generate code for

        Returns:
            Generated code for this definition only
        """
        pass

    def plan(self, message: MessageDefinition) -> MessagePlan:
        """Planner output for ``message``, computed once per generator."""
        key = id(message)
        if key not in self._plans:
            self._plans[key] = plan_message(message, self.config)
        return self._plans[key]

    def output_name(self, model: SchemaModel) -> str:
        """Default output file name for ``model``."""
        if self.config.output_file:
            return self.config.output_file
        stem = model.namespace.rsplit(".", 1)[-1] if model.namespace else Path(model.source).stem
        return f"{stem or 'messages'}{self.file_extension}"

    def validate_model(self, model: SchemaModel) -> List[str]:
        """
        Validate a model for basic structural issues.

        Backends should override this to add target-specific validation.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        messages = model.messages()

        for definition in model.compilation_targets():
            if isinstance(definition, MessageDefinition):
                if definition.external:
                    continue
                if not definition.fields and definition.extends is None:
                    warnings.append(f"Message '{definition.name}' has no fields")
                if definition.abstract and not concrete_descendants(definition, messages):
                    warnings.append(
                        f"Abstract message '{definition.name}' has no concrete subtypes"
                    )
            elif isinstance(definition, EnumDefinition):
                if not definition.elements:
                    warnings.append(f"Enum '{definition.name}' has no members")
            elif isinstance(definition, TaxonomyDefinition):
                if not definition.entries:
                    warnings.append(f"Taxonomy '{definition.name}' has no entries")

        return warnings

    def format_code(self, code: str) -> str:
        """
        Apply language-specific formatting to generated code.

        Args:
            code: Raw generated code

        Returns:
            Formatted code
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:  # Allow max 2 consecutive blank lines
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    # Template helper methods

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context."""
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self, code: str, warnings: List[str] = None, metadata: Dict[str, Any] = None
    ):
        """
        Initialize generation result.

        Args:
            code: Generated code
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message = None
        self.exception = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(generator: CodeGenerator, model: SchemaModel) -> GenerationResult:
    """
    Generate code using the specified generator with error handling.

    The model is resolved first if it has not been already.

    Args:
        generator: Code generator instance
        model: Schema model to generate code for

    Returns:
        GenerationResult with code, warnings, and metadata
    """
    try:
        resolve(model)

        warnings = generator.validate_model(model)

        logger.info(
            "Generating %s code for %s", generator.language_name, model.source
        )
        code = generator.generate(model)
        formatted_code = generator.format_code(code)

        messages = [
            d
            for d in model.compilation_targets()
            if isinstance(d, MessageDefinition) and not d.external
        ]
        metadata = {
            "language": generator.language_name,
            "file_extension": generator.file_extension,
            "output_file": generator.output_name(model),
            "source": model.source,
            "namespace": model.namespace,
            "message_count": len(messages),
            "enum_count": len(
                [d for d in model.compilation_targets() if isinstance(d, EnumDefinition)]
            ),
            "taxonomy_count": len(model.taxonomies()),
            "builder_count": sum(1 for m in messages if use_builder_pattern(m)),
            "abstract_count": sum(1 for m in messages if m.abstract),
        }

        return GenerationResult(formatted_code, warnings, metadata)

    except Exception as e:
        logger.error("Code generation failed: %s", e)
        return GenerationResult.error(f"Code generation failed: {str(e)}", exception=e)
