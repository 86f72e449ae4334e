"""
Backend registry.

Maps language names and their aliases to generator classes and builds
configured generator instances from the per-language defaults.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from ..logging_config import get_logger
from .core.config import ConfigError, GeneratorConfig, load_config
from .core.generator import CodeGenerator

logger = get_logger(__name__)

ConfigSource = Optional[Union[GeneratorConfig, Dict[str, Any], str, Path]]


class RegistryError(Exception):
    """Unknown language, bad registration or generator creation failure."""

    pass


class GeneratorRegistry:
    """Generator classes keyed by primary language name."""

    def __init__(self):
        self._generators: Dict[str, Type[CodeGenerator]] = {}
        # every accepted name, primary names included, to its primary name
        self._names: Dict[str, str] = {}

    def register(
        self,
        language: str,
        generator_class: Type[CodeGenerator],
        aliases: Optional[List[str]] = None,
    ):
        """
        Register ``generator_class`` under ``language`` and ``aliases``.

        Registering a language again replaces its class and adds the new
        aliases.

        Raises:
            RegistryError: If the class is not a CodeGenerator subclass or a
                name already belongs to another language
        """
        if not isinstance(generator_class, type) or not issubclass(
            generator_class, CodeGenerator
        ):
            raise RegistryError("Generator class must inherit from CodeGenerator")

        language = language.lower()
        names = [language] + [alias.lower() for alias in aliases or []]
        for name in names:
            owner = self._names.get(name, language)
            if owner != language:
                raise RegistryError(f"Name '{name}' is already registered for '{owner}'")

        self._generators[language] = generator_class
        self._names.update((name, language) for name in names)
        logger.debug("Registered %s generator %s", language, generator_class.__name__)

    def resolve_name(self, language: str) -> str:
        """Primary name for a language name or alias."""
        try:
            return self._names[language.lower()]
        except KeyError:
            raise RegistryError(
                f"No generator registered for language: {language}. "
                f"Available: {', '.join(self.list_languages())}"
            ) from None

    def get_generator_class(self, language: str) -> Type[CodeGenerator]:
        return self._generators[self.resolve_name(language)]

    def create_generator(self, language: str, config: ConfigSource = None) -> CodeGenerator:
        """
        Create a generator for ``language``.

        Args:
            language: Language name or alias
            config: GeneratorConfig used as is, or a dict of overrides or a
                JSON file path merged over the language defaults

        Raises:
            RegistryError: If the language is unknown or creation fails
        """
        primary = self.resolve_name(language)
        generator_class = self._generators[primary]

        try:
            if isinstance(config, GeneratorConfig):
                final_config = config
            elif isinstance(config, (str, Path)):
                final_config = load_config(primary, config_file=config)
            elif isinstance(config, dict):
                final_config = load_config(primary, custom_config=config)
            elif config is None:
                final_config = load_config(primary)
            else:
                raise RegistryError(f"Invalid config type: {type(config)}")

            return generator_class(final_config)

        except (ConfigError, TypeError, ValueError) as e:
            raise RegistryError(f"Failed to create {language} generator: {e}") from e

    def list_languages(self) -> List[str]:
        return sorted(self._generators)

    def aliases(self, language: str) -> List[str]:
        primary = self.resolve_name(language)
        return sorted(
            name for name, target in self._names.items()
            if target == primary and name != primary
        )

    def is_supported(self, language: str) -> bool:
        return language.lower() in self._names

    def get_language_info(self, language: str) -> Dict[str, Any]:
        """
        Describe a registered language.

        Raises:
            RegistryError: If language not found
        """
        generator = self.create_generator(language)
        capabilities = generator.capabilities

        return {
            "name": generator.language_name,
            "class": type(generator).__name__,
            "file_extension": generator.file_extension,
            "aliases": self.aliases(language),
            "module": type(generator).__module__,
            "nested_types": capabilities.nested_types,
            "reserved_words": len(capabilities.reserved_words),
        }


_global_registry: Optional[GeneratorRegistry] = None


def get_registry() -> GeneratorRegistry:
    """Get the global generator registry, initializing if needed."""
    global _global_registry
    if _global_registry is None:
        _global_registry = GeneratorRegistry()
        _register_bundled(_global_registry)
    return _global_registry


def _register_bundled(registry: GeneratorRegistry):
    from .languages.manifest import ManifestGenerator
    from .languages.python import PythonGenerator

    registry.register("python", PythonGenerator, aliases=["py"])
    registry.register("manifest", ManifestGenerator, aliases=["json"])


def get_generator(language: str, config: ConfigSource = None) -> CodeGenerator:
    """Get generator instance from global registry."""
    return get_registry().create_generator(language, config)


def list_supported_languages() -> List[str]:
    return get_registry().list_languages()


def is_language_supported(language: str) -> bool:
    return get_registry().is_supported(language)


def get_language_info(language: str) -> Dict[str, Any]:
    return get_registry().get_language_info(language)


def list_all_language_info() -> Dict[str, Dict[str, Any]]:
    """Describe every supported language."""
    return {language: get_language_info(language) for language in list_supported_languages()}
