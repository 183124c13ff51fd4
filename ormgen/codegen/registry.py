"""
Backend registry.

Maps backend names and aliases ("drizzle", "drizzle-orm", ...) to
generator classes and builds configured generator instances.
"""

from typing import Dict, Type, Optional, Any, List, Union
from pathlib import Path

from .core.config import ConfigError, GeneratorConfig, load_config
from .core.dialects import DEFAULT_DIALECT
from .core.generator import CodeGenerator

ConfigSource = Union[GeneratorConfig, Dict[str, Any], str, Path, None]


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class GeneratorRegistry:
    """Backend name -> generator class, with case-insensitive aliases."""

    def __init__(self):
        self._generators: Dict[str, Type[CodeGenerator]] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self,
        backend: str,
        generator_class: Type[CodeGenerator],
        aliases: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Register a generator class under a primary name.

        Args:
            backend: Primary backend name (e.g. 'drizzle')
            generator_class: CodeGenerator subclass
            aliases: Alternative names resolving to the same backend
            replace: Overwrite an existing registration instead of keeping it

        Raises:
            RegistryError: If the class is not a generator or an alias clashes
        """
        if not (isinstance(generator_class, type) and issubclass(generator_class, CodeGenerator)):
            raise RegistryError(
                f"{generator_class!r} is not a CodeGenerator subclass"
            )

        key = backend.lower()
        if key in self._generators and not replace:
            return

        alias_keys = [a.lower() for a in aliases or [] if a.lower() != key]
        if not replace:
            for alias_key in alias_keys:
                self._check_alias(alias_key, key)

        self._generators[key] = generator_class
        for alias_key in alias_keys:
            self._aliases[alias_key] = key

    def _check_alias(self, alias_key: str, backend_key: str):
        if alias_key in self._generators:
            raise RegistryError(
                f"Alias '{alias_key}' conflicts with existing primary backend"
            )
        owner = self._aliases.get(alias_key)
        if owner is not None and owner != backend_key:
            raise RegistryError(f"Alias '{alias_key}' already points to '{owner}'")

    def unregister(self, backend: str):
        """Remove a backend and every alias pointing at it."""
        key = backend.lower()
        self._generators.pop(key, None)
        self._aliases = {a: target for a, target in self._aliases.items() if target != key}

    def canonical_name(self, backend: str) -> str:
        """
        Primary name for a backend name or alias.

        Raises:
            RegistryError: If nothing is registered under that name
        """
        key = backend.lower()
        if key in self._generators:
            return key
        if key in self._aliases:
            return self._aliases[key]

        raise RegistryError(
            f"No generator registered for backend: {backend}. "
            f"Available: {', '.join(self.list_backends())}"
        )

    def get_generator_class(self, backend: str) -> Type[CodeGenerator]:
        return self._generators[self.canonical_name(backend)]

    def create_generator(self, backend: str, config: ConfigSource = None) -> CodeGenerator:
        """
        Instantiate the generator for a backend.

        `config` may be a ready GeneratorConfig (used as is), a dict of
        overrides or a JSON file path (both merged over the backend's
        defaults), or None for the defaults alone.

        Raises:
            RegistryError: If the backend is unknown or the configuration is invalid
        """
        name = self.canonical_name(backend)
        generator_class = self._generators[name]

        try:
            if isinstance(config, GeneratorConfig):
                final_config = config
            elif isinstance(config, (str, Path)):
                final_config = load_config(name, config_file=config)
            elif config is None or isinstance(config, dict):
                final_config = load_config(name, custom_config=config)
            else:
                raise RegistryError(f"Invalid config type: {type(config).__name__}")

            return generator_class(final_config)

        except (ConfigError, TypeError, ValueError) as e:
            raise RegistryError(f"Failed to create {name} generator: {e}") from e

    def list_backends(self) -> List[str]:
        """Primary backend names, sorted."""
        return sorted(self._generators)

    def get_aliases_for_backend(self, backend: str) -> List[str]:
        key = backend.lower()
        return sorted(alias for alias, target in self._aliases.items() if target == key)

    def is_supported(self, backend: str) -> bool:
        key = backend.lower()
        return key in self._generators or key in self._aliases

    def get_backend_info(self, backend: str) -> Dict[str, Any]:
        """
        Describe a backend with its default configuration.

        `artifacts` lists the files an empty selection would produce: the
        schema first, then the companions.

        Raises:
            RegistryError: If the backend is unknown
        """
        name = self.canonical_name(backend)
        generator_class = self._generators[name]
        generator = generator_class(load_config(name))

        return {
            "name": generator.backend_name,
            "class": generator_class.__name__,
            "file_extension": generator.file_extension,
            "schema_file": generator.schema_path(),
            "artifacts": [a.path for a in generator.emit((), DEFAULT_DIALECT)],
            "aliases": self.get_aliases_for_backend(name),
            "module": generator_class.__module__,
        }


_global_registry: Optional[GeneratorRegistry] = None


def get_registry() -> GeneratorRegistry:
    """The process-wide registry, with the built-in backends registered."""
    global _global_registry
    if _global_registry is None:
        _global_registry = GeneratorRegistry()
        _auto_register_generators(_global_registry)
    return _global_registry


def _auto_register_generators(registry: GeneratorRegistry):
    """Single place where the built-in backends and their aliases are declared."""
    from .backends.drizzle import DrizzleGenerator
    from .backends.kysely import KyselyGenerator
    from .backends.prisma import PrismaGenerator

    registry.register("drizzle", DrizzleGenerator, aliases=["drizzle-orm"])
    registry.register("prisma", PrismaGenerator)
    registry.register("kysely", KyselyGenerator)


# Module-level API over the global registry


def register_generator(
    backend: str,
    generator_class: Type[CodeGenerator],
    aliases: Optional[List[str]] = None,
):
    get_registry().register(backend, generator_class, aliases)


def get_generator(backend: str, config: ConfigSource = None) -> CodeGenerator:
    """Configured generator instance for a backend name or alias."""
    return get_registry().create_generator(backend, config)


def list_supported_backends() -> List[str]:
    return get_registry().list_backends()


def is_backend_supported(backend: str) -> bool:
    return get_registry().is_supported(backend)


def get_backend_info(backend: str) -> Dict[str, Any]:
    return get_registry().get_backend_info(backend)


def list_all_backend_info() -> Dict[str, Dict[str, Any]]:
    """Backend info for every registered backend, keyed by primary name."""
    return {backend: get_backend_info(backend) for backend in list_supported_backends()}
