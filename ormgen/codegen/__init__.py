"""
ormgen code generation module.

Resolves table selections against the catalog and renders them for
drizzle, prisma or kysely.
"""

from typing import Any, Dict, Optional, Sequence, Union

from .registry import (
    GeneratorRegistry,
    RegistryError,
    get_generator,
    get_registry,
    list_supported_backends,
)
from .core.catalog import SchemaCatalog, get_default_catalog, select_tables
from .core.config import GeneratorConfig, ConfigManager, load_config
from .core.dialects import Dialect
from .core.generator import Artifact, CodeGenerator, GenerationResult, generate_code
from .core.resolver import resolve
from .core.schema import TableDefinition
from ..logging_config import get_logger

logger = get_logger(__name__)


def generate_schema(
    backend: str = "drizzle",
    preset: Optional[str] = None,
    table_names: Optional[Sequence[str]] = None,
    dialect: Union[Dialect, str, None] = None,
    custom_tables: Optional[Sequence[TableDefinition]] = None,
    config: Optional[Union[GeneratorConfig, Dict[str, Any]]] = None,
    catalog: Optional[SchemaCatalog] = None,
) -> GenerationResult:
    """
    Select, resolve and render tables in one call.

    Args:
        backend: Backend name or alias
        preset: Preset identifier; None selects `table_names` directly
        table_names: Explicit table names (custom selection)
        dialect: Target dialect; defaults to the configured one
        custom_tables: Extra definitions merged into the catalog for this call
        config: Generator configuration or overrides
        catalog: Catalog to use instead of the built-in one

    Returns:
        GenerationResult with artifacts, warnings, and metadata

    Raises:
        CatalogError: If the selection or a custom table is invalid
        RegistryError: If the backend is unknown
    """
    catalog = catalog or get_default_catalog()
    if custom_tables:
        catalog = catalog.with_tables(custom_tables)

    requested = select_tables(catalog, preset=preset, table_names=table_names)
    tables = resolve(requested, catalog)
    logger.debug("Resolved %s -> %s", requested, [t.name for t in tables])

    generator = get_generator(backend, config)
    return generate_code(generator, tables, dialect)


__all__ = [
    "Artifact",
    "CodeGenerator",
    "ConfigManager",
    "GenerationResult",
    "GeneratorConfig",
    "GeneratorRegistry",
    "RegistryError",
    "generate_code",
    "generate_schema",
    "get_generator",
    "get_registry",
    "list_supported_backends",
    "load_config",
]
