"""
Core code generation components.

Provides the table model, catalog, resolver and base classes used by
all backend generators.
"""

from .catalog import (
    CatalogError,
    DuplicateTableName,
    Preset,
    SchemaCatalog,
    UnknownPreset,
    UnknownTableReference,
    get_default_catalog,
    preset_table_names,
    select_tables,
)
from .config import ConfigError, ConfigManager, GeneratorConfig, load_config
from .declarations import (
    FieldDeclaration,
    FieldPart,
    FieldToken,
    insertable_projection,
    record_projection,
    updatable_projection,
)
from .dialects import Dialect, PrimaryKeyStrategy, detect_dialect, parse_dialect
from .generator import (
    Artifact,
    CodeGenerator,
    GenerationResult,
    GeneratorError,
    UnresolvableForeignKey,
    UnsupportedFieldType,
    generate_code,
)
from .naming import NameSanitizer, NamingCase
from .packages import RuntimePackages, package_scripts, runtime_packages
from .resolver import resolve, resolve_names
from .schema import (
    FieldDefinition,
    ForeignKey,
    InvalidTableDefinition,
    OnDelete,
    Relation,
    RelationKind,
    SemanticType,
    TableDefinition,
    tables_from_data,
)
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Table model
    "FieldDefinition",
    "ForeignKey",
    "InvalidTableDefinition",
    "OnDelete",
    "Relation",
    "RelationKind",
    "SemanticType",
    "TableDefinition",
    "tables_from_data",
    # Catalog and resolution
    "CatalogError",
    "DuplicateTableName",
    "Preset",
    "SchemaCatalog",
    "UnknownPreset",
    "UnknownTableReference",
    "get_default_catalog",
    "preset_table_names",
    "select_tables",
    "resolve",
    "resolve_names",
    # Dialects and packages
    "Dialect",
    "PrimaryKeyStrategy",
    "detect_dialect",
    "parse_dialect",
    "RuntimePackages",
    "package_scripts",
    "runtime_packages",
    # Base generator interface
    "Artifact",
    "CodeGenerator",
    "GenerationResult",
    "GeneratorError",
    "UnresolvableForeignKey",
    "UnsupportedFieldType",
    "generate_code",
    # Declaration IR
    "FieldDeclaration",
    "FieldPart",
    "FieldToken",
    "insertable_projection",
    "record_projection",
    "updatable_projection",
    # Naming, configuration and templates
    "NameSanitizer",
    "NamingCase",
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
