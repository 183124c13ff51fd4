"""
Base generator interface for all backends.

Defines the contract that every backend emitter implements: turn a
resolved, dependency-ordered table sequence into source artifacts.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from pathlib import Path

from .config import GeneratorConfig, load_config
from .dialects import Dialect, parse_dialect
from .naming import capitalize, convert_case
from .paths import ResolvedPaths, resolve_paths
from .schema import FieldDefinition, Relation, SemanticType, TableDefinition
from .templates import TemplateEngine, TemplateError, create_template_engine
from ...logging_config import get_logger

logger = get_logger(__name__)


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class UnsupportedFieldType(GeneratorError):
    """A semantic type has no mapping for a backend and dialect."""

    def __init__(
        self,
        semantic_type: SemanticType,
        backend: str,
        dialect: Dialect,
        table_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ):
        self.semantic_type = semantic_type
        self.backend = backend
        self.dialect = dialect
        self.table_name = table_name
        self.field_name = field_name
        location = f" ({table_name}.{field_name})" if table_name and field_name else ""
        super().__init__(
            f"Field type '{semantic_type.value}' is not supported by "
            f"{backend} on {dialect.value}{location}"
        )


class UnresolvableForeignKey(GeneratorError):
    """A reference points outside the resolved table set."""

    def __init__(self, table_name: str, field_name: str, target: str, reason: str = ""):
        self.table_name = table_name
        self.field_name = field_name
        self.target = target
        message = f"Cannot resolve reference {table_name}.{field_name} -> {target}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


@dataclass(frozen=True)
class Artifact:
    """One generated file: relative path hint plus content."""

    path: str
    content: str


class CodeGenerator(ABC):
    """Abstract base class for all backend generators."""

    def __init__(self, config: Optional[Union[GeneratorConfig, Dict[str, Any]]] = None):
        """Initialize generator with optional configuration."""
        if isinstance(config, GeneratorConfig):
            self.config = config
        else:
            self.config = load_config(self.backend_name, custom_config=config)
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of the backend (e.g., 'drizzle', 'prisma')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension of the schema artifact (e.g., '.ts')."""
        pass

    @property
    def syntax_name(self) -> str:
        """Lexer name used when printing the schema with highlighting."""
        return "typescript"

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Returns:
            Path to template directory or None
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @property
    def paths(self) -> ResolvedPaths:
        return resolve_paths(self.config.src_dir, self.config.output_path)

    def schema_path(self) -> str:
        """Relative path of the schema artifact."""
        return self.paths.schema_file

    # Emission

    def emit(
        self,
        tables: Sequence[TableDefinition],
        dialect: Union[Dialect, str, None] = None,
    ) -> List[Artifact]:
        """
        Render a resolved table sequence into artifacts.

        Args:
            tables: Dependency-ordered tables, as returned by resolve()
            dialect: Target dialect; defaults to the configured one

        Returns:
            Schema artifact first, then companion artifacts

        Raises:
            UnsupportedFieldType: If a field type has no mapping
            UnresolvableForeignKey: If a reference leaves the table set
        """
        dialect = parse_dialect(dialect) if dialect else self.config.resolve_dialect()
        tables = tuple(tables)

        self.check_references(tables)

        schema = self.format_code(self.generate_schema(tables, dialect))
        artifacts = [Artifact(self.schema_path(), schema)]

        if self.config.include_companions:
            artifacts.extend(self.generate_companions(tables, dialect))

        for artifact in artifacts:
            logger.info("Generated %s (%d bytes)", artifact.path, len(artifact.content))

        return artifacts

    @abstractmethod
    def generate_schema(self, tables: Tuple[TableDefinition, ...], dialect: Dialect) -> str:
        """
        Generate the schema source for all tables.

        Args:
            tables: Dependency-ordered tables
            dialect: Target dialect

        Returns:
            Schema source text
        """
        pass

    def generate_companions(
        self, tables: Tuple[TableDefinition, ...], dialect: Dialect
    ) -> List[Artifact]:
        """
        Generate companion artifacts (clients, config, migrate scripts).

        Returns:
            List of artifacts (can be empty)
        """
        return []

    def get_import_names(
        self, tables: Sequence[TableDefinition], dialect: Dialect
    ) -> Set[str]:
        """
        Names the schema artifact imports from the backend library.

        Args:
            tables: All tables being generated
            dialect: Target dialect

        Returns:
            Set of importable names (can be empty)
        """
        return set()

    def check_references(self, tables: Sequence[TableDefinition]):
        """
        Make sure every foreign key targets a table and field in the set.

        Raises:
            UnresolvableForeignKey: On the first dangling reference
        """
        by_name = {table.name: table for table in tables}

        for table in tables:
            for table_field in table.foreign_key_fields():
                fk = table_field.foreign_key
                target = by_name.get(fk.target_table)
                if target is None:
                    raise UnresolvableForeignKey(
                        table.name,
                        table_field.name,
                        f"{fk.target_table}.{fk.target_field}",
                        "target table is not in the resolved set",
                    )
                if target.get_field(fk.target_field) is None:
                    raise UnresolvableForeignKey(
                        table.name,
                        table_field.name,
                        f"{fk.target_table}.{fk.target_field}",
                        "target field does not exist",
                    )

    def validate_tables(self, tables: Sequence[TableDefinition]) -> List[str]:
        """
        Look for structural oddities worth reporting.

        Backends should override this to add backend-specific checks.

        Args:
            tables: Tables to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        names = {table.name for table in tables}
        type_names: Dict[str, str] = {}

        for table in tables:
            if len(table.fields) == 1:
                warnings.append(f"Table '{table.name}' has only a primary key")

            type_name = self.type_name(table)
            if type_name in type_names:
                warnings.append(
                    f"Tables '{type_names[type_name]}' and '{table.name}' "
                    f"share the type name '{type_name}'"
                )
            type_names.setdefault(type_name, table.name)

            for relation in table.relations:
                if relation.target_table not in names:
                    warnings.append(
                        f"Relation {table.name}.{relation.field_name} skipped: "
                        f"'{relation.target_table}' is not being generated"
                    )

        return warnings

    def format_code(self, code: str) -> str:
        """
        Apply backend-specific formatting to generated code.

        Args:
            code: Raw generated code

        Returns:
            Formatted code ending in a single newline
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 1:  # Collapse runs of blank lines
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    # Naming helpers

    def type_name(self, table: TableDefinition) -> str:
        """Type-facing name: the display name, capitalized."""
        return capitalize(table.display_name)

    def column_name(self, table_field: FieldDefinition) -> str:
        """Storage column name following the configured column case."""
        return convert_case(table_field.name, self.config.naming_case)

    def relations_in_set(self, table: TableDefinition, names: Iterable[str]):
        """Relations of a table whose target is part of the generated set."""
        names = set(names)
        for relation in table.relations:
            if relation.target_table in names:
                yield relation
            else:
                logger.debug(
                    "Skipping relation %s.%s: %s not in set",
                    table.name,
                    relation.field_name,
                    relation.target_table,
                )

    # Template helper methods

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with context.

        Args:
            template_name: Template file name
            context: Template variables

        Returns:
            Rendered content
        """
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self,
        artifacts: List[Artifact],
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
    ):
        """
        Initialize generation result.

        Args:
            artifacts: Generated artifacts, schema first
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.artifacts = artifacts
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message = None
        self.exception = None

    @property
    def code(self) -> str:
        """Content of the schema artifact."""
        return self.artifacts[0].content if self.artifacts else ""

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(artifacts=[])
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(
    generator: CodeGenerator,
    tables: Sequence[TableDefinition],
    dialect: Union[Dialect, str, None] = None,
) -> GenerationResult:
    """
    Generate artifacts using the specified generator with error handling.

    Generation failures come back as an error result; no partial
    artifacts are ever returned.

    Args:
        generator: Code generator instance
        tables: Resolved tables to generate
        dialect: Target dialect; defaults to the generator's configuration

    Returns:
        GenerationResult with artifacts, warnings, and metadata
    """
    try:
        dialect = parse_dialect(dialect) if dialect else generator.config.resolve_dialect()
        tables = tuple(tables)

        warnings = generator.validate_tables(tables)
        artifacts = generator.emit(tables, dialect)

        metadata = {
            "backend": generator.backend_name,
            "dialect": dialect.value,
            "file_extension": generator.file_extension,
            "table_count": len(tables),
            "tables": ", ".join(t.name for t in tables),
            "artifact_count": len(artifacts),
            "imports": ", ".join(sorted(generator.get_import_names(tables, dialect))),
            "has_relations": any(table.relations for table in tables),
        }

        return GenerationResult(artifacts, warnings, metadata)

    except (GeneratorError, TemplateError) as e:
        logger.debug("Generation failed: %s", e)
        return GenerationResult.error(f"Code generation failed: {e}", exception=e)


def find_relation_field(table: TableDefinition, relation: Relation) -> FieldDefinition:
    """
    Find the foreign key field behind a many-to-one relation.

    Prefers `<fieldName>Id`, then the first foreign key to the target.

    Raises:
        UnresolvableForeignKey: If the table has no such foreign key
    """
    candidates = [
        f for f in table.foreign_key_fields()
        if f.foreign_key.target_table == relation.target_table
    ]
    preferred = f"{relation.field_name}Id"
    for candidate in candidates:
        if candidate.name == preferred:
            return candidate
    if candidates:
        return candidates[0]

    raise UnresolvableForeignKey(
        table.name,
        relation.field_name,
        relation.target_table,
        "many-to-one relation has no matching foreign key field",
    )
