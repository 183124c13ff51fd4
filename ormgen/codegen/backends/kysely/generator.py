"""
Kysely schema generator.

Renders one `XTable` interface per table plus the record, insertable
and updatable projections of it, and the `Database` interface that
ties table names to their interfaces.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ...core.declarations import (
    FieldDeclaration,
    FieldPart,
    FieldToken,
    ProjectedField,
    TableDeclaration,
    insertable_projection,
    record_projection,
    reference_target,
    updatable_projection,
)
from ...core.dialects import Dialect
from ...core.generator import Artifact, CodeGenerator
from ...core.naming import create_typescript_sanitizer
from ...core.paths import relative_dir, relative_import
from ...core.schema import TableDefinition
from ....logging_config import get_logger
from .types import GENERATED, KyselyTypeMapper

logger = get_logger(__name__)


class KyselyGenerator(CodeGenerator):
    """Code generator for Kysely database interfaces."""

    @property
    def backend_name(self) -> str:
        return "kysely"

    @property
    def file_extension(self) -> str:
        return ".ts"

    def get_template_directory(self) -> Optional[Path]:
        """Return the kysely templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    # Declarations

    def build_declarations(
        self, tables: Sequence[TableDefinition], dialect: Dialect
    ) -> List[TableDeclaration]:
        """Table interface declarations, in input order."""
        mapper = KyselyTypeMapper(dialect)
        sanitizer = create_typescript_sanitizer()
        sanitizer.add_used_name("Database")
        sanitizer.add_used_name(GENERATED)
        by_name = {table.name: table for table in tables}

        declarations = []
        for table in tables:
            type_name = sanitizer.sanitize_name(self.type_name(table))
            fields = []
            for table_field in table.fields:
                tokens = [
                    FieldToken(
                        FieldPart.BASE_TYPE,
                        mapper.column_type(
                            table_field, table.name, reference_target(table_field, by_name)
                        ),
                    )
                ]
                suffix = mapper.null_suffix(table_field)
                if suffix:
                    tokens.append(FieldToken(FieldPart.NOT_NULL, suffix))
                fk = table_field.foreign_key
                if fk is not None and self.config.add_comments:
                    tokens.append(
                        FieldToken(
                            FieldPart.REFERENCE,
                            f" // references {fk.target_table}.{fk.target_field}",
                        )
                    )
                fields.append(
                    FieldDeclaration(table_field, self.column_name(table_field), tuple(tokens))
                )
            declarations.append(TableDeclaration(table.name, type_name, tuple(fields)))

        return declarations

    def get_import_names(self, tables: Sequence[TableDefinition], dialect: Dialect) -> Set[str]:
        """`Generated` when some column is filled in by the database."""
        mapper = KyselyTypeMapper(dialect)
        if any(mapper.is_generated(f) for table in tables for f in table.fields):
            return {GENERATED}
        return set()

    # Rendering

    def generate_schema(self, tables: Tuple[TableDefinition, ...], dialect: Dialect) -> str:
        """Generate the kysely schema module."""
        mapper = KyselyTypeMapper(dialect)
        indent = self.config.indent

        parts = []
        if self.config.add_comments:
            parts.append(f"// Kysely database types ({dialect.value}), generated by ormgen")
            parts.append("")

        imports = self.get_import_names(tables, dialect)
        if imports:
            parts.append(f"import type {{ {', '.join(sorted(imports))} }} from 'kysely'")
            parts.append("")

        declarations = self.build_declarations(tables, dialect)
        by_name = {table.name: table for table in tables}

        for declaration in declarations:
            table = by_name[declaration.table_name]
            type_name = declaration.type_name

            parts.append(f"export interface {type_name}Table {{")
            for field_declaration in declaration.fields:
                parts.append(f"{indent}{field_declaration.key}: {field_declaration.render()}")
            parts.append("}")
            parts.append("")

            projections = [
                (type_name, record_projection(table.fields)),
                (f"New{type_name}", insertable_projection(table.fields, dialect)),
                (f"{type_name}Update", updatable_projection(table.fields)),
            ]
            for projection_name, projected in projections:
                parts.extend(
                    self._render_projection(mapper, table, projection_name, projected, by_name)
                )
                parts.append("")

        parts.append("export interface Database {")
        for declaration in declarations:
            parts.append(f"{indent}{declaration.table_name}: {declaration.type_name}Table")
        parts.append("}")

        return "\n".join(parts)

    def _render_projection(
        self,
        mapper: KyselyTypeMapper,
        table: TableDefinition,
        name: str,
        projected: List[ProjectedField],
        by_name: Dict[str, TableDefinition],
    ) -> List[str]:
        indent = self.config.indent
        if not projected:
            return [f"export type {name} = Record<string, never>"]

        lines = [f"export type {name} = {{"]
        for item in projected:
            marker = "?" if item.optional else ""
            target = reference_target(item.field, by_name)
            ts_type = mapper.map_field(item.field, table.name, target)
            ts_type += mapper.null_suffix(item.field)
            lines.append(f"{indent}{self.column_name(item.field)}{marker}: {ts_type}")
        lines.append("}")
        return lines

    # Companions

    def generate_companions(
        self, tables: Tuple[TableDefinition, ...], dialect: Dialect
    ) -> List[Artifact]:
        """Kysely client and migrate script."""
        paths = self.paths
        migrations_dir = self.config.custom.get("migrations_dir", "migrations")
        context = {
            "dialect": dialect.value,
            "database_url_env": self.config.database_url_env,
            "schema_import": relative_import(paths.client_file, paths.schema_file),
            "client_import": relative_import(paths.migrate_file, paths.client_file),
            "migrations_folder": relative_dir(paths.migrate_file, migrations_dir),
        }
        return [
            Artifact(paths.client_file, self.render_template("client.ts.j2", context)),
            Artifact(paths.migrate_file, self.render_template("migrate.ts.j2", context)),
        ]
