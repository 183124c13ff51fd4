"""
Drizzle schema generator.

Renders tables as builder-call chains (`pgTable('users', {...})`),
followed by a separate pass of `relations(...)` declarations.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ...core.declarations import (
    FieldDeclaration,
    FieldPart,
    FieldToken,
    TableDeclaration,
    reference_target,
)
from ...core.dialects import Dialect
from ...core.generator import Artifact, CodeGenerator, find_relation_field
from ...core.literals import ts_literal
from ...core.naming import NamingCase, create_typescript_sanitizer
from ...core.paths import relative_import
from ...core.schema import (
    FieldDefinition,
    OnDelete,
    Relation,
    RelationKind,
    TableDefinition,
)
from ....logging_config import get_logger
from .types import DrizzleTypeMapper, ordered_imports

logger = get_logger(__name__)

ON_DELETE_ACTIONS = {
    OnDelete.CASCADE: "cascade",
    OnDelete.SET_NULL: "set null",
    OnDelete.RESTRICT: "restrict",
}


class DrizzleGenerator(CodeGenerator):
    """Code generator for drizzle-orm table schemas."""

    @property
    def backend_name(self) -> str:
        return "drizzle"

    @property
    def file_extension(self) -> str:
        return ".ts"

    def get_template_directory(self) -> Optional[Path]:
        """Return the drizzle templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    # Declarations

    def build_declarations(
        self, tables: Sequence[TableDefinition], dialect: Dialect
    ) -> Tuple[List[TableDeclaration], Dict[str, str]]:
        """
        Build the declaration IR for every table.

        Returns:
            Table declarations in input order, and the table name to
            exported symbol mapping
        """
        mapper = DrizzleTypeMapper(dialect)
        sanitizer = create_typescript_sanitizer()
        for name in self.get_import_names(tables, dialect):
            sanitizer.add_used_name(name)

        symbols = {
            table.name: sanitizer.sanitize_name(table.name, NamingCase.ORIGINAL)
            for table in tables
        }
        positions = {table.name: index for index, table in enumerate(tables)}
        by_name = {table.name: table for table in tables}

        declarations = []
        for index, table in enumerate(tables):
            fields = tuple(
                self._field_declaration(
                    mapper, table, f, symbols, positions, index, reference_target(f, by_name)
                )
                for f in table.fields
            )
            declarations.append(
                TableDeclaration(table.name, symbols[table.name], fields)
            )
        return declarations, symbols

    def _field_declaration(
        self,
        mapper: DrizzleTypeMapper,
        table: TableDefinition,
        table_field: FieldDefinition,
        symbols: Dict[str, str],
        positions: Dict[str, int],
        table_index: int,
        target: Optional[FieldDefinition] = None,
    ) -> FieldDeclaration:
        column = mapper.map_field(table_field, table.name, target)
        tokens = [FieldToken(FieldPart.BASE_TYPE, column.call(self.column_name(table_field)))]

        pk_marker = mapper.primary_key_marker(table_field)
        if pk_marker:
            tokens.append(FieldToken(FieldPart.PRIMARY_KEY, pk_marker))

        if table_field.required and not table_field.is_primary_key:
            tokens.append(FieldToken(FieldPart.NOT_NULL, ".notNull()"))

        if table_field.unique and not table_field.is_primary_key:
            tokens.append(FieldToken(FieldPart.UNIQUE, ".unique()"))

        if table_field.default_is_now:
            tokens.append(FieldToken(FieldPart.DEFAULT, mapper.now_default()))
        elif table_field.has_default:
            tokens.append(
                FieldToken(FieldPart.DEFAULT, f".default({ts_literal(table_field.default)})")
            )

        generator = mapper.key_generator(table_field)
        if generator:
            tokens.append(FieldToken(FieldPart.DEFAULT, generator))

        fk = table_field.foreign_key
        if fk is not None:
            target_symbol = symbols[fk.target_table]
            arrow = "()"
            # Self and forward references need an explicit return type
            if positions[fk.target_table] >= table_index:
                arrow = f"(): {mapper.module.any_column}"
            reference = f".references({arrow} => {target_symbol}.{fk.target_field}"
            if fk.on_delete is not None:
                reference += f", {{ onDelete: '{ON_DELETE_ACTIONS[fk.on_delete]}' }}"
            reference += ")"
            tokens.append(FieldToken(FieldPart.REFERENCE, reference))

        return FieldDeclaration(table_field, table_field.name, tuple(tokens))

    def _columns(self, tables: Sequence[TableDefinition], dialect: Dialect):
        mapper = DrizzleTypeMapper(dialect)
        by_name = {table.name: table for table in tables}
        return mapper, [
            mapper.map_field(f, t.name, reference_target(f, by_name))
            for t in tables
            for f in t.fields
        ]

    def _needs_any_column(self, tables: Sequence[TableDefinition]) -> bool:
        positions = {table.name: index for index, table in enumerate(tables)}
        for index, table in enumerate(tables):
            for table_field in table.foreign_key_fields():
                if positions.get(table_field.foreign_key.target_table, -1) >= index:
                    return True
        return False

    def get_core_imports(self, tables: Sequence[TableDefinition], dialect: Dialect) -> List[str]:
        """Names imported from the dialect module, table function first."""
        if not tables:
            return []

        mapper, columns = self._columns(tables, dialect)
        names = mapper.get_all_imports(columns)
        if self._needs_any_column(tables):
            names.add(mapper.module.any_column)
        return ordered_imports(mapper.module.table_function, names)

    def get_import_names(self, tables: Sequence[TableDefinition], dialect: Dialect) -> Set[str]:
        """Every name the schema imports, including `relations`."""
        names = set(self.get_core_imports(tables, dialect))
        if self._relation_blocks(tables):
            names.add("relations")
        return names

    # Rendering

    def generate_schema(self, tables: Tuple[TableDefinition, ...], dialect: Dialect) -> str:
        """Generate the drizzle schema module."""
        mapper = DrizzleTypeMapper(dialect)
        declarations, symbols = self.build_declarations(tables, dialect)
        indent = self.config.indent

        parts = []
        if self.config.add_comments:
            parts.append(f"// Drizzle schema ({dialect.value}), generated by ormgen")
            parts.append("")

        if not tables:
            parts.append("// No tables selected")
            return "\n".join(parts)

        relation_blocks = self._relation_blocks(tables)
        if relation_blocks:
            parts.append("import { relations } from 'drizzle-orm'")
        core_imports = self.get_core_imports(tables, dialect)
        parts.append(f"import {{ {', '.join(core_imports)} }} from '{mapper.module.module}'")
        parts.append("")

        for declaration in declarations:
            parts.append(
                f"export const {declaration.type_name} = "
                f"{mapper.module.table_function}('{declaration.table_name}', {{"
            )
            for field_declaration in declaration.fields:
                parts.append(f"{indent}{field_declaration.key}: {field_declaration.render()},")
            parts.append("})")
            parts.append("")

        for table, relations in relation_blocks:
            parts.extend(self._render_relations(table, relations, symbols))
            parts.append("")

        return "\n".join(parts)

    def validate_tables(self, tables: Sequence[TableDefinition]) -> List[str]:
        """Base checks plus the many-to-many relations drizzle leaves out."""
        warnings = super().validate_tables(tables)
        names = [table.name for table in tables]
        for table in tables:
            for relation in self.relations_in_set(table, names):
                if relation.kind == RelationKind.MANY_TO_MANY:
                    warnings.append(
                        f"Relation {table.name}.{relation.field_name} skipped: "
                        "drizzle needs an explicit junction table for many-to-many"
                    )
        return warnings

    def _relation_blocks(
        self, tables: Sequence[TableDefinition]
    ) -> List[Tuple[TableDefinition, List[Relation]]]:
        """Tables with at least one one-to-many or many-to-one relation in the set."""
        names = [table.name for table in tables]
        blocks = []
        for table in tables:
            relations = [
                r
                for r in self.relations_in_set(table, names)
                if r.kind != RelationKind.MANY_TO_MANY
            ]
            if relations:
                blocks.append((table, relations))
        return blocks

    def _render_relations(
        self,
        table: TableDefinition,
        relations: List[Relation],
        symbols: Dict[str, str],
    ) -> List[str]:
        indent = self.config.indent
        symbol = symbols[table.name]

        helpers = []
        if any(r.kind == RelationKind.MANY_TO_ONE for r in relations):
            helpers.append("one")
        if any(r.kind == RelationKind.ONE_TO_MANY for r in relations):
            helpers.append("many")

        lines = [
            f"export const {symbol}Relations = relations({symbol}, "
            f"({{ {', '.join(helpers)} }}) => ({{"
        ]
        for relation in relations:
            target = symbols[relation.target_table]
            if relation.kind == RelationKind.MANY_TO_ONE:
                fk_field = find_relation_field(table, relation)
                lines.append(f"{indent}{relation.field_name}: one({target}, {{")
                lines.append(f"{indent * 2}fields: [{symbol}.{fk_field.name}],")
                lines.append(
                    f"{indent * 2}references: [{target}.{fk_field.foreign_key.target_field}],"
                )
                lines.append(f"{indent}}}),")
            else:
                lines.append(f"{indent}{relation.field_name}: many({target}),")
        lines.append("}))")
        return lines

    # Companions

    def generate_companions(
        self, tables: Tuple[TableDefinition, ...], dialect: Dialect
    ) -> List[Artifact]:
        """Client, drizzle-kit config and migrate script."""
        paths = self.paths
        migrations_dir = self.config.custom.get("migrations_dir", paths.migrations_dir)
        context = {
            "dialect": dialect.value,
            "database_url_env": self.config.database_url_env,
            "schema_file": paths.schema_file,
            "schema_import": relative_import(paths.client_file, paths.schema_file),
            "migrations_dir": migrations_dir,
            "strict": bool(self.config.custom.get("strict", False)),
        }
        return [
            Artifact(paths.client_file, self.render_template("client.ts.j2", context)),
            Artifact(paths.config_file, self.render_template("config.ts.j2", context)),
            Artifact(paths.migrate_file, self.render_template("migrate.ts.j2", context)),
        ]

