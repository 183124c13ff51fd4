"""
Prisma schema generator.

Renders tables as `model` blocks with `@` attributes. Foreign keys
become relation fields on both sides of the relation.
"""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ...core.declarations import FieldDeclaration, FieldPart, FieldToken, reference_target
from ...core.dialects import Dialect
from ...core.generator import Artifact, CodeGenerator, find_relation_field
from ...core.literals import prisma_literal
from ...core.naming import NameSanitizer, capitalize, create_prisma_sanitizer, to_camel_case
from ...core.schema import FieldDefinition, RelationKind, TableDefinition
from ....logging_config import get_logger
from .types import PRISMA_ON_DELETE, PrismaTypeMapper

logger = get_logger(__name__)


@dataclass
class ModelField:
    """One line of a model block."""

    name: str
    type: str
    attributes: List[str] = field(default_factory=list)


@dataclass
class PrismaModel:
    """A model block under construction."""

    table: TableDefinition
    name: str
    sanitizer: NameSanitizer
    fields: List[ModelField] = field(default_factory=list)
    relation_fields: List[ModelField] = field(default_factory=list)
    back_relation_fields: List[ModelField] = field(default_factory=list)
    block_attributes: List[str] = field(default_factory=list)


class PrismaGenerator(CodeGenerator):
    """Code generator for Prisma schema files."""

    @property
    def backend_name(self) -> str:
        return "prisma"

    @property
    def file_extension(self) -> str:
        return ".prisma"

    @property
    def syntax_name(self) -> str:
        return "text"

    def get_template_directory(self) -> Optional[Path]:
        """Return the prisma templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    def schema_path(self) -> str:
        return self.paths.prisma_schema_file

    # Declarations

    def field_declaration(
        self,
        mapper: PrismaTypeMapper,
        table: TableDefinition,
        table_field: FieldDefinition,
        target: Optional[FieldDefinition] = None,
    ) -> FieldDeclaration:
        """Scalar field declaration in canonical attribute order."""
        prisma_type = mapper.map_field(table_field, table.name, target)
        optional = "" if table_field.is_required else "?"
        tokens = [FieldToken(FieldPart.BASE_TYPE, prisma_type.name + optional)]

        if prisma_type.native_attribute:
            tokens.append(FieldToken(FieldPart.LENGTH, prisma_type.native_attribute))

        key_default = mapper.key_default(table_field)
        if table_field.is_primary_key:
            tokens.append(FieldToken(FieldPart.PRIMARY_KEY, "@id"))
            if key_default:
                tokens.append(FieldToken(FieldPart.DEFAULT, key_default))

        if table_field.unique and not table_field.is_primary_key:
            tokens.append(FieldToken(FieldPart.UNIQUE, "@unique"))

        if not key_default:
            if table_field.default_is_now:
                tokens.append(FieldToken(FieldPart.DEFAULT, "@default(now())"))
            elif table_field.has_default:
                tokens.append(
                    FieldToken(
                        FieldPart.DEFAULT,
                        f"@default({prisma_literal(table_field.default)})",
                    )
                )

        column = self.column_name(table_field)
        if column != table_field.name:
            tokens.append(FieldToken(FieldPart.STORAGE, f'@map("{column}")'))

        return FieldDeclaration(table_field, table_field.name, tuple(tokens))

    def build_models(
        self, tables: Sequence[TableDefinition], dialect: Dialect
    ) -> List[PrismaModel]:
        """Build every model block, relations included."""
        mapper = PrismaTypeMapper(dialect)
        model_sanitizer = create_prisma_sanitizer()

        by_name = {table.name: table for table in tables}
        models: Dict[str, PrismaModel] = {}
        for table in tables:
            model = PrismaModel(
                table=table,
                name=model_sanitizer.sanitize_name(self.type_name(table)),
                sanitizer=create_prisma_sanitizer(),
            )
            for table_field in table.fields:
                declaration = self.field_declaration(
                    mapper, table, table_field, reference_target(table_field, by_name)
                )
                model.sanitizer.add_used_name(table_field.name)
                model.fields.append(
                    ModelField(
                        table_field.name,
                        declaration.texts(FieldPart.BASE_TYPE)[0],
                        [t.text for t in declaration.tokens if t.part != FieldPart.BASE_TYPE],
                    )
                )
            models[table.name] = model

        self._add_foreign_key_relations(tables, models)
        self._add_many_to_many_relations(tables, models)

        for table in tables:
            model = models[table.name]
            for table_field in table.foreign_key_fields():
                model.block_attributes.append(f"@@index([{table_field.name}])")
            if model.name != table.name:
                model.block_attributes.append(f'@@map("{table.name}")')

        return [models[table.name] for table in tables]

    def _add_foreign_key_relations(
        self, tables: Sequence[TableDefinition], models: Dict[str, PrismaModel]
    ):
        """Relation field plus back-relation list for each foreign key."""
        pair_counts = Counter(
            frozenset((table.name, f.foreign_key.target_table))
            for table in tables
            for f in table.foreign_key_fields()
        )

        for table in tables:
            source = models[table.name]
            for table_field in table.foreign_key_fields():
                fk = table_field.foreign_key
                target = models[fk.target_table]
                base_name = self._relation_field_name(table, table_field)
                named = (
                    fk.target_table == table.name
                    or pair_counts[frozenset((table.name, fk.target_table))] > 1
                )
                relation_name = f"{source.name}{capitalize(base_name)}" if named else None

                arguments = []
                if relation_name:
                    arguments.append(f'"{relation_name}"')
                arguments.append(f"fields: [{table_field.name}]")
                arguments.append(f"references: [{fk.target_field}]")
                if fk.on_delete is not None:
                    arguments.append(f"onDelete: {PRISMA_ON_DELETE[fk.on_delete]}")

                optional = "" if table_field.is_required else "?"
                source.relation_fields.append(
                    ModelField(
                        source.sanitizer.claim_name(base_name),
                        target.name + optional,
                        [f"@relation({', '.join(arguments)})"],
                    )
                )

                back_name = self._back_relation_name(
                    target.table, table, base_name, named
                )
                target.back_relation_fields.append(
                    ModelField(
                        target.sanitizer.claim_name(back_name),
                        f"{source.name}[]",
                        [f'@relation("{relation_name}")'] if relation_name else [],
                    )
                )

    def _add_many_to_many_relations(
        self, tables: Sequence[TableDefinition], models: Dict[str, PrismaModel]
    ):
        """Implicit many-to-many list fields on both sides."""
        handled = set()
        for table in tables:
            for relation in self.relations_in_set(table, models):
                if relation.kind != RelationKind.MANY_TO_MANY:
                    continue
                if (table.name, relation.field_name) in handled:
                    continue

                source = models[table.name]
                target = models[relation.target_table]
                handled.add((table.name, relation.field_name))

                if target.table.name == table.name:
                    relation_name = f"{source.name}{capitalize(relation.field_name)}"
                    attribute = [f'@relation("{relation_name}")']
                    source.relation_fields.append(
                        ModelField(
                            source.sanitizer.claim_name(relation.field_name),
                            f"{source.name}[]",
                            attribute,
                        )
                    )
                    source.relation_fields.append(
                        ModelField(
                            source.sanitizer.claim_name(f"{relation.field_name}Of"),
                            f"{source.name}[]",
                            attribute,
                        )
                    )
                    continue

                reciprocal = next(
                    (
                        r for r in target.table.relations
                        if r.kind == RelationKind.MANY_TO_MANY
                        and r.target_table == table.name
                    ),
                    None,
                )
                if reciprocal is not None:
                    handled.add((target.table.name, reciprocal.field_name))
                    back_name = reciprocal.field_name
                else:
                    back_name = to_camel_case(table.name)

                source.relation_fields.append(
                    ModelField(
                        source.sanitizer.claim_name(relation.field_name),
                        f"{target.name}[]",
                    )
                )
                target.relation_fields.append(
                    ModelField(target.sanitizer.claim_name(back_name), f"{source.name}[]")
                )

    @staticmethod
    def _relation_field_name(table: TableDefinition, table_field: FieldDefinition) -> str:
        """Name of the relation field backing a foreign key."""
        for relation in table.relations:
            if (
                relation.kind == RelationKind.MANY_TO_ONE
                and relation.target_table == table_field.foreign_key.target_table
                and find_relation_field(table, relation) is table_field
            ):
                return relation.field_name

        if table_field.name.endswith("Id") and len(table_field.name) > 2:
            return table_field.name[:-2]
        if table_field.name.endswith("_id") and len(table_field.name) > 3:
            return table_field.name[:-3]
        return f"{table_field.name}Ref"

    @staticmethod
    def _back_relation_name(
        target: TableDefinition, source: TableDefinition, base_name: str, named: bool
    ) -> str:
        """List field name on the referenced model."""
        if named:
            return f"{to_camel_case(source.name)}By{capitalize(base_name)}"

        for relation in target.relations:
            if relation.kind == RelationKind.ONE_TO_MANY and relation.target_table == source.name:
                return relation.field_name
        return to_camel_case(source.name)

    # Rendering

    def generate_schema(self, tables: Tuple[TableDefinition, ...], dialect: Dialect) -> str:
        """Generate the schema.prisma file."""
        mapper = PrismaTypeMapper(dialect)
        header = self.render_template(
            "header.prisma.j2",
            {
                "add_comments": self.config.add_comments,
                "provider": mapper.provider,
                "client_provider": self.config.custom.get(
                    "client_provider", "prisma-client-js"
                ),
                "database_url_env": self.config.database_url_env,
            },
        )

        parts = [header.rstrip("\n"), ""]
        for model in self.build_models(tables, dialect):
            parts.extend(self._render_model(model))
            parts.append("")

        return "\n".join(parts)

    def _render_model(self, model: PrismaModel) -> List[str]:
        indent = self.config.indent
        lines = model.fields + model.relation_fields + model.back_relation_fields

        name_width = max(len(line.name) for line in lines)
        type_width = max(len(line.type) for line in lines)

        rendered = [f"model {model.name} {{"]
        for line in lines:
            text = f"{indent}{line.name.ljust(name_width)} {line.type.ljust(type_width)}"
            if line.attributes:
                text += " " + " ".join(line.attributes)
            rendered.append(text.rstrip())

        if model.block_attributes:
            rendered.append("")
            rendered.extend(f"{indent}{attribute}" for attribute in model.block_attributes)

        rendered.append("}")
        return rendered

    # Companions

    def generate_companions(
        self, tables: Tuple[TableDefinition, ...], dialect: Dialect
    ) -> List[Artifact]:
        """Prisma client singleton and, when enabled, a seed script."""
        paths = self.paths
        artifacts = [
            Artifact(paths.prisma_client_file, self.render_template("client.ts.j2", {}))
        ]

        if self.config.include_seed:
            users = next((t for t in tables if t.name == "users"), None)
            has_email = users is not None and users.get_field("email") is not None
            context = {
                "user_accessor": self._accessor(users) if has_email else None,
                "user_has_name": has_email and users.get_field("name") is not None,
            }
            artifacts.append(
                Artifact(paths.prisma_seed_file, self.render_template("seed.ts.j2", context))
            )

        return artifacts

    def _accessor(self, table: TableDefinition) -> str:
        """Prisma client property for a model: lower-cased first letter."""
        name = self.type_name(table)
        return name[:1].lower() + name[1:]
