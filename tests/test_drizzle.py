"""Tests for the drizzle backend."""

import re

import pytest

from ormgen.codegen.backends.drizzle import DrizzleGenerator
from ormgen.codegen.core.generator import UnresolvableForeignKey
from ormgen.codegen.core.resolver import resolve
from ormgen.codegen.core.schema import (
    FieldDefinition,
    Relation,
    RelationKind,
    SemanticType,
    TableDefinition,
)

STARTER_POSTGRES = """\
// Drizzle schema (postgresql), generated by ormgen

import { pgTable, timestamp, uuid, varchar } from 'drizzle-orm/pg-core'

export const users = pgTable('users', {
  id: uuid('id').primaryKey().$defaultFn(() => crypto.randomUUID()),
  email: varchar('email', { length: 255 }).notNull().unique(),
  name: varchar('name', { length: 255 }),
  emailVerified: timestamp('email_verified'),
  image: varchar('image', { length: 500 }),
  createdAt: timestamp('created_at').defaultNow(),
  updatedAt: timestamp('updated_at').defaultNow(),
})
"""


def _schema(catalog, names, dialect="postgresql", **config):
    generator = DrizzleGenerator(config or None)
    return generator.emit(resolve(names, catalog), dialect)[0].content


def _imported(schema, module):
    match = re.search(r"import \{ (.+) \} from '" + re.escape(module) + "'", schema)
    return set(match.group(1).split(", ")) if match else set()


class TestSchema:
    def test_starter_postgres(self, catalog):
        """The users table renders builder chains in canonical order."""
        assert _schema(catalog, ["users"]) == STARTER_POSTGRES

    def test_not_null_only_for_required_non_keys(self, catalog):
        """Primary keys never get .notNull()."""
        schema = _schema(catalog, ["users"])
        assert "primaryKey().notNull()" not in schema
        assert ".notNull().unique()" in schema

    def test_inline_references(self, catalog):
        """Foreign keys render as .references() after the other markers."""
        schema = _schema(catalog, ["orders"])
        assert "userId: uuid('user_id').notNull().references(() => users.id)," in schema

    def test_on_delete(self, catalog):
        """Referential actions are passed as options."""
        schema = _schema(catalog, ["posts"])
        assert (
            "authorId: uuid('author_id').notNull()"
            ".references(() => users.id, { onDelete: 'cascade' }),"
        ) in schema

    def test_self_reference_uses_typed_arrow(self, catalog):
        """Self references need an explicit column return type."""
        schema = _schema(catalog, ["comments"])
        assert "references((): AnyPgColumn => comments.id, { onDelete: 'cascade' })" in schema
        assert "AnyPgColumn" in _imported(schema, "drizzle-orm/pg-core")

    def test_literal_defaults(self, catalog):
        """String and number defaults are quoted literals; now is defaultNow()."""
        schema = _schema(catalog, ["orders"])
        assert "status: varchar('status', { length: 50 }).notNull().default('pending')," in schema
        assert "tax: integer('tax').default(0)," in schema
        assert "createdAt: timestamp('created_at').defaultNow()," in schema

    def test_string_default_stays_one_literal(self):
        """Quotes, backslashes and line breaks in a string default are escaped."""
        table = TableDefinition(
            "memos",
            "Memo",
            (
                FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
                FieldDefinition(
                    "body", SemanticType.TEXT, default="line1\nline2 'q' \\ \"d\" \r"
                ),
            ),
        )
        schema = DrizzleGenerator().emit([table], "postgresql")[0].content
        expected = r"""body: text('body').default('line1\nline2 \'q\' \\ "d" \r'),"""
        assert expected in schema
        assert not any(line.startswith("line2") for line in schema.splitlines())

    @pytest.mark.parametrize(
        "dialect,key,reference",
        [
            ("postgresql", "serial('id').primaryKey()", "integer('account_id')"),
            ("mysql", "int('id').primaryKey().autoincrement()", "int('account_id')"),
            ("sqlite", "integer('id').primaryKey({ autoIncrement: true })", "integer('account_id')"),
        ],
    )
    def test_reference_to_auto_increment_key(
        self, serial_accounts_catalog, dialect, key, reference
    ):
        """A column pointing at an auto-increment key is a plain integer column."""
        schema = _schema(serial_accounts_catalog, ["notes"], dialect)
        assert f"  id: {key}," in schema
        assert f"accountId: {reference}.notNull().references(() => accounts.id)," in schema

    def test_reference_builder_is_imported(self, serial_accounts_catalog):
        """The integer builder for the reference column is imported next to serial."""
        schema = _schema(serial_accounts_catalog, ["notes"])
        assert _imported(schema, "drizzle-orm/pg-core") == {
            "integer",
            "pgTable",
            "serial",
            "text",
            "uuid",
            "varchar",
        }

    def test_sqlite_types(self, catalog):
        """sqlite uses integer keys and mode options."""
        schema = _schema(catalog, ["posts"], dialect="sqlite")
        assert "id: integer('id').primaryKey({ autoIncrement: true })," in schema
        assert "published: integer('published', { mode: 'boolean' }).default(false)," in schema
        assert (
            "createdAt: integer('created_at', { mode: 'timestamp' })"
            ".$defaultFn(() => new Date()),"
        ) in schema
        assert "authorId: integer('author_id').notNull()" in schema
        assert "crypto.randomUUID" not in schema

    def test_mysql_types(self, catalog):
        """mysql stores identifiers as varchar(36) and requires varchar lengths."""
        schema = _schema(catalog, ["products"], dialect="mysql")
        assert "id: varchar('id', { length: 36 }).primaryKey().$defaultFn(" in schema
        assert "images: json('images')," in schema
        assert "mysqlTable('products'" in schema

    def test_original_column_case(self, catalog):
        """Column names can keep the field name."""
        schema = _schema(catalog, ["users"], column_case="original")
        assert "emailVerified: timestamp('emailVerified')," in schema

    def test_empty_selection(self, catalog):
        """No tables produces a placeholder module without imports."""
        schema = _schema(catalog, [])
        assert "No tables selected" in schema
        assert "import" not in schema

    def test_without_comments(self, catalog):
        """The header comment is optional."""
        schema = _schema(catalog, ["users"], add_comments=False)
        assert schema.startswith("import { pgTable")


class TestImports:
    @pytest.mark.parametrize("dialect", ["postgresql", "mysql", "sqlite"])
    @pytest.mark.parametrize("preset", ["starter", "blog", "ecommerce", "saas"])
    def test_imports_match_usage(self, catalog, preset, dialect):
        """Every imported name is used and every used builder is imported."""
        module = {
            "postgresql": "drizzle-orm/pg-core",
            "mysql": "drizzle-orm/mysql-core",
            "sqlite": "drizzle-orm/sqlite-core",
        }[dialect]
        schema = _schema(catalog, catalog.get_preset(preset).table_names, dialect)
        imported = _imported(schema, module)
        body = schema.split("\n", 4)[-1]

        used_builders = set(re.findall(r"^  \w+: (\w+)\(", schema, re.MULTILINE)) - {"one", "many"}
        table_functions = set(re.findall(r"= (\w+Table)\(", schema))
        any_columns = set(re.findall(r"\(\): (\w+) =>", schema))

        assert imported == used_builders | table_functions | any_columns
        for name in imported:
            assert re.search(r"\b" + name + r"\b", body)

    def test_relations_import_only_when_used(self, catalog):
        """drizzle-orm's relations helper is imported only with relation blocks."""
        assert "from 'drizzle-orm'" not in _schema(catalog, ["users"])
        assert "import { relations } from 'drizzle-orm'" in _schema(catalog, ["posts"])


class TestRelations:
    def test_blog_relation_blocks(self, catalog):
        """Relation blocks follow the table declarations."""
        schema = _schema(catalog, catalog.get_preset("blog").table_names)
        expected = (
            "export const postsRelations = relations(posts, ({ one, many }) => ({\n"
            "  author: one(users, {\n"
            "    fields: [posts.authorId],\n"
            "    references: [users.id],\n"
            "  }),\n"
            "  comments: many(comments),\n"
            "}))"
        )
        assert expected in schema
        assert schema.index("export const tags = ") < schema.index("Relations = relations(")

    def test_relations_outside_set_are_skipped(self, catalog):
        """users only relates to tables that are not generated."""
        schema = _schema(catalog, ["users", "organizations"])
        assert "relations(" not in schema

    def test_many_only_block(self, catalog):
        """A table with only one-to-many relations asks for `many` alone."""
        schema = _schema(catalog, ["subscriptions"])
        assert "relations(organizations, ({ many }) => ({" in schema
        assert "relations(subscriptions, ({ one }) => ({" in schema

    def test_many_to_many_is_reported_not_rendered(self):
        """drizzle has no junction-less many-to-many; the relation becomes a warning."""
        tickets = TableDefinition(
            "tickets",
            "Ticket",
            (
                FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
                FieldDefinition("title", SemanticType.STRING, required=True),
            ),
            (Relation(RelationKind.MANY_TO_MANY, "labels", "labels"),),
        )
        labels = TableDefinition(
            "labels",
            "Label",
            (
                FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
                FieldDefinition("name", SemanticType.STRING, required=True),
            ),
            (Relation(RelationKind.MANY_TO_MANY, "tickets", "tickets"),),
        )
        generator = DrizzleGenerator()
        schema = generator.emit([tickets, labels], "postgresql")[0].content
        assert "many(" not in schema
        assert "from 'drizzle-orm'" not in schema

        warnings = generator.validate_tables([tickets, labels])
        assert any("tickets.labels skipped" in w for w in warnings)
        assert any("labels.tickets skipped" in w for w in warnings)


class TestArtifacts:
    def test_companion_paths(self, catalog):
        """Schema first, then client, drizzle-kit config and migrate script."""
        artifacts = DrizzleGenerator().emit(resolve(["users"], catalog), "postgresql")
        assert [a.path for a in artifacts] == [
            "lib/db/schema.ts",
            "lib/db.ts",
            "drizzle.config.ts",
            "lib/db/migrate.ts",
        ]

    def test_client_and_config(self, catalog):
        """Companions point at the schema and use the configured env variable."""
        generator = DrizzleGenerator({"database_url_env": "PG_URL"})
        artifacts = {a.path: a.content for a in generator.emit(resolve(["users"], catalog), "postgresql")}
        assert "import * as schema from './db/schema'" in artifacts["lib/db.ts"]
        assert "postgres(process.env.PG_URL)" in artifacts["lib/db.ts"]
        config = artifacts["drizzle.config.ts"]
        assert "schema: './lib/db/schema.ts'," in config
        assert "out: './drizzle/migrations'," in config
        assert "dialect: 'postgresql'," in config
        assert "strict: true," in config

    def test_sqlite_migrate_script(self, catalog):
        """The sqlite migrator uses better-sqlite3."""
        artifacts = DrizzleGenerator().emit(resolve(["users"], catalog), "sqlite")
        migrate = artifacts[-1].content
        assert "from 'drizzle-orm/better-sqlite3/migrator'" in migrate
        assert "sqlite.close()" in migrate

    def test_no_companions(self, catalog):
        """Companions can be switched off."""
        artifacts = DrizzleGenerator({"include_companions": False}).emit(
            resolve(["users"], catalog), "postgresql"
        )
        assert len(artifacts) == 1

    def test_src_dir_paths(self, catalog):
        """A source directory moves the schema and client."""
        artifacts = DrizzleGenerator({"src_dir": "src"}).emit(resolve(["users"], catalog))
        assert artifacts[0].path == "src/lib/db/schema.ts"
        assert "schema: './src/lib/db/schema.ts'," in artifacts[2].content

    def test_deterministic(self, catalog):
        """Two emissions with the same input are byte-identical."""
        tables = resolve(catalog.get_preset("blog").table_names, catalog)
        first = DrizzleGenerator().emit(tables, "postgresql")
        second = DrizzleGenerator().emit(tables, "postgresql")
        assert first == second

    def test_dangling_reference(self, catalog):
        """Emitting a table without its referenced table is a consistency fault."""
        with pytest.raises(UnresolvableForeignKey, match="posts.authorId"):
            DrizzleGenerator().emit([catalog.get("posts")], "postgresql")
