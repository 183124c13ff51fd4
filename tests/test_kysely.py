"""Tests for the kysely backend."""

import pytest

from ormgen.codegen.backends.kysely import KyselyGenerator, KyselyTypeMapper
from ormgen.codegen.core.catalog import SchemaCatalog
from ormgen.codegen.core.dialects import Dialect
from ormgen.codegen.core.resolver import resolve
from ormgen.codegen.core.schema import FieldDefinition, SemanticType, TableDefinition

ARTICLES_POSTGRES = """\
import type { Generated } from 'kysely'

export interface ArticleTable {
  id: Generated<number>
  title: string
  views: number | null
}

export type Article = {
  id: number
  title: string
  views: number | null
}

export type NewArticle = {
  title: string
  views?: number | null
}

export type ArticleUpdate = {
  id?: number
  title?: string
  views?: number | null
}

export interface Database {
  articles: ArticleTable
}
"""


def _schema(catalog, names, dialect="postgresql", **config):
    generator = KyselyGenerator(config or None)
    return generator.emit(resolve(names, catalog), dialect)[0].content


def _block(schema, header):
    start = schema.index(header)
    return schema[start:schema.index("}", start) + 1]


class TestSchema:
    def test_articles_exact(self, articles_table):
        """Table interface, three projections and the Database interface."""
        catalog = SchemaCatalog([articles_table])
        assert _schema(catalog, ["articles"], add_comments=False) == ARTICLES_POSTGRES

    def test_three_projection_types_per_table(self, articles_table):
        """Each table gets exactly one record, insertable and updatable type."""
        catalog = SchemaCatalog([articles_table])
        schema = _schema(catalog, ["articles"])
        assert len([line for line in schema.splitlines() if line.startswith("export type")]) == 3

    def test_header_comment(self, articles_table):
        """Comments mode adds a header line naming the dialect."""
        schema = _schema(SchemaCatalog([articles_table]), ["articles"])
        assert schema.startswith("// Kysely database types (postgresql), generated by ormgen\n")

    def test_uuid_key_is_not_generated(self, catalog):
        """A client-side uuid key stays required on insert."""
        schema = _schema(catalog, ["users"])
        assert "  id: string\n" in _block(schema, "export interface UserTable {")
        assert "  id: string\n" in _block(schema, "export type NewUser = {")
        assert "  createdAt: Generated<Date> | null\n" in schema
        assert "  createdAt?: Date | null\n" in _block(schema, "export type NewUser = {")

    @pytest.mark.parametrize("dialect", ["postgresql", "mysql"])
    def test_reference_to_auto_increment_key(self, serial_accounts_catalog, dialect):
        """A foreign key to an auto-increment key is a plain number."""
        schema = _schema(serial_accounts_catalog, ["notes"], dialect, add_comments=False)
        assert "  id: Generated<number>\n" in _block(schema, "export interface AccountTable {")
        note_table = _block(schema, "export interface NoteTable {")
        assert "  id: string\n" in note_table
        assert "  accountId: number\n" in note_table
        assert "  accountId: number\n" in _block(schema, "export type NewNote = {")
        assert "  accountId?: number\n" in _block(schema, "export type NoteUpdate = {")

    def test_sqlite_types(self, catalog):
        """sqlite columns use the driver's number and string representations."""
        schema = _schema(catalog, ["posts"], dialect="sqlite")
        post = _block(schema, "export interface PostTable {")
        assert "  id: Generated<number>\n" in post
        assert "  published: Generated<number> | null\n" in post
        assert "  createdAt: Generated<string> | null\n" in post
        assert "  authorId: number // references users.id\n" in post
        new_post = _block(schema, "export type NewPost = {")
        assert "\n  id" not in new_post

    def test_reference_comment_needs_comments(self, catalog):
        """Foreign key hints are dropped without comments."""
        schema = _schema(catalog, ["posts"], add_comments=False)
        assert "  authorId: string\n" in schema
        assert "references" not in schema

    def test_import_omitted_when_nothing_generated(self, nodes_table):
        """No Generated import without generated columns."""
        schema = _schema(SchemaCatalog([nodes_table]), ["nodes"])
        assert "import" not in schema
        assert "Generated" not in schema
        assert "  parentId: string | null // references nodes.id\n" in schema

    def test_database_interface_in_dependency_order(self, catalog):
        """Every resolved table is listed in the Database interface."""
        schema = _schema(catalog, ["comments"])
        database = _block(schema, "export interface Database {")
        assert database.splitlines()[1:-1] == [
            "  users: UserTable",
            "  posts: PostTable",
            "  comments: CommentTable",
        ]

    def test_snake_column_case(self, catalog):
        """Column keys follow the configured case."""
        schema = _schema(catalog, ["users"], column_case="snake")
        assert "  email_verified: Date | null\n" in schema
        assert "  email_verified?: Date | null\n" in schema

    def test_empty_projection(self):
        """A projection without fields is an empty record type."""
        counters = TableDefinition(
            name="counters",
            display_name="Counter",
            fields=(
                FieldDefinition(
                    "id", SemanticType.INTEGER, is_primary_key=True, is_auto_increment=True
                ),
            ),
        )
        schema = _schema(SchemaCatalog([counters]), ["counters"])
        assert "export type NewCounter = Record<string, never>" in schema

    def test_deterministic(self, catalog):
        """Identical inputs give identical output."""
        names = catalog.get_preset("saas").table_names
        assert _schema(catalog, names) == _schema(catalog, names)


class TestTypeMapper:
    @pytest.mark.parametrize(
        "dialect,expected",
        [(Dialect.POSTGRESQL, "unknown"), (Dialect.MYSQL, "unknown"), (Dialect.SQLITE, "string")],
    )
    def test_json(self, catalog, dialect, expected):
        """json columns are opaque except on sqlite where they are text."""
        images = catalog.get("products").get_field("images")
        assert KyselyTypeMapper(dialect).map_field(images) == expected

    def test_nullable_suffix(self, catalog):
        """Only optional fields get a null union."""
        users = catalog.get("users")
        assert KyselyTypeMapper.null_suffix(users.get_field("email")) == ""
        assert KyselyTypeMapper.null_suffix(users.get_field("name")) == " | null"


class TestArtifacts:
    def test_paths(self, catalog):
        """Schema, client and migrate script."""
        artifacts = KyselyGenerator().emit(resolve(["users"], catalog), "postgresql")
        assert [a.path for a in artifacts] == ["lib/db/schema.ts", "lib/db.ts", "lib/db/migrate.ts"]

    def test_client_imports(self, catalog):
        """The client imports the schema relative to itself."""
        artifacts = KyselyGenerator().emit(resolve(["users"], catalog), "postgresql")
        client = artifacts[1].content
        assert "import type { Database } from './db/schema'" in client
        assert "new PostgresDialect(" in client
        assert "process.env.DATABASE_URL" in client

    @pytest.mark.parametrize(
        "dialect,marker",
        [("mysql", "new MysqlDialect("), ("sqlite", "new SqliteDialect(")],
    )
    def test_client_dialects(self, catalog, dialect, marker):
        """Each dialect gets its own driver setup."""
        artifacts = KyselyGenerator().emit(resolve(["users"], catalog), dialect)
        assert marker in artifacts[1].content

    def test_migrate_script(self, catalog):
        """The migrate script points at the migrations folder from its own directory."""
        artifacts = KyselyGenerator().emit(resolve(["users"], catalog), "postgresql")
        migrate = artifacts[2].content
        assert "import { db } from '../db'" in migrate
        assert "path.join(__dirname, '../../migrations')" in migrate

    def test_src_dir(self, catalog):
        """A src directory moves the lib files under it."""
        artifacts = KyselyGenerator({"src_dir": "src"}).emit(
            resolve(["users"], catalog), "postgresql"
        )
        assert artifacts[0].path == "src/lib/db/schema.ts"
        assert "path.join(__dirname, '../../../migrations')" in artifacts[2].content
