"""Tests for the declaration IR and type projections."""

from ormgen.codegen.core.declarations import (
    FieldDeclaration,
    FieldPart,
    FieldToken,
    field_primary_key_strategy,
    insertable_projection,
    is_server_generated,
    order_tokens,
    record_projection,
    reference_target,
    updatable_projection,
)
from ormgen.codegen.core.dialects import Dialect, PrimaryKeyStrategy
from ormgen.codegen.core.schema import FieldDefinition, SemanticType


class TestTokenOrder:
    def test_canonical_order(self):
        """Tokens sort into base, length, key, not null, unique, default, reference."""
        tokens = [
            FieldToken(FieldPart.REFERENCE, "R"),
            FieldToken(FieldPart.DEFAULT, "D"),
            FieldToken(FieldPart.UNIQUE, "U"),
            FieldToken(FieldPart.NOT_NULL, "N"),
            FieldToken(FieldPart.PRIMARY_KEY, "P"),
            FieldToken(FieldPart.LENGTH, "L"),
            FieldToken(FieldPart.BASE_TYPE, "B"),
        ]
        assert "".join(t.text for t in order_tokens(tokens)) == "BLPNUDR"

    def test_same_part_keeps_relative_order(self):
        """The sort is stable within one part."""
        tokens = [
            FieldToken(FieldPart.DEFAULT, "first"),
            FieldToken(FieldPart.BASE_TYPE, "base"),
            FieldToken(FieldPart.DEFAULT, "second"),
        ]
        assert [t.text for t in order_tokens(tokens)] == ["base", "first", "second"]

    def test_declaration_orders_on_construction(self):
        """FieldDeclaration renders in canonical order regardless of input order."""
        table_field = FieldDefinition("email", SemanticType.STRING)
        declaration = FieldDeclaration(
            table_field,
            "email",
            (
                FieldToken(FieldPart.UNIQUE, ".unique()"),
                FieldToken(FieldPart.BASE_TYPE, "text('email')"),
                FieldToken(FieldPart.NOT_NULL, ".notNull()"),
            ),
        )
        assert declaration.render() == "text('email').notNull().unique()"
        assert declaration.texts(FieldPart.UNIQUE) == [".unique()"]


class TestPrimaryKeyStrategy:
    def test_identifier_follows_dialect(self):
        """Identifier keys are UUIDs on postgresql and mysql, integers on sqlite."""
        key = FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True)
        assert field_primary_key_strategy(key, Dialect.POSTGRESQL) == PrimaryKeyStrategy.RANDOM_UUID
        assert field_primary_key_strategy(key, Dialect.MYSQL) == PrimaryKeyStrategy.RANDOM_UUID
        assert field_primary_key_strategy(key, Dialect.SQLITE) == PrimaryKeyStrategy.AUTO_INCREMENT

    def test_explicit_auto_increment_wins(self):
        """An auto-increment flag overrides the dialect default."""
        key = FieldDefinition(
            "id", SemanticType.IDENTIFIER, is_primary_key=True, is_auto_increment=True
        )
        assert is_server_generated(key, Dialect.POSTGRESQL)

    def test_non_key_fields_have_no_strategy(self):
        """Only primary keys get a generation strategy."""
        table_field = FieldDefinition("authorId", SemanticType.IDENTIFIER)
        assert field_primary_key_strategy(table_field, Dialect.SQLITE) is None

    def test_caller_supplied_keys(self):
        """A string primary key is supplied by the caller."""
        key = FieldDefinition("code", SemanticType.STRING, is_primary_key=True)
        assert field_primary_key_strategy(key, Dialect.POSTGRESQL) is None
        assert not is_server_generated(key, Dialect.SQLITE)


class TestReferenceTarget:
    def test_finds_referenced_field(self, serial_accounts_catalog):
        """A foreign key resolves to the field it points at."""
        by_name = {t.name: t for t in serial_accounts_catalog.tables()}
        account_id = by_name["notes"].get_field("accountId")
        assert reference_target(account_id, by_name) is by_name["accounts"].primary_key

    def test_plain_field_and_missing_table(self, serial_accounts_catalog):
        """Plain fields and targets outside the mapping resolve to None."""
        notes = serial_accounts_catalog.get("notes")
        assert reference_target(notes.get_field("body"), {"notes": notes}) is None
        assert reference_target(notes.get_field("accountId"), {"notes": notes}) is None


class TestProjections:
    def test_record_keeps_every_field(self, articles_table):
        """The record projection is the full field list, nothing optional."""
        projected = record_projection(articles_table.fields)
        assert [p.field.name for p in projected] == ["id", "title", "views"]
        assert not any(p.optional for p in projected)

    def test_insertable_omits_server_generated_key(self, articles_table):
        """Auto-increment keys are left out of inserts; nullable fields are optional."""
        projected = insertable_projection(articles_table.fields, Dialect.POSTGRESQL)
        assert [(p.field.name, p.optional) for p in projected] == [
            ("title", False),
            ("views", True),
        ]

    def test_insertable_defaults_are_optional(self, catalog):
        """Fields with defaults may be left out of inserts."""
        orders = catalog.get("orders")
        projected = {
            p.field.name: p.optional
            for p in insertable_projection(orders.fields, Dialect.POSTGRESQL)
        }
        assert projected["status"] is True
        assert projected["total"] is False
        assert projected["id"] is False

    def test_updatable_all_optional(self, articles_table):
        """Every field is optional in an update."""
        projected = updatable_projection(articles_table.fields)
        assert len(projected) == 3
        assert all(p.optional for p in projected)
