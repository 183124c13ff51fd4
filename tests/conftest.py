"""Shared fixtures for the ormgen test suite."""

import pytest

from ormgen.codegen.core.catalog import SchemaCatalog, get_default_catalog
from ormgen.codegen.core.schema import (
    FieldDefinition,
    ForeignKey,
    OnDelete,
    SemanticType,
    TableDefinition,
)


@pytest.fixture(autouse=True)
def no_database_url(monkeypatch):
    """Keep dialect detection independent of the developer's environment."""
    monkeypatch.delenv("DATABASE_URL", raising=False)


@pytest.fixture
def catalog() -> SchemaCatalog:
    return get_default_catalog()


@pytest.fixture
def articles_table() -> TableDefinition:
    """One auto-increment key plus two other fields."""
    return TableDefinition(
        name="articles",
        display_name="Article",
        fields=(
            FieldDefinition(
                "id", SemanticType.INTEGER, is_primary_key=True, is_auto_increment=True
            ),
            FieldDefinition("title", SemanticType.STRING, required=True),
            FieldDefinition("views", SemanticType.INTEGER),
        ),
    )


@pytest.fixture
def nodes_table() -> TableDefinition:
    """A table with a nullable parent pointer to itself."""
    return TableDefinition(
        name="nodes",
        display_name="Node",
        fields=(
            FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
            FieldDefinition("label", SemanticType.STRING, required=True, length=80),
            FieldDefinition(
                "parentId",
                SemanticType.IDENTIFIER,
                foreign_key=ForeignKey("nodes", "id", OnDelete.SET_NULL),
            ),
        ),
    )


@pytest.fixture
def cyclic_catalog() -> SchemaCatalog:
    """Two tables referencing each other through different fields."""
    teams = TableDefinition(
        name="teams",
        display_name="Team",
        fields=(
            FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
            FieldDefinition(
                "captainId", SemanticType.IDENTIFIER, foreign_key=ForeignKey("players")
            ),
        ),
    )
    players = TableDefinition(
        name="players",
        display_name="Player",
        fields=(
            FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
            FieldDefinition(
                "teamId", SemanticType.IDENTIFIER, foreign_key=ForeignKey("teams")
            ),
        ),
    )
    return SchemaCatalog([teams, players])


@pytest.fixture
def serial_accounts_catalog() -> SchemaCatalog:
    """An auto-increment identifier key and a table pointing at it."""
    accounts = TableDefinition(
        name="accounts",
        display_name="Account",
        fields=(
            FieldDefinition(
                "id", SemanticType.IDENTIFIER, is_primary_key=True, is_auto_increment=True
            ),
            FieldDefinition("name", SemanticType.STRING, required=True),
        ),
    )
    notes = TableDefinition(
        name="notes",
        display_name="Note",
        fields=(
            FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True),
            FieldDefinition(
                "accountId",
                SemanticType.IDENTIFIER,
                required=True,
                foreign_key=ForeignKey("accounts"),
            ),
            FieldDefinition("body", SemanticType.TEXT),
        ),
    )
    return SchemaCatalog([accounts, notes])
