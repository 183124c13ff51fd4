"""
Prisma scalar type system.

Maps semantic field types to Prisma scalar types and native
database type attributes for each provider.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ...core.dialects import Dialect, PrimaryKeyStrategy
from ...core.declarations import field_primary_key_strategy, is_server_generated
from ...core.generator import UnsupportedFieldType
from ...core.schema import FieldDefinition, OnDelete, SemanticType


@dataclass(frozen=True)
class PrismaType:
    """A Prisma scalar plus its optional native type attribute."""

    name: str
    native_attribute: Optional[str] = None


_TYPE_MAPS: Dict[Dialect, Dict[SemanticType, str]] = {
    Dialect.POSTGRESQL: {
        SemanticType.IDENTIFIER: "String",
        SemanticType.STRING: "String",
        SemanticType.TEXT: "String",
        SemanticType.INTEGER: "Int",
        SemanticType.BOOLEAN: "Boolean",
        SemanticType.TIMESTAMP: "DateTime",
        SemanticType.JSON: "Json",
    },
    Dialect.MYSQL: {
        SemanticType.IDENTIFIER: "String",
        SemanticType.STRING: "String",
        SemanticType.TEXT: "String",
        SemanticType.INTEGER: "Int",
        SemanticType.BOOLEAN: "Boolean",
        SemanticType.TIMESTAMP: "DateTime",
        SemanticType.JSON: "Json",
    },
    Dialect.SQLITE: {
        SemanticType.IDENTIFIER: "Int",
        SemanticType.STRING: "String",
        SemanticType.TEXT: "String",
        SemanticType.INTEGER: "Int",
        SemanticType.BOOLEAN: "Boolean",
        SemanticType.TIMESTAMP: "DateTime",
        SemanticType.JSON: "Json",
    },
}

# Native attribute for long text, per provider
_TEXT_ATTRIBUTES: Dict[Dialect, str] = {
    Dialect.MYSQL: "@db.Text",
}

PRISMA_ON_DELETE: Dict[OnDelete, str] = {
    OnDelete.CASCADE: "Cascade",
    OnDelete.SET_NULL: "SetNull",
    OnDelete.RESTRICT: "Restrict",
}


class PrismaTypeMapper:
    """Maps fields to Prisma scalars for one provider."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect
        self._type_map = _TYPE_MAPS[dialect]

    @property
    def provider(self) -> str:
        return self.dialect.value

    def map_field(
        self,
        table_field: FieldDefinition,
        table_name: str = "",
        target: Optional[FieldDefinition] = None,
    ) -> PrismaType:
        """
        Map a field to its Prisma scalar.

        `target` is the field a foreign key references; a reference to an
        auto-increment key takes the key's Int scalar.

        Raises:
            UnsupportedFieldType: If the provider has no matching scalar
        """
        if is_server_generated(table_field, self.dialect):
            return PrismaType("Int")
        if target is not None and is_server_generated(target, self.dialect):
            return PrismaType("Int")

        name = self._type_map.get(table_field.semantic_type)
        if name is None:
            raise UnsupportedFieldType(
                table_field.semantic_type,
                "prisma",
                self.dialect,
                table_name,
                table_field.name,
            )

        native = None
        if table_field.length is not None and self.dialect != Dialect.SQLITE:
            native = f"@db.VarChar({table_field.length})"
        elif table_field.semantic_type == SemanticType.TEXT:
            native = _TEXT_ATTRIBUTES.get(self.dialect)

        return PrismaType(name, native)

    def key_default(self, table_field: FieldDefinition) -> Optional[str]:
        """@default attribute for generated primary keys."""
        strategy = field_primary_key_strategy(table_field, self.dialect)
        if strategy == PrimaryKeyStrategy.AUTO_INCREMENT:
            return "@default(autoincrement())"
        if strategy == PrimaryKeyStrategy.RANDOM_UUID:
            return "@default(uuid())"
        return None
