"""
Kysely column type system.

Maps semantic field types to the TypeScript types that describe
column values as the driver returns them.
"""

from typing import Dict, Optional

from ...core.dialects import Dialect
from ...core.declarations import is_server_generated
from ...core.generator import UnsupportedFieldType
from ...core.schema import FieldDefinition, SemanticType

_BASE_TYPES: Dict[SemanticType, str] = {
    SemanticType.IDENTIFIER: "string",
    SemanticType.STRING: "string",
    SemanticType.TEXT: "string",
    SemanticType.INTEGER: "number",
    SemanticType.BOOLEAN: "boolean",
    SemanticType.TIMESTAMP: "Date",
    SemanticType.JSON: "unknown",
}

# better-sqlite3 hands back integers for keys and booleans, strings for the rest
_SQLITE_OVERRIDES: Dict[SemanticType, str] = {
    SemanticType.IDENTIFIER: "number",
    SemanticType.BOOLEAN: "number",
    SemanticType.TIMESTAMP: "string",
    SemanticType.JSON: "string",
}

_TYPE_MAPS: Dict[Dialect, Dict[SemanticType, str]] = {
    Dialect.POSTGRESQL: dict(_BASE_TYPES),
    Dialect.MYSQL: dict(_BASE_TYPES),
    Dialect.SQLITE: {**_BASE_TYPES, **_SQLITE_OVERRIDES},
}

GENERATED = "Generated"


class KyselyTypeMapper:
    """Maps fields to TypeScript column types for one dialect."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect
        self._type_map = _TYPE_MAPS[dialect]

    def map_field(
        self,
        table_field: FieldDefinition,
        table_name: str = "",
        target: Optional[FieldDefinition] = None,
    ) -> str:
        """
        Plain value type of a field, without nullability.

        A foreign key referencing an auto-increment `target` is a number.

        Raises:
            UnsupportedFieldType: If the dialect has no matching type
        """
        if is_server_generated(table_field, self.dialect):
            return "number"
        if target is not None and is_server_generated(target, self.dialect):
            return "number"

        ts_type = self._type_map.get(table_field.semantic_type)
        if ts_type is None:
            raise UnsupportedFieldType(
                table_field.semantic_type,
                "kysely",
                self.dialect,
                table_name,
                table_field.name,
            )
        return ts_type

    def is_generated(self, table_field: FieldDefinition) -> bool:
        """Columns the database fills in when an insert leaves them out."""
        return is_server_generated(table_field, self.dialect) or table_field.has_default

    def column_type(
        self,
        table_field: FieldDefinition,
        table_name: str = "",
        target: Optional[FieldDefinition] = None,
    ) -> str:
        """Type used in the table interface, `Generated<...>` where applicable."""
        ts_type = self.map_field(table_field, table_name, target)
        if self.is_generated(table_field):
            return f"{GENERATED}<{ts_type}>"
        return ts_type

    @staticmethod
    def null_suffix(table_field: FieldDefinition) -> str:
        return "" if table_field.is_required else " | null"
