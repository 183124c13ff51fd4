"""
Drizzle column type system.

Maps semantic field types to drizzle column builders for each dialect,
and records which names each builder needs imported.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ...core.dialects import Dialect, PrimaryKeyStrategy
from ...core.declarations import field_primary_key_strategy, is_server_generated
from ...core.generator import UnsupportedFieldType
from ...core.schema import FieldDefinition, SemanticType


@dataclass(frozen=True)
class DialectModule:
    """Per-dialect drizzle entry points."""

    module: str
    table_function: str
    any_column: str


DIALECT_MODULES: Dict[Dialect, DialectModule] = {
    Dialect.POSTGRESQL: DialectModule("drizzle-orm/pg-core", "pgTable", "AnyPgColumn"),
    Dialect.MYSQL: DialectModule("drizzle-orm/mysql-core", "mysqlTable", "AnyMySqlColumn"),
    Dialect.SQLITE: DialectModule(
        "drizzle-orm/sqlite-core", "sqliteTable", "AnySQLiteColumn"
    ),
}


@dataclass(frozen=True)
class DrizzleColumn:
    """
    Immutable description of one drizzle column builder call.

    `options` are rendered inside the builder's options object, in order.
    """

    builder: str
    options: Tuple[str, ...] = field(default_factory=tuple)
    imports_needed: Set[str] = field(default_factory=set)

    def __post_init__(self):
        if not self.imports_needed:
            object.__setattr__(self, "imports_needed", {self.builder})

    def call(self, column_name: str) -> str:
        """Render the builder call, e.g. varchar('email', { length: 255 })."""
        if self.options:
            return f"{self.builder}('{column_name}', {{ {', '.join(self.options)} }})"
        return f"{self.builder}('{column_name}')"


# (builder, options) per semantic type
_TYPE_MAPS: Dict[Dialect, Dict[SemanticType, Tuple[str, Tuple[str, ...]]]] = {
    Dialect.POSTGRESQL: {
        SemanticType.IDENTIFIER: ("uuid", ()),
        SemanticType.STRING: ("varchar", ()),
        SemanticType.TEXT: ("text", ()),
        SemanticType.INTEGER: ("integer", ()),
        SemanticType.BOOLEAN: ("boolean", ()),
        SemanticType.TIMESTAMP: ("timestamp", ()),
        SemanticType.JSON: ("jsonb", ()),
    },
    Dialect.MYSQL: {
        SemanticType.IDENTIFIER: ("varchar", ("length: 36",)),
        SemanticType.STRING: ("varchar", ()),
        SemanticType.TEXT: ("text", ()),
        SemanticType.INTEGER: ("int", ()),
        SemanticType.BOOLEAN: ("boolean", ()),
        SemanticType.TIMESTAMP: ("timestamp", ()),
        SemanticType.JSON: ("json", ()),
    },
    Dialect.SQLITE: {
        SemanticType.IDENTIFIER: ("integer", ()),
        SemanticType.STRING: ("text", ()),
        SemanticType.TEXT: ("text", ()),
        SemanticType.INTEGER: ("integer", ()),
        SemanticType.BOOLEAN: ("integer", ("mode: 'boolean'",)),
        SemanticType.TIMESTAMP: ("integer", ("mode: 'timestamp'",)),
        SemanticType.JSON: ("text", ("mode: 'json'",)),
    },
}

# Builders for auto-increment keys
_AUTO_INCREMENT_BUILDERS: Dict[Dialect, str] = {
    Dialect.POSTGRESQL: "serial",
    Dialect.MYSQL: "int",
    Dialect.SQLITE: "integer",
}

# Builders for columns referencing an auto-increment key
_REFERENCE_BUILDERS: Dict[Dialect, str] = {
    Dialect.POSTGRESQL: "integer",
    Dialect.MYSQL: "int",
    Dialect.SQLITE: "integer",
}

# mysql varchar requires a length
MYSQL_DEFAULT_VARCHAR_LENGTH = 255


class DrizzleTypeMapper:
    """Maps fields to drizzle column builders and chain markers for one dialect."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect
        self.module = DIALECT_MODULES[dialect]
        self._type_map = _TYPE_MAPS[dialect]

    def map_field(
        self,
        table_field: FieldDefinition,
        table_name: str = "",
        target: Optional[FieldDefinition] = None,
    ) -> DrizzleColumn:
        """
        Map a field to its column builder.

        `target` is the field a foreign key references. A reference to an
        auto-increment key is a plain integer column.

        Raises:
            UnsupportedFieldType: If the type has no builder in this dialect
        """
        strategy = field_primary_key_strategy(table_field, self.dialect)
        if strategy == PrimaryKeyStrategy.AUTO_INCREMENT:
            return DrizzleColumn(_AUTO_INCREMENT_BUILDERS[self.dialect])
        if target is not None and is_server_generated(target, self.dialect):
            return DrizzleColumn(_REFERENCE_BUILDERS[self.dialect])

        entry = self._type_map.get(table_field.semantic_type)
        if entry is None:
            raise UnsupportedFieldType(
                table_field.semantic_type,
                "drizzle",
                self.dialect,
                table_name,
                table_field.name,
            )

        builder, options = entry
        length = table_field.length
        if (
            length is None
            and self.dialect == Dialect.MYSQL
            and table_field.semantic_type == SemanticType.STRING
        ):
            length = MYSQL_DEFAULT_VARCHAR_LENGTH
        if length is not None:
            options = (f"length: {length}",) + options

        return DrizzleColumn(builder, options)

    def primary_key_marker(self, table_field: FieldDefinition) -> Optional[str]:
        """Chain marker for primary keys, None for other fields."""
        if not table_field.is_primary_key:
            return None

        strategy = field_primary_key_strategy(table_field, self.dialect)
        if strategy == PrimaryKeyStrategy.AUTO_INCREMENT:
            if self.dialect == Dialect.SQLITE:
                return ".primaryKey({ autoIncrement: true })"
            if self.dialect == Dialect.MYSQL:
                return ".primaryKey().autoincrement()"
        return ".primaryKey()"

    def key_generator(self, table_field: FieldDefinition) -> Optional[str]:
        """Client-side value generator for random identifier keys."""
        strategy = field_primary_key_strategy(table_field, self.dialect)
        if strategy == PrimaryKeyStrategy.RANDOM_UUID:
            return ".$defaultFn(() => crypto.randomUUID())"
        return None

    def now_default(self) -> str:
        """Current-timestamp default for this dialect."""
        if self.dialect == Dialect.SQLITE:
            return ".$defaultFn(() => new Date())"
        return ".defaultNow()"

    def get_all_imports(self, columns: Iterable[DrizzleColumn]) -> Set[str]:
        """Union of builder imports for the given columns."""
        imports: Set[str] = set()
        for column in columns:
            imports.update(column.imports_needed)
        return imports


def ordered_imports(table_function: Optional[str], names: Iterable[str]) -> List[str]:
    """Table function first, then the remaining names sorted."""
    rest = sorted(set(names) - {table_function})
    return ([table_function] if table_function else []) + rest
