"""
Core table model for code generation.

Backend-agnostic description of relational tables that every
backend emitter consumes. All values are immutable once built.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union, Any
from enum import Enum


class SemanticType(Enum):
    """Abstract field types shared by all backends."""

    IDENTIFIER = "identifier"
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    JSON = "json"


class OnDelete(Enum):
    """Referential actions for foreign keys."""

    CASCADE = "cascade"
    SET_NULL = "set-null"
    RESTRICT = "restrict"


class RelationKind(Enum):
    """Kinds of table relations."""

    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


# Reserved default token meaning "current timestamp"
NOW = "now"

DefaultValue = Union[str, int, float, bool]

# Table, field and relation names become source identifiers in every backend
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class InvalidTableDefinition(ValueError):
    """Raised when a table or field definition breaks a model invariant."""

    pass


@dataclass(frozen=True)
class ForeignKey:
    """Reference from a field to a field of another (or the same) table."""

    target_table: str
    target_field: str = "id"
    on_delete: Optional[OnDelete] = None


@dataclass(frozen=True)
class Relation:
    """Named association between two tables."""

    kind: RelationKind
    target_table: str
    field_name: str


@dataclass(frozen=True)
class FieldDefinition:
    """One column of a table."""

    name: str
    semantic_type: SemanticType
    required: bool = False
    unique: bool = False
    is_primary_key: bool = False
    is_auto_increment: bool = False
    length: Optional[int] = None
    default: Optional[DefaultValue] = None
    foreign_key: Optional[ForeignKey] = None

    def __post_init__(self):
        if not self.name:
            raise InvalidTableDefinition("Field name cannot be empty")

        if not IDENTIFIER_PATTERN.match(self.name):
            raise InvalidTableDefinition(
                f"Field name '{self.name}' is not a valid identifier"
            )

        if self.length is not None and self.semantic_type != SemanticType.STRING:
            raise InvalidTableDefinition(
                f"Field '{self.name}': length is only allowed on string fields"
            )

        if self.length is not None and self.length <= 0:
            raise InvalidTableDefinition(
                f"Field '{self.name}': length must be positive, got {self.length}"
            )

        if self.default_is_now and self.semantic_type != SemanticType.TIMESTAMP:
            raise InvalidTableDefinition(
                f"Field '{self.name}': default 'now' requires a timestamp field"
            )

        if isinstance(self.default, float) and not math.isfinite(self.default):
            raise InvalidTableDefinition(
                f"Field '{self.name}': default must be a finite number, got {self.default!r}"
            )

    @property
    def is_required(self) -> bool:
        """Primary keys are always required, whatever `required` says."""
        return self.required or self.is_primary_key

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def default_is_now(self) -> bool:
        return isinstance(self.default, str) and self.default == NOW


@dataclass(frozen=True)
class TableDefinition:
    """One entity: storage name, display name, ordered fields and relations."""

    name: str
    display_name: str
    fields: Tuple[FieldDefinition, ...] = field(default_factory=tuple)
    relations: Tuple[Relation, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "relations", tuple(self.relations))

        if not self.name:
            raise InvalidTableDefinition("Table name cannot be empty")

        if not IDENTIFIER_PATTERN.match(self.name):
            raise InvalidTableDefinition(
                f"Table name '{self.name}' is not a valid identifier"
            )

        for relation in self.relations:
            if not IDENTIFIER_PATTERN.match(relation.field_name or ""):
                raise InvalidTableDefinition(
                    f"Table '{self.name}': relation name '{relation.field_name}' "
                    "is not a valid identifier"
                )

        seen = set()
        for table_field in self.fields:
            if table_field.name in seen:
                raise InvalidTableDefinition(
                    f"Table '{self.name}' has duplicate field '{table_field.name}'"
                )
            seen.add(table_field.name)

        primary_keys = [f.name for f in self.fields if f.is_primary_key]
        if len(primary_keys) != 1:
            raise InvalidTableDefinition(
                f"Table '{self.name}' must have exactly one primary key, "
                f"found {len(primary_keys)}"
            )

    @property
    def primary_key(self) -> FieldDefinition:
        """The single primary key field."""
        for table_field in self.fields:
            if table_field.is_primary_key:
                return table_field
        raise InvalidTableDefinition(f"Table '{self.name}' has no primary key")

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        """Get field by name."""
        for table_field in self.fields:
            if table_field.name == name:
                return table_field
        return None

    def foreign_key_fields(self) -> List[FieldDefinition]:
        """Fields carrying a foreign key, in declaration order."""
        return [f for f in self.fields if f.foreign_key is not None]

    def referenced_tables(self) -> List[str]:
        """Distinct foreign key targets in field order."""
        targets = []
        for table_field in self.foreign_key_fields():
            target = table_field.foreign_key.target_table
            if target not in targets:
                targets.append(target)
        return targets


# Legacy type names used by older definition files
_TYPE_ALIASES = {
    "uuid": SemanticType.IDENTIFIER,
    "number": SemanticType.INTEGER,
    "date": SemanticType.TIMESTAMP,
}


def parse_semantic_type(value: Union[str, SemanticType]) -> SemanticType:
    """Map a type name (or legacy alias) to a SemanticType."""
    if isinstance(value, SemanticType):
        return value

    key = str(value).strip().lower()
    if key in _TYPE_ALIASES:
        return _TYPE_ALIASES[key]

    try:
        return SemanticType(key)
    except ValueError:
        valid = ", ".join(t.value for t in SemanticType)
        raise InvalidTableDefinition(
            f"Unknown field type '{value}'. Valid types: {valid}"
        )


def parse_on_delete(value: Optional[str]) -> Optional[OnDelete]:
    """Parse an on-delete action; accepts 'set null' and 'set-null'."""
    if value is None:
        return None
    key = str(value).strip().lower().replace(" ", "-").replace("_", "-")
    try:
        return OnDelete(key)
    except ValueError:
        raise InvalidTableDefinition(f"Unknown onDelete action: {value}")


def field_from_dict(data: Dict[str, Any]) -> FieldDefinition:
    """
    Build a FieldDefinition from a JSON-style dictionary.

    Both snake_case keys and the camelCase keys of older definition
    files are accepted.

    Args:
        data: Field dictionary

    Returns:
        FieldDefinition
    """
    if "name" not in data or ("type" not in data and "semantic_type" not in data):
        raise InvalidTableDefinition(f"Field requires 'name' and 'type': {data}")

    raw_fk = data.get("foreign_key") or data.get("foreignKey") or data.get("references")
    foreign_key = None
    if raw_fk:
        foreign_key = ForeignKey(
            target_table=raw_fk.get("target_table")
            or raw_fk.get("targetTable")
            or raw_fk.get("table"),
            target_field=raw_fk.get("target_field")
            or raw_fk.get("targetField")
            or raw_fk.get("field")
            or "id",
            on_delete=parse_on_delete(
                raw_fk.get("on_delete", raw_fk.get("onDelete"))
            ),
        )
        if not foreign_key.target_table:
            raise InvalidTableDefinition(
                f"Field '{data['name']}': foreign key needs a target table"
            )

    return FieldDefinition(
        name=data["name"],
        semantic_type=parse_semantic_type(data.get("type", data.get("semantic_type"))),
        required=bool(data.get("required", False)),
        unique=bool(data.get("unique", False)),
        is_primary_key=bool(data.get("is_primary_key", data.get("isPrimaryKey", False))),
        is_auto_increment=bool(
            data.get("is_auto_increment", data.get("isAutoIncrement", False))
        ),
        length=data.get("length"),
        default=data.get("default", data.get("defaultValue")),
        foreign_key=foreign_key,
    )


def table_from_dict(data: Dict[str, Any]) -> TableDefinition:
    """
    Build a TableDefinition from a JSON-style dictionary.

    Args:
        data: Table dictionary with name, displayName, fields and relations

    Returns:
        TableDefinition
    """
    if "name" not in data:
        raise InvalidTableDefinition(f"Table definition requires 'name': {data}")

    name = data["name"]
    display_name = data.get("display_name") or data.get("displayName") or name

    relations = []
    for raw in data.get("relations", []) or []:
        kind_value = raw.get("kind", raw.get("type"))
        try:
            kind = RelationKind(kind_value)
        except ValueError as e:
            raise InvalidTableDefinition(
                f"Table '{name}': unknown relation kind '{kind_value}'"
            ) from e
        relations.append(
            Relation(
                kind=kind,
                target_table=raw.get("target_table")
                or raw.get("targetTable")
                or raw.get("toTable"),
                field_name=raw.get("field_name") or raw.get("fieldName"),
            )
        )

    return TableDefinition(
        name=name,
        display_name=display_name,
        fields=tuple(field_from_dict(f) for f in data.get("fields", [])),
        relations=tuple(relations),
    )


def tables_from_data(data: Any) -> List[TableDefinition]:
    """
    Convert loaded JSON into table definitions.

    Accepts a list of tables, a single table, or an object with a
    top-level "tables" list.
    """
    if isinstance(data, dict) and "tables" in data:
        data = data["tables"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise InvalidTableDefinition(
            f"Expected a list of table definitions, got {type(data).__name__}"
        )
    return [table_from_dict(item) for item in data]
