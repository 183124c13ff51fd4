"""
Declaration-level intermediate representation.

Emitters turn every field into a list of render tokens tagged with the
part of the declaration they belong to. Tokens are sorted into the
canonical order before being joined, so backend code can produce them
in whatever order is convenient.

Also holds the derived type projections (record, insertable,
updatable) as pure functions over a table's field list.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .dialects import Dialect, PrimaryKeyStrategy, primary_key_strategy
from .schema import FieldDefinition, SemanticType, TableDefinition


class FieldPart(IntEnum):
    """Declaration sub-parts in canonical render order."""

    BASE_TYPE = 1
    LENGTH = 2
    PRIMARY_KEY = 3
    NOT_NULL = 4
    UNIQUE = 5
    DEFAULT = 6
    REFERENCE = 7
    # Storage mapping attributes (prisma @map) go last
    STORAGE = 8


@dataclass(frozen=True)
class FieldToken:
    """One rendered fragment of a field declaration."""

    part: FieldPart
    text: str


@dataclass(frozen=True)
class FieldDeclaration:
    """A field plus its ordered render tokens."""

    field: FieldDefinition
    key: str
    tokens: Tuple[FieldToken, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "tokens", order_tokens(self.tokens))

    def texts(self, part: Optional[FieldPart] = None) -> List[str]:
        """Token texts, optionally restricted to one part."""
        return [t.text for t in self.tokens if part is None or t.part == part]

    def render(self, separator: str = "") -> str:
        return separator.join(self.texts())


def order_tokens(tokens: Iterable[FieldToken]) -> Tuple[FieldToken, ...]:
    """
    Sort tokens into canonical order.

    The sort is stable, so tokens of the same part keep their relative
    order.
    """
    return tuple(sorted(tokens, key=lambda token: token.part))


@dataclass(frozen=True)
class TableDeclaration:
    """Ordered field declarations of one table."""

    table_name: str
    type_name: str
    fields: Tuple[FieldDeclaration, ...]


def field_primary_key_strategy(
    table_field: FieldDefinition, dialect: Dialect
) -> Optional[PrimaryKeyStrategy]:
    """
    How the value of a primary key field is generated.

    Explicit auto-increment wins; identifier keys follow the dialect.
    Other primary keys are supplied by the caller (None).
    """
    if not table_field.is_primary_key:
        return None
    if table_field.is_auto_increment:
        return PrimaryKeyStrategy.AUTO_INCREMENT
    if table_field.semantic_type == SemanticType.IDENTIFIER:
        return primary_key_strategy(dialect)
    return None


def is_server_generated(table_field: FieldDefinition, dialect: Dialect) -> bool:
    """True for keys the database assigns on insert."""
    return (
        field_primary_key_strategy(table_field, dialect)
        == PrimaryKeyStrategy.AUTO_INCREMENT
    )


def reference_target(
    table_field: FieldDefinition, tables: Mapping[str, TableDefinition]
) -> Optional[FieldDefinition]:
    """
    The field a foreign key points at.

    Returns None for plain fields and for targets outside `tables`.
    """
    fk = table_field.foreign_key
    if fk is None:
        return None
    target_table = tables.get(fk.target_table)
    if target_table is None:
        return None
    return target_table.get_field(fk.target_field)


# ============================================
# Derived type projections
# ============================================


@dataclass(frozen=True)
class ProjectedField:
    """A field as seen through one projection."""

    field: FieldDefinition
    optional: bool = False


def record_projection(fields: Sequence[FieldDefinition]) -> List[ProjectedField]:
    """Full row shape: every field, none optional."""
    return [ProjectedField(f) for f in fields]


def insertable_projection(
    fields: Sequence[FieldDefinition], dialect: Dialect
) -> List[ProjectedField]:
    """
    Insert shape: server-generated keys are omitted, nullable and
    defaulted fields become optional.
    """
    return [
        ProjectedField(f, optional=not f.is_required or f.has_default)
        for f in fields
        if not is_server_generated(f, dialect)
    ]


def updatable_projection(fields: Sequence[FieldDefinition]) -> List[ProjectedField]:
    """Update shape: every field optional."""
    return [ProjectedField(f, optional=True) for f in fields]
