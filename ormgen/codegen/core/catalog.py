"""
Schema catalog and preset bundles.

The catalog is an immutable collection of table definitions plus named
presets (ordered lists of table names). A default catalog with the
built-in tables is constructed once at import time and passed
explicitly to the resolver and emitters.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .schema import (
    FieldDefinition,
    ForeignKey,
    OnDelete,
    Relation,
    RelationKind,
    SemanticType,
    TableDefinition,
    NOW,
)


class CatalogError(Exception):
    """Base exception for catalog lookups and merges."""

    pass


class UnknownTableReference(CatalogError):
    """A requested or referenced table is not in the catalog."""

    def __init__(self, table_name: str, referenced_by: Optional[str] = None):
        self.table_name = table_name
        self.referenced_by = referenced_by
        message = f"Unknown table reference: '{table_name}'"
        if referenced_by:
            message += f" (referenced by '{referenced_by}')"
        super().__init__(message)


class DuplicateTableName(CatalogError):
    """Two table definitions share the same name."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Duplicate table name: '{table_name}'")


class UnknownPreset(CatalogError):
    """No preset with the given identifier exists."""

    def __init__(self, preset_id: str, available: Sequence[str] = ()):
        self.preset_id = preset_id
        message = f"Unknown preset: '{preset_id}'"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message)


@dataclass(frozen=True)
class Preset:
    """A named bundle of table names."""

    id: str
    name: str
    description: str
    icon: str = ""
    table_names: Tuple[str, ...] = field(default_factory=tuple)
    # Custom presets take their table list from the caller
    is_custom: bool = False


class SchemaCatalog:
    """Read-only collection of table definitions and presets."""

    def __init__(
        self,
        tables: Iterable[TableDefinition],
        presets: Iterable[Preset] = (),
    ):
        """
        Build a catalog.

        Args:
            tables: Table definitions, names must be unique
            presets: Preset bundles referencing tables in this catalog

        Raises:
            DuplicateTableName: If two tables share a name
            UnknownTableReference: If a preset names a missing table
        """
        table_map: Dict[str, TableDefinition] = {}
        for table in tables:
            if table.name in table_map:
                raise DuplicateTableName(table.name)
            table_map[table.name] = table

        preset_map: Dict[str, Preset] = {}
        for preset in presets:
            for name in preset.table_names:
                if name not in table_map:
                    raise UnknownTableReference(name, referenced_by=preset.id)
            preset_map[preset.id] = preset

        self._tables = MappingProxyType(table_map)
        self._presets = MappingProxyType(preset_map)

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def get(self, name: str) -> TableDefinition:
        """
        Get a table by name.

        Raises:
            UnknownTableReference: If the table is not in the catalog
        """
        try:
            return self._tables[name]
        except KeyError:
            raise UnknownTableReference(name) from None

    def table_names(self) -> Tuple[str, ...]:
        return tuple(self._tables.keys())

    def tables(self) -> Tuple[TableDefinition, ...]:
        return tuple(self._tables.values())

    def presets(self) -> Tuple[Preset, ...]:
        return tuple(self._presets.values())

    def get_preset(self, preset_id: str) -> Preset:
        """
        Get a preset by identifier.

        Raises:
            UnknownPreset: If no preset has this id
        """
        try:
            return self._presets[preset_id.lower()]
        except KeyError:
            raise UnknownPreset(preset_id, list(self._presets.keys())) from None

    def with_tables(self, custom_tables: Iterable[TableDefinition]) -> "SchemaCatalog":
        """
        Return a new catalog with extra table definitions merged in.

        The receiver is left untouched.

        Raises:
            DuplicateTableName: If a custom table collides with an existing one
        """
        return SchemaCatalog(
            list(self._tables.values()) + list(custom_tables),
            self._presets.values(),
        )


def preset_table_names(catalog: SchemaCatalog, preset_id: str) -> List[str]:
    """Resolve a preset identifier to its ordered table names."""
    return list(catalog.get_preset(preset_id).table_names)


def select_tables(
    catalog: SchemaCatalog,
    preset: Optional[str] = None,
    table_names: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Turn a preset id or an explicit table list into requested names.

    A custom selection (no preset, or the "custom" preset) uses
    `table_names` verbatim and bypasses preset lookup entirely.

    Args:
        catalog: Catalog providing the presets
        preset: Preset identifier
        table_names: Caller-supplied ordered table names

    Returns:
        Ordered list of requested table names (not yet resolved)
    """
    if preset is None:
        return list(table_names or [])

    selected = catalog.get_preset(preset)
    if selected.is_custom:
        return list(table_names or [])

    if table_names:
        raise CatalogError(
            f"Preset '{preset}' has a fixed table list; "
            "use the 'custom' preset to pick tables"
        )

    return list(selected.table_names)


# ============================================
# Built-in tables
# ============================================


def _pk() -> FieldDefinition:
    return FieldDefinition("id", SemanticType.IDENTIFIER, is_primary_key=True)


def _timestamp(name: str) -> FieldDefinition:
    return FieldDefinition(name, SemanticType.TIMESTAMP, default=NOW)


def _references(table: str, on_delete: Optional[OnDelete] = None) -> ForeignKey:
    return ForeignKey(target_table=table, target_field="id", on_delete=on_delete)


USERS = TableDefinition(
    name="users",
    display_name="User",
    fields=(
        _pk(),
        FieldDefinition(
            "email", SemanticType.STRING, required=True, unique=True, length=255
        ),
        FieldDefinition("name", SemanticType.STRING, length=255),
        FieldDefinition("emailVerified", SemanticType.TIMESTAMP),
        FieldDefinition("image", SemanticType.STRING, length=500),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
    relations=(
        Relation(RelationKind.ONE_TO_MANY, "posts", "posts"),
        Relation(RelationKind.ONE_TO_MANY, "comments", "comments"),
        Relation(RelationKind.ONE_TO_MANY, "orders", "orders"),
    ),
)

POSTS = TableDefinition(
    name="posts",
    display_name="Post",
    fields=(
        _pk(),
        FieldDefinition("title", SemanticType.STRING, required=True, length=255),
        FieldDefinition(
            "slug", SemanticType.STRING, required=True, unique=True, length=255
        ),
        FieldDefinition("content", SemanticType.TEXT),
        FieldDefinition("excerpt", SemanticType.STRING, length=500),
        FieldDefinition("published", SemanticType.BOOLEAN, default=False),
        FieldDefinition("publishedAt", SemanticType.TIMESTAMP),
        FieldDefinition(
            "authorId",
            SemanticType.IDENTIFIER,
            required=True,
            foreign_key=_references("users", OnDelete.CASCADE),
        ),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
    relations=(
        Relation(RelationKind.MANY_TO_ONE, "users", "author"),
        Relation(RelationKind.ONE_TO_MANY, "comments", "comments"),
    ),
)

COMMENTS = TableDefinition(
    name="comments",
    display_name="Comment",
    fields=(
        _pk(),
        FieldDefinition("content", SemanticType.TEXT, required=True),
        FieldDefinition(
            "postId",
            SemanticType.IDENTIFIER,
            required=True,
            foreign_key=_references("posts", OnDelete.CASCADE),
        ),
        FieldDefinition(
            "authorId",
            SemanticType.IDENTIFIER,
            required=True,
            foreign_key=_references("users", OnDelete.CASCADE),
        ),
        FieldDefinition(
            "parentId",
            SemanticType.IDENTIFIER,
            foreign_key=_references("comments", OnDelete.CASCADE),
        ),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
    relations=(
        Relation(RelationKind.MANY_TO_ONE, "posts", "post"),
        Relation(RelationKind.MANY_TO_ONE, "users", "author"),
    ),
)

CATEGORIES = TableDefinition(
    name="categories",
    display_name="Category",
    fields=(
        _pk(),
        FieldDefinition(
            "name", SemanticType.STRING, required=True, unique=True, length=100
        ),
        FieldDefinition(
            "slug", SemanticType.STRING, required=True, unique=True, length=100
        ),
        FieldDefinition("description", SemanticType.TEXT),
        _timestamp("createdAt"),
    ),
)

TAGS = TableDefinition(
    name="tags",
    display_name="Tag",
    fields=(
        _pk(),
        FieldDefinition(
            "name", SemanticType.STRING, required=True, unique=True, length=50
        ),
        FieldDefinition(
            "slug", SemanticType.STRING, required=True, unique=True, length=50
        ),
        _timestamp("createdAt"),
    ),
)

PRODUCTS = TableDefinition(
    name="products",
    display_name="Product",
    fields=(
        _pk(),
        FieldDefinition("name", SemanticType.STRING, required=True, length=255),
        FieldDefinition(
            "slug", SemanticType.STRING, required=True, unique=True, length=255
        ),
        FieldDefinition("description", SemanticType.TEXT),
        # Prices are stored in cents
        FieldDefinition("price", SemanticType.INTEGER, required=True),
        FieldDefinition("compareAtPrice", SemanticType.INTEGER),
        FieldDefinition("inventory", SemanticType.INTEGER, default=0),
        FieldDefinition("images", SemanticType.JSON),
        FieldDefinition("published", SemanticType.BOOLEAN, default=False),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
)

ORDERS = TableDefinition(
    name="orders",
    display_name="Order",
    fields=(
        _pk(),
        FieldDefinition(
            "orderNumber", SemanticType.STRING, required=True, unique=True, length=20
        ),
        FieldDefinition(
            "userId",
            SemanticType.IDENTIFIER,
            required=True,
            foreign_key=_references("users"),
        ),
        FieldDefinition(
            "status", SemanticType.STRING, required=True, default="pending", length=50
        ),
        FieldDefinition("total", SemanticType.INTEGER, required=True),
        FieldDefinition("subtotal", SemanticType.INTEGER, required=True),
        FieldDefinition("tax", SemanticType.INTEGER, default=0),
        FieldDefinition("shipping", SemanticType.INTEGER, default=0),
        FieldDefinition("shippingAddress", SemanticType.JSON),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
    relations=(Relation(RelationKind.MANY_TO_ONE, "users", "user"),),
)

ORGANIZATIONS = TableDefinition(
    name="organizations",
    display_name="Organization",
    fields=(
        _pk(),
        FieldDefinition("name", SemanticType.STRING, required=True, length=255),
        FieldDefinition(
            "slug", SemanticType.STRING, required=True, unique=True, length=255
        ),
        FieldDefinition("logo", SemanticType.STRING, length=500),
        FieldDefinition("plan", SemanticType.STRING, default="free", length=50),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
    relations=(
        Relation(RelationKind.ONE_TO_MANY, "subscriptions", "subscriptions"),
    ),
)

SUBSCRIPTIONS = TableDefinition(
    name="subscriptions",
    display_name="Subscription",
    fields=(
        _pk(),
        FieldDefinition(
            "organizationId",
            SemanticType.IDENTIFIER,
            required=True,
            foreign_key=_references("organizations", OnDelete.CASCADE),
        ),
        FieldDefinition("plan", SemanticType.STRING, required=True, length=50),
        FieldDefinition(
            "status", SemanticType.STRING, required=True, default="active", length=50
        ),
        FieldDefinition("currentPeriodStart", SemanticType.TIMESTAMP, required=True),
        FieldDefinition("currentPeriodEnd", SemanticType.TIMESTAMP, required=True),
        FieldDefinition("cancelAtPeriodEnd", SemanticType.BOOLEAN, default=False),
        FieldDefinition(
            "stripeSubscriptionId", SemanticType.STRING, unique=True, length=255
        ),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
    relations=(
        Relation(RelationKind.MANY_TO_ONE, "organizations", "organization"),
    ),
)

BUILTIN_TABLES: Tuple[TableDefinition, ...] = (
    USERS,
    POSTS,
    COMMENTS,
    CATEGORIES,
    TAGS,
    PRODUCTS,
    ORDERS,
    ORGANIZATIONS,
    SUBSCRIPTIONS,
)

BUILTIN_PRESETS: Tuple[Preset, ...] = (
    Preset("starter", "Starter", "Just the basics - User table only", "📦", ("users",)),
    Preset(
        "blog",
        "Blog",
        "User, Post, Comment, Category, Tag",
        "🚀",
        ("users", "posts", "comments", "categories", "tags"),
    ),
    Preset(
        "ecommerce",
        "E-commerce",
        "Users, Products and Orders",
        "🛒",
        ("users", "products", "orders"),
    ),
    Preset(
        "saas",
        "SaaS",
        "Multi-tenant with Organizations & Subscriptions",
        "💼",
        ("users", "organizations", "subscriptions"),
    ),
    Preset("custom", "Custom", "Pick specific tables you need", "🎯", is_custom=True),
    Preset("empty", "Empty", "No tables, start from scratch", "❌"),
)

DEFAULT_CATALOG = SchemaCatalog(BUILTIN_TABLES, BUILTIN_PRESETS)


def get_default_catalog() -> SchemaCatalog:
    """Get the built-in catalog."""
    return DEFAULT_CATALOG
