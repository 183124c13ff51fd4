"""
SQL dialects supported by the backends.
"""

from enum import Enum
from typing import Optional, Union


class Dialect(Enum):
    """Target database dialect."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class PrimaryKeyStrategy(Enum):
    """How primary key values are generated."""

    AUTO_INCREMENT = "auto-increment"
    RANDOM_UUID = "random-uuid"


DEFAULT_DIALECT = Dialect.POSTGRESQL

_DIALECT_ALIASES = {
    "postgresql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "pg": Dialect.POSTGRESQL,
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "sqlite": Dialect.SQLITE,
    "libsql": Dialect.SQLITE,
}


def parse_dialect(value: Union[str, Dialect, None]) -> Dialect:
    """Parse a dialect name, falling back to the default for None."""
    if value is None:
        return DEFAULT_DIALECT
    if isinstance(value, Dialect):
        return value

    key = str(value).strip().lower()
    if key not in _DIALECT_ALIASES:
        valid = ", ".join(d.value for d in Dialect)
        raise ValueError(f"Unknown dialect '{value}'. Valid dialects: {valid}")
    return _DIALECT_ALIASES[key]


def detect_dialect(database_url: Optional[str]) -> Optional[Dialect]:
    """
    Guess the dialect from a connection URL.

    Returns None when the URL is empty or not recognized.
    """
    if not database_url:
        return None

    url = database_url.strip().lower()
    if url.startswith(("postgres://", "postgresql://")):
        return Dialect.POSTGRESQL
    if url.startswith(("mysql://", "mariadb://")):
        return Dialect.MYSQL
    if url.startswith(("file:", "sqlite:", "libsql:")) or url.endswith(
        (".db", ".sqlite", ".sqlite3")
    ):
        return Dialect.SQLITE
    return None


def primary_key_strategy(dialect: Dialect) -> PrimaryKeyStrategy:
    """Identifier primary keys are integers on sqlite and UUIDs elsewhere."""
    if dialect == Dialect.SQLITE:
        return PrimaryKeyStrategy.AUTO_INCREMENT
    return PrimaryKeyStrategy.RANDOM_UUID
