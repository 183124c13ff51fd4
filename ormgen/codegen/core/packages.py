"""
npm packages and package.json scripts each backend needs at runtime.

Pure data for a dependency installer; nothing here installs anything.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

from .dialects import Dialect, parse_dialect


@dataclass(frozen=True)
class RuntimePackages:
    """Dependencies and dev dependencies for one backend and dialect."""

    dependencies: Tuple[str, ...] = field(default_factory=tuple)
    dev_dependencies: Tuple[str, ...] = field(default_factory=tuple)


_DRIVERS: Dict[Dialect, str] = {
    Dialect.POSTGRESQL: "postgres",
    Dialect.MYSQL: "mysql2",
    Dialect.SQLITE: "better-sqlite3",
}

# kysely's PostgresDialect takes a node-postgres pool
_KYSELY_DRIVERS: Dict[Dialect, str] = {
    Dialect.POSTGRESQL: "pg",
    Dialect.MYSQL: "mysql2",
    Dialect.SQLITE: "better-sqlite3",
}

_KYSELY_TYPES: Dict[Dialect, Tuple[str, ...]] = {
    Dialect.POSTGRESQL: ("@types/pg",),
    Dialect.SQLITE: ("@types/better-sqlite3",),
}

_SCRIPTS: Dict[str, Dict[str, str]] = {
    "drizzle": {
        "db:generate": "drizzle-kit generate",
        "db:migrate": "drizzle-kit migrate",
        "db:push": "drizzle-kit push",
        "db:studio": "drizzle-kit studio",
    },
    "prisma": {
        "db:generate": "prisma generate",
        "db:push": "prisma db push",
        "db:migrate": "prisma migrate dev",
        "db:studio": "prisma studio",
        "db:seed": "tsx prisma/seed.ts",
    },
    "kysely": {
        "db:migrate": "tsx {migrate_file}",
    },
}


def runtime_packages(backend: str, dialect: Union[str, Dialect]) -> RuntimePackages:
    """
    Packages a project needs for a backend and dialect.

    Raises:
        ValueError: If the backend is unknown
    """
    dialect = parse_dialect(dialect)
    backend = backend.lower()

    if backend in ("drizzle", "drizzle-orm"):
        return RuntimePackages(("drizzle-orm", _DRIVERS[dialect]), ("drizzle-kit",))
    if backend == "prisma":
        return RuntimePackages(("@prisma/client",), ("prisma",))
    if backend == "kysely":
        return RuntimePackages(
            ("kysely", _KYSELY_DRIVERS[dialect]),
            _KYSELY_TYPES.get(dialect, ()),
        )

    raise ValueError(f"Unknown backend: {backend}")


def package_scripts(backend: str, migrate_file: str = "lib/db/migrate.ts") -> Dict[str, str]:
    """package.json scripts for a backend."""
    backend = "drizzle" if backend.lower() == "drizzle-orm" else backend.lower()
    if backend not in _SCRIPTS:
        raise ValueError(f"Unknown backend: {backend}")
    return {
        name: command.format(migrate_file=migrate_file)
        for name, command in _SCRIPTS[backend].items()
    }
