"""
Relative path hints for generated artifacts.
"""

import posixpath
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ResolvedPaths:
    """Where each artifact should live, relative to the project root."""

    client_dir: str
    client_file: str
    schema_dir: str
    schema_file: str
    migrate_file: str
    config_file: str = "drizzle.config.ts"
    migrations_dir: str = "drizzle/migrations"
    prisma_schema_file: str = "prisma/schema.prisma"
    prisma_seed_file: str = "prisma/seed.ts"

    @property
    def prisma_client_file(self) -> str:
        return posixpath.join(self.client_dir, "prisma.ts")


def resolve_paths(
    src_dir: Optional[str] = None, custom_path: Optional[str] = None
) -> ResolvedPaths:
    """
    Compute artifact paths.

    Args:
        src_dir: Source directory of the project (e.g. "src"), if any
        custom_path: Explicit directory for the client and schema files

    Returns:
        ResolvedPaths
    """
    if custom_path:
        base = custom_path.strip("/") or "."
    elif src_dir:
        base = posixpath.join(src_dir.strip("/"), "lib")
    else:
        base = "lib"

    schema_dir = posixpath.join(base, "db")
    return ResolvedPaths(
        client_dir=base,
        client_file=posixpath.join(base, "db.ts"),
        schema_dir=schema_dir,
        schema_file=posixpath.join(schema_dir, "schema.ts"),
        migrate_file=posixpath.join(schema_dir, "migrate.ts"),
    )


def relative_import(from_file: str, to_file: str) -> str:
    """
    Module specifier for importing `to_file` from `from_file`.

    The extension is dropped and a leading "./" is added for siblings,
    e.g. ("lib/db.ts", "lib/db/schema.ts") -> "./db/schema".
    """
    target = posixpath.splitext(to_file)[0]
    relative = posixpath.relpath(target, posixpath.dirname(from_file) or ".")
    if relative == ".":
        # "lib/db/migrate.ts" importing "lib/db.ts"
        relative = posixpath.join("..", posixpath.basename(target))
    elif not relative.startswith("."):
        relative = "./" + relative
    return relative


def relative_dir(from_file: str, to_dir: str) -> str:
    """Directory path of `to_dir` relative to the directory of `from_file`."""
    return posixpath.relpath(to_dir, posixpath.dirname(from_file) or ".")
