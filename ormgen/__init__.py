"""ormgen - multi-backend ORM schema generator.

Resolves a selection of catalog tables over their foreign keys and
renders it as a drizzle, prisma or kysely schema.
"""

__version__ = "0.1.0"

from .codegen import generate_schema, get_generator, list_supported_backends

__all__ = ["__version__", "generate_schema", "get_generator", "list_supported_backends"]
