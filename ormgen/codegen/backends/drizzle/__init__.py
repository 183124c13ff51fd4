"""
Drizzle backend.

Generates drizzle-orm table schemas, relations, client, drizzle-kit
config and migrate script.
"""

from .generator import DrizzleGenerator
from .types import DIALECT_MODULES, DrizzleColumn, DrizzleTypeMapper

__all__ = [
    "DrizzleGenerator",
    "DrizzleColumn",
    "DrizzleTypeMapper",
    "DIALECT_MODULES",
    "create_generator",
]


def create_generator(**kwargs) -> DrizzleGenerator:
    """
    Create a drizzle generator.

    Args:
        **kwargs: Configuration overrides (dialect, column_case, src_dir, ...)

    Returns:
        Configured DrizzleGenerator instance
    """
    return DrizzleGenerator(kwargs or None)
