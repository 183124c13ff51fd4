"""
Prisma backend.

Generates schema.prisma models with relation fields, a client
singleton and an optional seed script.
"""

from .generator import ModelField, PrismaGenerator, PrismaModel
from .types import PRISMA_ON_DELETE, PrismaType, PrismaTypeMapper

__all__ = [
    "PrismaGenerator",
    "PrismaModel",
    "ModelField",
    "PrismaType",
    "PrismaTypeMapper",
    "PRISMA_ON_DELETE",
    "create_generator",
]


def create_generator(**kwargs) -> PrismaGenerator:
    """
    Create a prisma generator.

    Args:
        **kwargs: Configuration overrides (dialect, include_seed, ...)

    Returns:
        Configured PrismaGenerator instance
    """
    return PrismaGenerator(kwargs or None)
