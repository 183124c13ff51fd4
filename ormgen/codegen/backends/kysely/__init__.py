"""
Kysely backend.

Generates typed `Database` interfaces with record, insertable and
updatable projections, a client and a migrate script.
"""

from .generator import KyselyGenerator
from .types import KyselyTypeMapper

__all__ = ["KyselyGenerator", "KyselyTypeMapper", "create_generator"]


def create_generator(**kwargs) -> KyselyGenerator:
    """Create a kysely generator from configuration overrides."""
    return KyselyGenerator(kwargs or None)
