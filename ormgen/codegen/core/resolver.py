"""
Dependency resolution for requested tables.

Expands a list of requested table names into the full set of tables
needed to satisfy every foreign key, ordered so that referenced tables
come before the tables that reference them.
"""

from enum import Enum
from typing import Dict, Iterable, List, Tuple

from .catalog import SchemaCatalog, UnknownTableReference
from .schema import TableDefinition
from ...logging_config import get_logger

logger = get_logger(__name__)


class VisitState(Enum):
    """Traversal marker for each table."""

    UNVISITED = "unvisited"
    IN_PROGRESS = "in_progress"
    DONE = "done"


def resolve(
    requested_names: Iterable[str], catalog: SchemaCatalog
) -> Tuple[TableDefinition, ...]:
    """
    Close a table request over foreign key references.

    Depth-first walk in request order. A table's references are visited
    in field order and appended before the table itself. A table that
    is still in progress counts as visited, so self references and
    reference cycles terminate and every table appears once.

    Args:
        requested_names: Ordered table names
        catalog: Catalog to look tables up in

    Returns:
        Tuple of table definitions, dependencies first

    Raises:
        UnknownTableReference: If a requested or referenced table is missing
    """
    state: Dict[str, VisitState] = {}
    ordered: List[TableDefinition] = []

    def visit(name: str, referenced_by: str = None) -> None:
        if state.get(name, VisitState.UNVISITED) != VisitState.UNVISITED:
            return

        if name not in catalog:
            raise UnknownTableReference(name, referenced_by=referenced_by)

        table = catalog.get(name)
        state[name] = VisitState.IN_PROGRESS

        for dependency in table.referenced_tables():
            if dependency != name:
                visit(dependency, referenced_by=name)

        state[name] = VisitState.DONE
        ordered.append(table)
        logger.debug("Resolved table %s", name)

    for requested in requested_names:
        visit(requested)

    logger.debug("Resolution order: %s", [t.name for t in ordered])
    return tuple(ordered)


def resolve_names(
    requested_names: Iterable[str], catalog: SchemaCatalog
) -> List[str]:
    """Same as resolve() but returns table names only."""
    return [table.name for table in resolve(requested_names, catalog)]
