"""
neo4jogm Ad-hoc Queries

``Query`` binds parameters to a query template and passes both to the
transport unchanged. Entities are bound as their database id.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, List, TYPE_CHECKING

from neo4jogm.exceptions import MappingError
from neo4jogm.orm.entities import is_entity

if TYPE_CHECKING:
    from neo4jogm.orm.manager import EntityManager


class Query:
    """
    Parameterised query against the manager's transport.

    Example:
        ```python
        props = await (
            em.create_query("MATCH (m) WHERE elementId(m) = $movie RETURN properties(m)")
            .set("movie", movie)
            .get_map()
        )
        ```
    """

    def __init__(self, manager: EntityManager, template: str):
        self.manager = manager
        self.template = template
        self.bindings: Dict[str, Any] = {}

    def set(self, name: str, value: Any) -> Query:
        """Bind a parameter. Returns self for chaining."""
        self.bindings[name] = self._convert(value)
        return self

    async def execute(self) -> List[Dict[str, Any]]:
        """Run the query and return all rows."""
        return await self.manager.transport.run_query(self.template, dict(self.bindings))

    async def get_map(self) -> Dict[str, Any]:
        """
        First row as a mapping.

        A row with a single mapping column (e.g. ``RETURN properties(n)``) is
        unwrapped to that mapping. Returns an empty dict when there are no rows.
        """
        rows = await self.execute()
        if not rows:
            return {}

        row = rows[0]
        if len(row) == 1:
            value = next(iter(row.values()))
            if isinstance(value, Mapping):
                return dict(value)
        return dict(row)

    async def get_list(self) -> List[Any]:
        """First column of every row."""
        rows = await self.execute()
        return [next(iter(row.values())) if row else None for row in rows]

    def _convert(self, value: Any) -> Any:
        if is_entity(value) and not isinstance(value, type):
            node_id = self.manager.meta_repository.get_metadata(value).get_id(value)
            if node_id is None:
                raise MappingError(
                    f"Cannot bind unsaved {type(value).__name__}; flush it first"
                )
            return node_id
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (list, tuple)):
            return [self._convert(item) for item in value]
        return value

    def __repr__(self) -> str:
        return f"Query({self.template!r}, bindings={sorted(self.bindings)})"
