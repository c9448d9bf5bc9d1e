"""
neo4jogm Repositories

Per-entity finders over indexed fields. Lookups return a ``ResultSet`` that
hydrates lazily and can be iterated any number of times.

Example:
    ```python
    movies = em.get_repository(Movie)
    movie = await movies.find_one_by_registry_code(code)
    async for movie in await movies.find_by("title", "Return of the king"):
        ...
    ```
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Generic, List, Optional, TypeVar, TYPE_CHECKING
import logging

from neo4jogm.core.graph_node import GraphNode
from neo4jogm.exceptions import UnindexedFieldError, UnknownFieldError
from neo4jogm.orm.hydrator import Hydrator
from neo4jogm.orm.metadata import EntityMetadata, FieldSpec

if TYPE_CHECKING:
    from neo4jogm.orm.manager import EntityManager


logger = logging.getLogger(__name__)

EntityType = TypeVar('EntityType')

FIND_ONE_BY_PREFIX = "find_one_by_"
FIND_BY_PREFIX = "find_by_"


class ResultSet(Generic[EntityType]):
    """
    Finite, restartable sequence of lookup results.

    Records are fetched up front; entities are hydrated on first access and
    cached, so repeated iteration yields the same instances.
    """

    def __init__(self, records: List[GraphNode], entity_class: type, hydrator: Hydrator):
        self._records = list(records)
        self._entity_class = entity_class
        self._hydrator = hydrator
        self._entities: List[EntityType] = []

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    async def __aiter__(self) -> AsyncIterator[EntityType]:
        for index in range(len(self._records)):
            yield await self._get(index)

    async def _get(self, index: int) -> EntityType:
        while len(self._entities) <= index:
            record = self._records[len(self._entities)]
            self._entities.append(await self._hydrator.hydrate(record, self._entity_class))
        return self._entities[index]

    async def first(self) -> Optional[EntityType]:
        """Get the first result, or None if there are none."""
        if not self._records:
            return None
        return await self._get(0)

    async def all(self) -> List[EntityType]:
        """Hydrate and return every result."""
        return [entity async for entity in self]

    def count(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"ResultSet({self._entity_class.__name__}, {len(self._records)} results)"


class Repository(Generic[EntityType]):
    """
    Finder for one entity class, bound to an entity manager.

    ``find_by_<field>(value)`` and ``find_one_by_<field>(value)`` are
    shorthands for ``find_by("<field>", value)`` and
    ``find_one_by("<field>", value)``.
    """

    def __init__(self, manager: EntityManager, entity_class: type):
        self.manager = manager
        self.entity_class = entity_class
        self.metadata: EntityMetadata = manager.meta_repository.get_metadata(entity_class)

    async def find(self, entity_id: str) -> Optional[EntityType]:
        """Find an entity by database id."""
        return await self.manager.find(self.entity_class, entity_id)

    async def find_by(self, field: str, value: Any) -> ResultSet[EntityType]:
        """
        Look up entities by an indexed field.

        Raises:
            UnknownFieldError: If the entity has no such field.
            UnindexedFieldError: If the field is not indexed.
        """
        spec = self._indexed_field(field)
        records = await self.manager.transport.lookup_by_index(
            self.metadata.type_name, spec.db_field, spec.to_database(value)
        )
        logger.debug(
            "Index lookup %s.%s matched %d nodes", self.metadata.type_name, spec.name, len(records)
        )
        return ResultSet(records, self.entity_class, self.manager.hydrator)

    async def find_one_by(self, field: str, value: Any) -> Optional[EntityType]:
        """Look up the first entity matching an indexed field, or None."""
        results = await self.find_by(field, value)
        return await results.first()

    def _indexed_field(self, name: str) -> FieldSpec:
        spec = self.metadata.get_field(name)
        if spec is None:
            raise UnknownFieldError(
                f"Entity {self.metadata.type_name} has no field '{name}'"
            )
        if not spec.indexed:
            raise UnindexedFieldError(
                f"Field {self.metadata.type_name}.{name} is not indexed"
            )
        return spec

    def __getattr__(self, name: str) -> Any:
        if name.startswith(FIND_ONE_BY_PREFIX):
            field = name[len(FIND_ONE_BY_PREFIX):]

            async def find_one_by_field(value: Any) -> Optional[EntityType]:
                return await self.find_one_by(field, value)

            return find_one_by_field

        if name.startswith(FIND_BY_PREFIX):
            field = name[len(FIND_BY_PREFIX):]

            async def find_by_field(value: Any) -> ResultSet[EntityType]:
                return await self.find_by(field, value)

            return find_by_field

        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __repr__(self) -> str:
        return f"Repository({self.metadata.type_name})"
