"""
neo4jogm Entity Manager

The façade application code works with: persist entities, flush them to the
store, find them again and obtain repositories.

Example:
    ```python
    engine = create_graph_engine("bolt://localhost:7687", ("neo4j", "secret"))
    async with engine:
        em = EntityManager(Neo4jTransport(engine))

        movie = Movie()
        movie.title = "Return of the king"
        em.persist(movie)
        await em.flush()

        same = await EntityManager(Neo4jTransport(engine)).find(Movie, movie.id)
    ```
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type, TypeVar
import logging

from neo4jogm.exceptions import EntityNotFoundError
from neo4jogm.orm.hydrator import Hydrator
from neo4jogm.orm.metadata import MetaRepository
from neo4jogm.orm.query import Query
from neo4jogm.orm.repository import Repository
from neo4jogm.orm.serializer import GraphSerializer
from neo4jogm.orm.transport import Transport
from neo4jogm.orm.unit_of_work import IdentityMap, UnitOfWork


logger = logging.getLogger(__name__)

EntityType = TypeVar('EntityType')

DateGenerator = Callable[[], Any]


def default_date_generator() -> str:
    """Current local time as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class EntityManager:
    """
    One mapping session over a transport.

    The identity map lives as long as the manager; two managers never share
    instances, even over the same store.
    """

    def __init__(
        self,
        transport: Transport,
        meta_repository: Optional[MetaRepository] = None,
        *,
        date_generator: Optional[DateGenerator] = None,
    ):
        self.transport = transport
        self.meta_repository = meta_repository or MetaRepository()
        self.identity_map = IdentityMap()
        self.serializer = GraphSerializer(self.meta_repository)
        self.unit_of_work = UnitOfWork(
            transport, self.meta_repository, self.identity_map, self.serializer
        )
        self.hydrator = Hydrator(transport, self.meta_repository, self.identity_map)
        self._date_generator: DateGenerator = date_generator or default_date_generator
        self._repositories: Dict[type, Repository] = {}

    def persist(self, entity: Any) -> None:
        """
        Schedule an entity, and everything reachable through its writable
        relations, for the next flush.

        Raises:
            MappingError: If ``entity`` is not an entity or its class has no
                identity field. Nothing is written.
        """
        self.unit_of_work.persist(entity)

    async def flush(self) -> None:
        """Write all persisted entities. The date generator is called once."""
        if not self.unit_of_work.pending:
            return
        await self.unit_of_work.flush(self._date_generator())

    async def find(self, entity_class: Type[EntityType], entity_id: str) -> Optional[EntityType]:
        """
        Find an entity by database id.

        Returns None if no node has that id or the node belongs to another
        entity type.

        Raises:
            MappingError: If ``entity_class`` is not an entity.
        """
        metadata = self.meta_repository.get_metadata(entity_class)
        if entity_id is None:
            return None

        cached = self.identity_map.get(entity_id)
        if cached is not None:
            return cached if isinstance(cached, entity_class) else None

        record = await self.transport.get_node(str(entity_id))
        if record is None or record.label != metadata.type_name:
            return None
        return await self.hydrator.hydrate(record, entity_class)

    async def get(self, entity_class: Type[EntityType], entity_id: str) -> EntityType:
        """
        Like ``find`` but raises when nothing is found.

        Raises:
            EntityNotFoundError: If there is no matching entity.
        """
        entity = await self.find(entity_class, entity_id)
        if entity is None:
            raise EntityNotFoundError(f"{entity_class.__name__} {entity_id} not found")
        return entity

    def get_repository(self, entity_class: Type[EntityType]) -> Repository[EntityType]:
        """Return the (cached) repository for an entity class."""
        repository = self._repositories.get(entity_class)
        if repository is None:
            repository = Repository(self, entity_class)
            self._repositories[entity_class] = repository
        return repository

    def set_date_generator(self, generator: DateGenerator) -> None:
        """Replace the callable producing ``creationDate``/``updateDate`` values."""
        self._date_generator = generator

    def create_query(self, template: str) -> Query:
        """Start an ad-hoc query; the template is passed to the transport as-is."""
        return Query(self, template)

    def contains(self, entity: Any) -> bool:
        """Check whether the instance is managed by this session."""
        return self.identity_map.contains(entity)

    def clear(self) -> None:
        """Forget all managed instances and pending persists."""
        logger.debug("Clearing entity manager (%d managed entities)", len(self.identity_map))
        self.identity_map.clear()
        self.unit_of_work.clear()
