"""
neo4jogm Identity Map and Unit of Work

The identity map guarantees one in-memory instance per node id within an
entity manager. The unit of work collects persisted roots and, on flush,
writes the reachable object graph as nodes and edges.
"""

from __future__ import annotations

from collections import Counter, deque
from typing import Any, Dict, Iterator, List, Optional
import logging

from neo4jogm.exceptions import MappingError
from neo4jogm.orm import fields as f
from neo4jogm.orm.metadata import MetaRepository
from neo4jogm.orm.serializer import CREATION_DATE, GraphSerializer, SerializedEntity
from neo4jogm.orm.transport import Transport


logger = logging.getLogger(__name__)


class IdentityMap:
    """Per-session mapping between node ids and entity instances."""

    def __init__(self):
        self._entities: Dict[str, Any] = {}
        # Python object id -> node id, kept alive by _entities
        self._ids: Dict[int, str] = {}

    def get(self, node_id: str) -> Optional[Any]:
        return self._entities.get(str(node_id))

    def add(self, node_id: str, entity: Any) -> None:
        node_id = str(node_id)
        previous = self._entities.get(node_id)
        if previous is not None and previous is not entity:
            self._ids.pop(id(previous), None)
        self._entities[node_id] = entity
        self._ids[id(entity)] = node_id

    def contains(self, entity: Any) -> bool:
        node_id = self._ids.get(id(entity))
        return node_id is not None and self._entities.get(node_id) is entity

    def get_id(self, entity: Any) -> Optional[str]:
        return self._ids.get(id(entity)) if self.contains(entity) else None

    def remove(self, node_id: str) -> Optional[Any]:
        entity = self._entities.pop(str(node_id), None)
        if entity is not None:
            self._ids.pop(id(entity), None)
        return entity

    def clear(self) -> None:
        self._entities.clear()
        self._ids.clear()

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, node_id: object) -> bool:
        return str(node_id) in self._entities

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._entities.values()))


class UnitOfWork:
    """
    Tracks persisted roots and computes the writes of a flush.

    Writes are additive: nodes are created or updated, edges are created for
    relation targets the store does not already hold. Nothing is deleted.
    """

    def __init__(
        self,
        transport: Transport,
        meta_repository: MetaRepository,
        identity_map: IdentityMap,
        serializer: Optional[GraphSerializer] = None,
    ):
        self.transport = transport
        self.meta_repository = meta_repository
        self.identity_map = identity_map
        self.serializer = serializer or GraphSerializer(meta_repository)
        self._roots: List[Any] = []
        self._ensured_indexes: set = set()

    @property
    def pending(self) -> List[Any]:
        """Roots registered since the last flush, in persist order."""
        return list(self._roots)

    def persist(self, entity: Any) -> None:
        """
        Register an entity to be written on the next flush.

        Raises:
            MappingError: If ``entity`` is not a mapped entity.
        """
        if isinstance(entity, type):
            raise MappingError(f"Expected an entity instance, got the class {entity.__qualname__}")
        self.meta_repository.get_metadata(entity)
        if not any(root is entity for root in self._roots):
            self._roots.append(entity)

    def clear(self) -> None:
        self._roots.clear()

    async def flush(self, timestamp: Any) -> List[SerializedEntity]:
        """
        Write every entity reachable from the registered roots.

        All entities are serialized before the first write, so a mapping
        error leaves the store untouched.

        Returns:
            The write plans, in traversal order.
        """
        if not self._roots:
            return []

        plans = [
            self.serializer.serialize(entity, timestamp, is_new=self._node_id(entity) is None)
            for entity in self._collect()
        ]

        await self._ensure_indexes(plans)

        existing_nodes = set()
        created_nodes: List[SerializedEntity] = []
        created_edges = 0
        try:
            async with self.transport.batch():
                for plan in plans:
                    node_id = self._node_id(plan.entity)
                    if node_id is None:
                        node_id = await self.transport.create_node(plan.metadata.type_name, plan.properties)
                        plan.metadata.set_id(plan.entity, node_id)
                        created_nodes.append(plan)
                    else:
                        existing_nodes.add(node_id)
                        await self.transport.update_node(node_id, plan.properties)
                    self.identity_map.add(node_id, plan.entity)

                for plan in plans:
                    created_edges += await self._write_edges(plan, existing_nodes, timestamp)
        except BaseException:
            # The batch was rolled back, so ids handed out during it are void
            for plan in created_nodes:
                self.identity_map.remove(self._node_id(plan.entity))
                plan.metadata.set_id(plan.entity, None)
            raise

        logger.debug(
            "Flushed %d entities (%d new), %d new edges",
            len(plans), len(plans) - len(existing_nodes), created_edges
        )
        self._roots.clear()
        return plans

    def _collect(self) -> List[Any]:
        """Breadth-first walk over writable relations, each instance once."""
        seen = set()
        ordered: List[Any] = []
        queue = deque(self._roots)

        while queue:
            entity = queue.popleft()
            if id(entity) in seen:
                continue
            seen.add(id(entity))
            ordered.append(entity)

            metadata = self.meta_repository.get_metadata(entity)
            for spec in metadata.relation_fields:
                if not spec.writable:
                    continue
                value = spec.get_value(entity)
                if spec.kind == f.RELATION_TO_ONE:
                    targets = [] if value is None else [value]
                else:
                    targets = list(value or [])
                for target in targets:
                    self.meta_repository.get_metadata(target)
                    if id(target) not in seen:
                        queue.append(target)

        return ordered

    def _node_id(self, entity: Any) -> Optional[str]:
        return self.meta_repository.get_metadata(entity).get_id(entity)

    async def _ensure_indexes(self, plans: List[SerializedEntity]) -> None:
        for plan in plans:
            for spec in plan.metadata.indexed_fields:
                key = (plan.metadata.type_name, spec.db_field)
                if key not in self._ensured_indexes:
                    await self.transport.ensure_index(*key)
                    self._ensured_indexes.add(key)

    async def _write_edges(self, plan: SerializedEntity, existing_nodes: set, timestamp: Any) -> int:
        source_id = self._node_id(plan.entity)
        stored: Dict[str, Counter] = {}
        created = 0

        for spec, target in plan.relations:
            if spec.relation not in stored:
                stored[spec.relation] = await self._stored_targets(source_id, spec.relation, existing_nodes)

            target_id = self._node_id(target)
            remaining = stored[spec.relation]
            if remaining[target_id] > 0:
                remaining[target_id] -= 1
                continue

            await self.transport.create_edge(
                source_id, target_id, spec.relation, {CREATION_DATE: timestamp}
            )
            created += 1

        return created

    async def _stored_targets(self, source_id: str, label: str, existing_nodes: set) -> Counter:
        if source_id not in existing_nodes:
            return Counter()
        edges = await self.transport.get_outgoing_edges(source_id, label)
        return Counter(edge.to_id for edge in edges)
