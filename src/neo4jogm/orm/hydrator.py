"""
neo4jogm Hydrator

Rebuilds entity instances from node records. Relations are loaded eagerly
with a work queue; the identity map short-circuits nodes already hydrated in
the session, which is what ends traversal on cyclic graphs.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, List, Optional, Tuple
import logging

from neo4jogm.core.graph_edge import GraphEdge
from neo4jogm.core.graph_node import GraphNode
from neo4jogm.orm import fields as f
from neo4jogm.orm.entities import get_entity_by_label
from neo4jogm.orm.metadata import EntityMetadata, FieldSpec, MetaRepository
from neo4jogm.orm.transport import Transport
from neo4jogm.orm.unit_of_work import IdentityMap


logger = logging.getLogger(__name__)


class Hydrator:
    """Turns node records into entity instances for one session."""

    def __init__(
        self,
        transport: Transport,
        meta_repository: MetaRepository,
        identity_map: IdentityMap,
    ):
        self.transport = transport
        self.meta_repository = meta_repository
        self.identity_map = identity_map

    async def hydrate(self, record: GraphNode, entity_class: type) -> Any:
        """
        Return the entity for ``record``, loading its relations.

        If the node was already hydrated in this session the existing
        instance is returned unchanged. If loading fails, every instance
        created by this call is dropped from the identity map again.
        """
        existing = self.identity_map.get(record.id)
        if existing is not None:
            return existing

        pending: Deque[Tuple[Any, EntityMetadata, str]] = deque()
        loaded: List[str] = []
        entity = self._instantiate(record, self.meta_repository.get_metadata(entity_class), pending)

        try:
            while pending:
                instance, metadata, node_id = pending.popleft()
                loaded.append(node_id)
                for spec in metadata.relation_fields:
                    if spec.readable:
                        await self._load_relation(instance, node_id, spec, pending)
        except BaseException:
            # Partly loaded instances must not be served from the identity map
            for node_id in loaded + [item[2] for item in pending]:
                self.identity_map.remove(node_id)
            raise

        return entity

    def _instantiate(
        self,
        record: GraphNode,
        metadata: EntityMetadata,
        pending: Deque[Tuple[Any, EntityMetadata, str]],
    ) -> Any:
        cls = metadata.entity_class
        instance = cls.__new__(cls)
        metadata.set_id(instance, record.id)

        for spec in metadata.property_fields:
            if spec.readable and spec.db_field in record.properties:
                spec.load_value(instance, record.properties[spec.db_field])

        # Registered before relations load so cycles resolve to this instance
        self.identity_map.add(record.id, instance)
        pending.append((instance, metadata, record.id))
        logger.debug("Hydrated %s %s", metadata.type_name, record.id)
        return instance

    async def _load_relation(
        self,
        instance: Any,
        node_id: str,
        spec: FieldSpec,
        pending: Deque[Tuple[Any, EntityMetadata, str]],
    ) -> None:
        if spec.direction == f.INCOMING:
            edges = await self.transport.get_incoming_edges(node_id, spec.relation)
        else:
            edges = await self.transport.get_outgoing_edges(node_id, spec.relation)

        if spec.kind == f.RELATION_TO_ONE:
            # Edges are never removed, the latest one is the current value
            edges = edges[-1:]

        targets: List[Any] = []
        for edge in edges:
            target = await self._resolve(edge, node_id, spec, pending)
            if target is not None:
                targets.append(target)

        if spec.kind == f.RELATION_TO_ONE:
            spec.load_value(instance, targets[0] if targets else None)
        else:
            spec.load_value(instance, targets)

    async def _resolve(
        self,
        edge: GraphEdge,
        node_id: str,
        spec: FieldSpec,
        pending: Deque[Tuple[Any, EntityMetadata, str]],
    ) -> Optional[Any]:
        other_id = edge.other_end(node_id)

        cached = self.identity_map.get(other_id)
        if cached is not None:
            return cached

        record = await self.transport.get_node(other_id)
        if record is None:
            logger.debug("Skipping dangling %s edge %s -> %s", spec.relation, node_id, other_id)
            return None

        return self._instantiate(record, self._target_metadata(record, spec), pending)

    def _target_metadata(self, record: GraphNode, spec: FieldSpec) -> EntityMetadata:
        metadata = self.meta_repository.get_metadata(self.meta_repository.resolve_target(spec))
        if record.label != metadata.type_name:
            labelled = get_entity_by_label(record.label)
            if labelled is not None:
                return self.meta_repository.get_metadata(labelled)
        return metadata
