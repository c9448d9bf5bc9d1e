"""
neo4jogm Transports

The mapping engine talks to storage only through the ``Transport`` protocol.
Two implementations ship with the library:

- ``InMemoryTransport`` over the in-memory ``Graph``, for tests and prototyping
- ``Neo4jTransport`` issuing Cypher through a ``GraphEngine``

Store and driver errors are never wrapped here.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, runtime_checkable
import logging

from neo4j import AsyncTransaction, Record

from neo4jogm.core.graph import Graph
from neo4jogm.core.graph_edge import GraphEdge
from neo4jogm.core.graph_node import GraphNode
from neo4jogm.exceptions import QueryError
from neo4jogm.orm.engine import GraphEngine


logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Storage operations needed by the entity manager."""

    async def create_node(self, label: str, properties: Dict[str, Any]) -> str:
        """Create a node and return its database id."""
        ...

    async def update_node(self, node_id: str, properties: Dict[str, Any]) -> None:
        """Merge properties into an existing node."""
        ...

    async def create_edge(
        self, from_id: str, to_id: str, label: str, properties: Dict[str, Any]
    ) -> GraphEdge:
        """Create a directed edge, even if an identical one exists."""
        ...

    async def get_node(self, node_id: str) -> Optional[GraphNode]:
        """Fetch a node by id, or None if it does not exist."""
        ...

    async def get_outgoing_edges(self, node_id: str, label: Optional[str] = None) -> List[GraphEdge]:
        """
        Edges starting at the node, in creation order.

        In memory the order is exact. On Neo4j it follows internal ids, which
        the server may reuse after deletes, so the order is approximate there.
        """
        ...

    async def get_incoming_edges(self, node_id: str, label: Optional[str] = None) -> List[GraphEdge]:
        """Edges ending at the node, in the same order as ``get_outgoing_edges``."""
        ...

    async def lookup_by_index(self, label: str, field: str, value: Any) -> List[GraphNode]:
        """Exact-match lookup of nodes by an indexed property."""
        ...

    async def ensure_index(self, label: str, field: str) -> None:
        """Make sure an index exists for the label/property pair."""
        ...

    async def run_query(self, template: str, bindings: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run a raw query and return its rows."""
        ...

    def batch(self) -> Any:
        """Async context manager grouping writes into one atomic unit."""
        ...


# =============================================================================
# IN-MEMORY TRANSPORT
# =============================================================================

class InMemoryTransport:
    """
    Transport over an in-memory ``Graph``.

    A batch snapshots the graph and restores it if the block raises.
    """

    def __init__(self, graph: Optional[Graph] = None):
        self.graph = graph if graph is not None else Graph(name="in_memory")
        self._in_batch = False

    async def create_node(self, label: str, properties: Dict[str, Any]) -> str:
        return self.graph.add_node(label, properties).id

    async def update_node(self, node_id: str, properties: Dict[str, Any]) -> None:
        self.graph.update_node(node_id, properties)

    async def create_edge(
        self, from_id: str, to_id: str, label: str, properties: Dict[str, Any]
    ) -> GraphEdge:
        return self.graph.add_edge(from_id, to_id, label, properties)

    async def get_node(self, node_id: str) -> Optional[GraphNode]:
        node = self.graph.get_node(node_id)
        return node.model_copy(deep=True) if node is not None else None

    async def get_outgoing_edges(self, node_id: str, label: Optional[str] = None) -> List[GraphEdge]:
        return self.graph.get_edges(node_id, label, direction="outgoing")

    async def get_incoming_edges(self, node_id: str, label: Optional[str] = None) -> List[GraphEdge]:
        return self.graph.get_edges(node_id, label, direction="incoming")

    async def lookup_by_index(self, label: str, field: str, value: Any) -> List[GraphNode]:
        return [node.model_copy(deep=True) for node in self.graph.find_nodes(label, field, value)]

    async def ensure_index(self, label: str, field: str) -> None:
        if self.graph.add_index(label, field):
            logger.debug("Declared in-memory index %s.%s", label, field)

    async def run_query(self, template: str, bindings: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise QueryError("The in-memory transport cannot execute query templates")

    @asynccontextmanager
    async def batch(self) -> AsyncIterator[None]:
        if self._in_batch:
            yield
            return

        state = self.graph.snapshot()
        self._in_batch = True
        try:
            yield
        except BaseException:
            logger.debug("Batch failed, restoring graph '%s'", self.graph.name)
            self.graph.restore(state)
            raise
        finally:
            self._in_batch = False


# =============================================================================
# NEO4J TRANSPORT
# =============================================================================

def quote_identifier(name: str) -> str:
    """Backtick-quote a label, relationship type or property key for Cypher."""
    return "`" + name.replace("`", "``") + "`"


_NODE_COLUMNS = "elementId(n) AS id, labels(n) AS labels, properties(n) AS properties"
_EDGE_COLUMNS = (
    "elementId(r) AS id, elementId(startNode(r)) AS from_id, "
    "elementId(endNode(r)) AS to_id, type(r) AS label, properties(r) AS properties"
)


class Neo4jTransport:
    """
    Transport issuing Cypher through a connected ``GraphEngine``.

    Outside a batch every call runs in its own auto-commit session. Inside
    ``batch()`` all calls share one explicit transaction, committed when the
    block exits cleanly and rolled back otherwise.
    """

    def __init__(self, engine: GraphEngine, database: Optional[str] = None):
        self.engine = engine
        self.database = database
        self._tx: Optional[AsyncTransaction] = None

    async def create_node(self, label: str, properties: Dict[str, Any]) -> str:
        records = await self._run(
            f"CREATE (n:{quote_identifier(label)} $properties) RETURN elementId(n) AS id",
            properties=properties,
        )
        return records[0]["id"]

    async def update_node(self, node_id: str, properties: Dict[str, Any]) -> None:
        records = await self._run(
            "MATCH (n) WHERE elementId(n) = $id SET n += $properties RETURN elementId(n) AS id",
            id=node_id,
            properties=properties,
        )
        if not records:
            raise ValueError(f"Node {node_id} does not exist")

    async def create_edge(
        self, from_id: str, to_id: str, label: str, properties: Dict[str, Any]
    ) -> GraphEdge:
        records = await self._run(
            "MATCH (a), (b) WHERE elementId(a) = $from_id AND elementId(b) = $to_id "
            f"CREATE (a)-[r:{quote_identifier(label)} $properties]->(b) "
            f"RETURN {_EDGE_COLUMNS}",
            from_id=from_id,
            to_id=to_id,
            properties=properties,
        )
        if not records:
            raise ValueError(f"Cannot create edge {from_id}-[{label}]->{to_id}: node missing")
        return self._to_edge(records[0])

    async def get_node(self, node_id: str) -> Optional[GraphNode]:
        records = await self._run(
            f"MATCH (n) WHERE elementId(n) = $id RETURN {_NODE_COLUMNS}",
            id=node_id,
        )
        return self._to_node(records[0]) if records else None

    async def get_outgoing_edges(self, node_id: str, label: Optional[str] = None) -> List[GraphEdge]:
        return await self._edges(node_id, label, "(n)-[r{type}]->()")

    async def get_incoming_edges(self, node_id: str, label: Optional[str] = None) -> List[GraphEdge]:
        return await self._edges(node_id, label, "(n)<-[r{type}]-()")

    async def lookup_by_index(self, label: str, field: str, value: Any) -> List[GraphNode]:
        records = await self._run(
            f"MATCH (n:{quote_identifier(label)}) WHERE n.{quote_identifier(field)} = $value "
            f"RETURN {_NODE_COLUMNS} ORDER BY id(n)",
            value=value,
        )
        return [self._to_node(record) for record in records]

    async def ensure_index(self, label: str, field: str) -> None:
        # Schema commands cannot share a transaction with data writes
        query = (
            f"CREATE INDEX IF NOT EXISTS FOR (n:{quote_identifier(label)}) "
            f"ON (n.{quote_identifier(field)})"
        )
        async with self.engine.get_session(self.database) as session:
            result = await session.run(query)
            await result.consume()
        logger.debug("Ensured index %s.%s", label, field)

    async def run_query(self, template: str, bindings: Dict[str, Any]) -> List[Dict[str, Any]]:
        records = await self._execute(template, dict(bindings))
        return [record.data() for record in records]

    @asynccontextmanager
    async def batch(self) -> AsyncIterator[None]:
        if self._tx is not None:
            yield
            return

        session = self.engine.get_session(self.database)
        try:
            tx = await session.begin_transaction()
            self._tx = tx
            try:
                yield
            except BaseException:
                logger.debug("Rolling back batch on %s", self.engine.uri)
                await tx.rollback()
                raise
            else:
                await tx.commit()
            finally:
                self._tx = None
        finally:
            await session.close()

    async def _edges(self, node_id: str, label: Optional[str], pattern: str) -> List[GraphEdge]:
        rel_type = f":{quote_identifier(label)}" if label else ""
        records = await self._run(
            f"MATCH {pattern.format(type=rel_type)} WHERE elementId(n) = $id "
            f"RETURN {_EDGE_COLUMNS} ORDER BY id(r)",
            id=node_id,
        )
        return [self._to_edge(record) for record in records]

    async def _run(self, query: str, **params: Any) -> List[Record]:
        return await self._execute(query, params)

    async def _execute(self, query: str, params: Dict[str, Any]) -> List[Record]:
        if self._tx is not None:
            return await self._fetch(self._tx, query, params)

        async with self.engine.get_session(self.database) as session:
            return await self._fetch(session, query, params)

    @staticmethod
    async def _fetch(runner: Any, query: str, params: Dict[str, Any]) -> List[Record]:
        result = await runner.run(query, params)
        return [record async for record in result]

    @staticmethod
    def _to_node(record: Record) -> GraphNode:
        labels = record["labels"]
        return GraphNode(
            id=record["id"],
            label=labels[0] if labels else "Node",
            properties=dict(record["properties"]),
        )

    @staticmethod
    def _to_edge(record: Record) -> GraphEdge:
        return GraphEdge(
            id=record["id"],
            from_id=record["from_id"],
            to_id=record["to_id"],
            label=record["label"],
            properties=dict(record["properties"]),
        )
