"""
neo4jogm In-Memory Graph Store

This module contains the Graph class: an in-memory labelled property graph
that backs the in-memory transport. It keeps per-node adjacency lists in
insertion order so relation order survives a round trip.
"""
from typing import (
    Dict,
    List,
    Set,
    Optional,
    Any,
    Tuple,
    DefaultDict,
)
from collections import defaultdict
from datetime import datetime
import copy
import uuid
from neo4jogm.core.graph_node import GraphNode
from neo4jogm.core.graph_edge import GraphEdge


class Graph:
    """
    In-memory property graph with exact-match property lookups.
    """

    def __init__(self, name: Optional[str] = None):
        """Initialize empty graph."""
        self.name = name or f"graph_{uuid.uuid4().hex[:8]}"
        self.created_at = datetime.now()

        # Core storage
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: Dict[str, GraphEdge] = {}

        # Adjacency lists, in edge creation order
        self._outgoing: DefaultDict[str, List[GraphEdge]] = defaultdict(list)
        self._incoming: DefaultDict[str, List[GraphEdge]] = defaultdict(list)

        # Declared (label, property) indexes
        self._indexes: Set[Tuple[str, str]] = set()

    # =============================================================================
    # BASIC GRAPH OPERATIONS
    # =============================================================================

    def add_node(
        self,
        label: str,
        properties: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None
    ) -> GraphNode:
        """Add a node to the graph; a fresh id is generated when none is given."""
        node = GraphNode(
            id=node_id,
            label=label,
            properties=dict(properties or {})
        )

        if node.id in self._nodes:
            raise ValueError(f"Node {node.id} already exists")

        self._nodes[node.id] = node
        return node

    def update_node(self, node_id: str, properties: Dict[str, Any]) -> GraphNode:
        """Merge properties into an existing node."""
        node = self._nodes.get(str(node_id))
        if node is None:
            raise ValueError(f"Node {node_id} does not exist")

        node.update_properties(properties)
        return node

    def add_edge(
        self,
        from_id: str,
        to_id: str,
        label: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> GraphEdge:
        """Add a directed edge to the graph. Parallel edges are allowed."""
        from_id, to_id = str(from_id), str(to_id)

        # Ensure nodes exist
        if from_id not in self._nodes:
            raise ValueError(f"Node {from_id} does not exist")
        if to_id not in self._nodes:
            raise ValueError(f"Node {to_id} does not exist")

        edge = GraphEdge(
            from_id=from_id,
            to_id=to_id,
            label=label,
            properties=dict(properties or {}),
        )

        self._edges[edge.id] = edge
        self._outgoing[from_id].append(edge)
        self._incoming[to_id].append(edge)
        return edge

    # =============================================================================
    # GRAPH QUERIES
    # =============================================================================

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        """Get a node by ID."""
        return self._nodes.get(str(node_id))

    def has_node(self, node_id: str) -> bool:
        """Check if node exists."""
        return str(node_id) in self._nodes

    def has_edge(self, from_id: str, to_id: str, label: Optional[str] = None) -> bool:
        """Check if at least one edge exists between two nodes."""
        to_id = str(to_id)
        return any(edge.to_id == to_id for edge in self.get_edges(from_id, label))

    def get_edges(
        self,
        node_id: str,
        label: Optional[str] = None,
        direction: str = "outgoing"
    ) -> List[GraphEdge]:
        """Get the edges of a node in creation order, optionally by label."""
        node_id = str(node_id)

        if direction == "outgoing":
            adjacency = self._outgoing
        elif direction == "incoming":
            adjacency = self._incoming
        else:
            raise ValueError("Direction must be 'outgoing' or 'incoming'")

        edges = adjacency.get(node_id, [])
        if label is None:
            return list(edges)
        return [edge for edge in edges if edge.label == label]

    def find_nodes(self, label: str, key: str, value: Any) -> List[GraphNode]:
        """Exact-match lookup of nodes by label and property value, in insertion order."""
        return [
            node for node in self._nodes.values()
            if node.label == label
            and key in node.properties
            and node.properties[key] == value
        ]

    def add_index(self, label: str, key: str) -> bool:
        """Declare an index. Returns False if it already existed."""
        if (label, key) in self._indexes:
            return False
        self._indexes.add((label, key))
        return True

    def has_index(self, label: str, key: str) -> bool:
        """Check whether an index has been declared."""
        return (label, key) in self._indexes

    # =============================================================================
    # GRAPH STATISTICS
    # =============================================================================

    def node_count(self) -> int:
        """Get total number of nodes."""
        return len(self._nodes)

    def edge_count(self) -> int:
        """Get total number of edges."""
        return len(self._edges)

    # =============================================================================
    # SERIALIZATION
    # =============================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Convert graph to dictionary representation."""
        return {
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "nodes": [node.model_dump() for node in self._nodes.values()],
            "edges": [edge.model_dump() for edge in self._edges.values()],
            "indexes": sorted(list(index) for index in self._indexes),
        }

    def _load(self, data: Dict[str, Any]) -> None:
        for node_data in data.get("nodes", []):
            node = GraphNode.model_validate(node_data)
            self._nodes[node.id] = node

        # Edges are stored in creation order, so adjacency order is rebuilt as-is
        for edge_data in data.get("edges", []):
            edge = GraphEdge.model_validate(edge_data)
            self._edges[edge.id] = edge
            self._outgoing[edge.from_id].append(edge)
            self._incoming[edge.to_id].append(edge)

        for label, key in data.get("indexes", []):
            self._indexes.add((label, key))

    # =============================================================================
    # UTILITIES
    # =============================================================================

    def snapshot(self) -> Dict[str, Any]:
        """Capture the graph state so it can be restored later."""
        return copy.deepcopy(self.to_dict())

    def restore(self, state: Dict[str, Any]) -> None:
        """Replace the graph contents with a previously taken snapshot."""
        self.clear()
        self._load(state)

    def clear(self):
        """Remove all nodes, edges and indexes."""
        self._nodes.clear()
        self._edges.clear()
        self._outgoing.clear()
        self._incoming.clear()
        self._indexes.clear()

    def __len__(self) -> int:
        """Return number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        """Check if node exists in graph."""
        return str(node_id) in self._nodes

    def __repr__(self) -> str:
        """String representation of graph."""
        return f"Graph(name='{self.name}', nodes={self.node_count()}, edges={self.edge_count()})"
