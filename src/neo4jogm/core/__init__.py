"""
neo4jogm Core Module

Node and edge records plus the in-memory graph store behind
``InMemoryTransport``.
"""

from neo4jogm.core.graph import Graph
from neo4jogm.core.graph_node import GraphNode
from neo4jogm.core.graph_edge import GraphEdge

__all__ = [
    "Graph",
    "GraphNode",
    "GraphEdge",
]
