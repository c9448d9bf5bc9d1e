"""
Tests for the core Graph store and its node and edge records.

These tests verify:
- GraphNode / GraphEdge validation and helpers
- Node and edge creation, including parallel edges
- Edge ordering per node and direction
- Exact-match lookups and declared indexes
- Dict dumps, snapshots and restore
"""

import pytest
from pydantic import ValidationError

from neo4jogm.core.graph import Graph
from neo4jogm.core.graph_node import GraphNode
from neo4jogm.core.graph_edge import GraphEdge


class TestGraphNode:
    """Test the Pydantic GraphNode model."""

    def test_node_creation(self):
        """Test basic node creation."""
        node = GraphNode(id="test_id", label="TestLabel")

        assert node.id == "test_id"
        assert node.label == "TestLabel"
        assert node.properties == {}

    def test_node_with_properties(self):
        """Test node creation with properties."""
        properties = {"name": "Alice", "age": 30}
        node = GraphNode(id="user_1", label="User", properties=properties)

        assert node.properties == properties
        assert node.get_property("name") == "Alice"
        assert node.get_property("missing", "default") == "default"
        assert node.has_property("age")
        assert not node.has_property("email")

    def test_properties_are_copied(self):
        """The node never shares the caller's properties dict."""
        properties = {"name": "Alice"}
        node = GraphNode(id="user_1", label="User", properties=properties)

        properties["name"] = "Bob"
        assert node.get_property("name") == "Alice"

    def test_node_id_coercion(self):
        """Test ID coercion to string."""
        node = GraphNode(id=123, label="Test")
        assert node.id == "123"

        # None ID should generate UUID
        node_with_none = GraphNode(id=None, label="Test")
        assert node_with_none.id
        assert node_with_none.id != GraphNode(id=None, label="Test").id

    def test_node_validation_errors(self):
        """Test validation errors."""
        with pytest.raises(ValidationError):
            GraphNode(id="test", label="")

        with pytest.raises(ValidationError):
            GraphNode(id="test", label="   ")

        with pytest.raises(ValidationError):
            GraphNode(id="test", label="Test", properties={123: "value"})

    def test_label_is_stripped(self):
        node = GraphNode(id="test", label="  Movie ")
        assert node.label == "Movie"

    def test_update_properties_merges(self):
        """Updating keeps keys that are not mentioned."""
        node = GraphNode(id="test", label="Test", properties={"a": 1, "b": 2})
        node.update_properties({"b": 3, "c": 4})

        assert node.properties == {"a": 1, "b": 3, "c": 4}


class TestGraphEdge:
    """Test the Pydantic GraphEdge model."""

    def test_edge_creation(self):
        edge = GraphEdge(from_id="a", to_id="b", label="actors")

        assert edge.from_id == "a"
        assert edge.to_id == "b"
        assert edge.label == "actors"
        assert edge.id
        assert edge.properties == {}

    def test_edge_ids_are_unique(self):
        """Parallel edges are told apart by their own ids."""
        first = GraphEdge(from_id="a", to_id="b", label="actors")
        second = GraphEdge(from_id="a", to_id="b", label="actors")

        assert first.id != second.id

    def test_label_is_case_sensitive(self):
        edge = GraphEdge(from_id="a", to_id="b", label="presentedMovie")
        assert edge.label == "presentedMovie"

    def test_edge_validation_errors(self):
        with pytest.raises(ValidationError):
            GraphEdge(from_id="a", to_id="b", label="  ")

        with pytest.raises(ValidationError):
            GraphEdge(from_id="", to_id="b", label="x")

    def test_id_coercion(self):
        edge = GraphEdge(from_id=1, to_id=2, label="x")
        assert edge.from_id == "1"
        assert edge.to_id == "2"

    def test_other_end(self):
        edge = GraphEdge(from_id="a", to_id="b", label="x")

        assert edge.other_end("a") == "b"
        assert edge.other_end("b") == "a"

    def test_other_end_of_self_loop(self):
        loop = GraphEdge(from_id="a", to_id="a", label="x")

        assert loop.other_end("a") == "a"


class TestGraphBasics:
    """Node and edge creation."""

    def test_empty_graph(self):
        graph = Graph(name="test")

        assert graph.name == "test"
        assert graph.node_count() == 0
        assert graph.edge_count() == 0
        assert len(graph) == 0

    def test_default_name(self):
        assert Graph().name.startswith("graph_")

    def test_add_node_generates_id(self):
        graph = Graph()
        node = graph.add_node("Movie", {"title": "Alien"})

        assert node.id
        assert graph.get_node(node.id) is node
        assert node.id in graph
        assert graph.has_node(node.id)

    def test_add_node_with_explicit_id(self):
        graph = Graph()
        graph.add_node("Movie", node_id="m1")

        assert graph.has_node("m1")
        with pytest.raises(ValueError, match="already exists"):
            graph.add_node("Movie", node_id="m1")

    def test_update_node(self):
        graph = Graph()
        node = graph.add_node("Movie", {"title": "Alien", "year": 1979})

        graph.update_node(node.id, {"title": "Aliens"})

        assert graph.get_node(node.id).properties == {"title": "Aliens", "year": 1979}

    def test_update_missing_node(self):
        with pytest.raises(ValueError, match="does not exist"):
            Graph().update_node("missing", {"a": 1})

    def test_add_edge_requires_nodes(self):
        graph = Graph()
        node = graph.add_node("Movie")

        with pytest.raises(ValueError, match="does not exist"):
            graph.add_edge(node.id, "missing", "actors")
        with pytest.raises(ValueError, match="does not exist"):
            graph.add_edge("missing", node.id, "actors")

    def test_parallel_edges_are_kept(self):
        graph = Graph()
        movie = graph.add_node("Movie")
        person = graph.add_node("Person")

        graph.add_edge(movie.id, person.id, "actors")
        graph.add_edge(movie.id, person.id, "actors")

        assert graph.edge_count() == 2
        assert len(graph.get_edges(movie.id, "actors")) == 2
        assert len(graph.get_edges(person.id, "actors", direction="incoming")) == 2
        assert graph.has_edge(movie.id, person.id, "actors")
        assert not graph.has_edge(movie.id, person.id, "mainActor")

    def test_repr(self):
        graph = Graph(name="films")
        graph.add_node("Movie")
        assert repr(graph) == "Graph(name='films', nodes=1, edges=0)"


class TestGraphEdges:
    """Edge ordering and direction filtering."""

    @pytest.fixture
    def cast(self):
        graph = Graph()
        movie = graph.add_node("Movie")
        actors = [graph.add_node("Person", {"name": name}) for name in ("Viggo", "Liv", "Ian")]
        for person in actors:
            graph.add_edge(movie.id, person.id, "actors")
        graph.add_edge(movie.id, actors[1].id, "mainActor")
        return graph, movie, actors

    def test_outgoing_edges_in_creation_order(self, cast):
        graph, movie, actors = cast
        edges = graph.get_edges(movie.id, "actors")

        assert [edge.to_id for edge in edges] == [person.id for person in actors]

    def test_edges_without_label(self, cast):
        graph, movie, _ = cast
        assert len(graph.get_edges(movie.id)) == 4

    def test_incoming_edges(self, cast):
        graph, movie, actors = cast
        incoming = graph.get_edges(actors[1].id, direction="incoming")

        assert [edge.label for edge in incoming] == ["actors", "mainActor"]
        assert all(edge.from_id == movie.id for edge in incoming)
        assert graph.get_edges(actors[1].id, direction="outgoing") == []

    def test_invalid_direction(self, cast):
        graph, movie, _ = cast
        with pytest.raises(ValueError, match="Direction"):
            graph.get_edges(movie.id, direction="both")

    def test_unknown_node_has_no_edges(self, cast):
        graph, _, _ = cast
        assert graph.get_edges("missing") == []


class TestGraphLookups:
    """Exact-match lookups and index declarations."""

    def test_find_nodes(self):
        graph = Graph()
        first = graph.add_node("Movie", {"code": "A"})
        graph.add_node("Movie", {"code": "B"})
        third = graph.add_node("Movie", {"code": "A"})
        graph.add_node("Cinema", {"code": "A"})

        found = graph.find_nodes("Movie", "code", "A")

        assert [node.id for node in found] == [first.id, third.id]

    def test_find_nodes_exact_match(self):
        graph = Graph()
        graph.add_node("Movie", {"year": 1979})

        assert graph.find_nodes("Movie", "year", "1979") == []
        assert graph.find_nodes("Movie", "missing", None) == []

    def test_add_index(self):
        graph = Graph()

        assert graph.add_index("Movie", "code") is True
        assert graph.add_index("Movie", "code") is False
        assert graph.has_index("Movie", "code")
        assert not graph.has_index("Cinema", "code")


class TestGraphSerialization:
    """Dict dumps, snapshots and restore."""

    @pytest.fixture
    def graph(self):
        graph = Graph(name="films")
        movie = graph.add_node("Movie", {"title": "Alien"})
        person = graph.add_node("Person", {"name": "Sigourney"})
        graph.add_edge(movie.id, person.id, "actors", {"creationDate": "2024-01-01 00:00:00"})
        graph.add_index("Movie", "title")
        return graph

    def test_to_dict(self, graph):
        data = graph.to_dict()

        assert data["name"] == "films"
        assert len(data["nodes"]) == 2
        assert len(data["edges"]) == 1
        assert data["indexes"] == [["Movie", "title"]]

    def test_restore_into_empty_graph(self, graph):
        restored = Graph()
        restored.restore(graph.snapshot())

        assert restored.node_count() == 2
        assert restored.edge_count() == 1
        assert restored.has_index("Movie", "title")
        assert restored.to_dict()["edges"] == graph.to_dict()["edges"]

    def test_snapshot_and_restore(self, graph):
        state = graph.snapshot()
        movie = graph.find_nodes("Movie", "title", "Alien")[0]

        extra = graph.add_node("Person")
        graph.add_edge(movie.id, extra.id, "actors")
        graph.update_node(movie.id, {"title": "Aliens"})

        graph.restore(state)

        assert graph.node_count() == 2
        assert graph.edge_count() == 1
        assert not graph.has_node(extra.id)
        assert graph.get_node(movie.id).get_property("title") == "Alien"
        assert len(graph.get_edges(movie.id, "actors")) == 1

    def test_snapshot_is_independent(self, graph):
        state = graph.snapshot()
        movie = graph.find_nodes("Movie", "title", "Alien")[0]
        graph.update_node(movie.id, {"title": "Changed"})

        titles = [node["properties"].get("title") for node in state["nodes"]]
        assert "Alien" in titles

    def test_clear(self, graph):
        graph.clear()

        assert graph.node_count() == 0
        assert graph.edge_count() == 0
        assert not graph.has_index("Movie", "title")
