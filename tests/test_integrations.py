# tests/test_integrations.py
"""
Integration tests for the neo4jogm public API.

Tests the complete flow from entity definition through persist, flush,
lookup and hydration, using only what the top-level package exports.
"""

import pytest
from datetime import datetime

# Test the main import flow
from neo4jogm import (
    EntityManager,
    Graph,
    InMemoryTransport,
    MappingError,
    ResultSet,
    entity,
    get_entity_by_label,
    IdField,
    StringField,
    IntegerField,
    BooleanField,
    DateTimeField,
    ToOne,
    ToMany,
)
import neo4jogm


@entity(label="IntegrationAuthor")
class Author:
    id = IdField()
    name = StringField(min_length=1)
    email = StringField(index=True)
    active = BooleanField(default=True)
    books = ToMany("IntegrationBook", relation="wrote")


@entity(label="IntegrationBook")
class Book:
    id = IdField()
    title = StringField()
    isbn = StringField(index=True)
    pages = IntegerField(min_value=1)
    published = DateTimeField()
    publisher = ToOne("IntegrationPublisher", relation="publishedBy")
    authors = ToMany(Author, relation="wrote", direction="incoming")


@entity(label="IntegrationPublisher")
class Publisher:
    id = IdField()
    name = StringField()
    catalogue = ToMany(Book, relation="publishedBy", direction="incoming")


def test_package_exports():
    assert neo4jogm.__version__ == "0.1.0"
    for name in ("EntityManager", "InMemoryTransport", "Neo4jTransport", "GraphEngine", "entity"):
        assert name in neo4jogm.__all__
    assert get_entity_by_label("IntegrationBook") is Book


@pytest.mark.asyncio
class TestEntityManagerIntegration:
    """Test the complete mapping workflow."""

    async def test_complete_workflow(self):
        # 1. Shared store
        graph = Graph(name="integration_test")
        transport = InMemoryTransport(graph)

        # 2. Build an object graph
        publisher = Publisher()
        publisher.name = "Allen & Unwin"

        fellowship = Book()
        fellowship.title = "The Fellowship of the Ring"
        fellowship.isbn = "978-0-04-823045-1"
        fellowship.pages = 423
        fellowship.published = datetime(1954, 7, 29)
        fellowship.publisher = publisher

        towers = Book()
        towers.title = "The Two Towers"
        towers.isbn = "978-0-04-823046-8"
        towers.pages = 352
        towers.publisher = publisher

        tolkien = Author()
        tolkien.name = "J. R. R. Tolkien"
        tolkien.email = "jrrt@example.com"
        tolkien.books = [fellowship, towers]

        # 3. Persist the root and flush everything reachable from it
        writer = EntityManager(transport, date_generator=lambda: "2024-01-15 10:00:00")
        writer.persist(tolkien)
        await writer.flush()

        assert graph.node_count() == 4
        assert graph.edge_count() == 4
        assert all(item.id for item in (tolkien, fellowship, towers, publisher))
        assert graph.has_index("IntegrationAuthor", "email")
        assert graph.has_index("IntegrationBook", "isbn")

        node = graph.get_node(tolkien.id)
        assert node.label == "IntegrationAuthor"
        assert node.properties["name"] == "J. R. R. Tolkien"
        assert node.properties["active"] is True
        assert node.properties["creationDate"] == "2024-01-15 10:00:00"

        # 4. Read back through a fresh session
        reader = EntityManager(transport)
        author = await reader.get_repository(Author).find_one_by_email("jrrt@example.com")

        assert author is not tolkien
        assert author.id == tolkien.id
        assert [book.title for book in author.books] == [
            "The Fellowship of the Ring",
            "The Two Towers",
        ]
        first_book = author.books[0]
        assert first_book.published == datetime(1954, 7, 29)
        assert first_book.pages == 423

        # 5. Incoming relations close the loop onto the same instances
        assert first_book.authors == [author]
        assert first_book.publisher is author.books[1].publisher
        assert [book.title for book in first_book.publisher.catalogue] == [
            "The Fellowship of the Ring",
            "The Two Towers",
        ]

        # 6. Modify and flush again
        king = Book()
        king.title = "The Return of the King"
        king.isbn = "978-0-04-823047-5"
        king.publisher = first_book.publisher
        author.books.append(king)
        author.name = "John Ronald Reuel Tolkien"

        reader.set_date_generator(lambda: "2024-02-01 09:00:00")
        reader.persist(author)
        await reader.flush()

        assert graph.node_count() == 5
        assert graph.edge_count() == 6
        updated = graph.get_node(tolkien.id)
        assert updated.properties["name"] == "John Ronald Reuel Tolkien"
        assert updated.properties["creationDate"] == "2024-01-15 10:00:00"
        assert updated.properties["updateDate"] == "2024-02-01 09:00:00"

        # 7. Lookups through the repository
        books = reader.get_repository(Book)
        results = await books.find_by_isbn("978-0-04-823047-5")
        assert isinstance(results, ResultSet)
        assert (await results.first()) is king

        third = EntityManager(transport)
        reloaded = await third.get(Author, tolkien.id)
        assert len(reloaded.books) == 3

    async def test_invalid_graph_is_not_written(self):
        transport = InMemoryTransport()
        em = EntityManager(transport)

        book = Book()
        book.title = "Orphan"
        book.publisher = object()

        em.persist(book)
        with pytest.raises(MappingError):
            await em.flush()

        assert transport.graph.node_count() == 0
        assert book.id is None

    async def test_field_validation_on_assignment(self):
        author = Author()
        with pytest.raises(ValueError):
            author.name = ""

        book = Book()
        with pytest.raises(ValueError):
            book.pages = 0
