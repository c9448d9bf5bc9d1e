r"""
neo4jogm - Object-Graph Mapper for Neo4j

neo4jogm persists plain Python objects as Neo4j nodes and edges and loads
them back:
- Declarative entities with typed field descriptors
- To-one and to-many relations, with read-only and write-only directions
- Unit of work with identity map and additive, non-duplicating edge writes
- Indexed lookups through repositories
- Automatic creationDate / updateDate stamps
- In-memory transport for tests, Neo4j transport for production

Example:
    ```python
    from neo4jogm import (
        EntityManager, InMemoryTransport, entity,
        IdField, StringField, ToMany,
    )

    @entity(label="Person")
    class Person:
        id = IdField()
        first_name = StringField()

    @entity(label="Movie")
    class Movie:
        id = IdField()
        title = StringField(index=True)
        actors = ToMany(Person)

    em = EntityManager(InMemoryTransport())

    movie = Movie()
    movie.title = "Return of the king"
    viggo = Person()
    viggo.first_name = "Viggo"
    movie.actors.append(viggo)

    em.persist(movie)
    await em.flush()

    found = await em.get_repository(Movie).find_one_by_title("Return of the king")
    ```
"""

# Core records and in-memory store
from neo4jogm.core.graph import Graph
from neo4jogm.core.graph_node import GraphNode
from neo4jogm.core.graph_edge import GraphEdge

# Entity declaration
from neo4jogm.orm.entities import entity, is_entity, get_entity_classes, get_entity_by_label
from neo4jogm.orm.fields import (
    IdField,
    StringField,
    IntegerField,
    FloatField,
    BooleanField,
    DateTimeField,
    ToOne,
    ToMany,
)
from neo4jogm.orm.metadata import EntityMetadata, FieldSpec, MetaRepository

# Engine and transports
from neo4jogm.orm.engine import GraphEngine, create_graph_engine
from neo4jogm.orm.transport import Transport, InMemoryTransport, Neo4jTransport

# Session
from neo4jogm.orm.manager import EntityManager
from neo4jogm.orm.repository import Repository, ResultSet
from neo4jogm.orm.query import Query

# Errors
from neo4jogm.exceptions import (
    OGMError,
    MappingError,
    UnknownFieldError,
    UnindexedFieldError,
    EntityNotFoundError,
    QueryError,
)

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "Graph",
    "GraphNode",
    "GraphEdge",

    # Entity declaration
    "entity",
    "is_entity",
    "get_entity_classes",
    "get_entity_by_label",
    "IdField",
    "StringField",
    "IntegerField",
    "FloatField",
    "BooleanField",
    "DateTimeField",
    "ToOne",
    "ToMany",
    "EntityMetadata",
    "FieldSpec",
    "MetaRepository",

    # Engine and transports
    "GraphEngine",
    "create_graph_engine",
    "Transport",
    "InMemoryTransport",
    "Neo4jTransport",

    # Session
    "EntityManager",
    "Repository",
    "ResultSet",
    "Query",

    # Errors
    "OGMError",
    "MappingError",
    "UnknownFieldError",
    "UnindexedFieldError",
    "EntityNotFoundError",
    "QueryError",

    # Version
    "__version__",
]
