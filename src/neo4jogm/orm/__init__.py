"""
neo4jogm ORM Module

This module provides the mapping layer: entity declaration, metadata, the
unit of work, hydration, repositories and the entity manager façade.
"""

from neo4jogm.orm.entities import (
    entity,
    is_entity,
    get_entity_classes,
    get_entity_by_label
)

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

from neo4jogm.orm.engine import (
    GraphEngine,
    create_graph_engine
)

from neo4jogm.orm.transport import Transport, InMemoryTransport, Neo4jTransport
from neo4jogm.orm.manager import EntityManager
from neo4jogm.orm.repository import Repository, ResultSet
from neo4jogm.orm.query import Query

__all__ = [
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

    # Metadata
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
]
