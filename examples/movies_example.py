#!/usr/bin/env python3
"""
neo4jogm Movies Example

This example walks through the mapping workflow:
- Declaring entities with field descriptors and relations
- Persisting an object graph and flushing it in one batch
- Reading it back in a fresh session, incoming relations included
- Indexed lookups through repositories
- Automatic creationDate / updateDate stamps

Runs against the in-memory transport by default. Set NEO4J_URI (and
optionally NEO4J_USER / NEO4J_PASSWORD) to run it against a real server.
"""

import asyncio
import logging
import os
import uuid
from datetime import datetime

from neo4jogm import (
    EntityManager,
    InMemoryTransport,
    Neo4jTransport,
    create_graph_engine,
    entity,
    IdField,
    StringField,
    DateTimeField,
    ToOne,
    ToMany,
)


# =============================================================================
# DEFINE ENTITIES
# =============================================================================

@entity(label="Person")
class Person:
    id = IdField()
    first_name = StringField(db_field="firstName")
    last_name = StringField(db_field="lastName")

    def __init__(self, first_name=None, last_name=None):
        self.first_name = first_name
        self.last_name = last_name

    def __str__(self):
        return f"{self.first_name} {self.last_name}"


@entity(label="Movie")
class Movie:
    id = IdField()
    title = StringField()
    registry_code = StringField(index=True, db_field="movieRegistryCode", default=lambda: uuid.uuid4().hex)
    release_date = DateTimeField(db_field="releaseDate")
    actors = ToMany(Person)
    main_actor = ToOne(Person, relation="mainActor")
    cinemas = ToMany("Cinema", relation="presentedMovie", direction="incoming")


@entity(label="Cinema")
class Cinema:
    id = IdField()
    name = StringField(index=True)
    presented_movies = ToMany(Movie, relation="presentedMovie")
    rejected_movies = ToMany(Movie, relation="rejectedMovie", write_only=True)


# =============================================================================
# DEMONSTRATION
# =============================================================================

async def store_sample_data(em: EntityManager) -> Movie:
    print("\n📝 Storing sample data")
    print("-" * 60)

    aragorn = Person("Viggo", "Mortensen")
    legolas = Person("Orlando", "Bloom")

    movie = Movie()
    movie.title = "Return of the king"
    movie.release_date = datetime(2003, 12, 17)
    movie.actors = [aragorn, legolas]
    movie.main_actor = aragorn

    paramount = Cinema()
    paramount.name = "Paramount"
    paramount.presented_movies.append(movie)

    em.persist(paramount)
    await em.flush()

    print(f"   Movie '{movie.title}' stored as {movie.id}")
    print(f"   Registry code: {movie.registry_code}")
    print(f"   Cinema '{paramount.name}' stored as {paramount.id}")
    return movie


async def read_back(em: EntityManager, movie_id: str, registry_code: str) -> None:
    print("\n🔎 Reading back in a fresh session")
    print("-" * 60)

    movie = await em.find(Movie, movie_id)
    print(f"   Title: {movie.title} ({movie.release_date:%Y-%m-%d})")
    print(f"   Actors: {', '.join(str(actor) for actor in movie.actors)}")
    print(f"   Main actor: {movie.main_actor}")
    print(f"   Shown at: {', '.join(cinema.name for cinema in movie.cinemas)}")

    same = await em.get_repository(Movie).find_one_by_registry_code(registry_code)
    print(f"   Lookup by registry code returns the same instance: {same is movie}")


async def show_timestamps(em: EntityManager, movie_id: str) -> None:
    print("\n🕒 Timestamps")
    print("-" * 60)

    movie = await em.find(Movie, movie_id)
    movie.title = "The Return of the King"
    em.set_date_generator(lambda: "2024-01-01 00:00:00")
    em.persist(movie)
    await em.flush()

    record = await em.transport.get_node(movie_id)
    print(f"   creationDate: {record.properties['creationDate']}")
    print(f"   updateDate:   {record.properties['updateDate']}")


async def run(transport) -> None:
    movie = await store_sample_data(EntityManager(transport))
    await read_back(EntityManager(transport), movie.id, movie.registry_code)
    await show_timestamps(EntityManager(transport), movie.id)


async def main():
    """Run the demonstration against the configured transport."""

    print("🚀 neo4jogm Movies Demo")
    print("=" * 60)

    uri = os.environ.get("NEO4J_URI")
    if not uri:
        await run(InMemoryTransport())
        return

    auth = (os.environ.get("NEO4J_USER", "neo4j"), os.environ.get("NEO4J_PASSWORD", "password"))
    async with create_graph_engine(uri, auth) as engine:
        await run(Neo4jTransport(engine))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
