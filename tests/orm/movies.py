"""Entity classes shared by the ORM tests."""

import uuid

from neo4jogm.orm.entities import entity
from neo4jogm.orm.fields import (
    IdField,
    StringField,
    IntegerField,
    DateTimeField,
    ToOne,
    ToMany,
)


@entity(label="Person")
class Person:
    id = IdField()
    first_name = StringField(db_field="firstName")
    last_name = StringField(db_field="lastName")

    def __init__(self, first_name=None, last_name=None):
        self.first_name = first_name
        self.last_name = last_name


@entity(label="Movie")
class Movie:
    id = IdField()
    title = StringField()
    registry_code = StringField(index=True, db_field="movieRegistryCode", default=lambda: uuid.uuid4().hex)
    release_date = DateTimeField(db_field="releaseDate")
    rating = IntegerField(min_value=0, max_value=10)
    actors = ToMany(Person)
    main_actor = ToOne(Person, relation="mainActor")
    cinemas = ToMany("Cinema", relation="presentedMovie", direction="incoming")


@entity(label="Cinema")
class Cinema:
    id = IdField()
    name = StringField(index=True)
    presented_movies = ToMany(Movie, relation="presentedMovie")
    rejected_movies = ToMany(Movie, relation="rejectedMovie", write_only=True)


@entity(label="Ticket")
class Ticket:
    """Carries a read-only property that is never written."""

    id = IdField()
    seat = StringField()
    price = IntegerField(read_only=True)
    movie = ToOne(Movie)


@entity(label="FailedEntity")
class FailedEntity:
    """Entity without an identity field."""

    name = StringField()


class NotAnEntity:
    pass


def make_movie(title="Return of the king", *actors):
    movie = Movie()
    movie.title = title
    movie.actors = list(actors)
    return movie
