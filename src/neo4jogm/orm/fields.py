"""
neo4jogm Field Descriptors

Declarative field types for entity classes. Each descriptor knows how to
validate an assigned value, convert it to a graph property and read it back.
Relation descriptors describe edges to other entities instead of properties.
"""
from typing import Any, Optional, Type, Union, List, Dict, Callable, Generic, TypeVar, Iterable
from datetime import datetime, date
from abc import ABC, abstractmethod


T = TypeVar('T')

# Field kinds
IDENTITY = "identity"
SCALAR = "scalar"
DATE = "date"
RELATION_TO_ONE = "relation_to_one"
RELATION_TO_MANY = "relation_to_many"

# Visibility
READ_WRITE = "read_write"
READ_ONLY = "read_only"
WRITE_ONLY = "write_only"

# Relation directions
OUTGOING = "outgoing"
INCOMING = "incoming"


class Field(ABC, Generic[T]):
    """
    Base field descriptor.

    Values live in the instance ``__dict__`` under the attribute name, so
    entities stay plain objects.
    """

    kind: str = SCALAR

    def __init__(
        self,
        *,
        default: Optional[Union[T, Callable]] = None,
        required: bool = False,
        index: bool = False,
        read_only: bool = False,
        write_only: bool = False,
        db_field: Optional[str] = None,
        description: Optional[str] = None
    ):
        if read_only and write_only:
            raise ValueError("A field cannot be both read_only and write_only")

        self.default = default
        self.required = required
        self.index = index
        self.read_only = read_only
        self.write_only = write_only
        self.db_field = db_field
        self.description = description
        self.name: Optional[str] = None  # Set by __set_name__

    def __set_name__(self, owner: Type, name: str):
        """Called when field is assigned to a class attribute."""
        self.name = name
        if self.db_field is None:
            self.db_field = name

    def __get__(self, instance: Any, owner: Type) -> Union[T, 'Field']:
        """Get field value from instance."""
        if instance is None:
            return self

        if self.name in instance.__dict__:
            return instance.__dict__[self.name]

        if self.default is not None:
            value = self.default() if callable(self.default) else self.default
            instance.__dict__[self.name] = value
            return value

        if self.required:
            raise AttributeError(f"Required field '{self.name}' has no value")

        return None

    def __set__(self, instance: Any, value: T):
        """Set field value on instance."""
        if value is not None:
            value = self.validate(value)
            value = self.to_python(value)
        instance.__dict__[self.name] = value

    def load(self, instance: Any, value: Any) -> None:
        """Store a value read from the graph, bypassing validation."""
        instance.__dict__[self.name] = self.to_python(value) if value is not None else None

    @property
    def visibility(self) -> str:
        if self.read_only:
            return READ_ONLY
        if self.write_only:
            return WRITE_ONLY
        return READ_WRITE

    @abstractmethod
    def validate(self, value: Any) -> Any:
        """Validate and potentially transform the value."""
        pass

    @abstractmethod
    def to_python(self, value: Any) -> T:
        """Convert value to Python type."""
        pass

    @abstractmethod
    def to_neo4j(self, value: T) -> Any:
        """Convert value to Neo4j-compatible type."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class IdField(Field[str]):
    """Database identity of the entity. Empty until the first flush."""

    kind = IDENTITY

    def validate(self, value: Any) -> str:
        return str(value)

    def to_python(self, value: Any) -> str:
        return str(value) if value is not None else None

    def to_neo4j(self, value: str) -> str:
        return value


class StringField(Field[str]):
    """String field type."""

    def __init__(
        self,
        *,
        max_length: Optional[int] = None,
        min_length: Optional[int] = None,
        choices: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.max_length = max_length
        self.min_length = min_length
        self.choices = choices

    def validate(self, value: Any) -> str:
        """Validate string value."""
        if not isinstance(value, str):
            value = str(value)

        if self.min_length and len(value) < self.min_length:
            raise ValueError(f"{self.name} must be at least {self.min_length} characters")

        if self.max_length and len(value) > self.max_length:
            raise ValueError(f"{self.name} must be at most {self.max_length} characters")

        if self.choices and value not in self.choices:
            raise ValueError(f"{self.name} must be one of {self.choices}")

        return value

    def to_python(self, value: Any) -> str:
        return str(value) if value is not None else None

    def to_neo4j(self, value: str) -> str:
        return value


class IntegerField(Field[int]):
    """Integer field type."""

    def __init__(
        self,
        *,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.min_value = min_value
        self.max_value = max_value

    def validate(self, value: Any) -> int:
        """Validate integer value."""
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"{self.name} must be an integer")

        if self.min_value is not None and value < self.min_value:
            raise ValueError(f"{self.name} must be at least {self.min_value}")

        if self.max_value is not None and value > self.max_value:
            raise ValueError(f"{self.name} must be at most {self.max_value}")

        return value

    def to_python(self, value: Any) -> int:
        return int(value) if value is not None else None

    def to_neo4j(self, value: int) -> int:
        return value


class FloatField(Field[float]):
    """Float field type."""

    def __init__(
        self,
        *,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.min_value = min_value
        self.max_value = max_value

    def validate(self, value: Any) -> float:
        """Validate float value."""
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{self.name} must be a float")

        if self.min_value is not None and value < self.min_value:
            raise ValueError(f"{self.name} must be at least {self.min_value}")

        if self.max_value is not None and value > self.max_value:
            raise ValueError(f"{self.name} must be at most {self.max_value}")

        return value

    def to_python(self, value: Any) -> float:
        return float(value) if value is not None else None

    def to_neo4j(self, value: float) -> float:
        return value


class BooleanField(Field[bool]):
    """Boolean field type."""

    def validate(self, value: Any) -> bool:
        """Validate boolean value."""
        if isinstance(value, bool):
            return value

        if isinstance(value, str):
            if value.lower() in ('true', '1', 'yes', 'on'):
                return True
            elif value.lower() in ('false', '0', 'no', 'off'):
                return False

        return bool(value)

    def to_python(self, value: Any) -> bool:
        return self.validate(value) if value is not None else None

    def to_neo4j(self, value: bool) -> bool:
        return value


class DateTimeField(Field[datetime]):
    """DateTime field type, stored as an ISO-8601 string."""

    kind = DATE

    def validate(self, value: Any) -> datetime:
        """Validate datetime value."""
        if isinstance(value, datetime):
            return value

        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())

        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                raise ValueError(f"{self.name} must be a valid datetime")

        raise ValueError(f"{self.name} must be a datetime")

    def to_python(self, value: Any) -> datetime:
        if value is None:
            return None
        return self.validate(value)

    def to_neo4j(self, value: datetime) -> str:
        """Convert to ISO format for Neo4j."""
        if value is None:
            return None
        return value.isoformat()


class RelationField(Field[T]):
    """
    Base class for fields mapped to edges rather than node properties.

    Args:
        target: Entity class, or its label when the class is declared later.
        relation: Edge label; defaults to the attribute name.
        direction: ``"outgoing"`` edges start at this entity. ``"incoming"``
            edges are owned by the other side and are always read-only.
    """

    def __init__(
        self,
        target: Union[str, Type],
        *,
        relation: Optional[str] = None,
        direction: str = OUTGOING,
        **kwargs
    ):
        if direction not in (OUTGOING, INCOMING):
            raise ValueError("Direction must be 'outgoing' or 'incoming'")
        if direction == INCOMING:
            if kwargs.get("write_only"):
                raise ValueError("Incoming relations cannot be write_only")
            kwargs["read_only"] = True
        if kwargs.get("index"):
            raise ValueError("Relation fields cannot be indexed")

        super().__init__(**kwargs)
        self.target = target
        self.relation = relation
        self.direction = direction

    def __set_name__(self, owner: Type, name: str):
        super().__set_name__(owner, name)
        if self.relation is None:
            self.relation = name

    def to_neo4j(self, value: Any) -> Any:
        raise TypeError(f"Relation field '{self.name}' has no property representation")


class ToOne(RelationField[Any]):
    """Single related entity (many-to-one)."""

    kind = RELATION_TO_ONE

    def validate(self, value: Any) -> Any:
        if isinstance(value, (str, bytes, int, float, bool, list, tuple, dict)):
            raise ValueError(f"{self.name} must reference an entity")
        return value

    def to_python(self, value: Any) -> Any:
        return value


class ToMany(RelationField[List]):
    """Ordered collection of related entities. Duplicates are kept."""

    kind = RELATION_TO_MANY

    def __init__(self, target: Union[str, Type], **kwargs):
        kwargs.setdefault("default", list)
        super().__init__(target, **kwargs)

    def __set__(self, instance: Any, value: Optional[Iterable]):
        super().__set__(instance, [] if value is None else value)

    def validate(self, value: Any) -> List:
        if isinstance(value, (str, bytes, dict)) or not isinstance(value, Iterable):
            raise ValueError(f"{self.name} must be a list of entities")
        return list(value)

    def to_python(self, value: Any) -> List:
        return list(value) if value is not None else []


def get_fields(cls: Type) -> Dict[str, Field]:
    """Get all Field descriptors from a class, in declaration order (base classes first)."""
    fields: Dict[str, Field] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if isinstance(attr, Field):
                fields[name] = attr
    return fields
