"""
neo4jogm Entity Declaration

Entities are plain classes marked with the ``@entity`` decorator and
described by field descriptors. The decorator only records configuration;
the mapping engine reads it through ``MetaRepository``.

Example:
    ```python
    @entity(label="Movie")
    class Movie:
        id = IdField()
        title = StringField()
        registry_code = StringField(index=True, default=lambda: uuid.uuid4().hex)
        actors = ToMany("Person")
        main_actor = ToOne("Person")
    ```
"""

from __future__ import annotations

from typing import Any, Optional, Type, Set, Union, Callable
import weakref


ENTITY_CONFIG_ATTRIBUTE = "__entity_config__"


class EntityConfig:
    """Configuration attached to an entity class."""

    def __init__(self, label: str):
        self.label = label

    def __repr__(self) -> str:
        return f"EntityConfig(label={self.label!r})"


# Most recent class registered for each label
_entity_registry: weakref.WeakValueDictionary[str, type] = weakref.WeakValueDictionary()


def entity(
    cls: Optional[Type] = None,
    *,
    label: Optional[str] = None,
) -> Union[Type, Callable[[Type], Type]]:
    """
    Mark a class as a persistable entity.

    Args:
        cls: The class being decorated
        label: Graph label for the entity's nodes (defaults to the class name)

    Returns:
        Decorated class or decorator function
    """
    def decorator(target_cls: Type) -> Type:
        if not isinstance(target_cls, type):
            raise TypeError("@entity can only be applied to classes")

        config = EntityConfig(label=label or target_cls.__name__)
        setattr(target_cls, ENTITY_CONFIG_ATTRIBUTE, config)
        _entity_registry[config.label] = target_cls

        return target_cls

    if cls is None:
        return decorator
    else:
        return decorator(cls)


def get_entity_config(cls: Type) -> Optional[EntityConfig]:
    """Return the configuration declared directly on ``cls``, if any."""
    return vars(cls).get(ENTITY_CONFIG_ATTRIBUTE)


def is_entity(obj: Any) -> bool:
    """Check whether a class, or the class of an instance, is an entity."""
    cls = obj if isinstance(obj, type) else type(obj)
    return get_entity_config(cls) is not None


def get_entity_classes() -> Set[type]:
    """Get all registered entity classes."""
    return set(_entity_registry.values())


def get_entity_by_label(label: str) -> Optional[type]:
    """Get entity class by its graph label."""
    return _entity_registry.get(label)
