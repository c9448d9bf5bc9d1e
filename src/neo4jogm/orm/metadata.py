"""
neo4jogm Entity Metadata

Static mapping description of every entity class, built once per class from
its field descriptors and consumed by the serializer, hydrator and
repositories.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, model_validator

from neo4jogm.exceptions import MappingError
from neo4jogm.orm import fields as f
from neo4jogm.orm.entities import get_entity_by_label, get_entity_config


logger = logging.getLogger(__name__)


class FieldSpec(BaseModel):
    """Mapping description of a single entity field."""

    name: str = Field(..., min_length=1)
    kind: str
    db_field: str = Field(..., min_length=1, description="Property key in the graph")
    indexed: bool = False
    visibility: str = f.READ_WRITE
    target: Optional[Union[str, type]] = Field(
        default=None, description="Target entity class or label (relations only)"
    )
    relation: Optional[str] = Field(default=None, description="Edge label (relations only)")
    direction: str = f.OUTGOING
    descriptor: Any = Field(default=None, exclude=True, repr=False)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode='after')
    def _check_kind(self) -> FieldSpec:
        kinds = (f.IDENTITY, f.SCALAR, f.DATE, f.RELATION_TO_ONE, f.RELATION_TO_MANY)
        if self.kind not in kinds:
            raise ValueError(f"Unknown field kind '{self.kind}'")
        if self.visibility not in (f.READ_WRITE, f.READ_ONLY, f.WRITE_ONLY):
            raise ValueError(f"Unknown visibility '{self.visibility}'")
        if self.is_relation and (self.target is None or not self.relation):
            raise ValueError(f"Relation field '{self.name}' needs a target and a relation label")
        if self.is_relation and self.indexed:
            raise ValueError(f"Relation field '{self.name}' cannot be indexed")
        return self

    @classmethod
    def from_descriptor(cls, descriptor: f.Field) -> FieldSpec:
        return cls(
            name=descriptor.name,
            kind=descriptor.kind,
            db_field=descriptor.db_field,
            indexed=descriptor.index,
            visibility=descriptor.visibility,
            target=getattr(descriptor, "target", None),
            relation=getattr(descriptor, "relation", None),
            direction=getattr(descriptor, "direction", f.OUTGOING),
            descriptor=descriptor,
        )

    @property
    def is_relation(self) -> bool:
        return self.kind in (f.RELATION_TO_ONE, f.RELATION_TO_MANY)

    @property
    def is_property(self) -> bool:
        return self.kind in (f.SCALAR, f.DATE)

    @property
    def readable(self) -> bool:
        """Populated during hydration."""
        return self.visibility != f.WRITE_ONLY

    @property
    def writable(self) -> bool:
        """Written during flush."""
        return self.visibility != f.READ_ONLY

    def get_value(self, instance: Any) -> Any:
        return getattr(instance, self.name)

    def load_value(self, instance: Any, value: Any) -> None:
        self.descriptor.load(instance, value)

    def to_database(self, value: Any) -> Any:
        if value is None:
            return None
        return self.descriptor.to_neo4j(self.descriptor.validate(value))


class EntityMetadata(BaseModel):
    """Mapping description of an entity class."""

    type_name: str = Field(..., min_length=1, description="Graph label")
    entity_class: type
    fields: List[FieldSpec]
    identity_field_name: str

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode='after')
    def _check_fields(self) -> EntityMetadata:
        names = [spec.name for spec in self.fields]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate field names: {sorted(duplicates)}")

        identities = [spec.name for spec in self.fields if spec.kind == f.IDENTITY]
        if identities != [self.identity_field_name]:
            raise ValueError(
                f"Exactly one identity field is required, found {identities}"
            )

        return self

    @property
    def identity_field(self) -> FieldSpec:
        return self.get_field(self.identity_field_name)

    @property
    def property_fields(self) -> List[FieldSpec]:
        return [spec for spec in self.fields if spec.is_property]

    @property
    def relation_fields(self) -> List[FieldSpec]:
        return [spec for spec in self.fields if spec.is_relation]

    @property
    def indexed_fields(self) -> List[FieldSpec]:
        return [spec for spec in self.fields if spec.indexed]

    def get_field(self, name: str) -> Optional[FieldSpec]:
        return next((spec for spec in self.fields if spec.name == name), None)

    def get_id(self, instance: Any) -> Optional[str]:
        try:
            return getattr(instance, self.identity_field_name)
        except AttributeError as e:
            raise MappingError(
                f"Cannot read identity field '{self.identity_field_name}' of {self.type_name}: {e}"
            ) from e

    def set_id(self, instance: Any, value: str) -> None:
        self.identity_field.load_value(instance, value)


class MetaRepository:
    """
    Builds and caches ``EntityMetadata`` per entity class.
    """

    def __init__(self):
        self._metadata: Dict[type, EntityMetadata] = {}

    def get_metadata(self, class_or_instance: Any) -> EntityMetadata:
        """
        Return the metadata of an entity class or instance.

        Raises:
            MappingError: If the class is not an entity or its identity
                field is missing or ambiguous.
        """
        cls = class_or_instance if isinstance(class_or_instance, type) else type(class_or_instance)

        metadata = self._metadata.get(cls)
        if metadata is None:
            metadata = self._build(cls)
            self._metadata[cls] = metadata
        return metadata

    def resolve_target(self, spec: FieldSpec) -> type:
        """Resolve the entity class a relation field points at."""
        target = spec.target
        if isinstance(target, type):
            return target

        cls = get_entity_by_label(target)
        if cls is None:
            raise MappingError(
                f"Relation '{spec.name}' targets unknown entity label '{target}'"
            )
        return cls

    def _build(self, cls: type) -> EntityMetadata:
        config = get_entity_config(cls)
        if config is None:
            raise MappingError(f"{cls.__module__}.{cls.__qualname__} is not an entity")

        specs = [FieldSpec.from_descriptor(d) for d in f.get_fields(cls).values()]
        identities = [spec.name for spec in specs if spec.kind == f.IDENTITY]
        if len(identities) != 1:
            raise MappingError(
                f"Entity {cls.__qualname__} must declare exactly one IdField, found {len(identities)}"
            )

        try:
            metadata = EntityMetadata(
                type_name=config.label,
                entity_class=cls,
                fields=specs,
                identity_field_name=identities[0],
            )
        except ValueError as e:
            raise MappingError(f"Invalid mapping for entity {cls.__qualname__}: {e}") from e

        logger.debug(
            "Built metadata for %s: %d fields, indexed=%s",
            config.label, len(specs), [spec.name for spec in metadata.indexed_fields]
        )
        return metadata
