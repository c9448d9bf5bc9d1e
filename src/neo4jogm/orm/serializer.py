"""
neo4jogm Graph Serializer

Turns one entity instance into the node properties and outgoing relation
targets that a flush has to write. Pure: no I/O, the timestamp is supplied
by the caller.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from neo4jogm.exceptions import MappingError
from neo4jogm.orm import fields as f
from neo4jogm.orm.metadata import EntityMetadata, FieldSpec, MetaRepository


CREATION_DATE = "creationDate"
UPDATE_DATE = "updateDate"


class SerializedEntity:
    """Write plan for one entity."""

    def __init__(
        self,
        entity: Any,
        metadata: EntityMetadata,
        properties: Dict[str, Any],
        relations: List[Tuple[FieldSpec, Any]],
    ):
        self.entity = entity
        self.metadata = metadata
        self.properties = properties
        self.relations = relations

    @property
    def targets(self) -> List[Any]:
        return [target for _, target in self.relations]

    def __repr__(self) -> str:
        return (
            f"SerializedEntity({self.metadata.type_name}, "
            f"properties={sorted(self.properties)}, relations={len(self.relations)})"
        )


class GraphSerializer:
    """Serializes entity instances according to their metadata."""

    def __init__(self, meta_repository: MetaRepository):
        self.meta_repository = meta_repository

    def serialize(self, entity: Any, timestamp: Any, is_new: bool) -> SerializedEntity:
        """
        Build the write plan for ``entity``.

        Read-only fields are skipped. ``creationDate`` is only included for
        entities that have no node yet; ``updateDate`` is always included.

        Raises:
            MappingError: If the entity is not mapped or a field cannot be read.
        """
        metadata = self.meta_repository.get_metadata(entity)
        metadata.get_id(entity)

        properties: Dict[str, Any] = {}
        relations: List[Tuple[FieldSpec, Any]] = []

        for spec in metadata.fields:
            if spec.kind == f.IDENTITY or not spec.writable:
                continue

            value = self._read(entity, metadata, spec)

            if spec.is_property:
                try:
                    properties[spec.db_field] = spec.to_database(value)
                except ValueError as e:
                    raise MappingError(
                        f"Invalid value for {metadata.type_name}.{spec.name}: {e}"
                    ) from e
            elif spec.kind == f.RELATION_TO_ONE:
                if value is not None:
                    relations.append((spec, value))
            else:
                relations.extend((spec, target) for target in (value or []))

        if is_new:
            properties[CREATION_DATE] = timestamp
        properties[UPDATE_DATE] = timestamp

        return SerializedEntity(entity, metadata, properties, relations)

    @staticmethod
    def _read(entity: Any, metadata: EntityMetadata, spec: FieldSpec) -> Any:
        try:
            return spec.get_value(entity)
        except AttributeError as e:
            raise MappingError(
                f"Cannot read field {metadata.type_name}.{spec.name}: {e}"
            ) from e
