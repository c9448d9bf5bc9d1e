from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Dict, Any
import uuid


class GraphEdge(BaseModel):
    """
    A directed, labelled edge record between two nodes.

    Several edges may share the same (from_id, to_id, label) triple, so each
    edge carries its own id.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        min_length=1,
        description="Database edge identifier"
    )
    from_id: str = Field(..., min_length=1, description="Source node ID")
    to_id: str = Field(..., min_length=1, description="Target node ID")
    label: str = Field(..., min_length=1, description="Relationship label")
    properties: Dict[str, Any] = Field(
        default_factory=dict,
        description="Edge properties (e.g. creationDate)"
    )

    model_config = ConfigDict(
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "from_id": "4:2b6b0c1e:12",
                "to_id": "4:2b6b0c1e:13",
                "label": "actors",
                "properties": {
                    "creationDate": "2024-01-15 10:00:00"
                }
            }
        }
    )

    @field_validator('id', 'from_id', 'to_id', mode='before')
    @classmethod
    def coerce_ids_to_string(cls, v):
        """Ensure IDs are always strings."""
        return str(v)

    @field_validator('label')
    @classmethod
    def validate_label(cls, v):
        """Relationship labels are case sensitive; only surrounding space is stripped."""
        if not v or not v.strip():
            raise ValueError("Relationship label cannot be empty")
        return v.strip()

    @field_validator('properties', mode='before')
    @classmethod
    def validate_properties(cls, v):
        """Validate properties dictionary."""
        if v is None:
            return {}

        if not all(isinstance(k, str) for k in v.keys()):
            raise ValueError("All property keys must be strings")

        return dict(v)

    def other_end(self, node_id: str) -> str:
        """Return the id at the opposite end of the edge from ``node_id``."""
        return self.to_id if self.from_id == str(node_id) else self.from_id
