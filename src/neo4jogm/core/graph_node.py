from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Dict, Any
import uuid


class GraphNode(BaseModel):
    """
    A node record as stored in, or read back from, the graph.

    The id is assigned by the store on first write and never changes after
    that; it is the join key between an entity instance and its node.
    """

    id: str = Field(..., min_length=1, description="Database node identifier")
    label: str = Field(..., min_length=1, description="Node label (entity type)")
    properties: Dict[str, Any] = Field(
        default_factory=dict,
        description="Scalar node properties"
    )

    model_config = ConfigDict(
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "id": "4:2b6b0c1e:12",
                "label": "Movie",
                "properties": {
                    "title": "Return of the king",
                    "creationDate": "2024-01-15 10:00:00",
                    "updateDate": "2024-01-15 10:00:00"
                }
            }
        }
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id_to_string(cls, v):
        """Ensure ID is always a string."""
        if v is None:
            return str(uuid.uuid4())
        return str(v)

    @field_validator('label')
    @classmethod
    def validate_label(cls, v):
        """Ensure label is not empty after stripping."""
        if not v or not v.strip():
            raise ValueError("Label cannot be empty")
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

    def update_properties(self, new_properties: Dict[str, Any]) -> None:
        """
        Merge properties into the node, keeping keys not mentioned.

        Args:
            new_properties: Properties to update/add
        """
        self.properties.update(new_properties)

    def get_property(self, key: str, default: Any = None) -> Any:
        """
        Get a specific property value.

        Args:
            key: Property key to retrieve
            default: Default value if key not found

        Returns:
            Property value or default
        """
        return self.properties.get(key, default)

    def has_property(self, key: str) -> bool:
        """Check if property exists."""
        return key in self.properties
