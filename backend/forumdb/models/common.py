"""Shared model types."""
from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class EntityStatus(str, Enum):
    """Row status of topics and comments."""
    ACTIVE = "active"
    DELETED = "deleted"


class CamelModel(BaseModel):
    """Public representation: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
