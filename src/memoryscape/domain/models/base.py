"""Shared pydantic configuration for domain models."""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Generate a new entity identifier."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class DomainModel(BaseModel):
    """Base model serialized to clients with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_payload(self) -> dict:
        """Serialize to a JSON-compatible dict using the wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True)
