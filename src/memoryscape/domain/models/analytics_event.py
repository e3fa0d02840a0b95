"""Analytics domain models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from memoryscape.domain.models.base import DomainModel, utc_now


class AnalyticsEvent(DomainModel):
    """One tracked API request."""

    user_id: str | None = None
    session_id: str | None = None
    event: str
    path: str
    method: str
    user_agent: str = ""
    ip: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)


class AnalyticsBucket(BaseModel):
    """Count of one event type on one day."""

    model_config = ConfigDict(frozen=True)

    event: str
    date: str
    count: int
    unique_users: int
