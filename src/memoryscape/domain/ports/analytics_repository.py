"""Analytics repository port."""

from datetime import datetime
from typing import Protocol

from memoryscape.domain.models.analytics_event import AnalyticsEvent


class AnalyticsRepository(Protocol):
    """Port for recording and reading tracked requests."""

    async def record(self, event: AnalyticsEvent) -> None:
        """Store one tracked event."""
        ...

    async def find(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        event: str | None = None,
        user_id: str | None = None,
    ) -> list[AnalyticsEvent]:
        """Events in ``[start, end)`` matching the optional filters."""
        ...
