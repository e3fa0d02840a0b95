"""Request analytics: classification, sanitization, aggregation and dashboard stats."""

import logging
from collections import Counter, defaultdict
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from memoryscape.domain.models.analytics_event import AnalyticsBucket, AnalyticsEvent
from memoryscape.domain.models.base import utc_now
from memoryscape.domain.ports.analytics_repository import AnalyticsRepository

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = ("password", "token", "secret")
MAX_TRACKED_TEXT = 200


def event_type_for(method: str, path: str) -> str:
    """Classify a request into an analytics event type."""
    if "/auth/login" in path:
        return "user_login"
    if "/auth/register" in path:
        return "user_register"
    if "/capsules" in path and method == "POST":
        return "capsule_create"
    if "/memories" in path and method == "POST":
        return "memory_create"
    if "/upload" in path:
        return "file_upload"
    if "/ai/" in path:
        return "ai_request"
    return "api_request"


def sanitize_body(body: Any) -> dict[str, Any] | None:
    """Drop credentials and truncate long text before a request body is stored."""
    if not isinstance(body, dict) or not body:
        return None
    sanitized = {key: value for key, value in body.items() if key not in SENSITIVE_FIELDS}
    text = sanitized.get("text")
    if isinstance(text, str) and len(text) > MAX_TRACKED_TEXT:
        sanitized["text"] = text[:MAX_TRACKED_TEXT] + "..."
    return sanitized


def calculate_growth(current: int, previous: int) -> int:
    """Percentage change, rounded; 100 when growing from zero."""
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


class AnalyticsService:
    """Records tracked requests and aggregates them for the admin dashboard."""

    def __init__(
        self, repository: AnalyticsRepository, clock: Callable[[], datetime] = utc_now
    ) -> None:
        self._repository = repository
        self._clock = clock

    async def track(self, event: AnalyticsEvent) -> None:
        """Store an event; failures are logged and never propagate."""
        try:
            await self._repository.record(event)
        except Exception as e:
            logger.error(f"Analytics tracking error: {e}", exc_info=True)

    async def aggregate(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        event: str | None = None,
        user_id: str | None = None,
    ) -> list[AnalyticsBucket]:
        """Counts and unique users per event type and day, newest day first."""
        events = await self._repository.find(start=start, end=end, event=event, user_id=user_id)
        counts: Counter[tuple[str, str]] = Counter()
        users: dict[tuple[str, str], set[str | None]] = defaultdict(set)
        for item in events:
            key = (item.event, item.timestamp.strftime("%Y-%m-%d"))
            counts[key] += 1
            users[key].add(item.user_id)
        buckets = [
            AnalyticsBucket(event=name, date=date, count=count, unique_users=len(users[(name, date)]))
            for (name, date), count in counts.items()
        ]
        buckets.sort(key=lambda bucket: (bucket.date, bucket.event), reverse=True)
        return buckets

    async def dashboard(self) -> dict[str, Any]:
        """Activity over the last day, the day before and the last week."""
        now = self._clock()
        day_ago = now - timedelta(days=1)
        two_days_ago = now - timedelta(days=2)
        week_ago = now - timedelta(days=7)

        week_events = await self._repository.find(start=week_ago)
        today = [e for e in week_events if day_ago <= e.timestamp < now]
        yesterday = [e for e in week_events if two_days_ago <= e.timestamp < day_ago]

        top_events = Counter(e.event for e in week_events).most_common(10)
        growth_by_day = Counter(
            e.timestamp.strftime("%Y-%m-%d") for e in week_events if e.event == "user_register"
        )

        today_users = _unique(e.user_id for e in today)
        yesterday_users = _unique(e.user_id for e in yesterday)
        return {
            "today": {
                "totalEvents": len(today),
                "uniqueUsers": len(today_users),
                "uniqueSessions": len(_unique(e.session_id for e in today)),
            },
            "yesterday": {"totalEvents": len(yesterday), "uniqueUsers": len(yesterday_users)},
            "week": {
                "totalEvents": len(week_events),
                "uniqueUsers": len(_unique(e.user_id for e in week_events)),
            },
            "topEvents": [{"event": name, "count": count} for name, count in top_events],
            "userGrowth": [
                {"date": date, "newUsers": count} for date, count in sorted(growth_by_day.items())
            ],
            "growth": {
                "events": calculate_growth(len(today), len(yesterday)),
                "users": calculate_growth(len(today_users), len(yesterday_users)),
            },
        }


def _unique(values: Any) -> set[str]:
    return {value for value in values if value}
