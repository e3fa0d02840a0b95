"""Persistence adapters."""

from memoryscape.adapters.persistence.in_memory import (
    InMemoryAnalyticsRepository,
    InMemoryCapsuleRepository,
    InMemoryMemoryRepository,
    InMemoryUserRepository,
)

__all__ = [
    "InMemoryAnalyticsRepository",
    "InMemoryCapsuleRepository",
    "InMemoryMemoryRepository",
    "InMemoryUserRepository",
]
