"""Contracts (protocols) for the realtime presence and broadcast layer."""

from memoryscape.domain.contracts.connection import ConnectionProtocol
from memoryscape.domain.contracts.event_dispatcher import EventDispatcherProtocol
from memoryscape.domain.contracts.presence_registry import (
    PresenceDirectoryProtocol,
    PresenceRegistryProtocol,
)

__all__ = [
    "ConnectionProtocol",
    "EventDispatcherProtocol",
    "PresenceDirectoryProtocol",
    "PresenceRegistryProtocol",
]
