"""Inbound realtime event handling: validation, authorization and relay."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from memoryscape.domain.models.base import utc_now
from memoryscape.domain.models.domain_event import InboundEvent, OutboundEvent
from memoryscape.domain.models.errors import MemoryscapeError, Unauthorized, ValidationFailed

if TYPE_CHECKING:
    from memoryscape.adapters.web.presence import PresenceRegistry
    from memoryscape.domain.contracts.connection import ConnectionProtocol
    from memoryscape.domain.contracts.event_dispatcher import EventDispatcherProtocol

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "internal_error"


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class InboundMessage(_Payload):
    """Envelope of every client message."""

    event: str
    data: Any = None


class CapsuleRef(_Payload):
    capsule_id: str = Field(min_length=1)


class MemoryActivity(_Payload):
    capsule_id: str = Field(min_length=1)
    memory_id: str = Field(min_length=1)


class LiveReactionPayload(MemoryActivity):
    emoji: str = Field(min_length=1, max_length=16)
    position: dict[str, float] | None = None


def _capsule_ref(data: Any) -> CapsuleRef:
    """Accept either a bare capsule id or ``{"capsuleId": ...}``."""
    if isinstance(data, str):
        return CapsuleRef(capsule_id=data)
    return CapsuleRef.model_validate(data)


class EventProtocol:
    """Maps inbound client events to registry operations and room relays.

    Every failure is reported to the requesting connection as an ``error``
    event and never reaches other connections.
    """

    def __init__(self, registry: PresenceRegistry, dispatcher: EventDispatcherProtocol) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._handlers: dict[str, Callable[[ConnectionProtocol, Any], Awaitable[None]]] = {
            InboundEvent.JOIN_CAPSULES: self._join_capsules,
            InboundEvent.JOIN_CAPSULE: self._join_capsule,
            InboundEvent.LEAVE_CAPSULE: self._leave_capsule,
            InboundEvent.TYPING_START: self._typing_start,
            InboundEvent.TYPING_STOP: self._typing_stop,
            InboundEvent.LIVE_REACTION: self._live_reaction,
            InboundEvent.VIEWING_MEMORY: self._viewing_memory,
        }

    async def handle_text(self, connection: ConnectionProtocol, text: str | bytes) -> None:
        """Decode one text or binary frame and handle it."""
        try:
            raw = json.loads(text)
        except ValueError:
            self._reply_error(connection, "Malformed message", ValidationFailed.code)
            return
        await self.handle(connection, raw)

    async def handle(self, connection: ConnectionProtocol, raw: Any) -> None:
        """Handle one decoded client message."""
        self._registry.touch(connection.user_id)
        event_name = None
        try:
            message = InboundMessage.model_validate(raw)
            event_name = message.event
            handler = self._handlers.get(message.event)
            if handler is None:
                raise ValidationFailed(f"Unknown event '{message.event}'")
            await handler(connection, message.data)
        except ValidationError:
            label = f" for '{event_name}'" if event_name else ""
            self._reply_error(connection, f"Invalid payload{label}", ValidationFailed.code)
        except MemoryscapeError as e:
            self._reply_error(connection, e.message, e.code)
        except Exception as e:
            logger.error(
                f"Unhandled error processing '{event_name}' from user {connection.user_id}: {e}",
                exc_info=True,
            )
            self._reply_error(connection, "Internal error", INTERNAL_ERROR_CODE)

    async def _join_capsules(self, connection: ConnectionProtocol, data: Any) -> None:
        count = await self._registry.join_all_rooms(connection.user_id)
        self._dispatcher.to_connection(connection, OutboundEvent.CAPSULES_JOINED, {"count": count})

    async def _join_capsule(self, connection: ConnectionProtocol, data: Any) -> None:
        ref = _capsule_ref(data)
        snapshot = await self._registry.join_room(connection.user_id, ref.capsule_id)
        active_users = [
            identity.model_dump(mode="json", by_alias=True, exclude={"rooms"})
            for identity in snapshot.active_users
        ]
        self._dispatcher.to_connection(
            connection,
            OutboundEvent.CAPSULE_JOINED,
            {"capsuleId": snapshot.capsule_id, "activeUsers": active_users},
        )

    async def _leave_capsule(self, connection: ConnectionProtocol, data: Any) -> None:
        ref = _capsule_ref(data)
        self._registry.leave_room(connection.user_id, ref.capsule_id)

    async def _typing_start(self, connection: ConnectionProtocol, data: Any) -> None:
        self._relay_typing(connection, MemoryActivity.model_validate(data), is_typing=True)

    async def _typing_stop(self, connection: ConnectionProtocol, data: Any) -> None:
        self._relay_typing(connection, MemoryActivity.model_validate(data), is_typing=False)

    async def _live_reaction(self, connection: ConnectionProtocol, data: Any) -> None:
        reaction = LiveReactionPayload.model_validate(data)
        payload = {
            **self._sender_payload(connection),
            "capsuleId": reaction.capsule_id,
            "memoryId": reaction.memory_id,
            "emoji": reaction.emoji,
            "position": reaction.position,
            "timestamp": utc_now().isoformat(),
        }
        self._dispatcher.to_room(
            reaction.capsule_id,
            OutboundEvent.LIVE_REACTION,
            payload,
            exclude_user_id=connection.user_id,
        )

    async def _viewing_memory(self, connection: ConnectionProtocol, data: Any) -> None:
        activity = MemoryActivity.model_validate(data)
        payload = {
            **self._sender_payload(connection),
            "capsuleId": activity.capsule_id,
            "memoryId": activity.memory_id,
        }
        self._dispatcher.to_room(
            activity.capsule_id,
            OutboundEvent.USER_VIEWING_MEMORY,
            payload,
            exclude_user_id=connection.user_id,
        )

    def _relay_typing(
        self, connection: ConnectionProtocol, activity: MemoryActivity, is_typing: bool
    ) -> None:
        # Typing is only relayed from users that joined the room.
        if connection.user_id not in self._registry.room_member_ids(activity.capsule_id):
            logger.debug(
                f"Ignoring typing from user {connection.user_id} outside room {activity.capsule_id}"
            )
            return
        payload = {
            **self._sender_payload(connection),
            "capsuleId": activity.capsule_id,
            "memoryId": activity.memory_id,
            "isTyping": is_typing,
        }
        self._dispatcher.to_room(
            activity.capsule_id,
            OutboundEvent.USER_TYPING,
            payload,
            exclude_user_id=connection.user_id,
        )

    def _sender_payload(self, connection: ConnectionProtocol) -> dict[str, Any]:
        identity = self._registry.get(connection.user_id)
        if identity is None:
            raise Unauthorized("Not connected")
        return {"userId": identity.user_id, "user": identity.user.to_payload()}

    def _reply_error(self, connection: ConnectionProtocol, message: str, code: str) -> None:
        self._dispatcher.to_connection(
            connection, OutboundEvent.ERROR, {"message": message, "code": code}
        )
