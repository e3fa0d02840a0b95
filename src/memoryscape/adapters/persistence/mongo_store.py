"""MongoDB repositories using the motor async driver."""

import logging
import re
from datetime import datetime
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from memoryscape.domain.models.analytics_event import AnalyticsEvent
from memoryscape.domain.models.capsule import Capsule, CapsuleType
from memoryscape.domain.models.memory_item import MemoryItem
from memoryscape.domain.models.user import User

logger = logging.getLogger(__name__)


def _to_document(model: Any) -> dict[str, Any]:
    document = model.model_dump(mode="python")
    document["_id"] = document.pop("id")
    return document


def _from_document(document: dict[str, Any]) -> dict[str, Any]:
    data = dict(document)
    data["id"] = data.pop("_id")
    return data


def _member_query(user_id: str, active_only: bool) -> dict[str, Any]:
    query: dict[str, Any] = {"$or": [{"owner_id": user_id}, {"contributors.user_id": user_id}]}
    if active_only:
        query["is_active"] = True
    return query


def _public_query(search: str) -> dict[str, Any]:
    query: dict[str, Any] = {
        "type": CapsuleType.PUBLIC.value,
        "is_active": True,
        "settings.allow_public_discovery": True,
    }
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}, {"tags": pattern}]
    return query


class MongoStore:
    """Owns the motor client and hands out repositories bound to its database."""

    def __init__(self, uri: str, database: str) -> None:
        self._uri = uri
        self._database_name = database
        self.client: AsyncIOMotorClient | None = None
        self.database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Open the client, verify the connection and create indexes."""
        self.client = AsyncIOMotorClient(self._uri, tz_aware=True)
        self.database = self.client[self._database_name]
        await self.client.admin.command("ping")
        logger.info(f"Connected to MongoDB database '{self._database_name}'")
        await self.create_indexes()

    async def disconnect(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("Disconnected from MongoDB")

    async def create_indexes(self) -> None:
        db = self._require_database()
        await db.users.create_index("email", unique=True)
        await db.capsules.create_index("owner_id")
        await db.capsules.create_index("contributors.user_id")
        await db.capsules.create_index([("stats.last_activity", DESCENDING)])
        await db.memories.create_index(
            [("capsule_id", ASCENDING), ("is_pinned", DESCENDING), ("created_at", DESCENDING)]
        )
        await db.analytics.create_index([("timestamp", DESCENDING)])

    def users(self) -> "MongoUserRepository":
        return MongoUserRepository(self._require_database().users)

    def capsules(self) -> "MongoCapsuleRepository":
        return MongoCapsuleRepository(self._require_database().capsules)

    def memories(self) -> "MongoMemoryRepository":
        return MongoMemoryRepository(self._require_database().memories)

    def analytics(self) -> "MongoAnalyticsRepository":
        return MongoAnalyticsRepository(self._require_database().analytics)

    def _require_database(self) -> AsyncIOMotorDatabase:
        if self.database is None:
            raise RuntimeError("MongoStore is not connected")
        return self.database


class MongoUserRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def get(self, user_id: str) -> User | None:
        document = await self._collection.find_one({"_id": user_id})
        return User.model_validate(_from_document(document)) if document else None

    async def get_by_email(self, email: str) -> User | None:
        document = await self._collection.find_one({"email": email})
        return User.model_validate(_from_document(document)) if document else None

    async def save(self, user: User) -> None:
        document = _to_document(user)
        # The hash is excluded from every serialized view of a user.
        document["password_hash"] = user.password_hash
        await self._collection.replace_one({"_id": user.id}, document, upsert=True)


class MongoCapsuleRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def get(self, capsule_id: str) -> Capsule | None:
        document = await self._collection.find_one({"_id": capsule_id})
        return Capsule.model_validate(_from_document(document)) if document else None

    async def save(self, capsule: Capsule) -> None:
        await self._collection.replace_one({"_id": capsule.id}, _to_document(capsule), upsert=True)

    async def find_for_member(
        self, user_id: str, skip: int = 0, limit: int | None = None, active_only: bool = True
    ) -> list[Capsule]:
        cursor = (
            self._collection.find(_member_query(user_id, active_only))
            .sort("stats.last_activity", DESCENDING)
            .skip(skip)
        )
        if limit is not None:
            cursor = cursor.limit(limit)
        return [Capsule.model_validate(_from_document(d)) async for d in cursor]

    async def count_for_member(self, user_id: str, active_only: bool = True) -> int:
        return await self._collection.count_documents(_member_query(user_id, active_only))

    async def find_public(self, search: str = "", skip: int = 0, limit: int = 12) -> list[Capsule]:
        cursor = (
            self._collection.find(_public_query(search))
            .sort("stats.last_activity", DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        return [Capsule.model_validate(_from_document(d)) async for d in cursor]

    async def count_public(self, search: str = "") -> int:
        return await self._collection.count_documents(_public_query(search))

    async def count_owned_by(self, user_id: str) -> int:
        return await self._collection.count_documents({"owner_id": user_id})


class MongoMemoryRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def get(self, memory_id: str) -> MemoryItem | None:
        document = await self._collection.find_one({"_id": memory_id})
        return MemoryItem.model_validate(_from_document(document)) if document else None

    async def save(self, memory: MemoryItem) -> None:
        await self._collection.replace_one({"_id": memory.id}, _to_document(memory), upsert=True)

    async def delete(self, memory_id: str) -> None:
        await self._collection.delete_one({"_id": memory_id})

    @staticmethod
    def _capsule_query(capsule_id: str, memory_type: str | None) -> dict[str, Any]:
        query: dict[str, Any] = {"capsule_id": capsule_id}
        if memory_type:
            query["type"] = memory_type
        return query

    async def find_by_capsule(
        self, capsule_id: str, memory_type: str | None = None, skip: int = 0, limit: int = 20
    ) -> list[MemoryItem]:
        cursor = (
            self._collection.find(self._capsule_query(capsule_id, memory_type))
            .sort([("is_pinned", DESCENDING), ("created_at", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return [MemoryItem.model_validate(_from_document(d)) async for d in cursor]

    async def count_by_capsule(self, capsule_id: str, memory_type: str | None = None) -> int:
        return await self._collection.count_documents(self._capsule_query(capsule_id, memory_type))

    async def count_by_author(self, user_id: str) -> int:
        return await self._collection.count_documents({"author_id": user_id})


class MongoAnalyticsRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def record(self, event: AnalyticsEvent) -> None:
        await self._collection.insert_one(event.model_dump(mode="python"))

    async def find(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        event: str | None = None,
        user_id: str | None = None,
    ) -> list[AnalyticsEvent]:
        query: dict[str, Any] = {}
        window: dict[str, datetime] = {}
        if start is not None:
            window["$gte"] = start
        if end is not None:
            window["$lt"] = end
        if window:
            query["timestamp"] = window
        if event:
            query["event"] = event
        if user_id:
            query["user_id"] = user_id
        cursor = self._collection.find(query, {"_id": False})
        return [AnalyticsEvent.model_validate(d) async for d in cursor]
