"""Tests for the MongoDB document mapping and queries, with mocked motor collections."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from memoryscape.adapters.persistence.mongo_store import (
    MongoStore,
    MongoUserRepository,
    _from_document,
    _member_query,
    _public_query,
    _to_document,
)
from memoryscape.domain.models.user import User
from tests.fakes import make_capsule


def test_documents_use_mongo_ids() -> None:
    """Given a capsule, when mapped to a document and back, then the id lives in _id."""
    capsule = make_capsule("owner")

    document = _to_document(capsule)

    assert document["_id"] == capsule.id
    assert "id" not in document
    assert _from_document(document)["id"] == capsule.id


def test_member_query_matches_owner_or_contributor() -> None:
    """Given a user, when building the membership query, then owner and contributor both match."""
    assert _member_query("u1", active_only=True) == {
        "$or": [{"owner_id": "u1"}, {"contributors.user_id": "u1"}],
        "is_active": True,
    }
    assert "is_active" not in _member_query("u1", active_only=False)


def test_public_query_escapes_search() -> None:
    """Given a search with regex characters, when building the discovery query, then it is escaped."""
    query = _public_query("a+b")

    assert query["type"] == "public"
    assert query["settings.allow_public_discovery"] is True
    assert query["$or"][0] == {"title": {"$regex": r"a\+b", "$options": "i"}}
    assert "$or" not in _public_query("")


@pytest.mark.asyncio
async def test_user_save_keeps_password_hash() -> None:
    """Given a user, when saved, then the hash is stored even though payloads exclude it."""
    collection = MagicMock()
    collection.replace_one = AsyncMock()
    user = User(id="u1", name="Alice", email="alice@example.com", password_hash="$argon2id$x")

    await MongoUserRepository(collection).save(user)

    query, document = collection.replace_one.await_args.args
    assert query == {"_id": "u1"}
    assert document["password_hash"] == "$argon2id$x"
    assert collection.replace_one.await_args.kwargs == {"upsert": True}


def test_repositories_need_a_connection() -> None:
    """Given a store that never connected, when asking for a repository, then it fails loudly."""
    with pytest.raises(RuntimeError, match="not connected"):
        MongoStore("mongodb://localhost:27017", "memoryscape").users()
