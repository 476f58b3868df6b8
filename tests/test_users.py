"""
Unit tests for user management and the Redis user store.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from authapi.modules.auth.errors import AuthInvalid, StorageError, UserExists, UserNotFound
from authapi.modules.storage import RedisUserStore, User
from authapi.modules.users import UserModule, UserView


@pytest.fixture
def users(user_store, hasher, fake_redis):
    return UserModule(user_store, hasher, redis_client=fake_redis)


@pytest.mark.asyncio
async def test_create_user_stores_bound_digest(users, user_store, hasher):
    """Stored password is the identity-bound digest, reproducible at login."""
    view = await users.create_user("createID", "createdUser", "testpasswd")

    assert view == UserView(id="createID", name="createdUser")
    stored = await user_store.lookup("createID")
    assert stored.password != "testpasswd"
    assert stored.password == hasher.hash("testpasswd", "createID")


@pytest.mark.asyncio
async def test_create_duplicate_raises(users):
    await users.create_user("createID", "createdUser", "testpasswd")

    with pytest.raises(UserExists):
        await users.create_user("createID", "someoneElse", "otherpasswd")


@pytest.mark.asyncio
async def test_lookup_hides_password(users):
    await users.create_user("lookupID", "lookupuser", "testpasswd")

    view = await users.lookup_user("lookupID")

    assert view == UserView(id="lookupID", name="lookupuser")
    assert not hasattr(view, "password")
    assert await users.lookup_user("hoge") is None


@pytest.mark.asyncio
async def test_update_user_renames_and_rehashes(users, user_store, hasher):
    await users.create_user("updateID", "updateuser", "testpasswd")

    await users.update_user("updateID", "updateduser", "testpasswd", "newpasswd")

    stored = await user_store.lookup("updateID")
    assert stored.name == "updateduser"
    assert hasher.verify("newpasswd", "updateID", stored.password)
    assert not hasher.verify("testpasswd", "updateID", stored.password)


@pytest.mark.asyncio
async def test_update_keeps_password_when_not_changed(users, user_store, hasher):
    await users.create_user("updateID", "updateuser", "testpasswd")

    await users.update_user("updateID", "renamed", "testpasswd")

    stored = await user_store.lookup("updateID")
    assert stored.name == "renamed"
    assert hasher.verify("testpasswd", "updateID", stored.password)


@pytest.mark.asyncio
async def test_rename_does_not_invalidate_credential(users, auth_stack):
    """Display-name changes leave the identity-bound credential valid."""
    await users.create_user("authID", "authuser", "testpasswd")
    await users.update_user("authID", "renamed", "testpasswd")

    result = await auth_stack.auth_service.authenticate("authID", "testpasswd")

    assert result.ok is True


@pytest.mark.asyncio
async def test_update_wrong_password(users):
    await users.create_user("updateID", "updateuser", "testpasswd")

    with pytest.raises(AuthInvalid):
        await users.update_user("updateID", "updateduser", "wrongpasswd", "newpasswd")


@pytest.mark.asyncio
async def test_update_unknown_user(users):
    with pytest.raises(UserNotFound):
        await users.update_user("ghost", "name", "testpasswd")


@pytest.mark.asyncio
async def test_delete_user(users, user_store):
    await users.create_user("deleteID", "deleteuser", "testpasswd")

    await users.delete_user("deleteID", "testpasswd")

    assert await user_store.lookup("deleteID") is None
    assert await users.list_users() == []


@pytest.mark.asyncio
async def test_delete_requires_password(users):
    await users.create_user("deleteID", "deleteuser", "testpasswd")

    with pytest.raises(AuthInvalid):
        await users.delete_user("deleteID", "wrongpasswd")
    with pytest.raises(AuthInvalid):
        await users.delete_user("ghost", "testpasswd")


@pytest.mark.asyncio
async def test_list_users_sorted(users):
    await users.create_user("updateID", "updateuser", "testpasswd")
    await users.create_user("deleteID", "deleteuser", "testpasswd")
    await users.create_user("lookupID", "lookupuser", "testpasswd")

    views = await users.list_users()

    assert [v.id for v in views] == ["deleteID", "lookupID", "updateID"]


@pytest.mark.asyncio
async def test_user_audit_events(users, fake_redis):
    await users.create_user("auditID", "audituser", "testpasswd")
    await users.update_user("auditID", "renamed", "testpasswd", "newpasswd")
    await users.delete_user("auditID", "newpasswd")

    events = [json.loads(e) for e in await fake_redis.lrange("auth:audit", 0, -1)]
    assert [e["type"] for e in events] == ["user_deleted", "user_updated", "user_created"]
    assert events[1]["data"]["password_changed"] is True


@pytest.mark.asyncio
async def test_store_layout(user_store, fake_redis):
    """Records live in user:{id} hashes indexed by the users:all set."""
    await user_store.create(User(id="layoutID", name="layout", password="digest"))

    assert fake_redis.hashes["user:layoutID"]["name"] == "layout"
    assert fake_redis.hashes["user:layoutID"]["password"] == "digest"
    assert "layoutID" in fake_redis.sets["users:all"]


@pytest.mark.asyncio
async def test_credential_round_trip(user_store):
    await user_store.create(User(id="credID", name="cred", password="old-digest"))

    await user_store.store_credential("credID", "new-digest")

    credential = await user_store.lookup_credential("credID")
    assert credential.identity == "credID"
    assert credential.stored_hash == "new-digest"
    assert await user_store.lookup_credential("ghost") is None


@pytest.mark.asyncio
async def test_store_credential_unknown_user(user_store):
    with pytest.raises(UserNotFound):
        await user_store.store_credential("ghost", "digest")


@pytest.mark.asyncio
async def test_delete_missing_returns_false(user_store):
    assert await user_store.delete("ghost") is False


@pytest.mark.asyncio
async def test_timestamps_survive_round_trip(user_store):
    user = User(id="timeID", name="time", password="digest")
    await user_store.create(user)

    stored = await user_store.lookup("timeID")

    assert stored.created_on == user.created_on
    assert stored.modified_on == user.modified_on


@pytest.mark.asyncio
async def test_redis_errors_become_storage_errors():
    redis = MagicMock()
    redis.hgetall = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    store = RedisUserStore(redis)

    with pytest.raises(StorageError):
        await store.lookup("authID")


@pytest.mark.asyncio
async def test_audit_write_failure_keeps_user_changes(users, user_store, fake_redis):
    fake_redis.lpush = AsyncMock(side_effect=RedisConnectionError("down"))

    await users.create_user("createID", "createdUser", "testpasswd")
    await users.update_user("createID", "renamed", "testpasswd")

    assert (await user_store.lookup("createID")).name == "renamed"
