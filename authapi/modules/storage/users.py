import logging
from datetime import UTC, datetime
from typing import List, Optional

from redis.exceptions import RedisError, WatchError

from ..auth.errors import StorageError, UserExists, UserNotFound
from .models import Credential, User

logger = logging.getLogger(__name__)

USERS_SET = "users:all"


def user_key(identity: str) -> str:
    return f"user:{identity}"


class RedisUserStore:
    """
    Redis-backed user and credential store.

    Layout:
        user:{id}   hash of name, password, created_on, modified_on
        users:all   set of every user id

    Writes touching more than one key run inside a WATCH/MULTI/EXEC
    transaction, so a record and its set membership change together.
    """

    def __init__(self, redis_client):
        """
        Args:
            redis_client: Async Redis client (decode_responses=True)
        """
        self.redis = redis_client

    async def create(self, user: User) -> None:
        """
        Persist a new user.

        Raises:
            UserExists: If the id is already taken
            StorageError: On Redis failure
        """
        key = user_key(user.id)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                if await pipe.exists(key):
                    raise UserExists(f"user {user.id} already exists")
                pipe.multi()
                pipe.hset(key, mapping=user.to_mapping())
                pipe.sadd(USERS_SET, user.id)
                await pipe.execute()
        except WatchError as e:
            raise UserExists(f"user {user.id} was created concurrently") from e
        except RedisError as e:
            raise StorageError(f"creating user record: {e}") from e

        logger.debug(f"Created user record {user.id}")

    async def lookup(self, identity: str) -> Optional[User]:
        """Return the user, or None if unknown."""
        try:
            data = await self.redis.hgetall(user_key(identity))
        except RedisError as e:
            raise StorageError(f"looking up user record: {e}") from e

        if not data:
            return None
        return User.from_mapping(identity, data)

    async def update(self, user: User) -> None:
        """
        Overwrite name and password of an existing user.

        Raises:
            UserNotFound: If the user does not exist
        """
        user.modified_on = datetime.now(UTC)
        await self._update_fields(
            user.id,
            {
                "name": user.name,
                "password": user.password,
                "modified_on": user.modified_on.isoformat(),
            },
        )

    async def delete(self, identity: str) -> bool:
        """Delete a user; returns False if there was nothing to delete."""
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(user_key(identity))
                pipe.srem(USERS_SET, identity)
                deleted, _ = await pipe.execute()
        except RedisError as e:
            raise StorageError(f"deleting user record: {e}") from e

        return bool(deleted)

    async def list(self) -> List[User]:
        """All users, ordered by id."""
        try:
            identities = await self.redis.smembers(USERS_SET)
        except RedisError as e:
            raise StorageError(f"listing users: {e}") from e

        users = []
        for identity in sorted(identities):
            user = await self.lookup(identity)
            if user:
                users.append(user)
        return users

    async def lookup_credential(self, identity: str) -> Optional[Credential]:
        user = await self.lookup(identity)
        return user.credential if user else None

    async def store_credential(self, identity: str, digest: str) -> None:
        await self._update_fields(
            identity,
            {"password": digest, "modified_on": datetime.now(UTC).isoformat()},
        )

    async def _update_fields(self, identity: str, fields: dict) -> None:
        key = user_key(identity)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                if not await pipe.exists(key):
                    raise UserNotFound(f"user {identity} not found")
                pipe.multi()
                pipe.hset(key, mapping=fields)
                await pipe.execute()
        except WatchError as e:
            raise StorageError(f"user {identity} changed during update") from e
        except RedisError as e:
            raise StorageError(f"updating user record: {e}") from e
