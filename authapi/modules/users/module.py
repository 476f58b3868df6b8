import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..auth.errors import AuthInvalid, UserNotFound
from ..auth.interfaces import PasswordHasher
from ..auth.service import record_audit_event
from ..storage.interfaces import UserStore
from ..storage.models import User

logger = logging.getLogger(__name__)


@dataclass
class UserView:
    """User as exposed to clients (never carries the password digest)."""

    id: str
    name: str


class UserModule:
    def __init__(self, store: UserStore, hasher: PasswordHasher, redis_client: Optional[Any] = None):
        """
        Initialize user module.

        Args:
            store: User record store
            hasher: Hasher used for stored credentials
            redis_client: Optional async Redis client for audit logging
        """
        self.store = store
        self.hasher = hasher
        self.redis = redis_client

    async def create_user(self, identity: str, name: str, password: str) -> UserView:
        """
        Create a user with a freshly hashed credential.

        Raises:
            UserExists: If the id is taken
        """
        user = User(id=identity, name=name, password=await self._hash(password, identity))
        await self.store.create(user)

        await self._log_event("user_created", {"identity": identity})
        return UserView(id=user.id, name=user.name)

    async def lookup_user(self, identity: str) -> Optional[UserView]:
        user = await self.store.lookup(identity)
        if user is None:
            return None
        return UserView(id=user.id, name=user.name)

    async def update_user(
        self,
        identity: str,
        name: str,
        old_password: str,
        new_password: Optional[str] = None,
    ) -> UserView:
        """
        Rename a user and optionally change the password.

        The current password must be supplied and must match.

        Raises:
            UserNotFound: If the user does not exist
            AuthInvalid: If ``old_password`` is wrong
        """
        user = await self.store.lookup(identity)
        if user is None:
            raise UserNotFound(f"user {identity} not found")
        if not await self._verify(old_password, identity, user.password):
            raise AuthInvalid()

        user.name = name
        if new_password:
            user.password = await self._hash(new_password, identity)
        await self.store.update(user)

        await self._log_event(
            "user_updated",
            {"identity": identity, "password_changed": bool(new_password)},
        )
        return UserView(id=user.id, name=user.name)

    async def delete_user(self, identity: str, password: str) -> None:
        """
        Delete a user after checking its password.

        Unknown users and wrong passwords both raise AuthInvalid.
        """
        user = await self.store.lookup(identity)
        stored_hash = user.password if user else None
        if not await self._verify(password, identity, stored_hash):
            raise AuthInvalid()

        await self.store.delete(identity)
        await self._log_event("user_deleted", {"identity": identity})

    async def _hash(self, password: str, identity: str) -> str:
        return await asyncio.to_thread(self.hasher.hash, password, identity)

    async def _verify(self, password: str, identity: str, stored_hash: Optional[str]) -> bool:
        # Hashing is CPU bound; keep it off the event loop
        return await asyncio.to_thread(self.hasher.verify, password, identity, stored_hash)

    async def list_users(self) -> List[UserView]:
        return [UserView(id=u.id, name=u.name) for u in await self.store.list()]

    async def _log_event(self, event_type: str, data: dict):
        """Log user management event for audit."""
        logger.info(f"{event_type}: {data.get('identity')}")
        await record_audit_event(self.redis, event_type, data)
