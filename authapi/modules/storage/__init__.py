"""
Storage Module - Black Box Interface

Purpose: Persist user records and credentials
Interface: StorageModule.connect(), RedisUserStore, CredentialStore, UserStore
Hidden: Redis key layout, transactions, serialization

Can be replaced with any backend implementing CredentialStore/UserStore.
"""

from typing import Optional

import redis.asyncio as redis

from .interfaces import CredentialStore, UserStore
from .models import Credential, User
from .users import RedisUserStore


class StorageModule:
    """Owns the Redis connection."""

    def __init__(self, connection_url: str, password: Optional[str] = None):
        self.url = connection_url
        self.password = password
        self._client = None

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                password=self.password,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


__all__ = [
    "Credential",
    "CredentialStore",
    "RedisUserStore",
    "StorageModule",
    "User",
    "UserStore",
]
