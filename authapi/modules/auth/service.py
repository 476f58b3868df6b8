"""
Authentication Service following Black Box Design principles.

This module provides:
- The credential check that turns an id/password pair into a signed token
- A standardized authentication result
- Audit events for every attempt
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Optional

from redis.exceptions import RedisError

from ..storage.interfaces import CredentialStore
from .errors import AuthInvalid
from .interfaces import PasswordHasher, TokenSigner

logger = logging.getLogger(__name__)

AUDIT_LOG_KEY = "auth:audit"
AUDIT_LOG_MAX = 10000


@dataclass
class AuthResult:
    """Standardized authentication result."""
    ok: bool
    identity: Optional[str]
    token: Optional[str] = None
    error: Optional[str] = None


class AuthService:
    """
    Authenticates id/password pairs and mints tokens.

    Unknown identities and wrong passwords produce the same AuthResult, and
    both paths run the password hash once, so callers cannot tell them apart.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        hasher: PasswordHasher,
        issuer: TokenSigner,
        redis_client: Optional[Any] = None,
    ):
        """
        Initialize with injected dependencies.

        Args:
            credential_store: Lookup of stored credentials
            hasher: Hasher the credentials were stored with
            issuer: Token issuer backed by the active keypair
            redis_client: Optional async Redis client for audit logging
        """
        self.store = credential_store
        self.hasher = hasher
        self.issuer = issuer
        self.redis = redis_client

    async def authenticate(self, identity: str, password: str) -> AuthResult:
        """
        Check a credential and issue a token on success.

        Args:
            identity: Account id
            password: Plaintext password

        Returns:
            AuthResult with ``token`` set on success, ``error="auth invalid"``
            otherwise

        Raises:
            StorageError: If the credential store fails
            NotInitialized: If no signing key is loaded
            SigningError: If the token cannot be signed
        """
        credential = await self.store.lookup_credential(identity)
        stored_hash = credential.stored_hash if credential else None

        # Runs the full hash even when the identity is unknown
        if not await asyncio.to_thread(self.hasher.verify, password, identity, stored_hash):
            logger.info(f"Authentication failed for {identity!r}")
            await self._log_event("auth_failed", {"identity": identity})
            return AuthResult(ok=False, identity=None, error=str(AuthInvalid()))

        token = self.issuer.issue(identity)
        logger.info(f"Authenticated {identity!r}")
        await self._log_event("auth_succeeded", {"identity": identity})
        return AuthResult(ok=True, identity=identity, token=token)

    async def _log_event(self, event_type: str, data: dict):
        """Log authentication event for audit."""
        await record_audit_event(self.redis, event_type, data)


async def record_audit_event(redis_client: Optional[Any], event_type: str, data: dict) -> None:
    """
    Append an event to the capped audit list.

    A failed write is logged and dropped; it never changes the outcome of
    the operation being audited.
    """
    if not redis_client:
        return

    event = {
        "type": event_type,
        "data": data,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    try:
        await redis_client.lpush(AUDIT_LOG_KEY, json.dumps(event))
        await redis_client.ltrim(AUDIT_LOG_KEY, 0, AUDIT_LOG_MAX - 1)
    except RedisError as e:
        logger.warning(f"Failed to write audit event {event_type}: {e}")
