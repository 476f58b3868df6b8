"""
Password hashing and verification.

Credentials are stored as raw Argon2id digests (128 hex chars). The salt is
derived from the account identity so two accounts sharing a password never
share a stored digest. An optional server-side pepper is mixed into the salt
as well.
"""

import hashlib
import secrets
from typing import Optional

from argon2.low_level import Type, hash_secret_raw

DEFAULT_TIME_COST = 2
DEFAULT_MEMORY_COST = 19456  # KiB
DEFAULT_PARALLELISM = 1
DIGEST_BYTES = 64


class CredentialHasher:
    """
    Deterministic, identity-bound password hasher.

    The same instance (same cost parameters and pepper) must be used when the
    credential is stored and when it is checked.
    """

    def __init__(
        self,
        time_cost: int = DEFAULT_TIME_COST,
        memory_cost: int = DEFAULT_MEMORY_COST,
        parallelism: int = DEFAULT_PARALLELISM,
        pepper: str = "",
    ):
        """
        Args:
            time_cost: Argon2 passes over memory
            memory_cost: Argon2 memory in KiB
            parallelism: Argon2 lanes
            pepper: Optional server-side secret mixed into every salt
        """
        if time_cost < 1 or parallelism < 1:
            raise ValueError("time_cost and parallelism must be positive")
        if memory_cost < 8 * parallelism:
            raise ValueError("memory_cost must be at least 8 KiB per lane")
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism
        self._pepper = pepper.encode("utf-8")

    def _salt(self, binding_context: str) -> bytes:
        # Length prefix keeps (pepper, context) pairs unambiguous
        context = binding_context.encode("utf-8")
        material = len(self._pepper).to_bytes(4, "big") + self._pepper + context
        return hashlib.sha256(material).digest()

    def hash(self, plaintext: str, binding_context: str) -> str:
        """Return the hex digest for ``plaintext`` bound to ``binding_context``."""
        digest = hash_secret_raw(
            secret=plaintext.encode("utf-8"),
            salt=self._salt(binding_context),
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=DIGEST_BYTES,
            type=Type.ID,
        )
        return digest.hex()

    def verify(self, plaintext: str, binding_context: str, stored_hash: Optional[str]) -> bool:
        """
        Recompute and compare against ``stored_hash`` in constant time.

        A missing stored hash is a mismatch, not an error.
        """
        computed = self.hash(plaintext, binding_context)
        if not stored_hash:
            return False
        return secrets.compare_digest(computed, stored_hash)


_default_hasher = CredentialHasher()


def hash_password(password: str, binding_context: str) -> str:
    """Hash a password with the default hasher."""
    return _default_hasher.hash(password, binding_context)


def verify_password(password: str, binding_context: str, stored_hash: Optional[str]) -> bool:
    """Constant-time check of a password against a stored digest."""
    return _default_hasher.verify(password, binding_context, stored_hash)
