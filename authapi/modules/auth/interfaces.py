"""Authentication interfaces following Black Box Design principles."""
from typing import Optional, Protocol

from .tokens import TokenClaims, VerificationResult


class PasswordHasher(Protocol):
    """Protocol for credential hashing - allows swappable implementations."""

    def hash(self, plaintext: str, binding_context: str) -> str:
        """
        Derive the stored digest for a password.

        Args:
            plaintext: Password as supplied by the user
            binding_context: Per-account data mixed into the digest

        Returns:
            Digest string suitable for storage
        """
        ...

    def verify(self, plaintext: str, binding_context: str, stored_hash: Optional[str]) -> bool:
        """Recompute and compare; False on mismatch."""
        ...


class TokenSigner(Protocol):
    """Protocol for token issuance."""

    def issue(self, subject: str, ttl: Optional[int] = None) -> str:
        ...


class TokenValidator(Protocol):
    """Protocol for token validation."""

    def verify(self, token: str) -> TokenClaims:
        ...

    def check(self, token: Optional[str]) -> VerificationResult:
        ...
