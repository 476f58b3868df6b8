"""Storage interfaces consumed by the auth and user modules."""

from typing import List, Optional, Protocol

from .models import Credential, User


class CredentialStore(Protocol):
    """Read/write access to stored credentials."""

    async def lookup_credential(self, identity: str) -> Optional[Credential]:
        """Return the stored credential, or None when the identity is unknown."""
        ...

    async def store_credential(self, identity: str, digest: str) -> None:
        """
        Replace the stored digest for an existing identity.

        Raises:
            UserNotFound: If the identity has no record
        """
        ...


class UserStore(Protocol):
    """User record persistence."""

    async def create(self, user: User) -> None:
        ...

    async def lookup(self, identity: str) -> Optional[User]:
        ...

    async def update(self, user: User) -> None:
        ...

    async def delete(self, identity: str) -> bool:
        ...

    async def list(self) -> List[User]:
        ...
