"""Persisted record types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Dict


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Credential:
    """Stored, non-reversible representation of a user's password."""

    identity: str
    stored_hash: str


@dataclass
class User:
    """API user record. ``password`` always holds the stored digest."""

    id: str
    name: str
    password: str
    created_on: datetime = field(default_factory=_now)
    modified_on: datetime = field(default_factory=_now)

    @property
    def credential(self) -> Credential:
        return Credential(identity=self.id, stored_hash=self.password)

    def to_mapping(self) -> Dict[str, str]:
        """Flatten into a Redis hash mapping."""
        return {
            "name": self.name,
            "password": self.password,
            "created_on": self.created_on.isoformat(),
            "modified_on": self.modified_on.isoformat(),
        }

    @classmethod
    def from_mapping(cls, identity: str, data: Dict[str, str]) -> "User":
        """Rebuild from a Redis hash mapping."""
        return cls(
            id=identity,
            name=data.get("name", ""),
            password=data.get("password", ""),
            created_on=datetime.fromisoformat(data["created_on"]) if data.get("created_on") else _now(),
            modified_on=datetime.fromisoformat(data["modified_on"]) if data.get("modified_on") else _now(),
        )
