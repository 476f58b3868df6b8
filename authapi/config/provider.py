"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class KeyConfig:
    """Signing key configuration."""
    private_key_path: Optional[str]
    public_key_path: Optional[str]
    private_key_password: Optional[str]
    algorithm: str
    token_ttl: int
    ephemeral: bool

    @property
    def is_configured(self) -> bool:
        """Check if key files are configured."""
        return bool(self.private_key_path and self.public_key_path)


@dataclass
class HashConfig:
    """Password hashing configuration."""
    time_cost: int
    memory_cost: int
    parallelism: int
    pepper: str


@dataclass
class StorageConfig:
    """Redis configuration."""
    host: str
    port: int
    db: int
    password: Optional[str]

    @property
    def url(self) -> str:
        # Password is passed separately to avoid URL encoding issues
        return f"redis://{self.host}:{self.port}/{self.db}"


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_key_config(self) -> KeyConfig:
        """Get signing key configuration."""
        ...

    def get_hash_config(self) -> HashConfig:
        """Get password hashing configuration."""
        ...

    def get_storage_config(self) -> StorageConfig:
        """Get storage configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_key_config(self) -> KeyConfig:
        """Get signing key configuration from environment variables."""
        return KeyConfig(
            private_key_path=os.getenv("AUTH_PRIVATE_KEY_PATH"),
            public_key_path=os.getenv("AUTH_PUBLIC_KEY_PATH"),
            private_key_password=os.getenv("AUTH_PRIVATE_KEY_PASSWORD") or None,
            algorithm=os.getenv("AUTH_ALGORITHM", "RS256"),
            token_ttl=int(os.getenv("AUTH_TOKEN_TTL", "3600")),
            ephemeral=_env_bool("AUTH_EPHEMERAL_KEYS"),
        )

    def get_hash_config(self) -> HashConfig:
        """Get password hashing configuration from environment variables."""
        return HashConfig(
            time_cost=int(os.getenv("PASSWORD_HASH_TIME_COST", "2")),
            memory_cost=int(os.getenv("PASSWORD_HASH_MEMORY_COST", "19456")),
            parallelism=int(os.getenv("PASSWORD_HASH_PARALLELISM", "1")),
            pepper=os.getenv("PASSWORD_PEPPER", ""),
        )

    def get_storage_config(self) -> StorageConfig:
        """Get Redis configuration from environment variables."""
        # Port might be in tcp://host:port format from K8s service links
        redis_port_env = os.getenv("REDIS_PORT", "6379")
        if redis_port_env.startswith("tcp://"):
            redis_port = int(redis_port_env.split(":")[-1])
        else:
            redis_port = int(redis_port_env)

        return StorageConfig(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=redis_port,
            db=int(os.getenv("REDIS_DB", "0")),
            password=os.getenv("REDIS_PASSWORD") or None,
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=int(os.getenv("API_PORT", "8080")),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=_env_bool("API_DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
