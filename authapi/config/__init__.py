from .provider import (
    APIConfig,
    ConfigProvider,
    EnvConfigProvider,
    HashConfig,
    KeyConfig,
    StorageConfig,
)

__all__ = [
    "APIConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "HashConfig",
    "KeyConfig",
    "StorageConfig",
]
