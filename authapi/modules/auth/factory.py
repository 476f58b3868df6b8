"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the authentication stack based on configuration
- Loads the signing keypair
- Wires dependencies together
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ...config.provider import ConfigProvider, KeyConfig
from ..storage import RedisUserStore
from ..users import UserModule
from .errors import KeyLoadError
from .interfaces import TokenValidator
from .keys import KeyManager
from .password import CredentialHasher
from .service import AuthService
from .tokens import TokenIssuer, TokenVerifier

logger = logging.getLogger(__name__)


@dataclass
class AuthStack:
    """Every component the API layer needs, already wired."""
    key_manager: KeyManager
    hasher: CredentialHasher
    issuer: TokenIssuer
    verifier: TokenValidator
    auth_service: AuthService
    user_module: UserModule


class AuthFactory:
    """
    Factory for building the authentication stack.

    This is the composition root that:
    - Creates all auth components
    - Wires them together via dependency injection
    """

    @staticmethod
    def load_keys(key_manager: KeyManager, key_config: KeyConfig) -> bool:
        """
        Initialize ``key_manager`` from configuration.

        A bad key leaves the manager uninitialized rather than stopping the
        process; key-dependent endpoints then answer with a server error.

        Returns:
            True if a keypair is active afterwards
        """
        try:
            if key_config.is_configured:
                logger.info(f"Loading signing keypair from {key_config.private_key_path}")
                key_manager.initialize_from_files(
                    key_config.private_key_path,
                    key_config.public_key_path,
                    private_key_password=key_config.private_key_password,
                )
            elif key_config.ephemeral:
                key_manager.initialize_ephemeral()
            else:
                logger.warning("No signing key configured; token issuance is disabled")
        except KeyLoadError as e:
            logger.error(f"Failed to load signing keypair: {e}")

        return key_manager.is_ready

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        redis_client: Optional[Any] = None,
        key_manager: Optional[KeyManager] = None,
    ) -> AuthStack:
        """
        Build the complete authentication stack.

        Args:
            config_provider: Configuration provider
            redis_client: Async Redis client for user storage and audit logging
            key_manager: Pre-initialized key manager (keys are loaded from
                configuration when omitted)

        Returns:
            AuthStack with all components wired
        """
        key_config = config_provider.get_key_config()
        hash_config = config_provider.get_hash_config()

        if key_manager is None:
            key_manager = KeyManager(key_config.algorithm)
            AuthFactory.load_keys(key_manager, key_config)

        hasher = CredentialHasher(
            time_cost=hash_config.time_cost,
            memory_cost=hash_config.memory_cost,
            parallelism=hash_config.parallelism,
            pepper=hash_config.pepper,
        )
        store = RedisUserStore(redis_client)

        return AuthFactory.build_with(
            key_manager=key_manager,
            hasher=hasher,
            store=store,
            redis_client=redis_client,
            token_ttl=key_config.token_ttl,
        )

    @staticmethod
    def build_with(
        key_manager: KeyManager,
        hasher: CredentialHasher,
        store: Any,
        redis_client: Optional[Any] = None,
        token_ttl: int = 3600,
    ) -> AuthStack:
        """
        Wire already constructed dependencies (also used by tests).

        Args:
            key_manager: Key manager shared by issuer and verifier
            hasher: Credential hasher
            store: Object implementing both CredentialStore and UserStore
            redis_client: Optional Redis client for audit logging
            token_ttl: Default token lifetime in seconds
        """
        issuer = TokenIssuer(key_manager, default_ttl=token_ttl)
        verifier = TokenVerifier(key_manager)

        logger.info("Authentication stack built")
        return AuthStack(
            key_manager=key_manager,
            hasher=hasher,
            issuer=issuer,
            verifier=verifier,
            auth_service=AuthService(store, hasher, issuer, redis_client=redis_client),
            user_module=UserModule(store, hasher, redis_client=redis_client),
        )
