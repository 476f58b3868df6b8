"""
Authentication Module - Black Box Interface

Purpose: Verify credentials and issue/verify signed tokens
Interface: AuthService.authenticate(), TokenIssuer.issue(), TokenVerifier.verify(),
           KeyManager.initialize()
Hidden: Hash construction, JWT encoding, key parsing

Everything that touches key material lives behind KeyManager; nothing else
holds a private key.
"""

from .errors import (
    AlgorithmMismatch,
    AuthAPIError,
    AuthInvalid,
    KeyLoadError,
    MalformedToken,
    NotInitialized,
    SignatureInvalid,
    SigningError,
    TokenError,
    TokenExpired,
)
from .keys import KeyManager, KeyPair, SignatureAlgorithm
from .password import CredentialHasher, hash_password, verify_password
from .service import AuthResult, AuthService
from .tokens import TokenClaims, TokenIssuer, TokenVerifier, VerificationResult, verify_token

__all__ = [
    "AlgorithmMismatch",
    "AuthAPIError",
    "AuthInvalid",
    "AuthResult",
    "AuthService",
    "CredentialHasher",
    "KeyLoadError",
    "KeyManager",
    "KeyPair",
    "MalformedToken",
    "NotInitialized",
    "SignatureAlgorithm",
    "SignatureInvalid",
    "SigningError",
    "TokenClaims",
    "TokenError",
    "TokenExpired",
    "TokenIssuer",
    "TokenVerifier",
    "VerificationResult",
    "hash_password",
    "verify_password",
    "verify_token",
]
