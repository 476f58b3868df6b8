"""
Token issuance and verification.

Tokens are compact JWS (JWT) strings signed with the KeyManager's private key:

    header: {"alg": <configured algorithm>, "typ": "JWT"}
    claims: {"sub": identity, "iat": now, "exp": now + ttl, "jti": nonce}

Verification runs a fixed sequence of checks and stops at the first failure:

    1. structure     -> MalformedToken
    2. algorithm     -> AlgorithmMismatch
    3. signature     -> SignatureInvalid
    4. expiry        -> TokenExpired
"""

import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Optional, Union

import jwt

from .errors import (
    AlgorithmMismatch,
    MalformedToken,
    SignatureInvalid,
    SigningError,
    TokenError,
    TokenExpired,
)
from .keys import KeyManager, SignatureAlgorithm

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
MAX_TTL_SECONDS = 10 * 365 * 24 * 3600
REQUIRED_CLAIMS = ["sub", "exp", "iat"]

Duration = Union[int, float, timedelta]


@dataclass
class TokenClaims:
    """Claims of a verified token."""

    subject: str
    issued_at: datetime
    expires_at: datetime
    token_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VerificationResult:
    """Outcome of a token check; ``error`` is a TokenError code when invalid."""

    valid: bool
    subject: Optional[str] = None
    error: Optional[str] = None
    claims: Optional[TokenClaims] = None


def _ttl_seconds(ttl: Duration) -> int:
    if isinstance(ttl, timedelta):
        seconds = int(ttl.total_seconds())
    else:
        seconds = int(ttl)
    if seconds < 0:
        raise ValueError("ttl must not be negative")
    if seconds > MAX_TTL_SECONDS:
        raise ValueError(f"ttl must not exceed {MAX_TTL_SECONDS} seconds")
    return seconds


def strip_bearer(token: str) -> str:
    """Remove an optional ``Bearer`` prefix."""
    token = token.strip()
    if token[:7].lower() == "bearer ":
        return token[7:].strip()
    return token


class TokenIssuer:
    """Mints signed tokens with the key manager's active private key."""

    def __init__(self, key_manager: KeyManager, default_ttl: Duration = DEFAULT_TTL_SECONDS):
        self.key_manager = key_manager
        self.default_ttl = _ttl_seconds(default_ttl)

    def issue(self, subject: str, ttl: Optional[Duration] = None) -> str:
        """
        Issue a token for ``subject``.

        Args:
            subject: Identity the token asserts
            ttl: Lifetime in seconds or as a timedelta (defaults to the
                issuer's default ttl). A ttl of 0 yields an already expired token.

        Returns:
            Compact JWS string

        Raises:
            NotInitialized: If the key manager has no keypair
            SigningError: If signing fails
        """
        seconds = self.default_ttl if ttl is None else _ttl_seconds(ttl)
        pair = self.key_manager.snapshot()

        issued_at = int(datetime.now(UTC).timestamp())
        claims = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + seconds,
            "jti": secrets.token_urlsafe(16),
        }

        try:
            return jwt.encode(
                claims,
                pair.private_key,
                algorithm=pair.algorithm.value,
                headers={"typ": "JWT"},
            )
        except Exception as e:
            raise SigningError(f"Failed to sign token: {e}") from e


def _parse_structure(token: str) -> Dict[str, Any]:
    """
    Split and decode header and claims without checking the signature.

    Returns:
        The token header

    Raises:
        MalformedToken: If either segment is not a base64url JSON object
    """
    try:
        unverified = jwt.api_jws.decode_complete(token, options={"verify_signature": False})
        claims = json.loads(unverified["payload"])
    except jwt.InvalidTokenError as e:
        raise MalformedToken(f"Cannot decode token: {e}") from e
    except ValueError as e:
        raise MalformedToken(f"Token claims are not JSON: {e}") from e

    if not isinstance(claims, dict):
        raise MalformedToken("Token claims are not a JSON object")
    return unverified["header"]


def verify_token(
    token: str,
    public_key: Any,
    algorithm: Union[str, SignatureAlgorithm],
    leeway: int = 0,
) -> TokenClaims:
    """
    Verify a token against ``public_key`` under ``algorithm``.

    Raises:
        MalformedToken: Token cannot be decoded or lacks required claims
        AlgorithmMismatch: Header algorithm differs from ``algorithm``
        SignatureInvalid: Signature does not verify with ``public_key``
        TokenExpired: Token is past its expiry (or not yet valid)
    """
    expected = SignatureAlgorithm.parse(algorithm).value

    header = _parse_structure(token)

    declared = header.get("alg")
    if not declared:
        raise MalformedToken("Token header has no algorithm")
    if declared != expected:
        raise AlgorithmMismatch(f"Token algorithm {declared} does not match expected {expected}")

    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=[expected],
            leeway=leeway,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.InvalidSignatureError as e:
        raise SignatureInvalid("Token signature verification failed") from e
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Token has expired") from e
    except jwt.ImmatureSignatureError as e:
        raise TokenExpired(f"Token is not yet valid: {e}") from e
    except jwt.InvalidAlgorithmError as e:
        raise AlgorithmMismatch(str(e)) from e
    except (jwt.InvalidKeyError, TypeError, ValueError) as e:
        raise SignatureInvalid(f"Key cannot verify this token: {e}") from e
    except jwt.InvalidTokenError as e:
        raise MalformedToken(f"Invalid token claims: {e}") from e

    try:
        issued_at = datetime.fromtimestamp(payload["iat"], UTC)
        expires_at = datetime.fromtimestamp(payload["exp"], UTC)
    except (OverflowError, ValueError, OSError) as e:
        raise MalformedToken(f"Token timestamps out of range: {e}") from e

    return TokenClaims(
        subject=payload["sub"],
        issued_at=issued_at,
        expires_at=expires_at,
        token_id=payload.get("jti"),
        raw=payload,
    )


class TokenVerifier:
    """Verifies tokens against the key manager's active public key."""

    def __init__(self, key_manager: KeyManager, leeway: int = 0):
        self.key_manager = key_manager
        self.leeway = leeway

    def verify(self, token: str) -> TokenClaims:
        """
        Verify with the current keypair.

        Raises:
            NotInitialized: If the key manager has no keypair
            TokenError: On any verification failure
        """
        pair = self.key_manager.snapshot()
        return verify_token(strip_bearer(token), pair.public_key, pair.algorithm, self.leeway)

    def check(self, token: Optional[str]) -> VerificationResult:
        """Verify and collapse every token failure into ``valid=False``."""
        if not token or not strip_bearer(token):
            return VerificationResult(valid=False, error=MalformedToken.code)

        try:
            claims = self.verify(token)
        except TokenError as e:
            logger.debug(f"Token rejected ({e.code}): {e}")
            return VerificationResult(valid=False, error=e.code)

        return VerificationResult(valid=True, subject=claims.subject, claims=claims)
