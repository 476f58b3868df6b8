"""
Signing key management.

The KeyManager owns the single active asymmetric keypair used to sign and
verify tokens. It is an explicitly constructed object that gets injected into
the issuer, verifier and API routes; there is no module-level key state.

Initialization parses the key material up front and publishes an immutable
KeyPair with one reference assignment, so a concurrent reader always sees
either the old pair or the new one, never a mix.
"""

import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .errors import KeyLoadError, NotInitialized

logger = logging.getLogger(__name__)

KeyMaterial = Union[bytes, str]


class SignatureAlgorithm(str, Enum):
    """JWS algorithms supported for token signing."""

    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    PS256 = "PS256"
    PS384 = "PS384"
    PS512 = "PS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"

    @property
    def is_rsa(self) -> bool:
        return self.value[:2] in ("RS", "PS")

    @property
    def curve(self) -> Optional[type]:
        """Required EC curve, or None for RSA algorithms."""
        return _EC_CURVES.get(self)

    @classmethod
    def parse(cls, value: Union[str, "SignatureAlgorithm"]) -> "SignatureAlgorithm":
        """Parse a user-supplied algorithm name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported signature algorithm: {value}") from None


_EC_CURVES = {
    SignatureAlgorithm.ES256: ec.SECP256R1,
    SignatureAlgorithm.ES384: ec.SECP384R1,
    SignatureAlgorithm.ES512: ec.SECP521R1,
}

DEFAULT_ALGORITHM = SignatureAlgorithm.RS256


@dataclass(frozen=True)
class KeyPair:
    """An immutable signing/verification keypair."""

    private_key: Any
    public_key: Any
    public_key_pem: str
    algorithm: SignatureAlgorithm

    def __repr__(self) -> str:
        # Never render key material
        return f"KeyPair(algorithm={self.algorithm.value!r})"


def _as_bytes(material: KeyMaterial) -> bytes:
    if isinstance(material, str):
        return material.encode("utf-8")
    return bytes(material)


def _check_key_family(key: Any, algorithm: SignatureAlgorithm, role: str) -> None:
    """Reject keys that cannot be used with ``algorithm``."""
    if algorithm.is_rsa:
        if not isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
            raise KeyLoadError(f"{role} key is not an RSA key (required by {algorithm.value})")
        return

    if not isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        raise KeyLoadError(f"{role} key is not an EC key (required by {algorithm.value})")
    if not isinstance(key.curve, algorithm.curve):
        raise KeyLoadError(
            f"{role} key uses curve {key.curve.name}, {algorithm.value} requires {algorithm.curve.name}"
        )


def load_private_key(material: KeyMaterial, password: Optional[str] = None) -> Any:
    """Parse PEM private key material (PKCS#1 or PKCS#8)."""
    try:
        return serialization.load_pem_private_key(
            _as_bytes(material),
            password=password.encode("utf-8") if password else None,
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Invalid private key material: {e}") from e


def load_public_key(material: KeyMaterial) -> Any:
    """Parse PEM public key material (SubjectPublicKeyInfo or PKCS#1)."""
    try:
        return serialization.load_pem_public_key(_as_bytes(material))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Invalid public key material: {e}") from e


def generate_keypair_pem(algorithm: SignatureAlgorithm = DEFAULT_ALGORITHM) -> Tuple[bytes, bytes]:
    """
    Generate a fresh keypair for ``algorithm``.

    Returns:
        Tuple of (private_key_pem, public_key_pem)
    """
    algorithm = SignatureAlgorithm.parse(algorithm)
    if algorithm.is_rsa:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    else:
        private_key = ec.generate_private_key(algorithm.curve())

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


class KeyManager:
    """
    Holds the active keypair.

    States: uninitialized until the first successful initialize(), ready
    afterwards. A failed initialize() raises KeyLoadError and leaves whatever
    pair was active before in place.
    """

    def __init__(self, algorithm: Union[str, SignatureAlgorithm] = DEFAULT_ALGORITHM):
        """
        Args:
            algorithm: Default signature algorithm for initialize() calls
        """
        self._algorithm = SignatureAlgorithm.parse(algorithm)
        self._active: Optional[KeyPair] = None
        self._lock = threading.Lock()

    @property
    def algorithm(self) -> SignatureAlgorithm:
        """Algorithm of the active pair, or the configured default."""
        active = self._active
        return active.algorithm if active else self._algorithm

    @property
    def is_ready(self) -> bool:
        return self._active is not None

    def _resolve_algorithm(
        self, algorithm: Optional[Union[str, SignatureAlgorithm]]
    ) -> SignatureAlgorithm:
        try:
            return SignatureAlgorithm.parse(algorithm or self._algorithm)
        except ValueError as e:
            raise KeyLoadError(str(e)) from e

    def initialize(
        self,
        private_key_material: KeyMaterial,
        public_key_material: KeyMaterial,
        algorithm: Optional[Union[str, SignatureAlgorithm]] = None,
        private_key_password: Optional[str] = None,
    ) -> KeyPair:
        """
        Replace the active keypair.

        Args:
            private_key_material: PEM private key
            public_key_material: PEM public key, exported verbatim by
                verification_key_pem()
            algorithm: Overrides the manager's default algorithm
            private_key_password: Passphrase for an encrypted private key

        Returns:
            The newly active KeyPair

        Raises:
            KeyLoadError: If either key is malformed or does not fit the algorithm
        """
        alg = self._resolve_algorithm(algorithm)

        private_key = load_private_key(private_key_material, private_key_password)
        public_key = load_public_key(public_key_material)
        _check_key_family(private_key, alg, "Private")
        _check_key_family(public_key, alg, "Public")

        public_pem = public_key_material
        if isinstance(public_pem, bytes):
            public_pem = public_pem.decode("utf-8")

        pair = KeyPair(
            private_key=private_key,
            public_key=public_key,
            public_key_pem=public_pem,
            algorithm=alg,
        )
        with self._lock:
            self._active = pair
            self._algorithm = alg

        logger.info(f"Signing keypair initialized ({alg.value})")
        return pair

    def initialize_from_files(
        self,
        private_key_path: Union[str, os.PathLike],
        public_key_path: Union[str, os.PathLike],
        algorithm: Optional[Union[str, SignatureAlgorithm]] = None,
        private_key_password: Optional[str] = None,
    ) -> KeyPair:
        """Read both PEM files and initialize from their contents."""
        try:
            with open(private_key_path, "rb") as f:
                private_material = f.read()
            with open(public_key_path, "rb") as f:
                public_material = f.read()
        except OSError as e:
            raise KeyLoadError(f"Cannot read key material: {e}") from e

        return self.initialize(
            private_material,
            public_material,
            algorithm=algorithm,
            private_key_password=private_key_password,
        )

    def initialize_ephemeral(
        self, algorithm: Optional[Union[str, SignatureAlgorithm]] = None
    ) -> KeyPair:
        """Generate a throwaway keypair in memory (development only)."""
        alg = self._resolve_algorithm(algorithm)
        private_pem, public_pem = generate_keypair_pem(alg)
        logger.warning("Using an ephemeral signing keypair; tokens will not survive a restart")
        return self.initialize(private_pem, public_pem, algorithm=alg)

    def snapshot(self) -> KeyPair:
        """
        Return the active pair as one consistent unit.

        Raises:
            NotInitialized: If no keypair has been loaded
        """
        active = self._active
        if active is None:
            raise NotInitialized("Key manager has no active keypair")
        return active

    def signing_key(self) -> Any:
        return self.snapshot().private_key

    def verification_key(self) -> Any:
        return self.snapshot().public_key

    def verification_key_pem(self) -> str:
        """Public key material exactly as it was supplied."""
        return self.snapshot().public_key_pem
