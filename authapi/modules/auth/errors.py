"""
Authentication error taxonomy.

Faults (NotInitialized, KeyLoadError, SigningError) propagate to the caller
and end up as a generic server error. Validity outcomes (AuthInvalid and the
TokenError family) are expected results; each carries a stable ``code`` so
callers can tell them apart for diagnostics while clients only ever see
"auth invalid" / "invalid token".
"""


class AuthAPIError(Exception):
    """Base class for all authapi errors."""

    code = "error"


class NotInitialized(AuthAPIError):
    """Key manager consulted before a keypair was loaded."""

    code = "not_initialized"


class KeyLoadError(AuthAPIError):
    """Key material could not be read or parsed."""

    code = "key_load_error"


class SigningError(AuthAPIError):
    """The signature operation failed while issuing a token."""

    code = "signing_error"


class AuthInvalid(AuthAPIError):
    """Unknown identity or wrong password. Deliberately carries no detail."""

    code = "auth_invalid"

    def __init__(self, message: str = "auth invalid"):
        super().__init__(message)


class TokenError(AuthAPIError):
    """Base class for token verification failures."""

    code = "invalid_token"


class MalformedToken(TokenError):
    code = "malformed_token"


class AlgorithmMismatch(TokenError):
    code = "algorithm_mismatch"


class SignatureInvalid(TokenError):
    code = "signature_invalid"


class TokenExpired(TokenError):
    code = "token_expired"


class StorageError(AuthAPIError):
    """The user/credential store failed."""

    code = "storage_error"


class UserExists(StorageError):
    code = "user_exists"


class UserNotFound(StorageError):
    code = "user_not_found"
