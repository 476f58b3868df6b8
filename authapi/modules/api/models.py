"""
authapi request and response models.

These models define the JSON bodies accepted and returned by the HTTP API.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# Path segments under /user that are routes of their own
RESERVED_USER_IDS = {"list"}

# Request Models (API Input)


class CreateUserRequest(BaseModel):
    """Request to create a user."""

    id: str = Field(..., description="Immutable account identifier", min_length=1, max_length=128)
    username: str = Field(..., description="Display name", min_length=1, max_length=128)
    password: str = Field(..., description="Plaintext password", min_length=1)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        """Ensure the id can be addressed as /user/{id}."""
        if v in RESERVED_USER_IDS:
            raise ValueError(f"Reserved user id: {v}")
        if "/" in v:
            raise ValueError("User id must not contain '/'")
        return v


class UpdateUserRequest(BaseModel):
    """Request to rename a user and optionally change its password."""

    id: str = Field(..., min_length=1, max_length=128)
    username: str = Field(..., min_length=1, max_length=128)
    old_password: str = Field(..., description="Current password", min_length=1)
    new_password: Optional[str] = Field(None, description="Replacement password")


class DeleteUserRequest(BaseModel):
    """Request body confirming a deletion."""

    password: str = Field(..., min_length=1)


class AuthRequest(BaseModel):
    """Credential check."""

    id: str
    password: str


class VerifyRequest(BaseModel):
    """Token verification with the token in the body."""

    token: str


# Response Models (API Output)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    message: str


class UserModel(BaseModel):
    """Public view of a user."""

    id: str
    username: str


class LookupUserResponse(BaseModel):
    user: UserModel


class ListupUserResponse(BaseModel):
    users: List[UserModel]


class AuthResponse(BaseModel):
    message: str
    token: str = ""


class GetAlgorithmResponse(BaseModel):
    algorithm: str


class GetKeyResponse(BaseModel):
    public_key: str


class VerifyResponse(BaseModel):
    valid: bool
    subject: Optional[str] = None
