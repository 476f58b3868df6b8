"""
HTTP routes for authapi.

Routers are created by factory functions that receive the wired AuthStack,
so handlers never reach for global state.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from ..auth.errors import UserNotFound
from ..auth.factory import AuthStack
from ..users import UserView
from .models import (
    AuthRequest,
    AuthResponse,
    CreateUserRequest,
    DeleteUserRequest,
    GetAlgorithmResponse,
    GetKeyResponse,
    ListupUserResponse,
    LookupUserResponse,
    MessageResponse,
    UpdateUserRequest,
    UserModel,
    VerifyRequest,
    VerifyResponse,
)

logger = logging.getLogger(__name__)


def _user_model(view: UserView) -> UserModel:
    return UserModel(id=view.id, username=view.name)


def create_user_router(stack: AuthStack) -> APIRouter:
    """
    Create user management router.

    Args:
        stack: Wired authentication stack

    Returns:
        FastAPI router with /user endpoints
    """
    router = APIRouter(prefix="/user", tags=["users"])
    users = stack.user_module

    @router.post("", response_model=MessageResponse)
    async def create_user(request: CreateUserRequest):
        """Create a new user."""
        await users.create_user(request.id, request.username, request.password)
        return MessageResponse(message="success")

    @router.put("", response_model=MessageResponse)
    async def update_user(request: UpdateUserRequest):
        """Rename a user and optionally change its password."""
        await users.update_user(
            request.id,
            request.username,
            request.old_password,
            request.new_password,
        )
        return MessageResponse(message="success")

    @router.get("/list", response_model=ListupUserResponse)
    async def listup_users():
        """List every user without credentials."""
        views = await users.list_users()
        return ListupUserResponse(users=[_user_model(v) for v in views])

    @router.get("/{user_id}", response_model=LookupUserResponse)
    async def lookup_user(user_id: str):
        """Look a user up by id."""
        view = await users.lookup_user(user_id)
        if view is None:
            raise UserNotFound(f"user {user_id} not found")
        return LookupUserResponse(user=_user_model(view))

    @router.delete("/{user_id}", response_model=MessageResponse)
    async def delete_user(user_id: str, request: DeleteUserRequest):
        """Delete a user after confirming its password."""
        await users.delete_user(user_id, request.password)
        return MessageResponse(message="success")

    return router


def create_auth_router(stack: AuthStack) -> APIRouter:
    """
    Create token router (credential check, verification, key export).

    Args:
        stack: Wired authentication stack

    Returns:
        FastAPI router with auth endpoints
    """
    router = APIRouter(tags=["auth"])

    @router.post("/auth", response_model=AuthResponse)
    async def authenticate(request: AuthRequest):
        """
        Check id/password and issue a token.

        Unknown ids and wrong passwords get the same 401 response.
        """
        result = await stack.auth_service.authenticate(request.id, request.password)
        if not result.ok:
            return JSONResponse(status_code=401, content={"message": "auth invalid", "token": ""})
        return AuthResponse(message="auth valid", token=result.token)

    @router.get("/algorithm", response_model=GetAlgorithmResponse)
    @router.get("/alg", response_model=GetAlgorithmResponse, include_in_schema=False)
    async def get_algorithm():
        """Signature algorithm used for tokens."""
        return GetAlgorithmResponse(algorithm=stack.key_manager.algorithm.value)

    @router.get("/verify", response_model=VerifyResponse)
    async def verify_bearer(authorization: Optional[str] = Header(None)):
        """Verify the token in ``Authorization: Bearer``."""
        if not authorization or not authorization.lower().startswith("bearer "):
            return VerifyResponse(valid=False)
        result = stack.verifier.check(authorization)
        return VerifyResponse(valid=result.valid, subject=result.subject)

    @router.post("/verify", response_model=VerifyResponse)
    async def verify_body(request: VerifyRequest):
        """Verify a token passed in the request body."""
        result = stack.verifier.check(request.token)
        return VerifyResponse(valid=result.valid, subject=result.subject)

    @router.get("/key", response_model=GetKeyResponse)
    async def get_key():
        """Public key that verifies issued tokens."""
        return GetKeyResponse(public_key=stack.key_manager.verification_key_pem())

    return router
