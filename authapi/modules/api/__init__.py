"""
API Module - Black Box Interface

Purpose: HTTP routing and request/response shaping
Interface: create_user_router(), create_auth_router(), register_exception_handlers()
Hidden: Request validation, error responses

The API module only orchestrates - it contains no business logic.
All logic is delegated to the auth and users modules.
"""

from .errors import register_exception_handlers
from .routes import create_auth_router, create_user_router

__all__ = [
    "create_auth_router",
    "create_user_router",
    "register_exception_handlers",
]
