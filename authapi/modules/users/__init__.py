"""
Users Module - Black Box Interface

Purpose: Manage API user accounts and their stored credentials
Interface: create_user(), lookup_user(), update_user(), delete_user(), list_users()
Hidden: Credential hashing, record layout

Passwords enter as plaintext and leave only as digests bound to the user id.
"""

from .module import UserModule, UserView

__all__ = ["UserModule", "UserView"]
