"""
authapi - Password Authentication and Signed Identity Tokens

Issues, verifies and manages signed identity tokens for API users backed by
a password-credential store.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- Dependencies are injected by a single composition root

Modules:
- auth: Credential hashing, key management, token issue/verify
- users: Account management
- storage: Data persistence abstraction
- api: REST API interface
"""

__version__ = "1.0.0"
