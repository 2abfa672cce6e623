# authcore/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models:
- User: account identity and credentials
- Role: named permission bundle referenced by users
- ActionToken: single-use verification / password-reset token
"""
from .user import User
from .role import Role, DEFAULT_ROLES
from .action_token import ActionToken, TokenPurpose
