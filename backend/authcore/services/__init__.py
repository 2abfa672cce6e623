"""
Services Module

The credential core:
- CredentialStore: user and role persistence
- TokenService: session tokens (JWT) and single-use action tokens
- AuthFlowController: register / login / verify-email / forgot / reset password
"""
from tortoise.backends.base.client import BaseDBAsyncClient

from authcore.config import Settings
from authcore.core.security import PasswordHasher

from .auth_flow import AuthFlowController, AuthResult
from .credential_store import CredentialStore, ExternalIdentity
from .delivery import LoggingTokenDelivery, TokenDelivery
from .token_service import SessionClaims, TokenService


def build_auth_flow(
    db: BaseDBAsyncClient,
    settings: Settings,
    delivery: TokenDelivery | None = None,
) -> AuthFlowController:
    """Wire the core components around one persistence handle."""
    hasher = PasswordHasher(settings)
    return AuthFlowController(
        store=CredentialStore(db, hasher),
        tokens=TokenService(db, settings),
        hasher=hasher,
        delivery=delivery or LoggingTokenDelivery(),
        settings=settings,
    )


__all__ = [
    "AuthFlowController",
    "AuthResult",
    "CredentialStore",
    "ExternalIdentity",
    "LoggingTokenDelivery",
    "TokenDelivery",
    "SessionClaims",
    "TokenService",
    "build_auth_flow",
]
