# authcore/services/auth_flow.py
"""
Auth Flow Controller: register / login / verify-email / forgot-password /
reset-password (plus change-password and session authentication), each a
linear sequence of validated steps against the Credential Store and Token
Service.

Failures are raised as errors.AuthError subclasses. Anything else (persistence
or hashing failure) propagates unchanged for the outer layer to log and hide.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass

from authcore.config import Settings
from authcore.core.clock import utc_now
from authcore.core.security import PasswordHasher
from authcore.errors import InvalidCredentialsError, InvalidTokenError, NotFoundError
from authcore.models import TokenPurpose, User
from authcore.services.credential_store import CredentialStore
from authcore.services.delivery import TokenDelivery
from authcore.services.token_service import SessionClaims, TokenService
from authcore.services.validation import (
    normalize_email,
    validate_email,
    validate_name,
    validate_password,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    user: User
    session_token: str


class AuthFlowController:
    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenService,
        hasher: PasswordHasher,
        delivery: TokenDelivery,
        settings: Settings,
    ):
        self._store = store
        self._tokens = tokens
        self._hasher = hasher
        self._delivery = delivery
        self._settings = settings
        self._verify_email_ttl = dt.timedelta(hours=settings.verify_email_token_ttl_hours)
        self._reset_password_ttl = dt.timedelta(minutes=settings.reset_password_token_ttl_minutes)

    @property
    def store(self) -> CredentialStore:
        return self._store

    def _check_password(self, password: str | None) -> str:
        return validate_password(
            password,
            min_length=self._settings.password_min_length,
            max_length=self._settings.password_max_length,
        )

    def _session_for(self, user: User) -> str:
        return self._tokens.issue_session(user.id, user.roles)

    async def _deliver(self, user: User, token_value: str, purpose: TokenPurpose) -> None:
        """Hand a token to the delivery collaborator. Failures are logged; the token stays issued."""
        try:
            await self._delivery.send(user.email, token_value, purpose)
        except Exception:
            logger.exception("Token delivery failed: purpose=%s user_id=%s", purpose.value, user.id)

    async def register(self, email: str, password: str, first_name: str, last_name: str) -> AuthResult:
        """
        Create a local account, send it a verify-email token and sign it in.
        A failed delivery does not fail the registration.

        Raises:
            ValidationError: Bad email format, weak password or empty names
            ConflictError: Email already registered
        """
        email = validate_email(email)
        password = self._check_password(password)
        first_name = validate_name(first_name, "First name")
        last_name = validate_name(last_name, "Last name")

        user = await self._store.create_user(
            email,
            password,
            first_name,
            last_name,
            roles=[self._settings.default_role],
        )

        token_value = await self._tokens.issue_action_token(
            user.id, TokenPurpose.VERIFY_EMAIL, self._verify_email_ttl
        )
        await self._deliver(user, token_value, TokenPurpose.VERIFY_EMAIL)

        logger.info("User registered: user_id=%s", user.id)
        return AuthResult(user=user, session_token=self._session_for(user))

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email + password.

        Unknown email, external-identity account and wrong password all raise
        the same InvalidCredentialsError.
        """
        try:
            user = await self._store.find_by_email(email)
        except NotFoundError:
            await self._hasher.dummy_verify_async()
            raise InvalidCredentialsError() from None

        if not user.has_local_password:
            await self._hasher.dummy_verify_async()
            raise InvalidCredentialsError()

        if not await self._hasher.verify_async(password or "", user.password_hash):
            raise InvalidCredentialsError()

        now = utc_now()
        await self._store.record_login(user.id, now)
        user.last_login_at = now

        logger.info("User logged in: user_id=%s", user.id)
        return AuthResult(user=user, session_token=self._session_for(user))

    async def verify_email(self, token: str) -> None:
        """Raises InvalidTokenError for unknown, expired or already used tokens."""
        user_id = await self._tokens.consume_action_token(token, TokenPurpose.VERIFY_EMAIL)
        try:
            changed = await self._store.mark_email_verified(user_id)
        except NotFoundError:
            raise InvalidTokenError() from None
        if changed:
            logger.info("Email verified: user_id=%s", user_id)

    async def forgot_password(self, email: str) -> None:
        """
        Issue and deliver a reset-password token if the account exists.

        Always returns normally so callers cannot tell which emails are registered.
        Accounts without a local password (external identity) get no token.
        Delivery failures are logged, not raised.
        """
        # Unknown and external accounts skip the token insert and delivery, so
        # they answer faster than a real reset request.
        try:
            user = await self._store.find_by_email(normalize_email(email))
        except NotFoundError:
            logger.info("Password reset requested for unknown email")
            return

        if not user.has_local_password:
            logger.info("Password reset requested for external-identity account: user_id=%s", user.id)
            return

        token_value = await self._tokens.issue_action_token(
            user.id, TokenPurpose.RESET_PASSWORD, self._reset_password_ttl
        )
        await self._deliver(user, token_value, TokenPurpose.RESET_PASSWORD)
        logger.info("Password reset requested: user_id=%s", user.id)

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Raises:
            ValidationError: New password violates policy (token is left unconsumed)
            InvalidTokenError: Unknown, expired or already used token
        """
        new_password = self._check_password(new_password)
        user_id = await self._tokens.consume_action_token(token, TokenPurpose.RESET_PASSWORD)
        new_hash = await self._hasher.hash_async(new_password)
        try:
            await self._store.set_password_hash(user_id, new_hash)
        except NotFoundError:
            raise InvalidTokenError() from None
        logger.info("Password reset: user_id=%s", user_id)

    async def change_password(self, user_id, current_password: str, new_password: str) -> None:
        """
        Explicit password change for a signed-in user.

        Raises:
            InvalidCredentialsError: current_password does not match
            ValidationError: new_password violates policy
        """
        user = await self._store.find_by_id(user_id)
        if not await self._hasher.verify_async(current_password or "", user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        new_password = self._check_password(new_password)
        await self._store.set_password_hash(user.id, await self._hasher.hash_async(new_password))
        logger.info("Password changed: user_id=%s", user.id)

    def authenticate(self, session_token: str | None) -> SessionClaims:
        """Raises InvalidSessionError for any unusable bearer token."""
        return self._tokens.validate_session(session_token)

    async def get_user(self, user_id) -> User:
        return await self._store.find_by_id(user_id)
