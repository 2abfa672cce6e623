# authcore/services/token_service.py
"""
Token Service: two distinct token kinds.

- Session tokens: stateless HS256 JWTs binding user id + roles with an expiry.
  Validation is signature + expiry only, no store lookup (no instant revocation).
- Action tokens: persisted, single-use, time-limited tokens for email
  verification and password reset. Only sha256(value) is stored; the raw value
  is returned once to the caller and never logged.
"""
from __future__ import annotations

import datetime as dt
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable

import jwt  # PyJWT
from tortoise.backends.base.client import BaseDBAsyncClient

from authcore.config import Settings
from authcore.core.clock import utc_now
from authcore.core.security import generate_token_value, hash_token_value
from authcore.errors import InvalidSessionError, InvalidTokenError
from authcore.models import ActionToken, TokenPurpose

logger = logging.getLogger(__name__)

SESSION_TOKEN_TYPE = "session"


@dataclass(frozen=True)
class SessionClaims:
    """Identity proven by a valid session token."""
    user_id: str
    roles: tuple[str, ...]
    issued_at: dt.datetime
    expires_at: dt.datetime


class TokenService:
    def __init__(
        self,
        db: BaseDBAsyncClient | None,
        settings: Settings,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self._db = db
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._session_ttl = dt.timedelta(minutes=settings.session_token_expire_minutes)
        self._clock = clock

    # =========================================================================
    # Session tokens
    # =========================================================================

    def issue_session(self, user_id, roles: Iterable[str]) -> str:
        """
        Create a signed session token.

        Token payload includes:
            - sub: Subject (user ID)
            - roles: Role names for RBAC at the gateway without a DB query
            - typ: Always "session"
            - iat: Issued at timestamp
            - exp: Expiration timestamp
        """
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "roles": list(roles),
            "typ": SESSION_TOKEN_TYPE,
            "iat": now,
            "exp": now + self._session_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate_session(self, token: str | None) -> SessionClaims:
        """
        Verify signature and expiry of a session token.

        Raises:
            InvalidSessionError: For malformed, expired, wrong-type or badly signed
                tokens alike; the cause is only logged at debug level.
        """
        if not token:
            raise InvalidSessionError()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug("Session token rejected: %s", type(e).__name__)
            raise InvalidSessionError() from None

        roles = payload.get("roles")
        if payload.get("typ") != SESSION_TOKEN_TYPE or not isinstance(roles, list):
            raise InvalidSessionError()

        return SessionClaims(
            user_id=payload["sub"],
            roles=tuple(str(r) for r in roles),
            issued_at=dt.datetime.fromtimestamp(payload["iat"], dt.timezone.utc),
            expires_at=dt.datetime.fromtimestamp(payload["exp"], dt.timezone.utc),
        )

    # =========================================================================
    # Action tokens
    # =========================================================================

    async def issue_action_token(self, user_id, purpose: TokenPurpose, ttl: dt.timedelta) -> str:
        """
        Persist a new single-use token and return its raw value.

        Args:
            user_id: Owning user
            purpose: What the token authorizes
            ttl: Lifetime; the token is consumable strictly before now + ttl
        """
        purpose = TokenPurpose(purpose)
        value = generate_token_value()
        await ActionToken.create(
            using_db=self._db,
            token_hash=hash_token_value(value),
            user_id=user_id,
            purpose=purpose,
            expires_at=self._clock() + ttl,
        )
        logger.info("Action token issued: purpose=%s user_id=%s", purpose.value, user_id)
        return value

    async def consume_action_token(self, value: str | None, purpose: TokenPurpose) -> uuid.UUID:
        """
        Redeem a token exactly once.

        Lookup and mark happen in one conditional UPDATE, so among concurrent
        attempts on the same value exactly one matches the row.

        Returns:
            The owning user's id

        Raises:
            InvalidTokenError: Unknown, wrong purpose, expired, or already consumed
        """
        purpose = TokenPurpose(purpose)
        if not value:
            raise InvalidTokenError()

        token_hash = hash_token_value(value)
        now = self._clock()
        consumed = await ActionToken.filter(
            token_hash=token_hash,
            purpose=purpose,
            consumed_at__isnull=True,
            expires_at__gt=now,
        ).using_db(self._db).update(consumed_at=now)

        if consumed != 1:
            logger.info("Action token rejected: purpose=%s", purpose.value)
            raise InvalidTokenError()

        token = await ActionToken.get(token_hash=token_hash, using_db=self._db)
        return token.user_id
