# authcore/services/credential_store.py
"""
Credential Store: persistence of user identity records and roles.

All queries run on the injected Tortoise connection handle; nothing here reads
ambient configuration. Password hashing is delegated to the injected
PasswordHasher so the store never sees a hash it did not ask for.
"""
from __future__ import annotations

import datetime as dt
import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.exceptions import IntegrityError

from authcore.core.clock import utc_now
from authcore.core.security import PasswordHasher
from authcore.errors import ConflictError, NotFoundError, UnknownRoleError
from authcore.models import Role, User
from authcore.services.validation import normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalIdentity:
    """Authentication delegated to a third-party provider."""
    provider: str
    provider_id: str


def _parse_user_id(user_id) -> uuid.UUID:
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        raise NotFoundError() from None


class CredentialStore:
    """Create, look up and update User records."""

    def __init__(self, db: BaseDBAsyncClient, hasher: PasswordHasher):
        self._db = db
        self._hasher = hasher

    # =========================================================================
    # Users
    # =========================================================================

    async def create_user(
        self,
        email: str,
        password: Optional[str],
        first_name: str,
        last_name: str,
        roles: Iterable[str],
        external_identity: Optional[ExternalIdentity] = None,
    ) -> User:
        """
        Create a new account.

        Exactly one of `password` (plain text, hashed here through the injected
        hasher) or `external_identity` must be given.

        Raises:
            ConflictError: If the normalized email is already registered
            UnknownRoleError: If `roles` is empty or references a missing Role
            ValueError: If both or neither of password / external_identity are given
        """
        if (password is None) == (external_identity is None):
            raise ValueError("exactly one of password or external_identity is required")

        normalized = normalize_email(email)
        role_names = await self._resolve_roles(roles)

        if await User.filter(email=normalized).using_db(self._db).exists():
            raise ConflictError()

        password_hash = await self._hasher.hash_async(password) if password is not None else None

        try:
            user = await User.create(
                using_db=self._db,
                email=normalized,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                roles=role_names,
                external_provider=external_identity.provider if external_identity else None,
                external_id=external_identity.provider_id if external_identity else None,
            )
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            raise ConflictError() from None

        logger.info("User created: user_id=%s roles=%s", user.id, role_names)
        return user

    async def find_by_email(self, email: str) -> User:
        """Raises NotFoundError if no account uses this (normalized) email."""
        user = await User.get_or_none(email=normalize_email(email), using_db=self._db)
        if user is None:
            raise NotFoundError()
        return user

    async def find_by_id(self, user_id) -> User:
        """Raises NotFoundError for unknown or unparseable ids."""
        user = await User.get_or_none(id=_parse_user_id(user_id), using_db=self._db)
        if user is None:
            raise NotFoundError()
        return user

    async def set_password_hash(self, user_id, new_hash: str) -> None:
        """The only write path allowed to change User.password_hash."""
        updated = await User.filter(id=_parse_user_id(user_id)).using_db(self._db).update(
            password_hash=new_hash,
            updated_at=utc_now(),
        )
        if not updated:
            raise NotFoundError()

    async def mark_email_verified(self, user_id) -> bool:
        """
        Mark the account's email as verified. Idempotent.

        Returns:
            True if the flag flipped, False if it was already set
        """
        uid = _parse_user_id(user_id)
        updated = await User.filter(id=uid, is_email_verified=False).using_db(self._db).update(
            is_email_verified=True,
            updated_at=utc_now(),
        )
        if updated:
            return True
        if not await User.filter(id=uid).using_db(self._db).exists():
            raise NotFoundError()
        return False

    async def record_login(self, user_id, timestamp: dt.datetime) -> None:
        updated = await User.filter(id=_parse_user_id(user_id)).using_db(self._db).update(
            last_login_at=timestamp,
        )
        if not updated:
            raise NotFoundError()

    # =========================================================================
    # Roles
    # =========================================================================

    async def ensure_roles(self, definitions: Iterable[dict]) -> list[str]:
        """
        Create any missing roles from `definitions` (dicts with name/permissions/description).

        Returns:
            Names of the roles that were created by this call
        """
        created_names = []
        for definition in definitions:
            _, created = await Role.get_or_create(
                name=definition["name"],
                defaults={
                    "permissions": list(definition.get("permissions", [])),
                    "description": definition.get("description"),
                },
                using_db=self._db,
            )
            if created:
                created_names.append(definition["name"])
        return created_names

    async def _resolve_roles(self, roles: Iterable[str]) -> list[str]:
        names = list(dict.fromkeys(roles))  # dedupe, keep order
        if not names:
            raise UnknownRoleError("at least one role is required")
        existing = await Role.filter(name__in=names).using_db(self._db).values_list("name", flat=True)
        missing = [n for n in names if n not in set(existing)]
        if missing:
            raise UnknownRoleError(f"unknown roles: {', '.join(missing)}")
        return names
