# authcore/core/security.py
"""
Security primitives for the credential core.
Handles password hashing (Argon2 via passlib) and action-token value generation.
Session tokens (JWT) live in services/token_service.py.
"""
import asyncio
import hashlib
import logging
import secrets

from passlib.context import CryptContext

from authcore.config import Settings
from authcore.errors import HashingError

logger = logging.getLogger(__name__)

# 32 random bytes -> 256 bits of entropy, ~43 url-safe characters
TOKEN_BYTES = 32


class PasswordHasher:
    """
    One-way, salted, deliberately slow password hashing.

    Every hash encodes its own Argon2 parameters, so raising the cost in
    Settings affects new hashes only; existing hashes keep verifying.
    """

    def __init__(self, settings: Settings):
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=settings.argon2_time_cost,
            argon2__memory_cost=settings.argon2_memory_cost,
            argon2__parallelism=settings.argon2_parallelism,
        )

    def hash(self, plain: str) -> str:
        """
        Hash a plain text password.

        Raises:
            HashingError: If the underlying primitive fails
        """
        try:
            return self._context.hash(plain)
        except Exception as e:
            raise HashingError(f"password hashing failed: {type(e).__name__}") from e

    def verify(self, plain: str, hashed: str | None) -> bool:
        """
        Check a plain text password against a stored hash.

        Returns False (never raises) for missing or malformed hashes: a corrupt
        hash must not turn into "no password required".
        """
        if not hashed:
            return False
        try:
            return self._context.verify(plain, hashed)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed; treating as mismatch")
            return False

    def dummy_verify(self) -> None:
        """Burn roughly the same time as a real verify (for unknown accounts)."""
        self._context.dummy_verify()

    async def hash_async(self, plain: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.hash, plain)

    async def verify_async(self, plain: str, hashed: str | None) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.verify, plain, hashed)

    async def dummy_verify_async(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.dummy_verify)


def generate_token_value() -> str:
    """Return a fresh high-entropy url-safe token value."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token_value(raw: str) -> str:
    """sha256 hex digest of a raw token value (64 chars); only this form is stored."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
