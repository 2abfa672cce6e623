# authcore/core/bootstrap.py
"""
Bootstrap module for application initialization.
Seeds the default roles and, optionally, a first-run admin account.
"""
import logging

from authcore.config import Settings
from authcore.errors import ConflictError, NotFoundError, ValidationError
from authcore.models import DEFAULT_ROLES
from authcore.services.credential_store import CredentialStore
from authcore.services.validation import validate_email, validate_password

logger = logging.getLogger("uvicorn.error")

async def ensure_default_roles(store: CredentialStore) -> None:
    """
    Create any missing default role. Safe to run on every startup; must run
    before the first user is created.
    """
    created = await store.ensure_roles(DEFAULT_ROLES)
    for name in created:
        logger.info("[bootstrap] Default role created: %s", name)
    if not created:
        logger.info("[bootstrap] Default roles already present")

async def ensure_default_admin(store: CredentialStore, settings: Settings) -> None:
    """
    Create an admin account from settings if it does not exist yet.
    Only takes effect when both ADMIN_EMAIL and ADMIN_PASSWORD are set
    (to avoid creating an account with a default weak password).
    """
    if not settings.admin_email or not settings.admin_password:
        logger.info("[bootstrap] ADMIN_EMAIL/ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    try:
        email = validate_email(settings.admin_email)
        password = validate_password(
            settings.admin_password,
            min_length=settings.password_min_length,
            max_length=settings.password_max_length,
        )
    except ValidationError as e:
        logger.warning("[bootstrap] ADMIN_EMAIL/ADMIN_PASSWORD rejected (%s) -> skip creating default admin.", e.message)
        return

    try:
        await store.find_by_email(email)
        return  # Skip creation if the account already exists
    except NotFoundError:
        pass

    try:
        u = await store.create_user(
            email,
            password,
            settings.admin_first_name,
            settings.admin_last_name,
            roles=["admin", settings.default_role],
        )
    except ConflictError:
        return  # Created concurrently by another worker
    logger.warning("[bootstrap] Created default admin -> email=%s id=%s", u.email, u.id)
