# authcore/services/validation.py
"""
Input validation for the auth flows. Every failure raises errors.ValidationError
with a reason the caller can display.
"""
import re

from authcore.errors import ValidationError

# local@domain.tld, no whitespace
EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+\-']+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
EMAIL_MAX_LENGTH = 320
NAME_MAX_LENGTH = 100


def normalize_email(raw: str | None) -> str:
    """Trim surrounding whitespace and lowercase; the result is the uniqueness key."""
    return (raw or "").strip().lower()


def validate_email(raw: str | None) -> str:
    email = normalize_email(raw)
    if not email:
        raise ValidationError("Email is required")
    if len(email) > EMAIL_MAX_LENGTH or not EMAIL_REGEX.match(email):
        raise ValidationError("Email address is not valid")
    return email


def validate_password(raw: str | None, min_length: int = 8, max_length: int = 128) -> str:
    """
    Enforce the password policy: not blank, length within [min_length, max_length].
    The password is returned unchanged (never stripped).
    """
    if raw is None or not raw.strip():
        raise ValidationError("Password is required")
    if len(raw) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    if len(raw) > max_length:
        raise ValidationError(f"Password must be at most {max_length} characters")
    return raw


def validate_name(raw: str | None, field: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise ValidationError(f"{field} is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"{field} must be at most {NAME_MAX_LENGTH} characters")
    return name
