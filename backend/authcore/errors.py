# authcore/errors.py
"""
Error taxonomy for the credential core.

User-visible failures derive from AuthError and carry a stable `code` plus a
human-readable `message`. The HTTP layer maps them to status codes via
`status_code`. Internal failures (hashing, unknown role references) derive from
AuthInternalError and must never be shown to the caller verbatim.
"""


class AuthError(Exception):
    """Base class for failures the caller is allowed to see."""

    code = "AUTH_ERROR"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(AuthError):
    """Bad caller input (email format, password policy, empty names)."""

    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Invalid input"


class ConflictError(AuthError):
    code = "EMAIL_EXISTS"
    status_code = 409
    default_message = "Email already registered"


class InvalidCredentialsError(AuthError):
    """Wrong email, wrong password, or an account without a local password.

    Deliberately undifferentiated so callers cannot enumerate accounts.
    """

    code = "AUTH_INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Incorrect email or password"


class InvalidTokenError(AuthError):
    """Unknown, expired, already consumed, or wrong-purpose action token."""

    code = "INVALID_TOKEN"
    status_code = 400
    default_message = "Invalid or expired token"


class InvalidSessionError(AuthError):
    """Malformed, expired, or badly signed session token."""

    code = "AUTH_INVALID_TOKEN"
    status_code = 401
    default_message = "Invalid or expired session"


class NotFoundError(AuthError):
    code = "USER_NOT_FOUND"
    status_code = 404
    default_message = "User not found"


class AuthInternalError(Exception):
    """Unexpected failure; logged server-side, surfaced as an opaque 500."""


class HashingError(AuthInternalError):
    pass


class UnknownRoleError(AuthInternalError):
    pass
