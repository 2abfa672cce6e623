# authcore/models/user.py
"""
Database model for users.
Represents an account identity: login email, local password hash or external
identity, verification state and role references.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Invariants (enforced by CredentialStore.create_user):
    - email is stored normalized (trimmed, lowercased) and is unique
    - exactly one of password_hash / (external_provider, external_id) is set
    - roles is a non-empty ordered list of Role names

    password_hash is only ever written through CredentialStore.set_password_hash.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: opaque, immutable
    email = fields.CharField(max_length=320, unique=True, index=True)  # Normalized login email
    password_hash = fields.CharField(max_length=255, null=True)  # Argon2 hash; null for external-identity accounts
    first_name = fields.CharField(max_length=100)
    last_name = fields.CharField(max_length=100)
    is_email_verified = fields.BooleanField(default=False)
    roles = fields.JSONField(default=list)  # Ordered role names, e.g. ["user"]
    external_provider = fields.CharField(max_length=64, null=True)  # e.g. "google", "github"
    external_id = fields.CharField(max_length=255, null=True)  # Provider-scoped subject id
    last_login_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
        unique_together = (("external_provider", "external_id"),)

    @property
    def has_local_password(self) -> bool:
        return self.password_hash is not None

    def __str__(self) -> str:
        return f"User({self.id})"
