# authcore/models/action_token.py
import uuid
from enum import Enum
from tortoise import fields, models

class TokenPurpose(str, Enum):
    VERIFY_EMAIL = "verify-email"
    RESET_PASSWORD = "reset-password"

class ActionToken(models.Model):
    """
    Single-use, time-limited token authorizing one state transition.
    - token_hash: sha256(raw value) 64-character hex string, unique (raw value not stored)
    - user_id: owning user; plain column, the token table does not own user lifecycle
    - purpose: verify-email / reset-password
    - expires_at: consumption must happen strictly before this instant
    - consumed_at: null until the single successful consumption
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    token_hash = fields.CharField(max_length=64, unique=True, index=True)
    user_id = fields.UUIDField(index=True)
    purpose = fields.CharEnumField(TokenPurpose, max_length=32)
    expires_at = fields.DatetimeField()
    consumed_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "action_tokens"
