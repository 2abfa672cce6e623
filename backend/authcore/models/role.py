# authcore/models/role.py
from tortoise import fields, models

# Seeded by core/bootstrap.py before any user is created
DEFAULT_ROLES = [
    {
        "name": "user",
        "description": "Regular account",
        "permissions": ["profile:read", "profile:update"],
    },
    {
        "name": "moderator",
        "description": "Can moderate user-generated content",
        "permissions": ["profile:read", "profile:update", "content:moderate"],
    },
    {
        "name": "admin",
        "description": "Full access",
        "permissions": ["profile:read", "profile:update", "content:moderate", "users:manage"],
    },
]

class Role(models.Model):
    """
    Named bundle of capability strings. Users reference roles by name.
    """
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=64, unique=True, index=True)
    description = fields.CharField(max_length=255, null=True)
    permissions = fields.JSONField(default=list)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "roles"
