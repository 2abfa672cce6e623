# authcore/core/db.py
"""
Database configuration and initialization module.
Handles Tortoise ORM setup and exposes the connection handle that gets
injected into CredentialStore and TokenService.
"""
from tortoise import Tortoise, connections
from tortoise.backends.base.client import BaseDBAsyncClient

from authcore.config import settings

MODEL_MODULES = [
    "authcore.models.user",          # User model
    "authcore.models.role",          # Role model
    "authcore.models.action_token",  # ActionToken model
]


def build_tortoise_config(db_url: str, with_migrations: bool = True) -> dict:
    """
    Build a Tortoise ORM configuration dictionary for the given database URL.

    Args:
        db_url: Tortoise connection URL, e.g. postgres://user:pw@host:5432/db or sqlite://:memory:
        with_migrations: Register Aerich's migration model alongside ours
    """
    models = list(MODEL_MODULES)
    if with_migrations:
        models.append("aerich.models")  # Required: Let Aerich manage migration tables
    return {
        "connections": {"default": db_url},
        "apps": {
            "models": {
                "models": models,
                "default_connection": "default",
            },
        },
        "use_tz": True,
        "timezone": "UTC",
    }


# Read by Aerich (see [tool.aerich] in pyproject.toml)
TORTOISE_ORM = build_tortoise_config(settings.database_url)


async def init_db(config: dict | None = None, generate_schemas: bool = False) -> BaseDBAsyncClient:
    """
    Initialize Tortoise ORM and return the default connection.

    Schema generation is off by default; use Aerich migrations in production.
    """
    await Tortoise.init(config=config or TORTOISE_ORM)
    if generate_schemas:
        await Tortoise.generate_schemas()
    return get_connection()


def get_connection(name: str = "default") -> BaseDBAsyncClient:
    return connections.get(name)


async def close_db():
    """Close all database connections (call on application shutdown)."""
    await Tortoise.close_connections()
