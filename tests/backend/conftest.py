import os

TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from authcore.config import Settings
from authcore.core.bootstrap import ensure_default_roles
from authcore.core.db import build_tortoise_config, close_db, init_db
from authcore.core.security import PasswordHasher
from authcore.main import app
from authcore.models import TokenPurpose
from authcore.services import AuthFlowController, CredentialStore, TokenService


class RecordingDelivery:
    """Captures what would have been sent to users."""

    def __init__(self):
        self.sent: list[tuple[str, str, TokenPurpose]] = []

    async def send(self, recipient_email: str, token_value: str, purpose: TokenPurpose) -> None:
        self.sent.append((recipient_email, token_value, TokenPurpose(purpose)))

    def last_token(self, purpose: TokenPurpose, email: str | None = None) -> str:
        for recipient, value, sent_purpose in reversed(self.sent):
            if sent_purpose == purpose and (email is None or recipient == email):
                return value
        raise AssertionError(f"no {purpose.value} token was delivered")


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings with cheap Argon2 parameters so the suite stays fast.
    """
    return Settings(
        database_url=TEST_DB_URL,
        jwt_secret="test-secret-that-is-long-enough-for-hs256-signing",
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
    )


@pytest.fixture
def hasher(test_settings) -> PasswordHasher:
    return PasswordHasher(test_settings)


@pytest_asyncio.fixture
async def db():
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    conn = await init_db(build_tortoise_config(TEST_DB_URL, with_migrations=False), generate_schemas=True)
    yield conn
    await close_db()


@pytest_asyncio.fixture
async def store(db, hasher) -> CredentialStore:
    s = CredentialStore(db, hasher)
    await ensure_default_roles(s)
    return s


@pytest.fixture
def tokens(db, test_settings) -> TokenService:
    return TokenService(db, test_settings)


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture
def auth_flow(store, tokens, hasher, delivery, test_settings) -> AuthFlowController:
    return AuthFlowController(store, tokens, hasher, delivery, test_settings)


@pytest_asyncio.fixture
async def create_user(store):
    """
    Factory fixture to create users directly through the store.
    """

    async def _create_user(
        email: str = "someone@example.com",
        password: str = "UserPass!23",
        roles: tuple[str, ...] = ("user",),
    ):
        user = await store.create_user(email, password, "Some", "One", roles=list(roles))
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def client(auth_flow):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Startup events are not run; the controller is installed directly.
    """
    app.state.auth_flow = auth_flow
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.state.auth_flow = None
