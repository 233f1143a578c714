# tests/conftest.py
import pytest
import logging
from fastapi.testclient import TestClient

from forgeblock.core.config import Settings
from forgeblock.core.security import TokenSigner
from forgeblock.crud.memory_store import MemoryCredentialStore
from forgeblock.crud.sql_store import SqlCredentialStore
from forgeblock.db.session import build_engine, build_session_factory
from forgeblock.main import create_app
from forgeblock.services.game_gateway import GameGateway
from forgeblock.services.session_authority import SessionAuthority

SQLALCHEMY_DATABASE_URL_TEST = "sqlite:///:memory:"
TEST_SIGNING_KEY = "test-signing-key-not-for-production-use-0123456789"


@pytest.fixture
def test_settings() -> Settings:
    # _env_file=None and explicit values keep a developer's .env out of the tests
    return Settings(
        _env_file=None,
        DATABASE_URL=None,
        JWT_SECRET_KEY=TEST_SIGNING_KEY,
        BCRYPT_ROUNDS=4,  # bcrypt's minimum; keeps the suite fast
        LOGOUT_REVOKES_SERVER_TOKEN=False,
    )

@pytest.fixture
def sql_store():
    """A SQL store on a private in-memory SQLite database."""
    engine = build_engine(SQLALCHEMY_DATABASE_URL_TEST)
    store = SqlCredentialStore(build_session_factory(engine))
    store.initialize()
    yield store
    engine.dispose()

@pytest.fixture
def memory_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()

@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Runs a test once against each store implementation."""
    return request.getfixturevalue(f"{request.param}_store")

@pytest.fixture
def signer(test_settings) -> TokenSigner:
    return TokenSigner.from_settings(test_settings, TEST_SIGNING_KEY)

@pytest.fixture
def authority(store, signer, test_settings) -> SessionAuthority:
    return SessionAuthority(store, signer, test_settings)

@pytest.fixture
def gateway(authority, store) -> GameGateway:
    return GameGateway(authority, store)

@pytest.fixture
def client(test_settings, store) -> TestClient:
    """Provides a TestClient on a freshly built app and store."""
    return TestClient(create_app(settings=test_settings, store=store))

@pytest.fixture
def registered_user(authority):
    """Registers alice / alice@x.com / pass1234 and returns the stored record."""
    authority.register("alice", "alice@x.com", "pass1234")
    return authority.store.get_user_by_username("alice")

def pytest_configure(config):
    """
    Hook to configure logging levels before tests are run.
    This silences noisy third-party libraries.
    """
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
