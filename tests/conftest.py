import inspect
import os
from unittest.mock import MagicMock

# Settings are read at import time by the engine module.
os.environ.setdefault("ENV_NAME", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin")
os.environ.setdefault("FIREBASE_API_KEY", "test-api-key")

import anyio  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

import compoundgate.models  # noqa: E402,F401
from compoundgate.auth.service import (  # noqa: E402
    FirebaseAuthService,
    PhoneSignIn,
    TokenClaims,
    get_firebase_auth_service,
)
from compoundgate.compound.models import Compound  # noqa: E402
from compoundgate.core.settings import Settings, get_settings  # noqa: E402
from compoundgate.db.engine import get_session  # noqa: E402
from compoundgate.db.store import IdentityStore  # noqa: E402
from compoundgate.main import app  # noqa: E402
from compoundgate.user.models import User  # noqa: E402

ADMIN_UID = "admin-uid-1"
OWNER_UID = "owner-uid-1"


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


@pytest.fixture(name="session")
def session_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="store")
def store_fixture(session: Session) -> IdentityStore:
    return IdentityStore(session)


@pytest.fixture(name="compound")
def compound_fixture(store: IdentityStore) -> Compound:
    return store.create(
        Compound(
            name="Palm Hills",
            address="6th of October",
            admin_id=ADMIN_UID,
            admin_email="admin@palmhills.example",
        )
    )


@pytest.fixture(name="make_owner")
def make_owner_fixture(store: IdentityStore, compound: Compound):
    """Factory for owner records in the test compound."""

    def _make(**fields) -> User:
        defaults = {
            "compound_id": compound.id,
            "first_name": "Mona",
            "last_name": "Hassan",
            "email": "mona@example.com",
            "phone": "+201001234567",
        }
        defaults.update(fields)
        return store.create(User(**defaults))

    return _make


@pytest.fixture(name="owner")
def owner_fixture(make_owner) -> User:
    """A freshly invited owner: no password, never logged in."""
    return make_owner()


@pytest.fixture(name="mock_firebase_auth")
def mock_firebase_auth_fixture():
    """Create a mock FirebaseAuthService."""
    mock_service = MagicMock(spec=FirebaseAuthService)
    # Default mock behaviors
    mock_service.verify_session_cookie.return_value = TokenClaims(uid=OWNER_UID)
    mock_service.verify_id_token.return_value = TokenClaims(uid=OWNER_UID)
    mock_service.create_session_cookie.return_value = "mock-session-cookie"
    mock_service.send_verification_code.return_value = "session-info-123"
    mock_service.sign_in_with_phone_number.return_value = PhoneSignIn(
        uid=OWNER_UID, id_token="phone-id-token", phone_number="+201001234567"
    )
    mock_service.id_token_for_uid.return_value = "custom-id-token"
    return mock_service


@pytest.fixture(name="mock_settings")
def mock_settings_fixture():
    """Create mock settings."""
    return Settings(
        env_name="test",
        database_url="sqlite://",
        session_secret_key="test-secret-key",
        admin_username="admin",
        admin_password="admin",
        session_expires_days=5,
        firebase_api_key="test-api-key",
    )


@pytest.fixture(name="client")
def client_fixture(
    session: Session,
    mock_firebase_auth: MagicMock,
    mock_settings: Settings,
):
    """Create a test client with overridden dependencies."""

    def get_session_override():
        return session

    def get_firebase_auth_override():
        return mock_firebase_auth

    def get_settings_override():
        return mock_settings

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_firebase_auth_service] = get_firebase_auth_override
    app.dependency_overrides[get_settings] = get_settings_override

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="bearer")
def bearer_fixture() -> dict[str, str]:
    return {"Authorization": "Bearer test-id-token"}
