"""Pytest configuration and shared fixtures."""

import os
import tempfile
import uuid
from pathlib import Path
from typing import Dict, Generator

# Environment must be in place before projekt_l is imported: the config and
# the database engine are built at import time.
_TMP_DIR = tempfile.mkdtemp(prefix="projekt-l-tests-")
_TEST_DB_URL = f"sqlite:///{Path(_TMP_DIR) / 'test.db'}"

os.environ["PROJEKT_L_JWT_SECRET_KEY"] = "k9Xb2LqT7vW4mZp8Rt3Ny6Hc1Jd5Gf0EaUy"
os.environ["PROJEKT_L_DATA_DIR"] = _TMP_DIR
os.environ["PROJEKT_L_LOG_DIR"] = str(Path(_TMP_DIR) / "logs")
os.environ["PROJEKT_L_DATABASE_URL"] = _TEST_DB_URL

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _run_alembic_migrations(db_url: str) -> None:
    """Run Alembic migrations programmatically for the test database."""
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(_project_root() / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(alembic_cfg, "head")


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="session")
def setup_test_env():
    """Migrate the temporary database once per session."""
    _run_alembic_migrations(_TEST_DB_URL)
    yield _TEST_DB_URL


@pytest.fixture(scope="session")
def test_db(setup_test_env):
    """Session factory bound to the migrated test database."""
    engine = create_engine(setup_test_env, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_foreign_keys)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def db_session(test_db):
    session = test_db()
    yield session
    session.close()


@pytest.fixture
def client(test_db) -> Generator[TestClient, None, None]:
    """Test client with the database dependency pointed at the test database."""
    from projekt_l.db.database import get_db
    from projekt_l.main import app

    def override_get_db():
        # Fresh session per request
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_user(client: TestClient, display_name: str = "Testerin") -> Dict:
    """Register a fresh user and return the token pair response."""
    response = client.post(
        "/v1/auth/register",
        json={
            "email": f"user-{uuid.uuid4().hex[:12]}@example.com",
            "password": "sicheres-passwort-123",
            "display_name": display_name,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def auth_headers(client) -> Dict[str, str]:
    tokens = register_user(client)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def other_auth_headers(client) -> Dict[str, str]:
    tokens = register_user(client, display_name="Andere")
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def user_factory(client):
    """Register additional users; returns their auth headers."""

    def _make(display_name: str = "Testerin") -> Dict[str, str]:
        tokens = register_user(client, display_name)
        return {"Authorization": f"Bearer {tokens['access_token']}"}

    return _make
