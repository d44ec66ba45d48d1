# FILE: tests/conftest.py
"""
Pytest configuration for ChainPad test suite.

Configures:
- pytest-asyncio for async test support
- an in-memory SQLite database per test (shared across threads via StaticPool)
- a TestClient wired to that database
"""
import os
import sys
from pathlib import Path

# Must be set before chainpad.db builds its engine
os.environ.setdefault("CHAINPAD_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CHAINPAD_JWT_SECRET", "test-secret")

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings from the environment for every test."""
    from chainpad.settings import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def engine():
    from chainpad.db import init_db

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """TestClient for the full app, using the per-test database."""
    from fastapi.testclient import TestClient
    from chainpad.db import get_db
    from main import app

    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def pytest_addoption(parser):
    parser.addoption(
        "--run-solc",
        action="store_true",
        default=False,
        help="install the configured solc version and run tests marked `solc`",
    )


@pytest.fixture(scope="session")
def solc_version(request):
    """
    A usable solc version for tests marked `solc`.

    With --run-solc (or CHAINPAD_TEST_SOLC=1) the configured version is
    installed on demand; otherwise an already-installed one is used, and the
    test is skipped when there is none.
    """
    import solcx
    from chainpad.services.compiler import ensure_solc
    from chainpad.settings import Settings

    if request.config.getoption("--run-solc") or os.getenv("CHAINPAD_TEST_SOLC") == "1":
        return ensure_solc(Settings.from_env().solc_version)

    installed = solcx.get_installed_solc_versions()
    if not installed:
        pytest.skip("solc not installed; pass --run-solc to install it")
    return str(installed[0])
