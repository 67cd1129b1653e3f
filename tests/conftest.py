"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from dashboard.api.main import create_app
from dashboard.core.config import Settings
from dashboard.core.rbac.roles import ADMIN_PERMISSIONS, EDITOR_PERMISSIONS, VIEWER_PERMISSIONS
from dashboard.db.session import Database

from tests.factories import create_role, create_user
from tests.helpers import IDENTITY_HEADER, BrokenDatabase


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        identity_header=IDENTITY_HEADER,
        log_level="WARNING",
    )


@pytest.fixture
def database():
    """Fresh in-memory database with all tables created."""
    db = Database.from_url("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    """Session for arranging test data. Commit before calling the API."""
    session = database.new_session()
    yield session
    session.close()


@pytest.fixture
def app(settings, database):
    return create_app(settings=settings, database=database)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def roles(db_session):
    """The three default roles, committed."""
    result = {
        "admin": create_role(db_session, name="admin", permissions=list(ADMIN_PERMISSIONS)),
        "editor": create_role(db_session, name="editor", permissions=list(EDITOR_PERMISSIONS)),
        "viewer": create_role(db_session, name="viewer", permissions=list(VIEWER_PERMISSIONS)),
    }
    db_session.commit()
    return result


@pytest.fixture
def admin_user(db_session, roles):
    user = create_user(db_session, email="admin@city.example", name="Admin", role=roles["admin"])
    db_session.commit()
    return user


@pytest.fixture
def editor_user(db_session, roles):
    user = create_user(db_session, email="editor@city.example", name="Editor", role=roles["editor"])
    db_session.commit()
    return user


@pytest.fixture
def viewer_user(db_session, roles):
    user = create_user(db_session, email="viewer@city.example", name="Viewer", role=roles["viewer"])
    db_session.commit()
    return user


@pytest.fixture
def broken_database():
    return BrokenDatabase()
