import os
# Keep test output quiet -> MUST be set before importing config
os.environ.setdefault("CRM_LOG_LEVEL", "WARNING")

import pytest

from main import create_app
from db import get_session
from factories import ALL_FACTORIES, UserFactory

CSRF_TOKEN = "test-csrf-token"


@pytest.fixture
def app(tmp_path):
    """Application bound to a throw-away SQLite file."""
    app = create_app(f"sqlite:///{tmp_path / 'test.sqlite'}")
    app.config.update({"TESTING": True})
    yield app


@pytest.fixture
def db_session(app):
    """A session shared with the factories.  Call .rollback() to see writes made by requests."""
    session = get_session()
    for factory_cls in ALL_FACTORIES:
        factory_cls._meta.sqlalchemy_session = session
    yield session
    session.close()


@pytest.fixture
def admin(db_session):
    return UserFactory(username="admin", role="admin")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client, admin):
    """Test client with a logged-in admin and a known CSRF token."""
    with client.session_transaction() as sess:
        sess["user_id"] = admin.id
        sess["username"] = admin.username
        sess["role"] = admin.role
        sess["csrf_token"] = CSRF_TOKEN
    return client


@pytest.fixture
def csrf():
    return CSRF_TOKEN
