"""Shared test fixtures."""

import pytest

from daosupport import create_app
from daosupport.extensions import db as _db

import entities  # noqa: F401  registers the test models on db.Model


@pytest.fixture(scope="session")
def app():
    """Create an application instance configured for testing."""
    app = create_app("testing")
    with app.app_context():
        yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Ensure a clean database state for each test.

    Re-creates all tables before each test to guarantee isolation.
    """
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def author_dao():
    return entities.AuthorDao()


@pytest.fixture()
def book_dao():
    return entities.BookDao()


@pytest.fixture()
def generic_dao():
    return entities.GenericDao()


@pytest.fixture()
def authors(author_dao):
    """Five saved (flushed, uncommitted) authors ordered by id."""
    names = ["alice", "bob", "carol", "dave", "erin"]
    saved = []
    for name in names:
        author = entities.Author(name=name, email=f"{name}@example.com")
        author_dao.save(author)
        saved.append(author)
    return saved
