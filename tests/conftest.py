"""
Shared pytest fixtures.
"""
import os
import tempfile
import pytest

os.environ.setdefault('VERBOSE_DEBUG', 'false')
os.environ.setdefault('PROOFREADER_APP_DIR', tempfile.mkdtemp(prefix='proofreader-tests-'))

from proofreader.database.connection import Database
from proofreader.database.repositories import KeyValueRepository, PreferencesRepository
from proofreader.api.middleware import reset_rate_limiter


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database per test."""
    db = Database(tmp_path / 'proofreader.db')
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def repository(database):
    return KeyValueRepository(database)


@pytest.fixture
def preferences(repository):
    return PreferencesRepository(repository)


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    reset_rate_limiter()
    yield
    reset_rate_limiter()
