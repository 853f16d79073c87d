"""Shared pytest fixtures.

The database URL must be set before ``database`` is imported, because the
engine is created at import time.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="email-reminder-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["WORKER_ENABLED"] = "false"

import pytest  # noqa: E402

import database  # noqa: E402


@pytest.fixture(autouse=True)
def reset_tables():
    """Give every test an empty tracked_emails table."""
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
