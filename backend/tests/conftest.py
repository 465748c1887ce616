"""
Shared pytest fixtures.

Environment variables are set here, before anything imports
``jewel_pos.core.config``, so every test module sees the same temp DB and
log file regardless of collection order.
"""
import os
import sys
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="jewel_pos_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["LOG_FILE"] = os.path.join(_tmp_dir, "app.log")
os.environ["AUTH_ENABLED"] = "false"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""

# Ensure the package is importable when running pytest from project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import jewel_pos.models  # noqa: E402,F401 – registers every table


@pytest.fixture
def session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()
