# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator

# Keep settings, logs and the module-level engine away from the working tree
os.environ.setdefault(
    "AVAILABILITY_DATA_DIR", tempfile.mkdtemp(prefix="availability-tests-")
)
os.environ.setdefault("AVAILABILITY_DATABASE_HOST", "sqlite://")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from availability.db.base_model import get_base_metadata  # noqa: E402
from availability.utils.logging import setup_logger  # noqa: E402

# Setup logger for tests to ensure custom log levels are available
setup_logger("DEBUG")


@pytest.fixture()
def sqlite_engine() -> Iterator[Engine]:
    """
    Test-scoped in-memory SQLite engine with every table created.
    StaticPool keeps the single connection alive across sessions and threads.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    get_base_metadata().create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=sqlite_engine, expire_on_commit=False, future=True)
