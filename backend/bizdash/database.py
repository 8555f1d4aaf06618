"""Engine and sessions for the financial dashboard backend.

The reporting side only ever reads, so besides the request-scoped
``get_db`` dependency there is a ``session_scope`` for the CLIs that never
commits.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_SQLITE_PATH = Path(__file__).resolve().parent.parent / "bizdash.db"


def _resolve_database_url(raw_url: str | None) -> str:
    """``DATABASE_URL`` when set, else a SQLite file next to the package.

    SQLite file paths get their parent directory created up front.
    """

    if not raw_url:
        DEFAULT_SQLITE_PATH.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{DEFAULT_SQLITE_PATH.as_posix()}"

    url = make_url(raw_url)
    if url.drivername.startswith("sqlite") and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return url.render_as_string(hide_password=False)


SQLALCHEMY_DATABASE_URL = _resolve_database_url(os.getenv("DATABASE_URL"))

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator:
    """Read-only session for report generation outside of FastAPI.

    The transaction is always rolled back; the four record sets are read
    inside it so they stay mutually consistent.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
