"""Bring the financial schema to the Alembic head before the API serves requests."""

from __future__ import annotations

import errno
import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL

LOGGER = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent
LOCK_PATH = BACKEND_DIR / ".alembic-migration.lock"
LOCK_RETRY_DELAY = 0.25
LOCK_TIMEOUT_ENV = "ALEMBIC_MIGRATION_LOCK_TIMEOUT"
DEFAULT_LOCK_TIMEOUT = 30.0

# Revision that creates every table below; a database holding all of them
# without an ``alembic_version`` row was built with ``create_all``.
FINANCIAL_SCHEMA_REVISION = "20260105_0001"
FINANCIAL_TABLES = (
    "customers",
    "expense_categories",
    "financial_entries",
    "subscriptions",
    "subscription_payments",
    "sales",
)

UPGRADE = "upgrade"
STAMP = "stamp"

if os.name == "posix":  # pragma: no cover - platform specific
    import fcntl
else:  # pragma: no cover - platform specific
    import msvcrt


def _read_lock_timeout() -> float:
    raw = os.getenv(LOCK_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_LOCK_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning(
            "Invalid %s=%s; falling back to %.1f seconds", LOCK_TIMEOUT_ENV, raw, DEFAULT_LOCK_TIMEOUT
        )
        return DEFAULT_LOCK_TIMEOUT
    if value <= 0:
        LOGGER.warning("%s must be positive; using %.1f seconds", LOCK_TIMEOUT_ENV, DEFAULT_LOCK_TIMEOUT)
        return DEFAULT_LOCK_TIMEOUT
    return value


def _try_lock(handle) -> bool:
    try:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
    except BlockingIOError:
        return False
    except OSError as error:
        # Windows reports a held lock as a sharing (32) or lock (33) violation.
        if error.errno in {errno.EACCES, errno.EAGAIN, errno.EBUSY}:
            return False
        if getattr(error, "winerror", None) in {32, 33}:
            return False
        raise
    return True


def _unlock(handle) -> None:
    try:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    except OSError:  # pragma: no cover - the handle is closed right after
        LOGGER.debug("Could not release migration lock", exc_info=True)


@contextmanager
def migration_lock(path: Path = LOCK_PATH, *, timeout: float | None = None) -> Iterator[None]:
    """Serialise migrations across worker processes sharing one checkout."""

    timeout = _read_lock_timeout() if timeout is None else timeout
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a+") as handle:
        deadline = time.monotonic() + timeout
        while not _try_lock(handle):
            if time.monotonic() >= deadline:
                raise TimeoutError("Timed out waiting for Alembic migration lock")
            time.sleep(LOCK_RETRY_DELAY)
        LOGGER.debug("Acquired migration lock at %s", path)
        try:
            yield
        finally:
            _unlock(handle)


def plan_migration(inspector: Inspector) -> str:
    """Decide whether an unversioned database must be stamped or upgraded."""

    if inspector.has_table("alembic_version"):
        return UPGRADE
    if all(inspector.has_table(table) for table in FINANCIAL_TABLES):
        return STAMP
    return UPGRADE


def build_alembic_config(database_url: str | None = None) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))

    # Revision scripts import ``bizdash`` as a top-level package.
    if str(BACKEND_DIR) not in sys.path:
        sys.path.insert(0, str(BACKEND_DIR))

    url = database_url or os.getenv("DATABASE_URL") or SQLALCHEMY_DATABASE_URL
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def run_database_migrations(database_url: str | None = None) -> None:
    """Run Alembic so the financial tables exist before serving requests."""

    config = build_alembic_config(database_url)
    url = config.get_main_option("sqlalchemy.url")
    LOGGER.info("Running database migrations at %s", url)

    with migration_lock():
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, connect_args=connect_args)
        try:
            action = plan_migration(inspect(engine))
        finally:
            engine.dispose()

        if action == STAMP:
            LOGGER.info(
                "Financial tables already present without Alembic metadata; stamping %s",
                FINANCIAL_SCHEMA_REVISION,
            )
            command.stamp(config, FINANCIAL_SCHEMA_REVISION)
            head = ScriptDirectory.from_config(config).get_current_head()
            if head == FINANCIAL_SCHEMA_REVISION:
                return
        command.upgrade(config, "head")
