from __future__ import annotations

import uuid

import pytest
from sqlalchemy.dialects import sqlite

from backend.bizdash import database
from backend.bizdash.db_types import GUID


def test_missing_database_url_falls_back_to_packaged_sqlite_file():
    url = database._resolve_database_url(None)

    assert url == f"sqlite:///{database.DEFAULT_SQLITE_PATH.as_posix()}"


def test_sqlite_file_url_creates_parent_directory(tmp_path):
    target = tmp_path / "nested" / "reports.db"

    url = database._resolve_database_url(f"sqlite:///{target.as_posix()}")

    assert url.endswith("reports.db")
    assert target.parent.is_dir()


def test_in_memory_url_is_passed_through():
    assert database._resolve_database_url("sqlite:///:memory:") == "sqlite:///:memory:"


def test_guid_binds_canonical_lowercase_strings():
    value = uuid.uuid4()
    column_type = GUID()
    dialect = sqlite.dialect()

    assert column_type.process_bind_param(value, dialect) == str(value)
    assert column_type.process_bind_param(str(value).upper(), dialect) == str(value)
    assert column_type.process_bind_param(None, dialect) is None


def test_guid_rejects_malformed_ids():
    with pytest.raises(ValueError):
        GUID().process_bind_param("not-a-uuid", sqlite.dialect())


def test_guid_reads_back_strings():
    value = uuid.uuid4()

    assert GUID().process_result_value(value, sqlite.dialect()) == str(value)
