from __future__ import annotations

import asyncio

import pytest

from core import db
from core.settings import ConfigError


@pytest.mark.parametrize(
    ("url", "path"),
    [
        ("sqlite:./forms.db", "./forms.db"),
        ("sqlite://./forms.db", "./forms.db"),
        ("sqlite:///tmp/forms.db", "/tmp/forms.db"),
        ("sqlite:forms.db?mode=rwc", "forms.db"),
        ("sqlite::memory:", ":memory:"),
    ],
)
def test_sqlite_path(url, path):
    assert db.sqlite_path(url) == path


def test_placeholders_rewritten_for_sqlite():
    sql = "UPDATE forms SET data = $1, updated_at = $2 WHERE uuid = $3"
    assert db.to_sqlite_params(sql) == "UPDATE forms SET data = ?1, updated_at = ?2 WHERE uuid = ?3"


def test_sanitize_database_url_drops_sslmode():
    url = "postgresql://u:p@h/db?sslmode=require&application_name=forms"
    assert db._sanitize_database_url(url) == "postgresql://u:p@h/db?application_name=forms"


@pytest.mark.parametrize(
    ("status", "count"),
    [("DELETE 1", 1), ("UPDATE 0", 0), ("INSERT 0 1", 1), ("CREATE TABLE", 0), ("", 0)],
)
def test_postgres_status_rowcount(status, count):
    assert db._status_rowcount(status) == count


def test_sqlite_execute_reports_affected_rows(run_db):
    async def scenario(database):
        inserted = await database.execute(
            "INSERT INTO forms (uuid, data, updated_at) VALUES ($1, $2, $3)", "a", "{}", "t1"
        )
        missing = await database.execute("DELETE FROM forms WHERE uuid = $1", "zzz")
        row = await database.fetch_one("SELECT uuid, data FROM forms WHERE uuid = $1", "a")
        rows = await database.fetch_all("SELECT uuid FROM forms")
        return inserted, missing, row, rows

    inserted, missing, row, rows = run_db(scenario)
    assert inserted == 1
    assert missing == 0
    assert row == {"uuid": "a", "data": "{}"}
    assert rows == [{"uuid": "a"}]


def test_sqlite_errors_are_wrapped(run_db):
    async def scenario(database):
        await database.fetch_all("SELECT * FROM no_such_table")

    with pytest.raises(db.StoreError):
        run_db(scenario)


def test_open_database_rejects_unknown_scheme():
    with pytest.raises(ConfigError):
        asyncio.run(db.open_database("mysql://db/forms"))
