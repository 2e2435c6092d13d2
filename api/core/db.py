"""
Async database access helpers (raw SQL).

The app opens exactly one `Database` in its lifespan (see `api/main.py`),
keeps it on `app.state.db` and hands it to routes through `get_db`.

Backends, chosen by the DATABASE_URL scheme:
- `sqlite:...`                 -> aiosqlite, single autocommit connection
- `postgres://`/`postgresql://` -> asyncpg connection pool

SQL parameter style:
- write queries with asyncpg's positional placeholders: $1, $2, $3, ...
- the SQLite backend rewrites them to SQLite's numbered form: ?1, ?2, ?3, ...
"""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import contextmanager
from typing import Any, Iterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import aiosqlite
import asyncpg
from fastapi import Request

from . import settings

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")


# Store failures are explicit and separable from other runtime errors.
class StoreError(RuntimeError):
    pass


@contextmanager
def _store_errors(backend: str) -> Iterator[None]:
    try:
        yield
    except StoreError:
        raise
    except (aiosqlite.Error, asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError) as e:
        raise StoreError(f"{backend} operation failed: {e}") from e


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def sqlite_path(url: str) -> str:
    """
    Map a SQLite URL to a filesystem path for `sqlite3.connect`.

    sqlite:./forms.db     -> ./forms.db
    sqlite://./forms.db   -> ./forms.db
    sqlite:///tmp/f.db    -> /tmp/f.db
    sqlite::memory:       -> :memory:

    Query options (e.g. `?mode=rwc`) are dropped; the file is always created
    when missing.
    """
    rest = url.split(":", 1)[1]
    rest = rest.split("?", 1)[0]
    if rest.startswith("//"):
        rest = rest[2:]
    return rest or ":memory:"


def to_sqlite_params(sql: str) -> str:
    return _PLACEHOLDER_RE.sub(r"?\1", sql)


def _status_rowcount(status: str) -> int:
    # asyncpg returns command tags like "DELETE 1" or "INSERT 0 1".
    last = (status or "").rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else 0


def _record_to_dict(record: Any) -> dict[str, Any]:
    return dict(record)


class Database:
    """
    Minimal query surface shared by all backends.
    """

    backend = "database"

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        raise NotImplementedError

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def execute(self, sql: str, *args: Any) -> int:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return the affected row count.
        """
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class SqliteDatabase(Database):
    backend = "sqlite"

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    @classmethod
    async def connect(cls, url: str) -> "SqliteDatabase":
        path = sqlite_path(url)
        with _store_errors(cls.backend):
            # isolation_level=None -> autocommit, one statement per transaction.
            conn = await aiosqlite.connect(path, isolation_level=None)
        conn.row_factory = aiosqlite.Row
        return cls(conn)

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        with _store_errors(self.backend):
            async with self._conn.execute(to_sqlite_params(sql), args) as cursor:
                row = await cursor.fetchone()
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        with _store_errors(self.backend):
            async with self._conn.execute(to_sqlite_params(sql), args) as cursor:
                rows = await cursor.fetchall()
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> int:
        with _store_errors(self.backend):
            async with self._conn.execute(to_sqlite_params(sql), args) as cursor:
                # DDL reports -1.
                return max(cursor.rowcount, 0)

    async def close(self) -> None:
        await self._conn.close()


class PostgresDatabase(Database):
    backend = "postgres"

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @classmethod
    async def connect(cls, url: str) -> "PostgresDatabase":
        with _store_errors(cls.backend):
            pool = await asyncpg.create_pool(
                dsn=_sanitize_database_url(url),
                min_size=1,
                max_size=5,
                command_timeout=30,
            )
        return cls(pool)

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        with _store_errors(self.backend):
            row = await self._pool.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        with _store_errors(self.backend):
            rows = await self._pool.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> int:
        with _store_errors(self.backend):
            status = await self._pool.execute(sql, *args)
        return _status_rowcount(status)

    async def close(self) -> None:
        await self._pool.close()


async def open_database(url: str) -> Database:
    scheme = settings.url_scheme(url)
    if scheme in settings.SQLITE_SCHEMES:
        db = await SqliteDatabase.connect(url)
    elif scheme in settings.POSTGRES_SCHEMES:
        db = await PostgresDatabase.connect(url)
    else:
        raise settings.ConfigError(f"Unsupported DATABASE_URL scheme: {scheme or url!r}.")
    logger.info("db_open backend=%s", db.backend)
    return db


def get_db(request: Request) -> Database:
    """
    FastAPI dependency: the process-wide database opened in the lifespan.
    """
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database is not initialized. Is the app lifespan running?")
    return db
