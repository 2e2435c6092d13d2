from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_API = _REPO_ROOT / "api"
if _API.exists():
    sys.path.insert(0, str(_API))


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "forms.db"


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    www = tmp_path / "www"
    www.mkdir()
    (www / "index.html").write_text("<html>index</html>", encoding="utf-8")
    (www / "favicon.ico").write_bytes(b"\x00\x00\x01\x00")
    (www / "app.js").write_text("console.log('app');", encoding="utf-8")
    return www


@pytest.fixture
def app_env(monkeypatch: pytest.MonkeyPatch, db_path: Path, static_dir: Path) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:{db_path}")
    monkeypatch.setenv("STATIC_DIR", str(static_dir))
    monkeypatch.setenv("CORS_ORIGIN", "http://localhost:5173")
    monkeypatch.setenv("LOG_LEVEL", "info")


@pytest.fixture
def client(app_env):
    from fastapi.testclient import TestClient

    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def run_db(db_path: Path):
    """
    Run `fn(database)` against a fresh SQLite store with the forms table in place.
    """
    from core import db
    from forms import repository

    def _run(fn):
        async def _main():
            database = await db.open_database(f"sqlite:{db_path}")
            try:
                await repository.create_table(database)
                return await fn(database)
            finally:
                await database.close()

        return asyncio.run(_main())

    return _run
