"""
Form persistence (raw SQL).

`data` is stored as serialized JSON text; parsing happens in the service layer.
"""

from __future__ import annotations

from typing import Any

from core.db import Database


async def create_table(db: Database) -> None:
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS forms (
            uuid TEXT PRIMARY KEY,
            data TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )


async def list_forms(db: Database) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT uuid, data, updated_at
        FROM forms
        ORDER BY updated_at DESC
        """
    )


async def upsert_form(db: Database, uuid: str, *, data: str, updated_at: str) -> None:
    """
    Insert a form or fully replace an existing one in a single statement.
    """
    await db.execute(
        """
        INSERT INTO forms (uuid, data, updated_at)
        VALUES ($1, $2, $3)
        ON CONFLICT (uuid) DO UPDATE
        SET data = EXCLUDED.data,
            updated_at = EXCLUDED.updated_at
        """,
        uuid,
        data,
        updated_at,
    )


async def get_form_data(db: Database, uuid: str) -> str | None:
    row = await db.fetch_one(
        """
        SELECT data
        FROM forms
        WHERE uuid = $1
        """,
        uuid,
    )
    if row is None:
        return None
    return row["data"]


async def delete_form(db: Database, uuid: str) -> int:
    return await db.execute(
        """
        DELETE FROM forms
        WHERE uuid = $1
        """,
        uuid,
    )
