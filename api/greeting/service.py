"""
Greeting endpoint logic. The greeting is built by the store, so a response
also proves the database round-trip works.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from core.db import Database


async def greet(db: Database, name: str) -> dict:
    row = await db.fetch_one("SELECT 'Hello ' || CAST($1 AS TEXT) AS hello", name)
    hello = row.get("hello") if row is not None else None
    if hello is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Query failed.")
    return {"hello": str(hello)}
