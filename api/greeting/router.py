from __future__ import annotations

from fastapi import APIRouter, Depends

from core.db import Database, get_db

from . import service

router = APIRouter()


@router.get("/api/hello/{name}")
async def hello(name: str, db: Database = Depends(get_db)) -> dict:
    return await service.greet(db, name)
