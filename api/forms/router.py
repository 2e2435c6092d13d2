"""
Form API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core.db import Database, get_db

from . import schemas, service

router = APIRouter()


@router.get("/forms")
async def list_forms(db: Database = Depends(get_db)) -> list[dict]:
    """
    All forms, most recently updated first.
    """
    return await service.list_forms(db)


@router.post("/form")
async def save_form(
    request: schemas.SaveFormRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.save_form(db, request.data, uuid=request.uuid)


@router.get("/form/{uuid}")
async def get_form(uuid: str, db: Database = Depends(get_db)) -> dict:
    return await service.get_form(db, uuid)


@router.delete("/form/{uuid}")
async def delete_form(uuid: str, db: Database = Depends(get_db)) -> dict:
    return await service.delete_form(db, uuid)
