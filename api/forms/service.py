"""
Form business logic.

Scope:
- JSON (de)serialization of the stored `data` column
- UUID generation for new forms
- HTTP-facing failures (404 / 500)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import HTTPException, status

from core.db import Database

from . import repository

logger = logging.getLogger(__name__)

DELETED_MESSAGE = "Form deleted successfully"


def now_timestamp() -> str:
    # Fixed-width UTC ISO-8601, so text ordering matches time ordering.
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _json_dumps(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, allow_nan=False)
    # Lone surrogates survive json.dumps but are not valid UTF-8.
    text.encode("utf-8")
    return text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _json_loads(raw: str) -> Any:
    """
    Strict parse: NaN/Infinity are rejected, and the value must re-encode as
    UTF-8 JSON so it can be sent back in a response.
    """
    value = json.loads(raw, parse_constant=_reject_constant)
    _json_dumps(value)
    return value


async def list_forms(db: Database) -> list[dict]:
    rows = await repository.list_forms(db)

    forms: list[dict] = []
    skipped = 0
    for row in rows:
        try:
            data = _json_loads(row["data"])
        except (TypeError, ValueError):
            skipped += 1
            logger.warning("form_skipped_unparseable uuid=%s", row["uuid"])
            continue
        forms.append(
            {
                "uuid": str(row["uuid"]),
                "data": data,
                "updated_at": str(row["updated_at"]),
            }
        )

    if skipped:
        logger.warning("form_list_skipped count=%s returned=%s", skipped, len(forms))
    return forms


async def save_form(db: Database, data: Any, *, uuid: str | None = None) -> dict:
    form_uuid = (uuid or "").strip() or str(uuid4())
    try:
        data_json = _json_dumps(data)
    except (TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to serialize form data.",
        ) from exc

    await repository.upsert_form(db, form_uuid, data=data_json, updated_at=now_timestamp())
    return {"uuid": form_uuid}


async def get_form(db: Database, uuid: str) -> dict:
    raw = await repository.get_form_data(db, uuid)
    if raw is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found.")

    try:
        data = _json_loads(raw)
    except (TypeError, ValueError) as exc:
        logger.error("form_unparseable uuid=%s", uuid)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Stored form data is not valid JSON.",
        ) from exc
    return {"data": data}


async def delete_form(db: Database, uuid: str) -> dict:
    deleted = await repository.delete_form(db, uuid)
    if deleted == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found.")
    return {"message": DELETED_MESSAGE}
