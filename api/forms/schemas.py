"""
Pydantic schemas for form endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SaveFormRequest(BaseModel):
    # Omitted or blank -> the service generates a new UUID.
    uuid: str | None = Field(default=None)
    data: Any = Field(...)
