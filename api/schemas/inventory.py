"""
Pydantic schemas for inventory endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from housing.models import InventoryImportRow


class InventoryImportRequest(BaseModel):
    """Already-parsed rows of the buildings/rooms template."""

    rows: list[InventoryImportRow] = Field(min_length=1)
