"""
Sheet configuration API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SheetConfigCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    report_key: str = Field(..., min_length=1, max_length=100)
    report_name: str = Field(..., min_length=1, max_length=200)
    sheet_id: str = Field(..., min_length=1, max_length=200)
    sheet_url: str | None = Field(default=None, max_length=2000)
    tab_name: str = Field(..., min_length=1, max_length=200)
    range: str = Field(..., min_length=1, max_length=100)


class SheetConfigUpdateRequest(BaseModel):
    """
    Every field is optional. Empty strings for the required text columns are
    treated as "leave unchanged"; `sheet_url` and `is_active` apply whenever
    they are sent (an explicit null clears `sheet_url`).
    """

    model_config = ConfigDict(extra="forbid")

    report_name: str | None = Field(default=None, max_length=200)
    sheet_id: str | None = Field(default=None, max_length=200)
    sheet_url: str | None = Field(default=None, max_length=2000)
    tab_name: str | None = Field(default=None, max_length=200)
    range: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class SheetConfigResponse(BaseModel):
    id: int
    report_key: str
    report_name: str
    sheet_id: str
    sheet_url: str | None
    tab_name: str
    range: str
    full_range: str
    is_active: bool
    updated_at: datetime | None
    updated_by: int | None
