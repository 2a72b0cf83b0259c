"""
Report API schemas.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal.uploads.schemas import UploadedFile


class ReportKey(BaseModel):
    key: str
    name: str


class ReportResponse(BaseModel):
    report_key: str
    headers: list[str]
    rows: list[dict[str, str]]
    last_updated: datetime


class RefreshRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Omitted or null clears every cached report.
    report_key: str | None = Field(default=None, max_length=100)


class ArtifactResponse(BaseModel):
    report_key: str
    artifact: UploadedFile | None
