"""
Upload API response models.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Uploader(BaseModel):
    id: int
    name: str | None = None
    email: str | None = None


class UploadedFile(BaseModel):
    id: int
    original_name: str
    drive_file_id: str
    drive_file_link: str
    thumbnail: str
    section: str
    subsection: str
    date: datetime
    month: str
    uploaded_by: Uploader | None = None
    created_at: datetime


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class UploadListResponse(BaseModel):
    files: list[UploadedFile]
    pagination: Pagination


class UploadResultResponse(BaseModel):
    message: str
    files: list[UploadedFile]
