"""
FastAPI router for upload endpoints.
"""

from __future__ import annotations

import mimetypes
from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from portal.auth import dependencies as auth_dependencies
from portal.core.google import GoogleClient, get_google_client

from . import schemas, service

router = APIRouter(prefix="/uploads")


def _attachment_header(filename: str) -> str:
    fallback = filename.encode("ascii", errors="replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_files(
    files: list[UploadFile] | None = File(default=None),
    section: str = Form(default=""),
    subsection: str = Form(default=""),
    upload_date: date | None = Form(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
    google: GoogleClient = Depends(get_google_client),
) -> schemas.UploadResultResponse:
    """
    Upload up to 10 files into the Drive folder for `section`/`subsection`.

    Files that fail individually are skipped; the response lists the rest.
    """
    return await service.upload_files(
        files or [],
        section=section,
        subsection=subsection,
        upload_date=upload_date,
        user_id=int(current_user["id"]),
        google=google,
    )


@router.get("")
async def list_uploads(
    section: str | None = None,
    subsection: str | None = None,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.UploadListResponse:
    return await service.list_uploads(
        section=section,
        subsection=subsection,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )


@router.get("/{file_id}")
async def get_upload(
    file_id: int,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.UploadedFile:
    return service.to_uploaded_file(await service.get_upload(file_id))


@router.get("/{file_id}/download")
async def download_upload(
    file_id: int,
    _: dict = Depends(auth_dependencies.get_current_user),
    google: GoogleClient = Depends(get_google_client),
) -> StreamingResponse:
    row = await service.get_upload(file_id)
    filename = str(row["original_name"])
    stream = await service.open_drive_stream(str(row["drive_file_id"]), google=google)
    return StreamingResponse(
        stream,
        media_type=mimetypes.guess_type(filename)[0] or "application/octet-stream",
        headers={"Content-Disposition": _attachment_header(filename)},
    )


@router.delete("/{file_id}")
async def delete_upload(
    file_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
    google: GoogleClient = Depends(get_google_client),
) -> dict:
    return await service.delete_upload(file_id, google=google)
