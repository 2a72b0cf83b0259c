"""
Upload "service layer".

- Work out the Drive folder and stored date for a section
- Read uploads into memory with a size limit
- Push each file to Drive and record its metadata, one file at a time
"""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import asyncpg
from fastapi import HTTPException, UploadFile, status

from portal.core import settings
from portal.core.google import GoogleAPIError, GoogleClient, thumbnail_url

from . import repository, schemas

logger = logging.getLogger(__name__)

MAX_FILES_PER_UPLOAD = 10
DAILY_SECTION = "quality"
REPORTS_SECTION = "reports"


@dataclass(frozen=True)
class UploadTarget:
    folder_path: str
    date: datetime
    month: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def upload_target(
    section: str,
    subsection: str,
    *,
    upload_date: date | None = None,
    now: datetime | None = None,
) -> UploadTarget:
    """
    Drive folder layout per section:

    - quality:  "14-Nov-25/quality-<subsection>", dated `upload_date` or yesterday
    - reports:  "Oct-25/reports/<subsection>", dated now
    - other:    "November 2025/<section>-<subsection>", dated now

    `upload_date` is only honoured for the daily (quality) section.
    """
    now = now or _utc_now()

    if section == DAILY_SECTION:
        when = _start_of_day(upload_date) if upload_date else now - timedelta(days=1)
        folder = f"{when:%d-%b-%y}/quality-{subsection}"
    elif section == REPORTS_SECTION:
        when = now
        folder = f"{when:%b-%y}/reports/{subsection}"
    else:
        when = now
        folder = f"{when:%B %Y}/{section}-{subsection}"

    return UploadTarget(folder_path=folder, date=when, month=f"{when:%B %Y}")


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File '{file.filename}' is too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


def to_uploaded_file(row: dict[str, Any]) -> schemas.UploadedFile:
    uploader = None
    if row.get("uploader_id") is not None:
        uploader = schemas.Uploader(
            id=int(row["uploader_id"]),
            name=row.get("uploader_name"),
            email=row.get("uploader_email"),
        )
    return schemas.UploadedFile(
        id=int(row["id"]),
        original_name=str(row["original_name"]),
        drive_file_id=str(row["drive_file_id"]),
        drive_file_link=str(row["drive_file_link"]),
        thumbnail=thumbnail_url(str(row["drive_file_id"])),
        section=str(row["section"]),
        subsection=str(row["subsection"]),
        date=row["date"],
        month=str(row["month"]),
        uploaded_by=uploader,
        created_at=row["created_at"],
    )


async def upload_files(
    files: list[UploadFile],
    *,
    section: str,
    subsection: str,
    upload_date: date | None,
    user_id: int,
    google: GoogleClient,
) -> schemas.UploadResultResponse:
    section, subsection = section.strip(), subsection.strip()
    if not section or not subsection:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Section and subsection are required.")
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files uploaded.")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many files. Max is {MAX_FILES_PER_UPLOAD} per upload.",
        )

    # Size limits are checked for the whole batch before anything is sent to Drive.
    max_bytes = settings.max_upload_bytes()
    payloads = [(file, await read_upload_bytes(file, max_bytes)) for file in files]

    target = upload_target(section, subsection, upload_date=upload_date)
    folder_id = settings.drive_folder_id()
    uploaded: list[schemas.UploadedFile] = []

    for file, data in payloads:
        original_name = file.filename or "upload"
        try:
            drive_file = await google.upload_file(
                data,
                f"{target.folder_path}/{original_name}",
                file.content_type or "application/octet-stream",
                folder_id=folder_id,
            )
            row = await repository.insert_file(
                original_name=original_name,
                drive_file_id=drive_file.file_id,
                drive_file_link=drive_file.web_view_link or "",
                section=section,
                subsection=subsection,
                date=target.date,
                month=target.month,
                uploaded_by=user_id,
            )
        except (GoogleAPIError, asyncpg.PostgresError) as exc:
            # Failures are per file; the rest of the batch continues.
            logger.error("upload_failed file=%s section=%s error=%s", original_name, section, exc)
            continue

        uploaded.append(to_uploaded_file(row))

    logger.info(
        "upload_batch_done section=%s subsection=%s uploaded=%s requested=%s",
        section,
        subsection,
        len(uploaded),
        len(payloads),
    )
    return schemas.UploadResultResponse(
        message=f"{len(uploaded)} file(s) uploaded successfully",
        files=uploaded,
    )


async def list_uploads(
    *,
    section: str | None,
    subsection: str | None,
    date_from: date | None,
    date_to: date | None,
    page: int,
    limit: int,
) -> schemas.UploadListResponse:
    rows, total = await repository.list_files(
        section=section or None,
        subsection=subsection or None,
        date_from=_start_of_day(date_from) if date_from else None,
        # `to` is inclusive of the whole day.
        date_to=_start_of_day(date_to + timedelta(days=1)) if date_to else None,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return schemas.UploadListResponse(
        files=[to_uploaded_file(row) for row in rows],
        pagination=schemas.Pagination(
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit) if limit else 0,
        ),
    )


async def get_upload(file_id: int) -> dict[str, Any]:
    row = await repository.get_file(file_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found.")
    return row


async def delete_upload(file_id: int, *, google: GoogleClient) -> dict[str, str]:
    row = await get_upload(file_id)

    try:
        await google.delete_file(str(row["drive_file_id"]))
    except GoogleAPIError as exc:
        # The metadata row is removed even when the Drive delete fails.
        logger.warning("drive_delete_failed file_id=%s drive_file_id=%s error=%s", file_id, row["drive_file_id"], exc)

    await repository.delete_file(file_id)
    return {"message": "File deleted successfully"}


async def open_drive_stream(drive_file_id: str, *, google: GoogleClient) -> AsyncIterator[bytes]:
    """
    Probe the Drive object, then hand back its byte stream.

    The probe runs before the response starts so failures map to a status code.
    """
    try:
        await google.get_file_metadata(drive_file_id)
    except GoogleAPIError as exc:
        logger.error("drive_file_unavailable drive_file_id=%s error=%s", drive_file_id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to get file: {exc}") from exc
    return google.stream_file(drive_file_id)
