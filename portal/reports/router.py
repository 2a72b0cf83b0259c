"""
Report endpoints: sheet-backed tables and image artifacts.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from portal.auth import dependencies as auth_dependencies
from portal.core.google import GoogleClient, get_google_client
from portal.sheets.dependencies import get_fetcher
from portal.sheets.fetcher import CachedFetcher
from portal.uploads import service as uploads_service

from . import artifacts, schemas, service

router = APIRouter(prefix="/reports")

IMAGE_CACHE_CONTROL = "public, max-age=3600"


@router.get("/keys")
async def list_report_keys(_: dict = Depends(auth_dependencies.get_current_user)) -> dict:
    return {"report_keys": service.list_report_keys()}


@router.post("/refresh")
async def refresh_reports(
    payload: schemas.RefreshRequest | None = None,
    _: dict = Depends(auth_dependencies.require_admin),
    fetcher: CachedFetcher = Depends(get_fetcher),
) -> dict:
    return service.refresh_reports(payload.report_key if payload else None, fetcher=fetcher)


@router.get("/{report_key}")
async def get_report(
    report_key: str,
    _: dict = Depends(auth_dependencies.get_current_user),
    fetcher: CachedFetcher = Depends(get_fetcher),
) -> schemas.ReportResponse:
    return await service.get_report(report_key, fetcher=fetcher)


@router.get("/{report_key}/latest")
async def get_latest_artifact(
    report_key: str,
    _: dict = Depends(auth_dependencies.get_current_user),
    google: GoogleClient = Depends(get_google_client),
) -> schemas.ArtifactResponse:
    row = await artifacts.resolve_artifact(report_key, google=google)
    return schemas.ArtifactResponse(
        report_key=report_key,
        artifact=uploads_service.to_uploaded_file(row) if row is not None else None,
    )


@router.get("/{report_key}/image")
async def get_report_image(
    report_key: str,
    _: dict = Depends(auth_dependencies.get_current_user),
    google: GoogleClient = Depends(get_google_client),
) -> StreamingResponse:
    row = await artifacts.resolve_artifact(report_key, google=google)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No image available for report: {report_key}",
        )

    # resolve_artifact already probed the file, so streaming can start directly.
    return StreamingResponse(
        google.stream_file(str(row["drive_file_id"])),
        media_type=artifacts.image_media_type(str(row["original_name"])),
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )
