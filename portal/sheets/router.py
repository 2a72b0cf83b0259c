"""
Sheet configuration endpoints (admin only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from portal.auth import dependencies as auth_dependencies

from . import schemas, service
from .dependencies import get_fetcher
from .fetcher import CachedFetcher

router = APIRouter(prefix="/sheet-config")


@router.get("")
async def list_configs(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return {"configs": await service.list_configs()}


@router.get("/{report_key}")
async def get_config(
    report_key: str,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"config": await service.get_config_by_key(report_key)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_config(
    payload: schemas.SheetConfigCreateRequest,
    current_user: dict = Depends(auth_dependencies.require_admin),
    fetcher: CachedFetcher = Depends(get_fetcher),
) -> dict:
    config = await service.create_config(payload, fetcher=fetcher, user_id=int(current_user["id"]))
    return {"config": config}


@router.put("/{config_id}")
async def update_config(
    config_id: int,
    payload: schemas.SheetConfigUpdateRequest,
    current_user: dict = Depends(auth_dependencies.require_admin),
    fetcher: CachedFetcher = Depends(get_fetcher),
) -> dict:
    config = await service.update_config(config_id, payload, fetcher=fetcher, user_id=int(current_user["id"]))
    return {"config": config}


@router.delete("/{config_id}")
async def delete_config(
    config_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
    fetcher: CachedFetcher = Depends(get_fetcher),
) -> dict:
    return await service.delete_config(config_id, fetcher=fetcher)


@router.post("/{config_id}/test")
async def check_config(
    config_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
    fetcher: CachedFetcher = Depends(get_fetcher),
) -> JSONResponse:
    status_code, body = await service.run_config_test(config_id, fetcher=fetcher)
    return JSONResponse(status_code=status_code, content=body)
