"""
Google Sheets / Drive HTTP client helpers.

Used endpoints:
- GET    sheets/v4/spreadsheets/{id}/values/{range}   -> {"values": [[...], ...]}
- POST   drive/v3/files/{id}/permissions
- GET    drive/v3/files/{id}                          -> metadata, or bytes with alt=media
- DELETE drive/v3/files/{id}

Media uploads go through the `googleapiclient` Drive v3 service instead,
run in a worker thread.

Auth is a service-account bearer token minted by `google-auth`; the token
provider is injectable so tests can skip the OAuth exchange.
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import Request
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as TokenCredentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

logger = logging.getLogger(__name__)

SCOPES = (
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
)

SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_FIELDS = "id,name,webViewLink,webContentLink"

TokenProvider = Callable[[], Awaitable[str]]


# Google failures are explicit and separable from other runtime errors.
class GoogleAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class DriveFile:
    file_id: str
    name: str
    web_view_link: str | None
    web_content_link: str | None = None


class ServiceAccountTokens:
    """
    Async token provider backed by service-account credentials.

    `google-auth` refreshes synchronously, so the refresh runs in a thread.
    """

    def __init__(self, info: dict[str, Any], scopes: tuple[str, ...] = SCOPES) -> None:
        self._credentials = service_account.Credentials.from_service_account_info(info, scopes=list(scopes))

    async def __call__(self) -> str:
        if not self._credentials.valid:
            await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
        return str(self._credentials.token)


def thumbnail_url(file_id: str) -> str:
    return f"https://drive.google.com/thumbnail?id={file_id}&sz=w400"


def create_drive_file(token: str, metadata: dict[str, Any], data: bytes, mime_type: str) -> dict[str, Any]:
    """
    Blocking multipart upload through the Drive v3 discovery client.

    Run it in a worker thread; it raises `googleapiclient.errors.HttpError`.
    """
    service = build("drive", "v3", credentials=TokenCredentials(token), cache_discovery=False)
    media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)
    request = service.files().create(
        body=metadata,
        media_body=media,
        fields=DRIVE_UPLOAD_FIELDS,
        supportsAllDrives=True,
    )
    return request.execute()


class GoogleClient:
    def __init__(self, token_provider: TokenProvider, *, timeout_s: float = 30.0) -> None:
        self._token_provider = token_provider
        self._timeout_s = timeout_s

    async def _token(self) -> str:
        try:
            return await self._token_provider()
        except GoogleAuthError as exc:
            raise GoogleAPIError(f"Google authentication failed: {exc}") from exc

    async def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {await self._token()}"}

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        request_headers = await self._auth_headers()

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                resp = await client.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=request_headers,
                )
        except httpx.HTTPError as exc:
            raise GoogleAPIError(f"Google API request failed: {exc}") from exc

        if resp.status_code >= 400:
            # Avoid dumping huge bodies; include a small snippet.
            raise GoogleAPIError(
                f"Google API request failed: {resp.status_code} {resp.text[:500]}",
                status_code=resp.status_code,
            )
        return resp

    async def get_sheet_values(self, sheet_id: str, range_: str) -> list[list[str]]:
        """
        Read a cell range. A range with no data yields an empty list.
        """
        url = f"{SHEETS_BASE_URL}/{quote(sheet_id, safe='')}/values/{quote(range_, safe='')}"
        resp = await self._request("GET", url)
        values = resp.json().get("values")
        if not isinstance(values, list):
            return []
        return [[str(cell) for cell in row] for row in values if isinstance(row, list)]

    async def upload_file(
        self,
        data: bytes,
        name: str,
        mime_type: str,
        *,
        folder_id: str | None = None,
    ) -> DriveFile:
        metadata: dict[str, Any] = {"name": name}
        if folder_id:
            metadata["parents"] = [folder_id]

        token = await self._token()
        try:
            payload = await asyncio.to_thread(
                create_drive_file,
                token,
                metadata,
                data,
                mime_type or "application/octet-stream",
            )
        except HttpError as exc:
            raise GoogleAPIError(
                f"Google API request failed: {exc.status_code} {exc.reason}",
                status_code=exc.status_code,
            ) from exc
        except OSError as exc:
            raise GoogleAPIError(f"Google API request failed: {exc}") from exc

        drive_file = DriveFile(
            file_id=str(payload["id"]),
            name=str(payload.get("name") or name),
            web_view_link=payload.get("webViewLink"),
            web_content_link=payload.get("webContentLink"),
        )
        logger.info("drive_file_created file_id=%s name=%s", drive_file.file_id, name)

        # Link sharing is best effort; the file is still usable through the API.
        try:
            await self._request(
                "POST",
                f"{DRIVE_FILES_URL}/{drive_file.file_id}/permissions",
                params={"supportsAllDrives": "true"},
                json_body={"role": "reader", "type": "anyone"},
            )
        except GoogleAPIError as exc:
            logger.warning("drive_permission_failed file_id=%s error=%s", drive_file.file_id, exc)

        return drive_file

    async def delete_file(self, file_id: str) -> None:
        await self._request(
            "DELETE",
            f"{DRIVE_FILES_URL}/{quote(file_id, safe='')}",
            params={"supportsAllDrives": "true"},
        )

    async def get_file_metadata(self, file_id: str) -> dict[str, Any]:
        resp = await self._request(
            "GET",
            f"{DRIVE_FILES_URL}/{quote(file_id, safe='')}",
            params={"fields": "id,name,mimeType,size", "supportsAllDrives": "true"},
        )
        return resp.json()

    async def stream_file(self, file_id: str, *, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        """
        Yield the raw file content.

        Callers should probe with `get_file_metadata` first: once the response
        has started, a failure here can no longer change the HTTP status.
        """
        headers = await self._auth_headers()
        url = f"{DRIVE_FILES_URL}/{quote(file_id, safe='')}"
        params = {"alt": "media", "supportsAllDrives": "true"}

        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            async with client.stream("GET", url, params=params, headers=headers) as resp:
                if resp.status_code >= 400:
                    body = (await resp.aread())[:500].decode("utf-8", errors="replace")
                    raise GoogleAPIError(
                        f"Google API request failed: {resp.status_code} {body}",
                        status_code=resp.status_code,
                    )

                first = True
                async for chunk in resp.aiter_bytes(chunk_size):
                    if first and chunk.lstrip()[:15].lower().startswith((b"<!doctype", b"<html")):
                        logger.warning("drive_stream_looks_like_html file_id=%s", file_id)
                    first = False
                    yield chunk


def get_google_client(request: Request) -> GoogleClient:
    """
    FastAPI dependency: the client built in the app lifespan.
    """
    return request.app.state.google_client
