from types import SimpleNamespace

import httpx
import pytest
import respx
from googleapiclient.errors import HttpError
from httpx import Response

from portal.core import google as google_module
from portal.core.google import (
    DRIVE_FILES_URL,
    SHEETS_BASE_URL,
    GoogleAPIError,
    GoogleClient,
)


async def fake_token():
    return "test-token"


@pytest.fixture
def client():
    return GoogleClient(fake_token)


@pytest.mark.asyncio
@respx.mock
async def test_get_sheet_values_requests_encoded_range(client):
    route = respx.get(url__startswith=f"{SHEETS_BASE_URL}/S/values/").mock(
        return_value=Response(200, json={"range": "T!A1:B2", "values": [["a", "b"], ["1", 2]]})
    )

    values = await client.get_sheet_values("S", "T!A1:B2")

    assert values == [["a", "b"], ["1", "2"]]
    request = route.calls.last.request
    assert request.url.path == "/v4/spreadsheets/S/values/T!A1:B2"
    assert request.headers["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
@respx.mock
async def test_get_sheet_values_without_values_is_empty(client):
    respx.get(url__startswith=f"{SHEETS_BASE_URL}/S/values/").mock(
        return_value=Response(200, json={"range": "T!A1:B2", "majorDimension": "ROWS"})
    )

    assert await client.get_sheet_values("S", "T!A1:B2") == []


@pytest.mark.asyncio
@respx.mock
async def test_error_status_is_wrapped(client):
    respx.get(url__startswith=f"{SHEETS_BASE_URL}/S/values/").mock(
        return_value=Response(403, text="The caller does not have permission")
    )

    with pytest.raises(GoogleAPIError) as excinfo:
        await client.get_sheet_values("S", "T!A1:B2")

    assert excinfo.value.status_code == 403
    assert "403" in str(excinfo.value)
    assert "does not have permission" in str(excinfo.value)


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_is_wrapped(client):
    respx.get(url__startswith=f"{SHEETS_BASE_URL}/S/values/").mock(
        side_effect=httpx.ConnectError("connection refused")
    )

    with pytest.raises(GoogleAPIError) as excinfo:
        await client.get_sheet_values("S", "T!A1:B2")

    assert excinfo.value.status_code is None


@pytest.fixture
def drive_uploads(monkeypatch):
    calls = []

    def create_drive_file(token, metadata, data, mime_type):
        calls.append({"token": token, "metadata": metadata, "data": data, "mime_type": mime_type})
        return {"id": "f1", "name": metadata["name"], "webViewLink": "https://drive/f1"}

    monkeypatch.setattr(google_module, "create_drive_file", create_drive_file)
    return calls


@pytest.mark.asyncio
@respx.mock
async def test_upload_file_shares_link_best_effort(client, drive_uploads):
    permission = respx.post(url__startswith=f"{DRIVE_FILES_URL}/f1/permissions").mock(return_value=Response(500))

    drive_file = await client.upload_file(b"\x89PNG", "chart.png", "image/png", folder_id="folder-1")

    assert drive_file.file_id == "f1"
    assert drive_file.web_view_link == "https://drive/f1"
    assert drive_file.web_content_link is None
    assert permission.called
    assert drive_uploads == [
        {
            "token": "test-token",
            "metadata": {"name": "chart.png", "parents": ["folder-1"]},
            "data": b"\x89PNG",
            "mime_type": "image/png",
        }
    ]


@pytest.mark.asyncio
async def test_upload_file_without_folder_or_mime_type(client, drive_uploads, monkeypatch):
    async def no_share(*args, **kwargs):
        return None

    monkeypatch.setattr(client, "_request", no_share)

    await client.upload_file(b"raw", "notes", "")

    assert drive_uploads[0]["metadata"] == {"name": "notes"}
    assert drive_uploads[0]["mime_type"] == "application/octet-stream"


@pytest.mark.asyncio
async def test_upload_http_error_is_wrapped(client, monkeypatch):
    def create_drive_file(token, metadata, data, mime_type):
        raise HttpError(SimpleNamespace(status=403, reason="Forbidden"), b'{"error": {"message": "Insufficient permissions"}}')

    monkeypatch.setattr(google_module, "create_drive_file", create_drive_file)

    with pytest.raises(GoogleAPIError) as excinfo:
        await client.upload_file(b"x", "x.png", "image/png")

    assert excinfo.value.status_code == 403
    assert "Insufficient permissions" in str(excinfo.value)


@pytest.mark.asyncio
@respx.mock
async def test_stream_file_yields_content(client):
    respx.get(url__startswith=f"{DRIVE_FILES_URL}/f1").mock(return_value=Response(200, content=b"abc" * 10))

    chunks = [chunk async for chunk in client.stream_file("f1")]

    assert b"".join(chunks) == b"abc" * 10
