import logging
import re

import pytest
from botocore.exceptions import NoCredentialsError

from conftest import EVENT_CODE

KEY_PATTERN = re.compile(
    r"^tess60/\d{4}-\d{2}-\d{2}/"
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}-"
    r"(?P<name>[A-Za-z0-9._-]{1,120})$"
)


def _body(**overrides):
    body = {"fileName": "cake.jpg", "contentType": "image/jpeg", "eventCode": EVENT_CODE}
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_issue_upload_url(client, dummy_storage):
    resp = await client.post("/api/upload-url", json=_body(fileName="my photo (2024)/best!.png"))
    assert resp.status_code == 200
    data = resp.json()
    assert set(data) == {"url", "key"}

    match = KEY_PATTERN.match(data["key"])
    assert match is not None
    assert match.group("name") == "my_photo__2024__best_.png"
    assert data["url"] == f"https://example.com/put/{data['key']}"
    assert dummy_storage.calls == [(data["key"], "image/jpeg", 60)]


@pytest.mark.asyncio
async def test_event_code_is_trimmed(client, dummy_storage):
    resp = await client.post("/api/upload-url", json=_body(eventCode=f"  {EVENT_CODE}\n"))
    assert resp.status_code == 200
    assert resp.json()["url"]


@pytest.mark.asyncio
async def test_keys_are_unique(client, dummy_storage):
    first = await client.post("/api/upload-url", json=_body())
    second = await client.post("/api/upload-url", json=_body())
    assert first.json()["key"] != second.json()["key"]


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["wrong", "PARTY-2024", "party-20245"])
async def test_wrong_event_code_rejected(client, dummy_storage, code, caplog):
    caplog.set_level(logging.WARNING)
    resp = await client.post("/api/upload-url", json=_body(eventCode=code))
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid event code"}
    assert dummy_storage.calls == []
    assert "Invalid event code attempt" in caplog.text
    assert EVENT_CODE not in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [EVENT_CODE, "wrong"])
@pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", "audio/mpeg", "images/png"])
async def test_non_media_content_type_rejected(client, dummy_storage, code, content_type):
    resp = await client.post(
        "/api/upload-url",
        json=_body(contentType=content_type, eventCode=code),
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Only image and video files are allowed"}


@pytest.mark.asyncio
async def test_video_content_type_accepted(client, dummy_storage):
    resp = await client.post("/api/upload-url", json=_body(fileName="toast.mp4", contentType="video/mp4"))
    assert resp.status_code == 200
    assert resp.json()["key"].endswith("-toast.mp4")


@pytest.mark.asyncio
async def test_invalid_json(client, dummy_storage):
    resp = await client.post(
        "/api/upload-url",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid JSON in request body"}


@pytest.mark.asyncio
async def test_non_object_body(client, dummy_storage):
    resp = await client.post("/api/upload-url", json=["cake.jpg"])
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid JSON in request body"}


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["fileName", "contentType", "eventCode"])
async def test_missing_fields(client, dummy_storage, missing):
    body = _body()
    del body[missing]
    resp = await client.post("/api/upload-url", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: fileName, contentType, eventCode"}


@pytest.mark.asyncio
async def test_empty_and_null_fields(client, dummy_storage):
    for body in (_body(fileName=""), _body(eventCode=None), _body(contentType=42)):
        resp = await client.post("/api/upload-url", json=body)
        assert resp.status_code == 400


@pytest.mark.asyncio
async def test_missing_upload_secret(client, monkeypatch):
    from app.core.config import get_settings

    monkeypatch.delenv("UPLOAD_SECRET")
    get_settings.cache_clear()

    resp = await client.post("/api/upload-url", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server configuration error: UPLOAD_SECRET not set"}


@pytest.mark.asyncio
async def test_missing_bucket(client, monkeypatch):
    from app.core.config import get_settings

    monkeypatch.delenv("R2_BUCKET")
    get_settings.cache_clear()

    resp = await client.post("/api/upload-url", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server configuration error"}


@pytest.mark.asyncio
async def test_missing_storage_credentials(client, monkeypatch):
    from app.core.config import get_settings

    monkeypatch.delenv("R2_SECRET_ACCESS_KEY")
    get_settings.cache_clear()

    resp = await client.post("/api/upload-url", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Missing R2 credentials in environment variables"}


@pytest.mark.asyncio
async def test_signing_failure(client, dummy_storage):
    dummy_storage.error = NoCredentialsError()
    resp = await client.post("/api/upload-url", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate upload URL. Check R2 credentials."}


@pytest.mark.asyncio
async def test_empty_signed_url(client, dummy_storage):
    dummy_storage.url = ""
    resp = await client.post("/api/upload-url", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate valid upload URL"}


@pytest.mark.asyncio
async def test_real_presigned_url(client, caplog):
    caplog.set_level(logging.INFO)
    resp = await client.post("/api/upload-url", json=_body(fileName="dance floor.mov", contentType="video/quicktime"))
    assert resp.status_code == 200
    data = resp.json()
    assert data["url"].startswith("https://")
    assert "test-account.r2.cloudflarestorage.com" in data["url"]
    assert "X-Amz-Expires=60" in data["url"]
    assert data["key"].rsplit("/", 1)[-1] in data["url"]
    assert f"Generated presigned URL for: {data['key']}" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_error(client, dummy_storage, caplog):
    caplog.set_level(logging.ERROR)
    dummy_storage.key_error = RuntimeError("disk on fire")
    resp = await client.post("/api/upload-url", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate upload URL: disk on fire"}
    assert dummy_storage.calls == []
    assert "Unexpected error in upload-url route" in caplog.text
