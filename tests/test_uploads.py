"""Tests for the file upload service."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx
import pytest

from conftest import ScriptedAPI
from kieai_kit.config import DEFAULT_UPLOAD_BASE_URL
from kieai_kit.errors import DecodingFailedError, KieApiError, ServerError
from kieai_kit.transport import Transport
from kieai_kit.uploads import FileUploadService


def _upload_ok(**data) -> dict:
    payload = {"fileName": "cat.png", "downloadUrl": "https://tempfile.test/cat.png", "fileSize": 12}
    payload.update(data)
    return {"success": True, "code": 200, "msg": "File uploaded successfully", "data": payload}


@pytest.fixture
async def uploads(api: ScriptedAPI):
    transport = Transport("test-key", DEFAULT_UPLOAD_BASE_URL, http_transport=api.transport)
    yield FileUploadService(transport)
    await transport.close()


class TestUploads:
    async def test_upload_from_url(self, api: ScriptedAPI, uploads: FileUploadService) -> None:
        api.queue("/api/file-url-upload", _upload_ok())
        uploaded = await uploads.upload_from_url("https://example.com/cat.png", file_name="cat.png")

        assert uploaded.file_url == "https://tempfile.test/cat.png"
        assert uploaded.file_size == 12
        assert api.json_bodies("/api/file-url-upload") == [
            {"fileUrl": "https://example.com/cat.png", "uploadPath": "uploads", "fileName": "cat.png"}
        ]
        assert api.requests[0].url.host == "kieai.redpandaai.co"

    async def test_upload_bytes_encodes_base64(self, api: ScriptedAPI, uploads: FileUploadService) -> None:
        api.queue("/api/file-base64-upload", _upload_ok())
        await uploads.upload_bytes(b"hello", upload_path=None)

        body = api.json_bodies("/api/file-base64-upload")[0]
        assert body == {"base64Data": base64.b64encode(b"hello").decode()}

    async def test_upload_file_is_multipart(self, api: ScriptedAPI, uploads: FileUploadService, tmp_path: Path) -> None:
        source = tmp_path / "cat.png"
        source.write_bytes(b"\x89PNG fake")
        api.queue("/api/file-stream-upload", _upload_ok())

        uploaded = await uploads.upload_file(source, upload_path="images")

        request = api.requests[0]
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="uploadPath"' in request.content
        assert b"images" in request.content
        assert b"\x89PNG fake" in request.content
        assert uploaded.file_name == "cat.png"

    async def test_missing_local_file(self, uploads: FileUploadService, tmp_path: Path) -> None:
        with pytest.raises(KieApiError, match="File not found"):
            await uploads.upload_file(tmp_path / "nope.png")

    async def test_success_false(self, api: ScriptedAPI, uploads: FileUploadService) -> None:
        api.queue("/api/file-url-upload", {"success": False, "code": 200, "msg": "quota exceeded", "data": None})
        with pytest.raises(ServerError, match="quota exceeded"):
            await uploads.upload_from_url("https://example.com/cat.png")

    async def test_null_data(self, api: ScriptedAPI, uploads: FileUploadService) -> None:
        api.queue("/api/file-url-upload", {"success": True, "code": 200, "msg": "ok", "data": None})
        with pytest.raises(DecodingFailedError):
            await uploads.upload_from_url("https://example.com/cat.png")

    async def test_http_error(self, api: ScriptedAPI, uploads: FileUploadService) -> None:
        api.queue("/api/file-url-upload", httpx.Response(500, text=json.dumps({"msg": "down"})))
        with pytest.raises(ServerError):
            await uploads.upload_from_url("https://example.com/cat.png")
