"""File uploads to the KIE.ai file host.

Uploaded files get a public URL that can be fed into image/video request
fields. Files expire after 3 days.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Any

from kieai_kit.envelope import decode_envelope
from kieai_kit.errors import DecodingFailedError, KieApiError, ServerError
from kieai_kit.models import UploadedFile
from kieai_kit.transport import RawResponse, Transport

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_PATH = "uploads"


def _upload_body(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class FileUploadService:
    """Uploads by remote URL, base64 payload or multipart stream.

    Args:
        transport: Transport bound to the upload host (not the API base URL).
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def _parse(self, response: RawResponse) -> UploadedFile:
        envelope = decode_envelope(response.status_code, response.body)
        if envelope.success is False or not envelope.is_success:
            raise ServerError(envelope.msg or f"Upload API error (code={envelope.code})", body=envelope.msg)
        if envelope.data is None:
            raise DecodingFailedError("Upload response data is nil")
        return UploadedFile.from_payload(envelope.data)

    async def upload_from_url(
        self,
        url: str,
        upload_path: str | None = DEFAULT_UPLOAD_PATH,
        file_name: str | None = None,
    ) -> UploadedFile:
        """Have the file host fetch *url* and store a copy."""
        logger.info("Uploading from URL %s", url)
        response = await self._transport.send(
            "POST",
            "api/file-url-upload",
            json_body=_upload_body(fileUrl=url, uploadPath=upload_path, fileName=file_name),
        )
        uploaded = self._parse(response)
        logger.info("Uploaded %s -> %s", url, uploaded.file_url)
        return uploaded

    async def upload_base64(
        self,
        base64_data: str,
        upload_path: str | None = DEFAULT_UPLOAD_PATH,
        file_name: str | None = None,
    ) -> UploadedFile:
        """Upload base64 data (plain or ``data:<mime>;base64,...``)."""
        logger.info("Uploading base64 payload (%d chars)", len(base64_data))
        response = await self._transport.send(
            "POST",
            "api/file-base64-upload",
            json_body=_upload_body(base64Data=base64_data, uploadPath=upload_path, fileName=file_name),
        )
        return self._parse(response)

    async def upload_bytes(
        self,
        data: bytes,
        upload_path: str | None = DEFAULT_UPLOAD_PATH,
        file_name: str | None = None,
    ) -> UploadedFile:
        encoded = base64.b64encode(data).decode("ascii")
        return await self.upload_base64(encoded, upload_path=upload_path, file_name=file_name)

    async def upload_file(
        self,
        file_path: str | Path,
        upload_path: str | None = DEFAULT_UPLOAD_PATH,
        mime_type: str | None = None,
    ) -> UploadedFile:
        """Upload a local file as a multipart stream and return its hosted record."""
        path = Path(file_path)
        if not path.exists():
            raise KieApiError(f"File not found: {path}")

        content_type = mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        logger.info("Uploading %s (%.1f KB)", path, path.stat().st_size / 1024)

        with open(path, "rb") as f:
            response = await self._transport.send(
                "POST",
                "api/file-stream-upload",
                files={"file": (path.name, f, content_type)},
                data=_upload_body(uploadPath=upload_path),
            )
        uploaded = self._parse(response)
        logger.info("Uploaded %s -> %s", path.name, uploaded.file_url)
        return uploaded
