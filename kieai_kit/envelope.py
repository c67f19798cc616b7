"""Decoding of the ``{code, msg, data}`` envelope that wraps every KIE.ai response."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from kieai_kit.errors import DecodingFailedError, ServerError, error_from_status

SUCCESS_CODE = 200

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_case(key: str) -> str:
    """Convert a wire key (``taskId``, ``resultJson``, ``task_id``) to snake_case."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def normalize_keys(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a shallow copy of *payload* with snake_case keys.

    Only the top level is converted: nested free-form maps such as task
    metadata keep the keys the server sent.
    """
    return {snake_case(str(key)): value for key, value in payload.items()}


@dataclass(frozen=True)
class Envelope:
    """The generic response wrapper.

    Attributes:
        code: Business status code; 200 means success whatever the HTTP status text.
        msg: Human-readable server message.
        data: Payload, normalised to snake_case keys when it is an object.
        success: Explicit ``success`` flag, only sent by the upload host.
    """
    code: int
    msg: str = ""
    data: Any = None
    success: bool | None = None

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS_CODE

    def unwrap(self) -> Any:
        """Return the payload or raise the matching error.

        Raises:
            ServerError: The envelope code is not the success sentinel.
            DecodingFailedError: Success was reported but ``data`` is missing.
        """
        if not self.is_success:
            raise ServerError(self.msg or f"API error (code={self.code})", body=self.msg)
        if self.data is None:
            raise DecodingFailedError("Response data is nil")
        return self.data


def _body_text(body: bytes | str | None) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def decode_envelope(status_code: int, body: bytes | str | None) -> Envelope:
    """Classify the HTTP status and parse the envelope.

    Args:
        status_code: HTTP status of the response.
        body: Raw response body.

    Returns:
        The parsed envelope. Its business code is not checked here.

    Raises:
        KieApiError: A taxonomy error for any non-2xx status.
        DecodingFailedError: The body is not a JSON object with an integer code.
    """
    text = _body_text(body)
    if not 200 <= status_code <= 299:
        raise error_from_status(status_code, text or None)

    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise DecodingFailedError(exc, body=text) from exc

    if not isinstance(payload, dict):
        raise DecodingFailedError("expected a JSON object envelope", body=text)

    code = payload.get("code")
    if isinstance(code, bool) or not isinstance(code, int):
        raise DecodingFailedError(f"envelope code is missing or not an integer: {code!r}", body=text)

    msg = payload.get("msg", payload.get("message"))
    data = payload.get("data")
    if isinstance(data, dict):
        data = normalize_keys(data)
    success = payload.get("success")

    return Envelope(
        code=code,
        msg=str(msg) if msg is not None else "",
        data=data,
        success=success if isinstance(success, bool) else None,
    )


def unwrap_response(status_code: int, body: bytes | str | None) -> Any:
    """Decode a response and return its ``data`` payload."""
    return decode_envelope(status_code, body).unwrap()
