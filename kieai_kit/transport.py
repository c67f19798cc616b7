"""Single-request HTTP transport over ``httpx.AsyncClient``.

The transport never interprets status codes or bodies; it returns them raw
for the envelope decoder. Only connection-level failures are raised here.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from rich.console import Console

from kieai_kit.errors import InvalidURLError, NetworkError

_CONNECT_TIMEOUT = 10.0


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Transport:
    """Issues authenticated requests against one base URL.

    Args:
        api_key: Bearer token sent on every request.
        base_url: Base URL request paths are resolved against.
        timeout: Per-request timeout in seconds.
        console: When given, JSON request bodies are echoed to it.
        logger: Logger for request tracing; defaults to the module logger.
        http_transport: Custom httpx transport (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60.0,
        *,
        console: Console | None = None,
        logger: logging.Logger | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._console = console
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        try:
            self._client = httpx.AsyncClient(
                base_url=self.base_url + "/",
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Accept": "application/json",
                },
                timeout=httpx.Timeout(timeout, connect=_CONNECT_TIMEOUT),
                transport=http_transport,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(base_url) from exc

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        files: Any = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> RawResponse:
        """Send one request and return its raw status and body.

        JSON and bodiless requests carry ``Content-Type: application/json``;
        multipart requests (``files``) let httpx set the boundary header.

        Raises:
            InvalidURLError: The URL cannot be built.
            NetworkError: The request never produced a response.
        """
        request_headers: dict[str, str] = {}
        if files is None:
            request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)

        if json_body is not None and self._console is not None:
            self._console.print(f"[cyan bold]── {method} {self.base_url}/{path.lstrip('/')}[/cyan bold]")
            self._console.print_json(json.dumps(json_body, ensure_ascii=False))
            self._console.print()

        self._logger.debug("%s %s params=%s", method, path, params)
        try:
            response = await self._client.request(
                method,
                path.lstrip("/"),
                json=json_body,
                params=params,
                files=files,
                data=data,
                headers=request_headers,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(f"{self.base_url}/{path.lstrip('/')}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(exc) from exc

        self._logger.debug("%s %s -> HTTP %d (%d bytes)", method, path, response.status_code, len(response.content))
        return RawResponse(status_code=response.status_code, body=response.content)
