"""Shared fixtures: scripted httpx transports and a fake clock."""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Callable

import httpx
import pytest

from kieai_kit.transport import Transport

BASE_URL = "https://api.test/api/v1"


def envelope(data: Any = None, code: int = 200, msg: str = "success") -> dict[str, Any]:
    return {"code": code, "msg": msg, "data": data}


def task_payload(state: str, task_id: str = "task_123", **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"taskId": task_id, "state": state}
    payload.update(fields)
    return payload


class ScriptedAPI:
    """Replays queued responses per path and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, deque[Callable[[httpx.Request], httpx.Response] | httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def queue(self, path: str, *responses: Any) -> None:
        """Queue responses for *path*; dicts become 200 JSON bodies.

        The last queued response repeats once the queue is drained.
        """
        bucket = self.routes.setdefault(path, deque())
        for response in responses:
            if isinstance(response, dict):
                response = httpx.Response(200, json=response)
            bucket.append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        bucket = self.routes.get(request.url.path)
        if not bucket:
            return httpx.Response(404, text=f"no route for {request.url.path}")
        response = bucket.popleft() if len(bucket) > 1 else bucket[0]
        if callable(response):
            return response(request)
        return response

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def json_bodies(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests_to(path)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def api() -> ScriptedAPI:
    return ScriptedAPI()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def transport(api: ScriptedAPI):
    t = Transport("test-key", BASE_URL, http_transport=api.transport)
    yield t
    await t.close()
