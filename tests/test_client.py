"""End-to-end tests for KieClient against a scripted API."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from conftest import BASE_URL, FakeClock, ScriptedAPI, envelope, task_payload
from kieai_kit.client import KieClient
from kieai_kit.config import KieConfig
from kieai_kit.errors import (
    DecodingFailedError,
    KieApiError,
    ResultTypeMismatchError,
    TaskTimeoutError,
    UnauthorizedError,
    UnknownError,
)
from kieai_kit.models import (
    ImageGenerationRequest,
    MediaKind,
    Task,
    TaskStatus,
    Veo31Request,
    VideoGenerationRequest,
)

CREATE_PATH = "/api/v1/jobs/createTask"
STATUS_PATH = "/api/v1/jobs/recordInfo"


@pytest.fixture
async def client(api: ScriptedAPI, clock: FakeClock):
    config = KieConfig(api_key="test-key", base_url=BASE_URL, poll_interval=2.0)
    c = KieClient(config=config, http_transport=api.transport, poll_sleep=clock.sleep, poll_clock=clock)
    yield c
    await c.close()


class TestConstruction:
    def test_requires_key_or_config(self) -> None:
        with pytest.raises(ValueError):
            KieClient()

    async def test_from_config(self) -> None:
        client = KieClient.from_config(KieConfig(api_key="k", video_timeout=900))
        async with client:
            assert client._timeout_for(MediaKind.VIDEO) == 900
            assert client._timeout_for(None) == 300


class TestImageFlow:
    async def test_text_to_image_end_to_end(self, api: ScriptedAPI, client: KieClient, clock: FakeClock) -> None:
        api.queue(CREATE_PATH, envelope({"taskId": "task_123"}))
        api.queue(
            STATUS_PATH,
            envelope(task_payload("pending")),
            envelope(task_payload("processing", progress=50)),
            envelope(
                task_payload(
                    "success",
                    model="gpt-image/1.5-text-to-image",
                    resultJson=json.dumps({"resultUrls": ["https://cdn.kie.ai/cat.png"]}),
                )
            ),
        )

        result = await client.generate_image(
            "gpt-image/1.5-text-to-image", "a cat", width=1024, height=1024
        )

        assert api.json_bodies(CREATE_PATH) == [
            {
                "model": "gpt-image/1.5-text-to-image",
                "input": {"prompt": "a cat", "aspect_ratio": "1:1", "quality": "medium"},
            }
        ]
        assert len(api.requests_to(STATUS_PATH)) == 3
        assert clock.sleeps == [2.0, 2.0]
        assert result.primary_url == "https://cdn.kie.ai/cat.png"
        assert result.task_id == "task_123"
        assert result.prompt == "a cat"

    async def test_create_task_returns_pending(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(CREATE_PATH, envelope({"taskId": "abc"}))
        task = await client.create_image_task("seedream-4.5", ImageGenerationRequest(prompt="x"))
        assert task.task_id == "abc"
        assert task.status is TaskStatus.PENDING
        assert task.content_type is MediaKind.IMAGE
        assert task.model == "seedream-4.5"

    async def test_create_without_task_id(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(CREATE_PATH, envelope({"recordId": "abc"}))
        with pytest.raises(DecodingFailedError):
            await client.create_task("seedream-4.5", ImageGenerationRequest(prompt="x"))

    async def test_create_unauthorized(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(CREATE_PATH, httpx.Response(401, json=envelope({"taskId": "abc"})))
        with pytest.raises(UnauthorizedError):
            await client.create_task("seedream-4.5", ImageGenerationRequest(prompt="x"))

    async def test_timeout_uses_attempt_budget(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(STATUS_PATH, envelope(task_payload("pending")))
        task = Task(task_id="task_123", status=TaskStatus.PENDING, content_type=MediaKind.IMAGE)
        with pytest.raises(TaskTimeoutError):
            await client.poller.poll(task.task_id, max_attempts=2)
        assert len(api.requests_to(STATUS_PATH)) == 2


class TestResultKinds:
    async def test_type_mismatch_before_polling(self, api: ScriptedAPI, client: KieClient) -> None:
        task = Task(task_id="t", status=TaskStatus.PENDING, content_type=MediaKind.IMAGE)
        with pytest.raises(ResultTypeMismatchError):
            await client.wait_for_video(task)
        assert api.requests == []

    async def test_type_mismatch_after_polling(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(STATUS_PATH, envelope(task_payload("success", contentType="audio", resultUrl="https://cdn/a.mp3")))
        task = Task(task_id="task_123", status=TaskStatus.PENDING)
        with pytest.raises(ResultTypeMismatchError):
            await client.wait_for_image(task)

    async def test_unknown_content_type(self, client: KieClient) -> None:
        with pytest.raises(UnknownError):
            await client.wait_for_result(Task(task_id="t", status=TaskStatus.PENDING))

    async def test_video_flow(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(CREATE_PATH, envelope({"taskId": "vid_1"}))
        api.queue(
            STATUS_PATH,
            envelope(task_payload("generating", task_id="vid_1")),
            envelope(
                task_payload(
                    "success",
                    task_id="vid_1",
                    metadata={"resultJson": json.dumps({"resultUrls": ["https://cdn/v.mp4"]}), "duration": "5"},
                )
            ),
        )
        result = await client.generate("kling-2.6/text-to-video", VideoGenerationRequest.with_defaults("waves"))
        assert result.video_url == "https://cdn/v.mp4"
        assert result.duration == 5.0
        assert result.model == "kling-2.6/text-to-video"


class TestVeo:
    async def test_immediate_result_skips_polling(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(CREATE_PATH, envelope({"taskId": "veo_1", "videoUrl": "https://cdn/veo.mp4"}))
        result = await client.generate_veo31(Veo31Request.text_to_video("ocean"))
        assert result.video_url == "https://cdn/veo.mp4"
        assert api.requests_to(STATUS_PATH) == []
        assert api.json_bodies(CREATE_PATH)[0]["model"] == "veo-3.1/text-to-video"

    async def test_falls_back_to_polling(self, api: ScriptedAPI, client: KieClient) -> None:
        api.queue(CREATE_PATH, envelope({"taskId": "veo_2"}))
        api.queue(STATUS_PATH, envelope(task_payload("success", task_id="veo_2", resultUrl="https://cdn/v2.mp4")))
        result = await client.generate_veo31(Veo31Request.image_to_video("move", "https://x/frame.png"))
        assert result.video_url == "https://cdn/v2.mp4"
        assert api.json_bodies(CREATE_PATH)[0]["input"]["imageUrls"] == ["https://x/frame.png"]


class TestDownload:
    async def test_download_file(self, api: ScriptedAPI, client: KieClient, tmp_path: Path) -> None:
        api.queue("/files/cat.png", httpx.Response(200, content=b"\x89PNGdata"))
        out = await client.download_file("https://cdn.test/files/cat.png", tmp_path / "nested" / "cat.png")
        assert out.read_bytes() == b"\x89PNGdata"

    async def test_download_failure(self, api: ScriptedAPI, client: KieClient, tmp_path: Path) -> None:
        api.queue("/files/missing.png", httpx.Response(404))
        with pytest.raises(KieApiError, match="Download failed"):
            await client.download_file("https://cdn.test/files/missing.png", tmp_path / "x.png")
