"""Async client for the KIE.ai generation API.

Submits generation tasks, waits for them through :class:`TaskPoller` and turns
the finished task into a typed result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx
from rich.console import Console

from kieai_kit.adapters import build_task_body
from kieai_kit.catalog import DEFAULT_STATUS_PATH, ModelDescriptor, find_model
from kieai_kit.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, KieConfig
from kieai_kit.envelope import unwrap_response
from kieai_kit.errors import DecodingFailedError, KieApiError, ResultTypeMismatchError, UnknownError
from kieai_kit.models import (
    AudioGenerationRequest,
    AudioGenerationResult,
    ExecutionMode,
    GenerationResult,
    ImageEditRequest,
    ImageGenerationRequest,
    ImageGenerationResult,
    MediaKind,
    NanoBananaProRequest,
    Task,
    TaskStatus,
    Veo31Request,
    VideoGenerationRequest,
    VideoGenerationResult,
)
from kieai_kit.poller import TaskPoller
from kieai_kit.results import assemble_result, urls_from_mapping
from kieai_kit.transport import Transport
from kieai_kit.uploads import FileUploadService

logger = logging.getLogger(__name__)

_DOWNLOAD_TIMEOUT = 300.0
_CREATE_TASK_PATH = "jobs/createTask"

_REQUEST_KINDS: dict[type, MediaKind] = {
    ImageGenerationRequest: MediaKind.IMAGE,
    ImageEditRequest: MediaKind.IMAGE,
    NanoBananaProRequest: MediaKind.IMAGE,
    VideoGenerationRequest: MediaKind.VIDEO,
    Veo31Request: MediaKind.VIDEO,
    AudioGenerationRequest: MediaKind.AUDIO,
}

ModelRef = str | ModelDescriptor


def _model_id(model: ModelRef) -> str:
    return model.wire_id if isinstance(model, ModelDescriptor) else str(model)


class KieClient:
    """Async client for KIE.ai API.

    Usage::

        async with KieClient(api_key="...") as client:
            task = await client.create_image_task(
                "gpt-image/1.5-text-to-image",
                ImageGenerationRequest(prompt="A cat on Mars", width=1920, height=1080),
            )
            result = await client.wait_for_image(task)
            await client.download_file(result.primary_url, "cat.png")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        config: KieConfig | None = None,
        console: Console | None = None,
        logger: logging.Logger | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        upload_http_transport: httpx.AsyncBaseTransport | None = None,
        poll_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        poll_clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if config is None:
            if not api_key:
                raise ValueError("api_key or config is required")
            config = KieConfig(api_key=api_key, base_url=base_url, timeout=timeout)
        self.config = config
        self._http_transport = http_transport
        self._transport = Transport(
            config.api_key,
            config.base_url,
            config.timeout,
            console=console,
            logger=logger,
            http_transport=http_transport,
        )
        self._upload_transport = Transport(
            config.api_key,
            config.upload_base_url,
            config.timeout,
            console=console,
            logger=logger,
            http_transport=upload_http_transport or http_transport,
        )
        self.poller = TaskPoller(
            self._transport,
            max_attempts=config.max_attempts,
            logger=logger,
            sleep=poll_sleep,
            clock=poll_clock,
        )
        self.uploads = FileUploadService(self._upload_transport)

    @classmethod
    def from_config(cls, config: KieConfig, **kwargs: Any) -> KieClient:
        return cls(config=config, **kwargs)

    async def __aenter__(self) -> KieClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()
        await self._upload_transport.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _timeout_for(self, kind: MediaKind | None) -> float:
        if kind is MediaKind.VIDEO:
            return self.config.video_timeout
        if kind is MediaKind.AUDIO:
            return self.config.audio_timeout
        return self.config.image_timeout

    def _task_from_creation(self, data: Any, model_id: str, kind: MediaKind | None) -> Task:
        if not isinstance(data, dict) or not isinstance(data.get("task_id"), str):
            raise DecodingFailedError(f"Could not extract taskId from response: {data}", body=data)

        descriptor = find_model(model_id)
        if descriptor is not None and descriptor.execution_mode is ExecutionMode.IMMEDIATE:
            urls = urls_from_mapping(data)
            if urls:
                logger.info("Task %s returned its result immediately", data["task_id"])
                return Task(
                    task_id=data["task_id"],
                    status=TaskStatus.SUCCESS,
                    content_type=kind,
                    model=model_id,
                    result_url=urls[0],
                )
        return Task(task_id=data["task_id"], status=TaskStatus.PENDING, content_type=kind, model=model_id)

    # ------------------------------------------------------------------
    # Public API: task management
    # ------------------------------------------------------------------

    async def create_task(self, model: ModelRef, request: Any) -> Task:
        """Submit a generation task.

        Args:
            model: Wire model id or catalog descriptor.
            request: Any generation request; the adapter builds the wire input.

        Returns:
            A pending task snapshot (or a successful one for immediate-result models).
        """
        model_id = _model_id(model)
        descriptor = find_model(model_id)
        kind = descriptor.kind if descriptor is not None else _REQUEST_KINDS.get(type(request))

        body = build_task_body(model_id, request)
        logger.info("Creating %s task: model=%s prompt=%r", kind.value if kind else "generation", model_id, request.prompt[:80])
        response = await self._transport.send("POST", _CREATE_TASK_PATH, json_body=body)
        data = unwrap_response(response.status_code, response.body)

        task = self._task_from_creation(data, model_id, kind)
        task.validate()
        logger.info("Task created: %s", task.task_id)
        return task

    async def get_task(self, task_id: str, endpoint: str = DEFAULT_STATUS_PATH) -> Task:
        """Get the current status of a task."""
        return await self.poller.fetch(task_id, endpoint)

    async def wait_for_task(
        self,
        task: Task | str,
        *,
        interval: float | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
    ) -> Task:
        """Poll a task until it reaches a terminal state."""
        if isinstance(task, str):
            task = Task(task_id=task, status=TaskStatus.PENDING)
        if task.is_success:
            return task

        descriptor = find_model(task.model) if task.model else None
        endpoint = descriptor.status_path if descriptor is not None else DEFAULT_STATUS_PATH
        return await self.poller.poll(
            task.task_id,
            endpoint=endpoint,
            interval=self.config.poll_interval if interval is None else interval,
            timeout=self._timeout_for(task.content_type) if timeout is None else timeout,
            max_attempts=max_attempts,
        )

    async def wait_for_result(
        self,
        task: Task,
        kind: MediaKind | str | None = None,
        *,
        prompt: str = "",
        interval: float | None = None,
        timeout: float | None = None,
    ) -> GenerationResult:
        """Wait for a task and assemble the result for its media kind.

        Raises:
            ResultTypeMismatchError: The task's content type differs from *kind*.
            UnknownError: Neither the task nor the caller names a media kind.
        """
        expected = MediaKind(kind) if kind is not None else None
        if expected is not None and task.content_type is not None and task.content_type is not expected:
            raise ResultTypeMismatchError(expected.value, task.content_type.value)
        resolved = expected or task.content_type
        if resolved is None:
            raise UnknownError("Unknown content type")

        final = await self.wait_for_task(
            task,
            interval=interval,
            timeout=self._timeout_for(resolved) if timeout is None else timeout,
        )
        if final.content_type is not None and final.content_type is not resolved:
            raise ResultTypeMismatchError(resolved.value, final.content_type.value)
        return assemble_result(final, resolved, model=task.model, prompt=prompt)

    async def wait_for_image(self, task: Task, **kwargs: Any) -> ImageGenerationResult:
        return await self.wait_for_result(task, MediaKind.IMAGE, **kwargs)

    async def wait_for_video(self, task: Task, **kwargs: Any) -> VideoGenerationResult:
        return await self.wait_for_result(task, MediaKind.VIDEO, **kwargs)

    async def wait_for_audio(self, task: Task, **kwargs: Any) -> AudioGenerationResult:
        return await self.wait_for_result(task, MediaKind.AUDIO, **kwargs)

    # ------------------------------------------------------------------
    # Public API: generation tasks
    # ------------------------------------------------------------------

    async def create_image_task(self, model: ModelRef, request: ImageGenerationRequest) -> Task:
        return await self.create_task(model, request)

    async def create_edit_task(self, model: ModelRef, request: ImageEditRequest) -> Task:
        return await self.create_task(model, request)

    async def create_nano_banana_pro_task(self, request: NanoBananaProRequest) -> Task:
        return await self.create_task("nano-banana-pro", request)

    async def create_video_task(self, model: ModelRef, request: VideoGenerationRequest) -> Task:
        return await self.create_task(model, request)

    async def create_veo31_task(self, request: Veo31Request) -> Task:
        return await self.create_task(request.wire_model, request)

    async def create_audio_task(self, model: ModelRef, request: AudioGenerationRequest) -> Task:
        return await self.create_task(model, request)

    async def generate(
        self,
        model: ModelRef,
        request: Any,
        *,
        interval: float | None = None,
        timeout: float | None = None,
    ) -> GenerationResult:
        """Submit a request and wait for its typed result."""
        task = await self.create_task(model, request)
        return await self.wait_for_result(
            task,
            task.content_type,
            prompt=request.prompt,
            interval=interval,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Public API: one-call conveniences
    # ------------------------------------------------------------------

    async def generate_image(
        self,
        model: ModelRef,
        prompt: str,
        *,
        timeout: float | None = None,
        **fields: Any,
    ) -> ImageGenerationResult:
        """Generate an image and wait for it.

        Args:
            model: Image model id.
            prompt: The image generation prompt.
            timeout: Polling budget; defaults to the configured image timeout.
            **fields: Other ``ImageGenerationRequest`` fields (width, height, seed, ...).
        """
        request = ImageGenerationRequest(prompt=prompt, **fields)
        task = await self.create_image_task(model, request)
        return await self.wait_for_image(task, prompt=prompt, timeout=timeout)

    async def edit_image(
        self,
        model: ModelRef,
        prompt: str,
        image_urls: list[str] | tuple[str, ...],
        *,
        output_format: str | None = None,
        image_size: str | None = None,
        timeout: float | None = None,
    ) -> ImageGenerationResult:
        request = ImageEditRequest(
            prompt=prompt,
            image_urls=tuple(image_urls),
            output_format=output_format,
            image_size=image_size,
        )
        task = await self.create_edit_task(model, request)
        return await self.wait_for_image(task, prompt=prompt, timeout=timeout)

    async def nano_banana_pro(
        self,
        prompt: str,
        image_urls: list[str] | tuple[str, ...] = (),
        *,
        aspect_ratio: str = "1:1",
        resolution: str = "1K",
        output_format: str = "png",
        timeout: float | None = None,
    ) -> ImageGenerationResult:
        request = NanoBananaProRequest.with_defaults(
            prompt,
            image_urls,
            aspect_ratio=aspect_ratio,
            resolution=resolution,
            output_format=output_format,
        )
        task = await self.create_nano_banana_pro_task(request)
        return await self.wait_for_image(task, prompt=prompt, timeout=timeout)

    async def generate_video(
        self,
        model: ModelRef,
        prompt: str,
        duration: int = 5,
        *,
        timeout: float | None = None,
        **fields: Any,
    ) -> VideoGenerationResult:
        request = VideoGenerationRequest(prompt=prompt, duration=duration, **fields)
        task = await self.create_video_task(model, request)
        return await self.wait_for_video(task, prompt=prompt, timeout=timeout)

    async def generate_veo31(self, request: Veo31Request, *, timeout: float | None = None) -> VideoGenerationResult:
        """Run a Veo 3.1 request; results returned at creation skip polling."""
        task = await self.create_veo31_task(request)
        return await self.wait_for_video(task, prompt=request.prompt, timeout=timeout)

    async def generate_audio(
        self,
        model: ModelRef,
        prompt: str,
        duration: float = 30.0,
        *,
        timeout: float | None = None,
        **fields: Any,
    ) -> AudioGenerationResult:
        request = AudioGenerationRequest(prompt=prompt, duration=duration, **fields)
        task = await self.create_audio_task(model, request)
        return await self.wait_for_audio(task, prompt=prompt, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API: file operations
    # ------------------------------------------------------------------

    async def download_file(self, url: str, output_path: str | Path) -> Path:
        """Download a file from a URL to a local path."""
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Downloading %s -> %s", url, output)
        try:
            async with httpx.AsyncClient(timeout=_DOWNLOAD_TIMEOUT, transport=self._http_transport) as dl_client:
                async with dl_client.stream("GET", url) as response:
                    response.raise_for_status()
                    with open(output, "wb") as f:
                        async for chunk in response.aiter_bytes(chunk_size=8192):
                            f.write(chunk)
        except httpx.HTTPError as exc:
            raise KieApiError(f"Download failed for {url}: {exc}") from exc

        logger.info("Downloaded: %s (%.1f KB)", output, output.stat().st_size / 1024)
        return output
