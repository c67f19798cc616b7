"""Data models for the KIE.ai API client.

Requests are purely descriptive: none of them knows a wire field name, that is
the adapter's job (see :mod:`kieai_kit.adapters`). Tasks and results are
immutable snapshots.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from kieai_kit.envelope import normalize_keys
from kieai_kit.errors import BadRequestError, DecodingFailedError, TaskFailedError

JSONValue = Union[str, int, float, bool, None, List["JSONValue"], Dict[str, "JSONValue"]]


def check_json_value(value: Any, path: str = "extra") -> None:
    """Raise ``TypeError`` unless *value* is a JSON scalar, list or string-keyed map."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            check_json_value(item, f"{path}[{index}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: map keys must be strings, got {type(key).__name__}")
            check_json_value(item, f"{path}.{key}")
        return
    raise TypeError(f"{path}: {type(value).__name__} is not a JSON value")


def _require_prompt(prompt: str) -> None:
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValueError("prompt must be a non-empty string")


class MediaKind(str, enum.Enum):
    """Content type of a task or result."""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class ExecutionMode(str, enum.Enum):
    ASYNC_TASK = "async_task"
    IMMEDIATE = "immediate"


class TaskStatus(str, enum.Enum):
    WAITING = "waiting"
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus:
        """Map a server state string (including its aliases) to a status.

        Raises:
            DecodingFailedError: The state is missing or unknown.
        """
        if not isinstance(raw, str):
            raise DecodingFailedError(f"task state is missing or not a string: {raw!r}")
        value = raw.strip().lower()
        value = _STATE_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError as exc:
            raise DecodingFailedError(f"unknown task state: {raw!r}") from exc

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCESS, TaskStatus.FAILED, TaskStatus.CANCELLED)

    @property
    def is_success(self) -> bool:
        return self is TaskStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self is TaskStatus.FAILED

    @property
    def is_in_progress(self) -> bool:
        return not self.is_terminal


_STATE_ALIASES = {
    "queuing": "pending",
    "queued": "pending",
    "generating": "processing",
    "running": "processing",
    "fail": "failed",
    "canceled": "cancelled",
}


# ----------------------------------------------------------------------
# Tasks
# ----------------------------------------------------------------------


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _millis_to_datetime(value: Any) -> datetime | None:
    millis = _to_int(value)
    if millis is None:
        return None
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    result: dict[str, str] = {}
    for key, item in value.items():
        if item is None:
            continue
        if isinstance(item, str):
            result[str(key)] = item
        elif isinstance(item, (dict, list)):
            result[str(key)] = json.dumps(item, ensure_ascii=False)
        else:
            result[str(key)] = str(item)
    return result


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class Task:
    """Snapshot of a server-side generation task.

    Each status fetch produces a new ``Task``; instances are never updated in place.

    Attributes:
        task_id: Server-assigned identifier.
        status: Lifecycle status.
        content_type: Media kind produced by the task, when known.
        model: Wire model identifier.
        progress: Completion percentage, when reported.
        error_message: Failure message (``failMsg`` wins over ``errorMessage``).
        fail_code: Server failure code, when reported.
        result_url: Direct result URL field.
        result_json: JSON-encoded result blob (``resultJson``), parsed lazily.
        response: Nested ``response`` object some model families return.
        metadata: Free-form string map.
        created_at: ``createTime`` as a UTC datetime.
        completed_at: ``completeTime`` as a UTC datetime.
    """
    task_id: str
    status: TaskStatus
    content_type: MediaKind | None = None
    model: str | None = None
    progress: int | None = None
    error_message: str | None = None
    fail_code: str | None = None
    result_url: str | None = None
    result_json: str | None = None
    response: dict[str, Any] | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_payload(cls, data: Any) -> Task:
        """Build a task from a status payload (camelCase or snake_case keys).

        Raises:
            DecodingFailedError: The payload is not an object, or lacks an id or state.
        """
        if not isinstance(data, dict):
            raise DecodingFailedError(f"task payload is not an object: {data!r}")
        payload = normalize_keys(data)

        task_id = payload.get("task_id")
        if not isinstance(task_id, str):
            raise DecodingFailedError("task payload has no taskId", body=data)
        raw_state = payload.get("state", payload.get("status"))
        status = TaskStatus.parse(raw_state)

        content_type = None
        raw_kind = payload.get("content_type")
        if isinstance(raw_kind, str):
            try:
                content_type = MediaKind(raw_kind.lower())
            except ValueError:
                content_type = None

        response = payload.get("response")
        fail_code = payload.get("fail_code")

        return cls(
            task_id=task_id,
            status=status,
            content_type=content_type,
            model=_non_empty_str(payload.get("model")),
            progress=_to_int(payload.get("progress")),
            error_message=_non_empty_str(payload.get("fail_msg")) or _non_empty_str(payload.get("error_message")),
            fail_code=str(fail_code) if fail_code not in (None, "") else None,
            result_url=_non_empty_str(payload.get("result_url")),
            result_json=_non_empty_str(payload.get("result_json")),
            response=response if isinstance(response, dict) else None,
            metadata=_string_map(payload.get("metadata")),
            created_at=_millis_to_datetime(payload.get("create_time", payload.get("created_at"))),
            completed_at=_millis_to_datetime(payload.get("complete_time", payload.get("completed_at"))),
        )

    def validate(self) -> None:
        """Reject tasks that cannot be polled.

        Raises:
            BadRequestError: The task id is empty.
            TaskFailedError: The task already reports failure with a message.
        """
        if not self.task_id:
            raise BadRequestError("Invalid task ID: task ID is empty", status_code=None)
        if self.status is TaskStatus.FAILED and self.error_message:
            raise TaskFailedError(self.error_message)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_success(self) -> bool:
        return self.status.is_success


# ----------------------------------------------------------------------
# Generation requests
# ----------------------------------------------------------------------

IMAGE_SIZES: dict[str, tuple[int, int]] = {
    "square": (1024, 1024),
    "landscape": (1920, 1080),
    "portrait": (1080, 1920),
}


@dataclass(frozen=True)
class ImageGenerationRequest:
    """Text-to-image request.

    Attributes:
        prompt: What to generate.
        negative_prompt: What to avoid.
        count: Number of images (typically 1-4).
        width: Output width in pixels.
        height: Output height in pixels.
        seed: Seed for reproducible output.
        aspect_ratio: Explicit "W:H" ratio; overrides one derived from width/height.
        image_urls: Reference image URLs.
        extra: Model parameters not modelled here, merged into the payload as-is.
    """
    prompt: str
    negative_prompt: str | None = None
    count: int | None = None
    width: int | None = None
    height: int | None = None
    seed: int | None = None
    aspect_ratio: str | None = None
    image_urls: tuple[str, ...] = ()
    extra: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_prompt(self.prompt)
        object.__setattr__(self, "image_urls", tuple(self.image_urls))
        check_json_value(self.extra)

    @classmethod
    def with_size(
        cls,
        prompt: str,
        size: str | tuple[int, int] | None = None,
        negative_prompt: str | None = None,
        count: int | None = 1,
    ) -> ImageGenerationRequest:
        """Build a request from a size preset name or a ``(width, height)`` pair."""
        width = height = None
        if isinstance(size, str):
            if size not in IMAGE_SIZES:
                raise ValueError(f"Unknown image size preset {size!r}; choose from {sorted(IMAGE_SIZES)}")
            width, height = IMAGE_SIZES[size]
        elif size is not None:
            width, height = size
        return cls(prompt=prompt, negative_prompt=negative_prompt, count=count, width=width, height=height)


@dataclass(frozen=True)
class ImageEditRequest:
    """Image-to-image edit of one or more source images."""
    prompt: str
    image_urls: tuple[str, ...]
    output_format: str | None = None
    image_size: str | None = None
    extra: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_prompt(self.prompt)
        object.__setattr__(self, "image_urls", tuple(self.image_urls))
        if not self.image_urls:
            raise ValueError("image edit requires at least one source image URL")
        check_json_value(self.extra)

    @classmethod
    def single(
        cls,
        prompt: str,
        image_url: str,
        output_format: str | None = None,
        image_size: str | None = None,
    ) -> ImageEditRequest:
        return cls(prompt=prompt, image_urls=(image_url,), output_format=output_format, image_size=image_size)


@dataclass(frozen=True)
class NanoBananaProRequest:
    """Pro-tier image generation/editing. Every field is mandatory on the wire."""
    prompt: str
    aspect_ratio: str
    resolution: str
    output_format: str
    image_input: tuple[str, ...]
    extra: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_prompt(self.prompt)
        object.__setattr__(self, "image_input", tuple(self.image_input))
        for name in ("aspect_ratio", "resolution", "output_format"):
            if not getattr(self, name):
                raise ValueError(f"{name} is required")
        check_json_value(self.extra)

    @classmethod
    def with_defaults(
        cls,
        prompt: str,
        image_urls: list[str] | tuple[str, ...] = (),
        aspect_ratio: str = "1:1",
        resolution: str = "1K",
        output_format: str = "png",
    ) -> NanoBananaProRequest:
        return cls(
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            resolution=resolution,
            output_format=output_format,
            image_input=tuple(image_urls),
        )


class VideoAspectRatio(str, enum.Enum):
    SQUARE = "1:1"
    PORTRAIT = "9:16"
    LANDSCAPE = "16:9"
    CINEMATIC = "21:9"


@dataclass(frozen=True)
class VideoGenerationRequest:
    """Text-to-video or image-to-video request."""
    prompt: str
    negative_prompt: str | None = None
    duration: int | None = None
    aspect_ratio: VideoAspectRatio | str | None = None
    fps: int | None = None
    seed: int | None = None
    init_image_url: str | None = None
    extra: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_prompt(self.prompt)
        check_json_value(self.extra)

    @classmethod
    def with_defaults(
        cls,
        prompt: str,
        duration: int = 5,
        aspect_ratio: VideoAspectRatio | str = VideoAspectRatio.LANDSCAPE,
    ) -> VideoGenerationRequest:
        return cls(prompt=prompt, duration=duration, aspect_ratio=aspect_ratio)

    @classmethod
    def image_to_video(cls, prompt: str, init_image_url: str, duration: int = 5) -> VideoGenerationRequest:
        return cls(prompt=prompt, duration=duration, init_image_url=init_image_url)


class AudioType(str, enum.Enum):
    MUSIC = "music"
    SPEECH = "speech"
    SOUND_EFFECT = "sound_effect"
    AMBIENT = "ambient"


@dataclass(frozen=True)
class AudioGenerationRequest:
    prompt: str
    duration: float | None = None
    audio_type: AudioType | str | None = None
    seed: int | None = None
    extra: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_prompt(self.prompt)
        check_json_value(self.extra)

    @classmethod
    def with_defaults(
        cls,
        prompt: str,
        duration: float = 30.0,
        audio_type: AudioType | str = AudioType.MUSIC,
    ) -> AudioGenerationRequest:
        return cls(prompt=prompt, duration=duration, audio_type=audio_type)


class VeoModel(str, enum.Enum):
    VEO3 = "veo3"
    VEO3_FAST = "veo3_fast"


class VeoMode(str, enum.Enum):
    TEXT_TO_VIDEO = "TEXT_2_VIDEO"
    FIRST_AND_LAST_FRAMES = "FIRST_AND_LAST_FRAMES_2_VIDEO"
    REFERENCE_TO_VIDEO = "REFERENCE_2_VIDEO"


class VeoAspectRatio(str, enum.Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    AUTO = "Auto"


@dataclass(frozen=True)
class Veo31Request:
    """Veo 3.1 video request.

    The wire model is ``veo-3.1/text-to-video`` for text mode and
    ``veo-3.1/image-to-video`` for every frame/reference mode.
    """
    prompt: str
    image_urls: tuple[str, ...] = ()
    model: VeoModel = VeoModel.VEO3_FAST
    mode: VeoMode | None = None
    aspect_ratio: VeoAspectRatio | None = None
    seed: int | None = None
    callback_url: str | None = None
    enable_translation: bool | None = None
    watermark: str | None = None
    extra: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_prompt(self.prompt)
        object.__setattr__(self, "image_urls", tuple(self.image_urls))
        check_json_value(self.extra)

    @property
    def wire_model(self) -> str:
        if self.mode is VeoMode.TEXT_TO_VIDEO or (self.mode is None and not self.image_urls):
            return "veo-3.1/text-to-video"
        return "veo-3.1/image-to-video"

    @classmethod
    def text_to_video(
        cls,
        prompt: str,
        model: VeoModel = VeoModel.VEO3_FAST,
        aspect_ratio: VeoAspectRatio = VeoAspectRatio.LANDSCAPE,
    ) -> Veo31Request:
        return cls(prompt=prompt, model=model, mode=VeoMode.TEXT_TO_VIDEO, aspect_ratio=aspect_ratio)

    @classmethod
    def image_to_video(
        cls,
        prompt: str,
        image_url: str,
        model: VeoModel = VeoModel.VEO3_FAST,
        aspect_ratio: VeoAspectRatio = VeoAspectRatio.AUTO,
    ) -> Veo31Request:
        return cls(
            prompt=prompt,
            image_urls=(image_url,),
            model=model,
            mode=VeoMode.FIRST_AND_LAST_FRAMES,
            aspect_ratio=aspect_ratio,
        )

    @classmethod
    def first_and_last_frames(
        cls,
        prompt: str,
        first_frame_url: str,
        last_frame_url: str,
        model: VeoModel = VeoModel.VEO3_FAST,
        aspect_ratio: VeoAspectRatio = VeoAspectRatio.LANDSCAPE,
    ) -> Veo31Request:
        return cls(
            prompt=prompt,
            image_urls=(first_frame_url, last_frame_url),
            model=model,
            mode=VeoMode.FIRST_AND_LAST_FRAMES,
            aspect_ratio=aspect_ratio,
        )

    @classmethod
    def reference_to_video(cls, prompt: str, image_urls: list[str] | tuple[str, ...]) -> Veo31Request:
        """Reference mode: 1-3 images, fast model and 16:9 only."""
        if not 1 <= len(image_urls) <= 3:
            raise ValueError(f"REFERENCE_2_VIDEO mode requires 1-3 images, got {len(image_urls)}")
        return cls(
            prompt=prompt,
            image_urls=tuple(image_urls),
            model=VeoModel.VEO3_FAST,
            mode=VeoMode.REFERENCE_TO_VIDEO,
            aspect_ratio=VeoAspectRatio.LANDSCAPE,
        )


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class ImageGenerationResult:
    task_id: str
    image_urls: tuple[str, ...]
    model: str
    prompt: str = ""
    width: int | None = None
    height: int | None = None
    seed: int | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def primary_url(self) -> str | None:
        return self.image_urls[0] if self.image_urls else None


@dataclass(frozen=True)
class VideoGenerationResult:
    task_id: str
    video_urls: tuple[str, ...]
    model: str
    prompt: str = ""
    thumbnail_url: str | None = None
    duration: float | None = None
    resolution: str | None = None
    fps: int | None = None
    file_size: int | None = None
    seed: int | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def primary_url(self) -> str | None:
        return self.video_urls[0] if self.video_urls else None

    @property
    def video_url(self) -> str | None:
        return self.primary_url


@dataclass(frozen=True)
class AudioGenerationResult:
    task_id: str
    audio_urls: tuple[str, ...]
    model: str
    prompt: str = ""
    waveform_url: str | None = None
    duration: float | None = None
    format: str | None = None
    sample_rate: int | None = None
    channels: int | None = None
    file_size: int | None = None
    seed: int | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def primary_url(self) -> str | None:
        return self.audio_urls[0] if self.audio_urls else None

    @property
    def audio_url(self) -> str | None:
        return self.primary_url


GenerationResult = Union[ImageGenerationResult, VideoGenerationResult, AudioGenerationResult]


# ----------------------------------------------------------------------
# Uploads
# ----------------------------------------------------------------------


def _parse_iso(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class UploadedFile:
    """A file hosted by KIE.ai. Uploaded files expire after 3 days."""
    file_url: str
    download_url: str | None = None
    file_id: str | None = None
    file_name: str | None = None
    original_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    upload_path: str | None = None
    upload_time: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_payload(cls, data: Any) -> UploadedFile:
        if not isinstance(data, dict):
            raise DecodingFailedError(f"upload payload is not an object: {data!r}")
        payload = normalize_keys(data)
        file_url = _non_empty_str(payload.get("file_url")) or _non_empty_str(payload.get("download_url"))
        if not file_url:
            raise DecodingFailedError(f"No file URL in upload response: {data}", body=data)
        return cls(
            file_url=file_url,
            download_url=_non_empty_str(payload.get("download_url")),
            file_id=_non_empty_str(payload.get("file_id")),
            file_name=_non_empty_str(payload.get("file_name")),
            original_name=_non_empty_str(payload.get("original_name")),
            file_size=_to_int(payload.get("file_size")),
            mime_type=_non_empty_str(payload.get("mime_type")),
            upload_path=_non_empty_str(payload.get("upload_path")),
            upload_time=_parse_iso(payload.get("upload_time")),
            expires_at=_parse_iso(payload.get("expires_at")),
        )
