"""Assembly of typed generation results from successful tasks.

Result locations differ between model families. The lookup order is: the
direct ``result_url`` field, the ``resultJson`` string, a ``resultJson`` entry
in the metadata map, then a nested ``response`` object. New families may add
further shapes.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Callable

from kieai_kit.envelope import snake_case
from kieai_kit.errors import ServerError
from kieai_kit.models import (
    AudioGenerationResult,
    GenerationResult,
    ImageGenerationResult,
    MediaKind,
    Task,
    VideoGenerationResult,
)

logger = logging.getLogger(__name__)

_URL_LIST_KEYS = ("result_urls", "urls")
_URL_KEYS = ("result_url", "video_url", "image_url", "audio_url", "url")


def urls_from_mapping(mapping: dict[str, Any]) -> list[str]:
    normalized = {snake_case(str(key)): value for key, value in mapping.items()}
    for key in _URL_LIST_KEYS:
        value = normalized.get(key)
        if isinstance(value, list):
            urls = [item for item in value if isinstance(item, str) and item]
            if urls:
                return urls
    for key in _URL_KEYS:
        value = normalized.get(key)
        if isinstance(value, str) and value:
            return [value]
    return []


def _urls_from_blob(blob: str | None) -> list[str]:
    if not blob:
        return []
    try:
        parsed = json.loads(blob)
    except ValueError:
        logger.debug("Ignoring unparsable result blob: %.200s", blob)
        return []
    if isinstance(parsed, dict):
        return urls_from_mapping(parsed)
    return []


def extract_result_urls(task: Task) -> list[str]:
    """Return every result URL the task carries, primary first.

    Raises:
        ServerError: None of the known result shapes holds a URL.
    """
    if task.result_url:
        return [task.result_url]

    urls = _urls_from_blob(task.result_json)
    if not urls:
        urls = _urls_from_blob(task.metadata.get("resultJson") or task.metadata.get("result_json"))
    if not urls and task.response:
        urls = urls_from_mapping(task.response)
    if not urls:
        raise ServerError("Task completed but no result URL provided")
    return urls


def parse_float(value: Any) -> float | None:
    """Parse a metadata value as a float; absent or unparsable gives ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_int(value: Any) -> int | None:
    number = parse_float(value)
    if number is None:
        return None
    return int(number)


def _meta(task: Task, key: str) -> str | None:
    """Look up *key* in metadata under its snake_case or camelCase spelling."""
    if key in task.metadata:
        return task.metadata[key]
    head, *rest = key.split("_")
    camel = head + "".join(part.title() for part in rest)
    return task.metadata.get(camel)


def _require_success(task: Task) -> None:
    if not task.is_success:
        raise ValueError(f"Task {task.task_id} is {task.status.value}, not success")


def assemble_image_result(task: Task, *, model: str | None = None, prompt: str = "") -> ImageGenerationResult:
    _require_success(task)
    return ImageGenerationResult(
        task_id=task.task_id,
        image_urls=tuple(extract_result_urls(task)),
        model=task.model or model or "unknown",
        prompt=prompt or "",
        width=parse_int(_meta(task, "width")),
        height=parse_int(_meta(task, "height")),
        seed=parse_int(_meta(task, "seed")),
        metadata=dict(task.metadata),
    )


def assemble_video_result(task: Task, *, model: str | None = None, prompt: str = "") -> VideoGenerationResult:
    _require_success(task)
    return VideoGenerationResult(
        task_id=task.task_id,
        video_urls=tuple(extract_result_urls(task)),
        model=task.model or model or "unknown",
        prompt=prompt or "",
        thumbnail_url=_meta(task, "thumbnail_url"),
        duration=parse_float(_meta(task, "duration")),
        resolution=_meta(task, "resolution"),
        fps=parse_int(_meta(task, "fps")),
        file_size=parse_int(_meta(task, "file_size")),
        seed=parse_int(_meta(task, "seed")),
        metadata=dict(task.metadata),
    )


def assemble_audio_result(task: Task, *, model: str | None = None, prompt: str = "") -> AudioGenerationResult:
    _require_success(task)
    return AudioGenerationResult(
        task_id=task.task_id,
        audio_urls=tuple(extract_result_urls(task)),
        model=task.model or model or "unknown",
        prompt=prompt or "",
        waveform_url=_meta(task, "waveform_url"),
        duration=parse_float(_meta(task, "duration")),
        format=_meta(task, "format"),
        sample_rate=parse_int(_meta(task, "sample_rate")),
        channels=parse_int(_meta(task, "channels")),
        file_size=parse_int(_meta(task, "file_size")),
        seed=parse_int(_meta(task, "seed")),
        metadata=dict(task.metadata),
    )


ASSEMBLERS: dict[MediaKind, Callable[..., GenerationResult]] = {
    MediaKind.IMAGE: assemble_image_result,
    MediaKind.VIDEO: assemble_video_result,
    MediaKind.AUDIO: assemble_audio_result,
}


def assemble_result(task: Task, kind: MediaKind, *, model: str | None = None, prompt: str = "") -> GenerationResult:
    return ASSEMBLERS[kind](task, model=model, prompt=prompt)
