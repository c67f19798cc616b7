"""Translation of generation requests into model-specific ``input`` payloads.

Shaping is table-driven: a shaper is looked up by ``(request type, model id)``
and falls back to the default shaper for the request type. Supporting a new
model means registering a shaper, never adding a branch here::

    @register_shaper(ImageGenerationRequest, "my-model/v1")
    def _shape_my_model(request):
        return {"prompt": request.prompt, "style": "vivid"}

Every shaper is pure. Absent optional fields are omitted rather than sent as
null, and ``request.extra`` is merged last without overriding shaped fields.
"""

from __future__ import annotations

import enum
import math
from typing import Any, Callable

from kieai_kit.catalog import ModelDescriptor
from kieai_kit.models import (
    AudioGenerationRequest,
    ImageEditRequest,
    ImageGenerationRequest,
    NanoBananaProRequest,
    Veo31Request,
    VideoGenerationRequest,
)

DEFAULT_ASPECT_RATIO = "1:1"

Shaper = Callable[[Any], "dict[str, Any]"]

_DEFAULT_SHAPERS: dict[type, Shaper] = {}
_MODEL_SHAPERS: dict[tuple[type, str], Shaper] = {}


def register_shaper(request_type: type, *model_ids: str) -> Callable[[Shaper], Shaper]:
    """Register a shaper for *request_type*.

    With model ids, the shaper applies only to those models; without, it
    becomes the default for the request type.
    """
    def decorator(func: Shaper) -> Shaper:
        if model_ids:
            for model_id in model_ids:
                _MODEL_SHAPERS[(request_type, model_id)] = func
        else:
            _DEFAULT_SHAPERS[request_type] = func
        return func
    return decorator


def aspect_ratio_from_size(
    width: int | None,
    height: int | None,
    default: str = DEFAULT_ASPECT_RATIO,
) -> str:
    """Reduce ``width x height`` to a "W:H" ratio, e.g. 1920x1080 -> "16:9".

    Negative dimensions are taken by absolute value; a missing or zero
    dimension yields *default*.
    """
    if width is None or height is None:
        return default
    w, h = abs(int(width)), abs(int(height))
    if w == 0 or h == 0:
        return default
    divisor = math.gcd(w, h)
    return f"{w // divisor}:{h // divisor}"


def _wire(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, tuple):
        return [_wire(item) for item in value]
    return value


def _put(payload: dict[str, Any], key: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, (list, tuple)) and not value:
        return
    payload[key] = _wire(value)


def _model_id(model: str | ModelDescriptor) -> str:
    if isinstance(model, ModelDescriptor):
        return model.wire_id
    return str(model)


def resolve_shaper(model: str | ModelDescriptor, request: Any) -> Shaper:
    """Find the shaper for a model/request pair.

    Raises:
        TypeError: No shaper handles the request type.
    """
    request_type = type(request)
    shaper = _MODEL_SHAPERS.get((request_type, _model_id(model)))
    if shaper is None:
        shaper = _DEFAULT_SHAPERS.get(request_type)
    if shaper is None:
        raise TypeError(f"No input shaper registered for {request_type.__name__}")
    return shaper


def build_input(model: str | ModelDescriptor, request: Any) -> dict[str, Any]:
    """Build the ``input`` object of a task creation body."""
    payload = resolve_shaper(model, request)(request)
    for key, value in getattr(request, "extra", {}).items():
        if value is not None:
            payload.setdefault(key, value)
    return {key: value for key, value in payload.items() if value is not None}


def build_task_body(model: str | ModelDescriptor, request: Any) -> dict[str, Any]:
    """Build the full ``{"model": ..., "input": {...}}`` creation body."""
    return {"model": _model_id(model), "input": build_input(model, request)}


# ----------------------------------------------------------------------
# Image
# ----------------------------------------------------------------------


def _image_aspect_ratio(request: ImageGenerationRequest) -> str:
    return request.aspect_ratio or aspect_ratio_from_size(request.width, request.height)


@register_shaper(ImageGenerationRequest)
def _shape_image(request: ImageGenerationRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {"prompt": request.prompt}
    _put(payload, "negative_prompt", request.negative_prompt)
    _put(payload, "count", request.count)
    _put(payload, "width", request.width)
    _put(payload, "height", request.height)
    _put(payload, "seed", request.seed)
    _put(payload, "aspect_ratio", request.aspect_ratio)
    _put(payload, "image_urls", request.image_urls)
    return payload


@register_shaper(ImageGenerationRequest, "gpt-image/1.5-text-to-image")
def _shape_gpt_image(request: ImageGenerationRequest) -> dict[str, Any]:
    return {
        "prompt": request.prompt,
        "aspect_ratio": _image_aspect_ratio(request),
        "quality": "medium",
    }


@register_shaper(ImageGenerationRequest, "flux-2/flex-text-to-image")
def _shape_flux_flex(request: ImageGenerationRequest) -> dict[str, Any]:
    return {
        "prompt": request.prompt,
        "aspect_ratio": _image_aspect_ratio(request),
        "resolution": "1K",
    }


@register_shaper(ImageEditRequest)
def _shape_image_edit(request: ImageEditRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "prompt": request.prompt,
        "image_urls": list(request.image_urls),
    }
    _put(payload, "output_format", request.output_format)
    _put(payload, "image_size", request.image_size)
    return payload


@register_shaper(NanoBananaProRequest)
def _shape_nano_banana_pro(request: NanoBananaProRequest) -> dict[str, Any]:
    return {
        "prompt": request.prompt,
        "aspect_ratio": request.aspect_ratio,
        "resolution": request.resolution,
        "output_format": request.output_format,
        "image_input": list(request.image_input),
    }


# ----------------------------------------------------------------------
# Video / audio
# ----------------------------------------------------------------------


@register_shaper(VideoGenerationRequest)
def _shape_video(request: VideoGenerationRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {"prompt": request.prompt}
    _put(payload, "negative_prompt", request.negative_prompt)
    _put(payload, "duration", request.duration)
    _put(payload, "aspect_ratio", request.aspect_ratio)
    _put(payload, "fps", request.fps)
    _put(payload, "seed", request.seed)
    _put(payload, "init_image_url", request.init_image_url)
    return payload


@register_shaper(Veo31Request)
def _shape_veo31(request: Veo31Request) -> dict[str, Any]:
    payload: dict[str, Any] = {"prompt": request.prompt, "model": _wire(request.model)}
    _put(payload, "imageUrls", request.image_urls)
    _put(payload, "aspect_ratio", request.aspect_ratio)
    _put(payload, "seed", request.seed)
    _put(payload, "callBackUrl", request.callback_url)
    _put(payload, "enableTranslation", request.enable_translation)
    _put(payload, "watermark", request.watermark)
    return payload


@register_shaper(AudioGenerationRequest)
def _shape_audio(request: AudioGenerationRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {"prompt": request.prompt}
    _put(payload, "duration", request.duration)
    _put(payload, "audio_type", request.audio_type)
    _put(payload, "seed", request.seed)
    return payload
