"""Static catalog of the models the client knows how to address.

Model ids that are not listed here can still be submitted; the catalog only
supplies display names, media kind, execution mode and status endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from kieai_kit.models import ExecutionMode, MediaKind

DEFAULT_STATUS_PATH = "jobs/recordInfo"


@dataclass(frozen=True)
class ModelDescriptor:
    """Metadata for one model.

    Attributes:
        wire_id: Identifier sent as ``model`` in the task creation body.
        display_name: Human-readable name.
        kind: Media kind the model produces.
        execution_mode: Whether creation may already return the result.
        status_path: Endpoint polled with ``?taskId=<id>``.
    """
    wire_id: str
    display_name: str
    kind: MediaKind
    execution_mode: ExecutionMode = ExecutionMode.ASYNC_TASK
    status_path: str = DEFAULT_STATUS_PATH


_IMAGE_MODELS = [
    ("gpt-image/1.5-text-to-image", "GPT Image 1.5"),
    ("seedream-4.5", "Seedream 4.5"),
    ("flux-2", "Flux 2"),
    ("flux-2/flex-text-to-image", "Flux 2 Flex"),
    ("z-image", "Z-Image"),
    ("google/nano-banana-edit", "Nano Banana Edit"),
    ("nano-banana-pro", "Nano Banana Pro"),
]

_VIDEO_MODELS = [
    # Kling
    ("kling-2.6/text-to-video", "Kling 2.6 Text-to-Video"),
    ("kling-2.6/image-to-video", "Kling 2.6 Image-to-Video"),
    ("kling/v2-5-turbo-image-to-video-pro", "Kling 2.5 Turbo Pro Image-to-Video"),
    ("kling/v2-5-turbo-text-to-video-pro", "Kling 2.5 Turbo Pro Text-to-Video"),
    ("kling/ai-avatar-standard", "Kling AI Avatar Standard"),
    ("kling/ai-avatar-pro", "Kling AI Avatar Pro"),
    ("kling/v2-1-master-image-to-video", "Kling 2.1 Master Image-to-Video"),
    ("kling/v2-1-master-text-to-video", "Kling 2.1 Master Text-to-Video"),
    ("kling/v2-1-pro", "Kling 2.1 Pro"),
    ("kling/v2-1-standard", "Kling 2.1 Standard"),
    ("kling-2.6/motion-control", "Kling 2.6 Motion Control"),
    ("kling-3.0/video", "Kling 3.0"),
    # Bytedance
    ("bytedance/seedance-1.5-pro", "Seedance 1.5 Pro"),
    ("bytedance/v1-pro-fast-image-to-video", "Bytedance V1 Pro Fast Image-to-Video"),
    ("bytedance/v1-pro-image-to-video", "Bytedance V1 Pro Image-to-Video"),
    ("bytedance/v1-pro-text-to-video", "Bytedance V1 Pro Text-to-Video"),
    ("bytedance/v1-lite-image-to-video", "Bytedance V1 Lite Image-to-Video"),
    ("bytedance/v1-lite-text-to-video", "Bytedance V1 Lite Text-to-Video"),
    # Hailuo
    ("hailuo/2-3-image-to-video-pro", "Hailuo 2.3 Pro Image-to-Video"),
    ("hailuo/2-3-image-to-video-standard", "Hailuo 2.3 Standard Image-to-Video"),
    ("hailuo/02-text-to-video-pro", "Hailuo 02 Pro Text-to-Video"),
    ("hailuo/02-text-to-video-standard", "Hailuo 02 Standard Text-to-Video"),
    ("hailuo/02-image-to-video-pro", "Hailuo 02 Pro Image-to-Video"),
    ("hailuo/02-image-to-video-standard", "Hailuo 02 Standard Image-to-Video"),
    # Sora 2
    ("sora-2-image-to-video", "Sora 2 Image-to-Video"),
    ("sora-2-text-to-video", "Sora 2 Text-to-Video"),
    ("sora-2-pro-image-to-video", "Sora 2 Pro Image-to-Video"),
    ("sora-2-pro-text-to-video", "Sora 2 Pro Text-to-Video"),
    ("sora-watermark-remover", "Sora Watermark Remover"),
    ("sora-2-pro-storyboard", "Sora 2 Pro Storyboard"),
    ("sora-2-characters", "Sora 2 Characters"),
    ("sora-2-characters-pro", "Sora 2 Characters Pro"),
    # Wan
    ("wan/2-6-image-to-video", "Wan 2.6 Image-to-Video"),
    ("wan/2-6-text-to-video", "Wan 2.6 Text-to-Video"),
    ("wan/2-6-video-to-video", "Wan 2.6 Video-to-Video"),
    ("wan/2-2-a14b-image-to-video-turbo", "Wan 2.2 A14B Turbo Image-to-Video"),
    ("wan/2-2-a14b-text-to-video-turbo", "Wan 2.2 A14B Turbo Text-to-Video"),
    ("wan/2-2-animate-move", "Wan 2.2 Animate Move"),
    ("wan/2-2-animate-replace", "Wan 2.2 Animate Replace"),
    ("wan/2-2-a14b-speech-to-video-turbo", "Wan 2.2 A14B Turbo Speech-to-Video"),
    # Grok Imagine
    ("grok-imagine/text-to-video", "Grok Imagine Text-to-Video"),
    ("grok-imagine/image-to-video", "Grok Imagine Image-to-Video"),
]

# Veo creation responses may already carry the finished video.
_IMMEDIATE_VIDEO_MODELS = [
    ("veo-3.1/text-to-video", "Veo 3.1 Text-to-Video"),
    ("veo-3.1/image-to-video", "Veo 3.1 Image-to-Video"),
]


def _build() -> dict[str, ModelDescriptor]:
    table: dict[str, ModelDescriptor] = {}
    for wire_id, name in _IMAGE_MODELS:
        table[wire_id] = ModelDescriptor(wire_id, name, MediaKind.IMAGE)
    for wire_id, name in _VIDEO_MODELS:
        table[wire_id] = ModelDescriptor(wire_id, name, MediaKind.VIDEO)
    for wire_id, name in _IMMEDIATE_VIDEO_MODELS:
        table[wire_id] = ModelDescriptor(wire_id, name, MediaKind.VIDEO, ExecutionMode.IMMEDIATE)
    return table


MODELS: Mapping[str, ModelDescriptor] = MappingProxyType(_build())


def find_model(model_id: str) -> ModelDescriptor | None:
    return MODELS.get(model_id)


def list_models(kind: MediaKind | str | None = None) -> list[ModelDescriptor]:
    """Return catalog entries, optionally filtered by media kind, in catalog order."""
    if kind is None:
        return list(MODELS.values())
    kind = MediaKind(kind)
    return [descriptor for descriptor in MODELS.values() if descriptor.kind is kind]
