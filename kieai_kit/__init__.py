"""KIE.ai API client: async task submission, polling and result assembly."""

import logging

from kieai_kit.adapters import aspect_ratio_from_size, build_input, register_shaper
from kieai_kit.catalog import MODELS, ModelDescriptor, find_model, list_models
from kieai_kit.client import KieClient
from kieai_kit.config import KieConfig, load_config
from kieai_kit.errors import (
    BadRequestError,
    DecodingFailedError,
    ErrorAction,
    InvalidURLError,
    KieApiError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RequestFailedError,
    ResultTypeMismatchError,
    ServerError,
    TaskFailedError,
    TaskTimeoutError,
    UnauthorizedError,
    UnknownError,
    classify_error,
)
from kieai_kit.models import (
    AudioGenerationRequest,
    AudioGenerationResult,
    AudioType,
    ExecutionMode,
    ImageEditRequest,
    ImageGenerationRequest,
    ImageGenerationResult,
    MediaKind,
    NanoBananaProRequest,
    Task,
    TaskStatus,
    UploadedFile,
    Veo31Request,
    VeoAspectRatio,
    VeoMode,
    VeoModel,
    VideoAspectRatio,
    VideoGenerationRequest,
    VideoGenerationResult,
)
from kieai_kit.poller import TaskPoller

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "KieClient",
    "KieConfig",
    "load_config",
    "TaskPoller",
    "MODELS",
    "ModelDescriptor",
    "find_model",
    "list_models",
    "aspect_ratio_from_size",
    "build_input",
    "register_shaper",
    "KieApiError",
    "InvalidURLError",
    "RequestFailedError",
    "DecodingFailedError",
    "TaskFailedError",
    "TaskTimeoutError",
    "UnauthorizedError",
    "BadRequestError",
    "ServerError",
    "NotFoundError",
    "RateLimitedError",
    "ResultTypeMismatchError",
    "NetworkError",
    "UnknownError",
    "ErrorAction",
    "classify_error",
    "Task",
    "TaskStatus",
    "MediaKind",
    "ExecutionMode",
    "ImageGenerationRequest",
    "ImageEditRequest",
    "NanoBananaProRequest",
    "VideoGenerationRequest",
    "VideoAspectRatio",
    "Veo31Request",
    "VeoModel",
    "VeoMode",
    "VeoAspectRatio",
    "AudioGenerationRequest",
    "AudioType",
    "ImageGenerationResult",
    "VideoGenerationResult",
    "AudioGenerationResult",
    "UploadedFile",
]
