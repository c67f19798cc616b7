"""Client configuration.

KIE uses simple Bearer token authentication with an API key, read from a YAML
file or the ``KIE_AI_API_KEY`` environment variable.

Example ``config.yaml``::

    api:
      api_key: "..."
      base_url: "https://api.kie.ai/api/v1"
      timeout: 60
    polling:
      interval_seconds: 2
      max_attempts: 300
      image_timeout_seconds: 300
      video_timeout_seconds: 600
      audio_timeout_seconds: 300
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_BASE_URL = "https://api.kie.ai/api/v1"
DEFAULT_UPLOAD_BASE_URL = "https://kieai.redpandaai.co"
DEFAULT_TIMEOUT = 60.0

_PLACEHOLDER_KEY = "YOUR_KIE_API_KEY"
_DEFAULT_CONFIG = "config.yaml"


@dataclass(frozen=True)
class KieConfig:
    """Connection and polling settings.

    Attributes:
        api_key: KIE.ai API key. Keep it out of version control.
        base_url: API base URL.
        timeout: Per-request timeout in seconds.
        upload_base_url: Host of the file upload API.
        poll_interval: Seconds between status polls.
        max_attempts: Ceiling on status requests per poll.
        image_timeout: Polling budget for image tasks, in seconds.
        video_timeout: Polling budget for video tasks, in seconds.
        audio_timeout: Polling budget for audio tasks, in seconds.
    """
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    upload_base_url: str = DEFAULT_UPLOAD_BASE_URL
    poll_interval: float = 2.0
    max_attempts: int = 300
    image_timeout: float = 300.0
    video_timeout: float = 600.0
    audio_timeout: float = 300.0

    @classmethod
    def from_env(cls) -> KieConfig | None:
        """Build a config from ``KIE_AI_API_KEY`` (and optional ``KIE_AI_BASE_URL``).

        Returns:
            The config, or None when the API key variable is not set.
        """
        api_key = os.environ.get("KIE_AI_API_KEY")
        if not api_key:
            return None
        return cls(api_key=api_key, base_url=os.environ.get("KIE_AI_BASE_URL") or DEFAULT_BASE_URL)

    @classmethod
    def from_dict(cls, config: dict) -> KieConfig:
        """Build a config from a parsed YAML mapping.

        Raises:
            ValueError: If api_key is missing or still set to placeholder.
        """
        api = config.get("api") or {}
        polling = config.get("polling") or {}

        api_key: str = api.get("api_key", "") or ""
        if not api_key or api_key == _PLACEHOLDER_KEY:
            raise ValueError(
                "API key not configured. Set 'api.api_key' in config.yaml "
                "with your KIE.ai API key."
            )

        return cls(
            api_key=api_key,
            base_url=api.get("base_url", DEFAULT_BASE_URL),
            timeout=float(api.get("timeout", DEFAULT_TIMEOUT)),
            upload_base_url=api.get("upload_base_url", DEFAULT_UPLOAD_BASE_URL),
            poll_interval=float(polling.get("interval_seconds", 2.0)),
            max_attempts=int(polling.get("max_attempts", 300)),
            image_timeout=float(polling.get("image_timeout_seconds", 300.0)),
            video_timeout=float(polling.get("video_timeout_seconds", 600.0)),
            audio_timeout=float(polling.get("audio_timeout_seconds", 300.0)),
        )


def load_config(config_path: str | Path | None = None) -> KieConfig:
    """Load the client configuration from a YAML file.

    Args:
        config_path: Path to config.yaml. Defaults to ./config.yaml.

    Raises:
        FileNotFoundError: If config file does not exist.
        ValueError: If api_key is missing or still set to placeholder.
    """
    path = Path(config_path or _DEFAULT_CONFIG)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return KieConfig.from_dict(raw)


def resolve_config(config_path: str | Path | None = None) -> KieConfig:
    """Prefer an explicit or present config file, fall back to the environment.

    Raises:
        FileNotFoundError: No config file and no ``KIE_AI_API_KEY``.
    """
    if config_path is not None or Path(_DEFAULT_CONFIG).exists():
        return load_config(config_path)
    config = KieConfig.from_env()
    if config is None:
        raise FileNotFoundError(
            f"Config file not found: {_DEFAULT_CONFIG} (and KIE_AI_API_KEY is not set)"
        )
    return config
