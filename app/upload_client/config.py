"""
Configuration for the upload client.

Values come from the environment (or an env file) through django-environ,
so no endpoint or credential is hard-coded:

    UPLOAD_API_BASE_URL     e.g. https://api.example.com/api/v1/media
    UPLOAD_API_TOKEN        JWT access token from /api/v1/auth/token/
    UPLOAD_CHUNK_SIZE       bytes per chunk (default 4 MiB)
    UPLOAD_REQUEST_TIMEOUT  seconds per HTTP request (default 60)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import environ

from upload_client.splitter import DEFAULT_CHUNK_SIZE

DEFAULT_REQUEST_TIMEOUT = 60.0


@dataclass(frozen=True)
class UploadClientConfig:
    base_url: str
    token: str = ""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "UploadClientConfig":
        """
        Build a config from environment variables.

        Args:
            env_file: Optional env file read before the environment is consulted

        Raises:
            ImproperlyConfigured: UPLOAD_API_BASE_URL is not set
        """
        env = environ.Env(
            UPLOAD_API_TOKEN=(str, ""),
            UPLOAD_CHUNK_SIZE=(int, DEFAULT_CHUNK_SIZE),
            UPLOAD_REQUEST_TIMEOUT=(float, DEFAULT_REQUEST_TIMEOUT),
        )
        if env_file is not None and Path(env_file).exists():
            environ.Env.read_env(env_file)

        return cls(
            base_url=env("UPLOAD_API_BASE_URL").rstrip("/"),
            token=env("UPLOAD_API_TOKEN"),
            chunk_size=env("UPLOAD_CHUNK_SIZE"),
            request_timeout=env("UPLOAD_REQUEST_TIMEOUT"),
        )
