"""
Transport for the upload protocol.

UploadTransport is the interface the orchestrator drives; HttpUploadTransport
implements it over the REST API with requests:

    POST {base_url}/chunked/init/       JSON
    POST {base_url}/chunked/chunk/      multipart
    POST {base_url}/chunked/finalize/   JSON
    POST {base_url}/upload/             multipart

Every failure (network error or non-2xx response) is raised as
TransportError carrying the server's error_code when there is one.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from upload_client.config import UploadClientConfig

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """A protocol request failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        errors: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.errors = errors or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class UploadTransport(Protocol):
    def init_upload(
        self,
        filename: str,
        file_size: int,
        total_chunks: int,
        media_kind: str,
        duration: float | None = None,
    ) -> str: ...

    def upload_chunk(
        self, upload_id: str, chunk_index: int, total_chunks: int, data: bytes
    ) -> dict: ...

    def finalize(
        self,
        upload_id: str,
        filename: str,
        media_kind: str,
        duration: float | None = None,
    ) -> dict: ...

    def upload_direct(
        self,
        data: bytes,
        filename: str,
        media_kind: str,
        duration: float | None = None,
    ) -> dict: ...


class HttpUploadTransport:
    """UploadTransport over HTTP, authenticated with a bearer token."""

    def __init__(
        self,
        config: UploadClientConfig,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        if config.token:
            self.session.headers["Authorization"] = f"Bearer {config.token}"

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    def _post(self, path: str, **kwargs) -> dict:
        url = self._url(path)
        try:
            response = self.session.post(url, timeout=self.config.request_timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("Upload request failed", extra={"url": url, "error": str(e)})
            raise TransportError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            raise self._error_from_response(response)
        return response.json()

    @staticmethod
    def _error_from_response(response: requests.Response) -> TransportError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("error") or response.reason or f"HTTP {response.status_code}"
        return TransportError(
            message,
            status_code=response.status_code,
            error_code=body.get("error_code"),
            errors=body.get("errors") or {},
        )

    def init_upload(
        self,
        filename: str,
        file_size: int,
        total_chunks: int,
        media_kind: str,
        duration: float | None = None,
    ) -> str:
        payload: dict[str, Any] = {
            "filename": filename,
            "file_size": file_size,
            "total_chunks": total_chunks,
            "media_kind": media_kind,
        }
        if duration is not None:
            payload["duration"] = duration
        return self._post("chunked/init/", json=payload)["upload_id"]

    def upload_chunk(
        self, upload_id: str, chunk_index: int, total_chunks: int, data: bytes
    ) -> dict:
        return self._post(
            "chunked/chunk/",
            data={
                "upload_id": upload_id,
                "chunk_index": chunk_index,
                "total_chunks": total_chunks,
            },
            files={"chunk": (f"chunk-{chunk_index}", data, "application/octet-stream")},
        )

    def finalize(
        self,
        upload_id: str,
        filename: str,
        media_kind: str,
        duration: float | None = None,
    ) -> dict:
        payload: dict[str, Any] = {
            "upload_id": upload_id,
            "filename": filename,
            "media_kind": media_kind,
        }
        if duration is not None:
            payload["duration"] = duration
        return self._post("chunked/finalize/", json=payload)

    def upload_direct(
        self,
        data: bytes,
        filename: str,
        media_kind: str,
        duration: float | None = None,
    ) -> dict:
        form: dict[str, Any] = {"media_kind": media_kind}
        if duration is not None:
            form["duration"] = duration
        return self._post(
            "upload/",
            data=form,
            files={"file": (filename, data, "application/octet-stream")},
        )
