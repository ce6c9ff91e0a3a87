"""
Client-side driver for one upload attempt.

UploadOrchestrator decides between the single-shot and chunked paths,
sends chunks sequentially with progress reporting, finalizes, and
returns an UploadResult. It never raises for protocol failures; they are
reported through UploadResult.error and the ERRORED state.

States:
    IDLE -> SPLITTING -> SINGLE_SHOT -> DONE
    IDLE -> SPLITTING -> CHUNK_INIT -> CHUNK_TRANSFER -> FINALIZING -> DONE
    any non-terminal state -> ERRORED

Usage:
    from upload_client import HttpUploadTransport, UploadClientConfig, UploadOrchestrator

    config = UploadClientConfig.from_env()
    orchestrator = UploadOrchestrator(
        HttpUploadTransport(config),
        chunk_size=config.chunk_size,
        on_progress=lambda percent: print(f"{percent}%"),
    )
    result = orchestrator.upload("clip.mp4", media_kind="video")
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

from upload_client.duration import probe_duration
from upload_client.splitter import DEFAULT_CHUNK_SIZE, read_chunk, split_ranges
from upload_client.transport import TransportError, UploadTransport

logger = logging.getLogger(__name__)

MEDIA_KINDS = ("image", "video")


class UploadState(str, Enum):
    IDLE = "idle"
    SPLITTING = "splitting"
    SINGLE_SHOT = "single_shot"
    CHUNK_INIT = "chunk_init"
    CHUNK_TRANSFER = "chunk_transfer"
    FINALIZING = "finalizing"
    DONE = "done"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({UploadState.DONE, UploadState.ERRORED})


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of one upload attempt.

    On success url, object_id and format are set; on failure error holds
    a human-readable message.
    """

    success: bool
    url: str | None = None
    object_id: str | None = None
    format: str | None = None
    duration: float | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)

    @classmethod
    def from_response(cls, body: dict, duration: float | None = None) -> "UploadResult":
        reported = body.get("duration")
        return cls(
            success=True,
            url=body["url"],
            object_id=body["object_id"],
            format=body.get("format"),
            duration=reported if reported is not None else duration,
        )


class UploadOrchestrator:
    """
    Drives a single upload through an UploadTransport.

    Attributes:
        state: Current UploadState
        progress: Last reported progress percentage (0-100)
        upload_id: Session id of the chunked path, once created
    """

    def __init__(
        self,
        transport: UploadTransport,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_progress: Callable[[int], None] | None = None,
        duration_probe: Callable[[str], float | None] = probe_duration,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.transport = transport
        self.chunk_size = chunk_size
        self.on_progress = on_progress
        self.duration_probe = duration_probe
        self.state = UploadState.IDLE
        self.progress = 0
        self.upload_id: str | None = None

    # =========================================================================
    # Public API
    # =========================================================================

    def upload(
        self,
        source: str | os.PathLike | bytes | BinaryIO,
        media_kind: str,
        filename: str | None = None,
    ) -> UploadResult:
        """
        Upload source and return the stored object's handle.

        Args:
            source: File path, raw bytes, or a seekable binary file object
            media_kind: "image" or "video"
            filename: Name sent to the server (defaults to the path's basename)
        """
        self.state = UploadState.IDLE
        self.progress = 0
        self.upload_id = None

        try:
            self._transition(UploadState.SPLITTING)
            if media_kind not in MEDIA_KINDS:
                raise ValueError(f"media_kind must be one of {', '.join(MEDIA_KINDS)}")

            with _open_source(source) as (fileobj, file_size, path):
                if file_size == 0:
                    raise ValueError("Cannot upload an empty file")
                filename = filename or (os.path.basename(path) if path else "upload")
                ranges = split_ranges(file_size, self.chunk_size)
                # Probe before transfer starts; the file is still untouched here
                duration = self._probe_duration(path) if media_kind == "video" else None

                if media_kind == "image" or len(ranges) == 1:
                    return self._upload_single_shot(fileobj, filename, media_kind, duration)
                return self._upload_chunked(
                    fileobj, filename, media_kind, file_size, ranges, duration
                )

        except (TransportError, OSError, ValueError, KeyError) as e:
            self._transition(UploadState.ERRORED)
            logger.warning(
                f"Upload of {filename or 'file'} failed: {e}",
                extra={"event_type": "upload.client_failed", "upload_id": self.upload_id},
            )
            return UploadResult.failed(str(e))

    # =========================================================================
    # Paths
    # =========================================================================

    def _upload_single_shot(
        self,
        fileobj: BinaryIO,
        filename: str,
        media_kind: str,
        duration: float | None,
    ) -> UploadResult:
        self._transition(UploadState.SINGLE_SHOT)
        fileobj.seek(0)
        body = self.transport.upload_direct(
            fileobj.read(), filename, media_kind, duration=duration
        )
        result = UploadResult.from_response(body, duration=duration)
        self._report_progress(100)
        self._transition(UploadState.DONE)
        return result

    def _upload_chunked(
        self,
        fileobj: BinaryIO,
        filename: str,
        media_kind: str,
        file_size: int,
        ranges: list,
        duration: float | None,
    ) -> UploadResult:
        total_chunks = len(ranges)

        self._transition(UploadState.CHUNK_INIT)
        self.upload_id = self.transport.init_upload(
            filename=filename,
            file_size=file_size,
            total_chunks=total_chunks,
            media_kind=media_kind,
            duration=duration,
        )

        self._transition(UploadState.CHUNK_TRANSFER)
        for completed, chunk_range in enumerate(ranges, start=1):
            data = read_chunk(fileobj, chunk_range)
            self.transport.upload_chunk(self.upload_id, chunk_range.index, total_chunks, data)
            self._report_progress(round(100 * completed / total_chunks))

        self._transition(UploadState.FINALIZING)
        body = self.transport.finalize(
            self.upload_id, filename=filename, media_kind=media_kind, duration=duration
        )
        result = UploadResult.from_response(body, duration=duration)
        self._transition(UploadState.DONE)
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _transition(self, state: UploadState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Upload already finished in state {self.state.value}")
        logger.debug(f"Upload state {self.state.value} -> {state.value}")
        self.state = state

    def _probe_duration(self, path: str | None) -> float | None:
        if path is None:
            return None
        try:
            return self.duration_probe(path)
        except Exception:
            logger.warning("Duration probe failed", exc_info=True, extra={"path": path})
            return None

    def _report_progress(self, percent: int) -> None:
        self.progress = percent
        if self.on_progress is None:
            return
        try:
            self.on_progress(percent)
        except Exception:
            logger.warning("Progress observer raised", exc_info=True)


@contextmanager
def _open_source(source) -> Iterator[tuple[BinaryIO, int, str | None]]:
    """Yield (fileobj, size, path) for a path, bytes, or binary file object."""
    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        with open(path, "rb") as fileobj:
            yield fileobj, os.path.getsize(path), path
    elif isinstance(source, (bytes, bytearray, memoryview)):
        yield io.BytesIO(bytes(source)), len(source), None
    else:
        source.seek(0, io.SEEK_END)
        size = source.tell()
        source.seek(0)
        name = getattr(source, "name", None)
        yield source, size, name if isinstance(name, str) and os.path.exists(name) else None
