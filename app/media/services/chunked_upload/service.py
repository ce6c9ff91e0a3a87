"""
Server-side protocol facade for chunked and direct uploads.

Views call ChunkedUploadService; it drives UploadSessionManager, the
reassembly engine and the object store, and converts domain errors into
ServiceResult failures carrying the error's error_code.

Protocol:
    1. init_upload      -> session id
    2. receive_chunk    -> once per chunk index, any order
    3. finalize_upload  -> reassemble, store, delete session

Small files and images skip the session entirely through upload_direct.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import BaseApplicationError, ValidationError
from core.services import BaseService, ServiceResult
from media.models import UploadSession
from media.services import object_store
from media.services.chunked_upload.errors import DownstreamStoreError
from media.services.chunked_upload.reassembly import reassemble
from media.services.chunked_upload.sessions import UploadSessionManager, max_chunk_size

if TYPE_CHECKING:
    from datetime import datetime

    from authentication.models import User

MiB = 1024 * 1024

DEFAULT_DIRECT_UPLOAD_MAX_BYTES = {
    "image": 10 * MiB,
    "video": 50 * MiB,
}

# Error codes that are the caller's fault; everything else is logged as an error
CLIENT_ERROR_CODES = frozenset(
    {
        "VALIDATION_ERROR",
        "DUPLICATE_SESSION",
        "SESSION_NOT_FOUND",
        "INVALID_CHUNK_INDEX",
        "INCOMPLETE_UPLOAD",
    }
)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class ChunkReceipt:
    """Acknowledgement for one stored chunk."""

    chunk_index: int
    chunks_received: int
    total_chunks: int
    received: bool = True


@dataclass
class FinalizeResult:
    """Durable handle of a finished upload."""

    url: str
    object_id: str
    format: str
    duration: float | None = None


@dataclass
class UploadProgress:
    upload_id: str
    filename: str
    media_kind: str
    file_size: int
    total_chunks: int
    chunks_received: list[int] = field(default_factory=list)
    missing_chunks: list[int] = field(default_factory=list)
    bytes_received: int = 0
    progress_percent: int = 0
    is_complete: bool = False
    created_at: "datetime | None" = None
    updated_at: "datetime | None" = None

    @classmethod
    def from_session(cls, session: UploadSession) -> "UploadProgress":
        return cls(
            upload_id=str(session.id),
            filename=session.filename,
            media_kind=session.media_kind,
            file_size=session.file_size,
            total_chunks=session.total_chunks,
            chunks_received=list(session.chunks_received),
            missing_chunks=session.missing_indices(),
            bytes_received=session.bytes_received,
            progress_percent=session.progress_percent,
            is_complete=session.is_complete,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


# =============================================================================
# Service
# =============================================================================


class ChunkedUploadService(BaseService):
    """
    Upload protocol operations.

    Every method returns a ServiceResult. Domain errors become failures
    with the error's error_code; unexpected exceptions propagate.
    """

    @classmethod
    def _fail(cls, exc: BaseApplicationError, context: str) -> ServiceResult:
        level = logging.WARNING if exc.error_code in CLIENT_ERROR_CODES else logging.ERROR
        return cls.handle_exception(exc, context=context, log_level=level)

    @classmethod
    def init_upload(
        cls,
        filename: str,
        file_size: int,
        total_chunks: int,
        media_kind: str,
        duration: float | None = None,
        upload_id=None,
        uploader: "User | None" = None,
    ) -> ServiceResult[UploadSession]:
        """Create the session that subsequent chunks are stored against."""
        try:
            session = UploadSessionManager.create_session(
                filename=filename,
                file_size=file_size,
                total_chunks=total_chunks,
                media_kind=media_kind,
                duration=duration,
                upload_id=upload_id,
                uploader=uploader,
            )
        except BaseApplicationError as e:
            return cls._fail(e, "init_upload")
        return ServiceResult.success(session)

    @classmethod
    def receive_chunk(
        cls,
        upload_id,
        chunk_index: int,
        total_chunks: int | None,
        data: bytes,
        uploader: "User | None" = None,
    ) -> ServiceResult[ChunkReceipt]:
        """
        Store one chunk.

        The session lookup runs first, so an unknown session reports
        SESSION_NOT_FOUND even when other fields are also wrong.
        """
        try:
            session = UploadSessionManager.get_session(upload_id, uploader=uploader)
            if total_chunks is not None and total_chunks != session.total_chunks:
                raise ValidationError(
                    "total_chunks does not match the upload session",
                    details={
                        "total_chunks": f"expected {session.total_chunks}, got {total_chunks}"
                    },
                )
            if not data:
                raise ValidationError(
                    "Chunk body is empty", details={"chunk": "This field is required."}
                )
            limit = max_chunk_size()
            if len(data) > limit:
                raise ValidationError(
                    f"Chunk exceeds the {limit} byte chunk size",
                    details={"chunk": f"max {limit} bytes"},
                )
            session = UploadSessionManager.store_chunk(
                upload_id, chunk_index, data, uploader=uploader
            )
        except BaseApplicationError as e:
            return cls._fail(e, f"receive_chunk {upload_id}#{chunk_index}")

        return ServiceResult.success(
            ChunkReceipt(
                chunk_index=chunk_index,
                chunks_received=session.chunks_received_count,
                total_chunks=session.total_chunks,
            )
        )

    @classmethod
    def finalize_upload(
        cls,
        upload_id,
        filename: str | None = None,
        media_kind: str | None = None,
        duration: float | None = None,
        uploader: "User | None" = None,
    ) -> ServiceResult[FinalizeResult]:
        """
        Reassemble a complete session and hand it to the object store.

        The session row stays locked until the object store returns and
        the session is deleted, so two concurrent finalize calls cannot
        both store the file. On any failure the session is kept and can
        be finalized again or left for the stale-session sweep.
        """
        try:
            with cls.atomic():
                session = UploadSessionManager.lock_session(upload_id, uploader=uploader)

                if media_kind and media_kind != session.media_kind:
                    raise ValidationError(
                        "media_kind does not match the upload session",
                        details={"media_kind": f"expected {session.media_kind}"},
                    )

                data = reassemble(session)
                stored = cls._store(data, filename or session.filename, session.media_kind)
                session_duration = session.duration
                session.delete()
        except BaseApplicationError as e:
            return cls._fail(e, f"finalize_upload {upload_id}")

        if duration is None:
            duration = session_duration if session_duration is not None else stored.duration

        cls.get_logger().info(
            "Chunked upload finalized",
            extra={
                "event_type": "upload.finalized",
                "upload_id": str(upload_id),
                "object_id": stored.object_id,
                "size": len(data),
            },
        )
        return ServiceResult.success(
            FinalizeResult(
                url=stored.url,
                object_id=stored.object_id,
                format=stored.format,
                duration=duration,
            )
        )

    @classmethod
    def upload_direct(
        cls,
        data: bytes,
        filename: str,
        media_kind: str,
        duration: float | None = None,
    ) -> ServiceResult[FinalizeResult]:
        """Single-shot upload that bypasses session bookkeeping."""
        validation = cls.validate_required(filename=filename)
        if validation:
            return validation

        try:
            if media_kind not in UploadSession.MediaKind.values:
                raise ValidationError(
                    "Unsupported media kind",
                    details={"media_kind": f"must be one of {UploadSession.MediaKind.values}"},
                )
            if not data:
                raise ValidationError(
                    "File is empty", details={"file": "This field is required."}
                )
            limit = cls.direct_upload_limit(media_kind)
            if len(data) > limit:
                raise ValidationError(
                    f"File exceeds the {limit} byte limit for {media_kind} uploads",
                    details={"file": f"max {limit} bytes"},
                )
            stored = cls._store(data, filename, media_kind)
        except BaseApplicationError as e:
            return cls._fail(e, f"upload_direct {filename}")

        return ServiceResult.success(
            FinalizeResult(
                url=stored.url,
                object_id=stored.object_id,
                format=stored.format,
                duration=duration if duration is not None else stored.duration,
            )
        )

    @classmethod
    def get_progress(
        cls, upload_id, uploader: "User | None" = None
    ) -> ServiceResult[UploadProgress]:
        try:
            session = UploadSessionManager.get_session(upload_id, uploader=uploader)
        except BaseApplicationError as e:
            return cls._fail(e, f"get_progress {upload_id}")
        return ServiceResult.success(UploadProgress.from_session(session))

    @classmethod
    def abort_upload(cls, upload_id, uploader: "User | None" = None) -> ServiceResult[bool]:
        """Discard a session and its chunks."""
        try:
            session = UploadSessionManager.get_session(upload_id, uploader=uploader)
        except BaseApplicationError as e:
            return cls._fail(e, f"abort_upload {upload_id}")
        UploadSessionManager.delete_session(session.id)
        cls.get_logger().info(
            "Chunked upload aborted",
            extra={"event_type": "upload.aborted", "upload_id": str(session.id)},
        )
        return ServiceResult.success(True)

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def direct_upload_limit(cls, media_kind: str) -> int:
        limits = getattr(
            settings, "MEDIA_DIRECT_UPLOAD_MAX_BYTES", DEFAULT_DIRECT_UPLOAD_MAX_BYTES
        )
        return limits.get(media_kind, DEFAULT_DIRECT_UPLOAD_MAX_BYTES[media_kind])

    @classmethod
    def _store(cls, data: bytes, filename: str, media_kind: str):
        store = object_store.get_object_store()
        try:
            return store.store(data, filename, media_kind)
        except DownstreamStoreError:
            raise
        except Exception as e:
            raise DownstreamStoreError(
                "Object store failed to persist the file",
                details={"original_error": str(e)},
            ) from e
