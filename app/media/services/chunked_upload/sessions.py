"""
Lifecycle management for chunked upload sessions.

UploadSessionManager is the only code that mutates UploadSession and
UploadChunk rows. Every mutation of chunks_received happens under a row
lock (SELECT ... FOR UPDATE) inside a transaction, so two chunks for the
same session arriving at the same time are serialized instead of
overwriting one another.

Usage:
    from media.services.chunked_upload import UploadSessionManager

    session = UploadSessionManager.create_session(
        filename="clip.mp4",
        file_size=10 * 1024 * 1024,
        total_chunks=3,
        media_kind="video",
    )
    UploadSessionManager.store_chunk(session.id, 0, first_chunk_bytes)
    UploadSessionManager.all_chunks_received(session.id)
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import ValidationError
from core.services import BaseService
from media.models import UploadChunk, UploadSession
from media.services.chunked_upload.errors import (
    DuplicateSessionError,
    InvalidChunkIndexError,
    SessionNotFoundError,
)

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)

DEFAULT_SESSION_MAX_AGE_SECONDS = 60 * 60
DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024


def parse_upload_id(value) -> uuid.UUID | None:
    """Return value as a UUID, or None if it is not a valid upload id."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def session_max_age() -> timedelta:
    seconds = getattr(
        settings,
        "CHUNKED_UPLOAD_SESSION_MAX_AGE_SECONDS",
        DEFAULT_SESSION_MAX_AGE_SECONDS,
    )
    return timedelta(seconds=seconds)


def max_chunk_size() -> int:
    """Largest chunk body the server accepts, in bytes."""
    return getattr(settings, "CHUNKED_UPLOAD_CHUNK_SIZE", DEFAULT_CHUNK_SIZE)


class UploadSessionManager(BaseService):
    """
    Creates, inspects, mutates and garbage-collects upload sessions.

    All methods are classmethods; the manager holds no state of its own.
    Passing an uploader scopes lookups to sessions that user owns (or
    sessions with no owner), so one user cannot see or write to another
    user's upload.
    """

    # =========================================================================
    # Creation
    # =========================================================================

    @classmethod
    def create_session(
        cls,
        filename: str,
        file_size: int,
        total_chunks: int,
        media_kind: str,
        duration: float | None = None,
        upload_id=None,
        uploader: "User | None" = None,
    ) -> UploadSession:
        """
        Allocate a new session.

        Stale sessions are swept first as best-effort housekeeping; a
        failing sweep is logged and does not block creation.

        Raises:
            ValidationError: Invalid metadata or malformed upload_id
            DuplicateSessionError: A session with upload_id already exists
        """
        cls._validate_metadata(filename, file_size, total_chunks, media_kind, duration)

        if upload_id is None:
            session_id = uuid.uuid4()
        else:
            session_id = parse_upload_id(upload_id)
            if session_id is None:
                raise ValidationError(
                    "upload_id must be a valid UUID",
                    details={"upload_id": str(upload_id)},
                )

        try:
            cls.cleanup_stale_sessions()
        except DatabaseError:
            logger.warning(
                "Stale upload session sweep failed",
                exc_info=True,
                extra={"event_type": "upload.cleanup_failed"},
            )

        try:
            with transaction.atomic():
                if UploadSession.objects.filter(pk=session_id).exists():
                    raise DuplicateSessionError(session_id)
                session = UploadSession.objects.create(
                    id=session_id,
                    uploader=uploader,
                    filename=filename,
                    file_size=file_size,
                    total_chunks=total_chunks,
                    media_kind=media_kind,
                    duration=duration,
                    chunks_received=[],
                )
        except IntegrityError as e:
            # Lost a race with a concurrent init for the same id
            raise DuplicateSessionError(session_id) from e

        logger.info(
            "Upload session created",
            extra={
                "event_type": "upload.session_created",
                "upload_id": str(session.id),
                "file_size": file_size,
                "total_chunks": total_chunks,
                "media_kind": media_kind,
            },
        )
        return session

    @classmethod
    def _validate_metadata(
        cls,
        filename: str,
        file_size: int,
        total_chunks: int,
        media_kind: str,
        duration: float | None,
    ) -> None:
        errors: dict[str, str] = {}

        if not filename or not str(filename).strip():
            errors["filename"] = "filename is required"
        if not isinstance(file_size, int) or file_size < 1:
            errors["file_size"] = "file_size must be a positive integer"
        else:
            max_size = getattr(settings, "CHUNKED_UPLOAD_MAX_FILE_SIZE", None)
            if max_size and file_size > max_size:
                errors["file_size"] = f"file_size exceeds the {max_size} byte limit"
        if not isinstance(total_chunks, int) or total_chunks < 1:
            errors["total_chunks"] = "total_chunks must be a positive integer"
        elif isinstance(file_size, int) and file_size >= 1 and total_chunks > file_size:
            errors["total_chunks"] = "total_chunks cannot exceed file_size"
        elif isinstance(file_size, int) and file_size >= 1:
            chunk_size = max_chunk_size()
            needed = UploadSession.expected_chunk_count(file_size, chunk_size)
            if total_chunks < needed:
                errors["total_chunks"] = (
                    f"total_chunks must be at least {needed} for {chunk_size} byte chunks"
                )
        if media_kind not in UploadSession.MediaKind.values:
            errors["media_kind"] = (
                f"media_kind must be one of {', '.join(UploadSession.MediaKind.values)}"
            )
        if duration is not None and duration < 0:
            errors["duration"] = "duration cannot be negative"

        if errors:
            raise ValidationError("Invalid upload session metadata", details=errors)

    # =========================================================================
    # Lookup
    # =========================================================================

    @classmethod
    def _queryset(cls, uploader: "User | None" = None):
        queryset = UploadSession.objects.all()
        if uploader is not None:
            queryset = queryset.filter(Q(uploader__isnull=True) | Q(uploader=uploader))
        return queryset

    @classmethod
    def get_session(cls, upload_id, uploader: "User | None" = None) -> UploadSession:
        """
        Fetch a session by id.

        Raises:
            SessionNotFoundError: Unknown, expired, malformed or foreign id
        """
        session_id = parse_upload_id(upload_id)
        if session_id is None:
            raise SessionNotFoundError(upload_id)
        try:
            return cls._queryset(uploader).get(pk=session_id)
        except UploadSession.DoesNotExist:
            raise SessionNotFoundError(upload_id) from None

    @classmethod
    def lock_session(cls, upload_id, uploader: "User | None" = None) -> UploadSession:
        """
        Fetch a session with a row lock. Must be called inside transaction.atomic().

        Raises:
            SessionNotFoundError: Unknown, expired, malformed or foreign id
        """
        session_id = parse_upload_id(upload_id)
        if session_id is None:
            raise SessionNotFoundError(upload_id)
        try:
            return cls._queryset(uploader).select_for_update().get(pk=session_id)
        except UploadSession.DoesNotExist:
            raise SessionNotFoundError(upload_id) from None

    @classmethod
    def all_chunks_received(cls, upload_id, uploader: "User | None" = None) -> bool:
        return cls.get_session(upload_id, uploader=uploader).is_complete

    # =========================================================================
    # Mutation
    # =========================================================================

    @classmethod
    def store_chunk(
        cls,
        upload_id,
        chunk_index: int,
        payload: bytes,
        uploader: "User | None" = None,
    ) -> UploadSession:
        """
        Store one chunk payload and record its index.

        Idempotent per index: re-sending an index replaces its bytes and
        leaves chunks_received unchanged. The session row stays locked
        from read to write, so concurrent stores never drop an index.

        Raises:
            SessionNotFoundError: Unknown session
            InvalidChunkIndexError: chunk_index outside [0, total_chunks)
        """
        with transaction.atomic():
            session = cls.lock_session(upload_id, uploader=uploader)

            if not session.is_valid_index(chunk_index):
                raise InvalidChunkIndexError(chunk_index, session.total_chunks)

            payload = bytes(payload)
            UploadChunk.objects.update_or_create(
                session=session,
                index=chunk_index,
                defaults={"payload": payload, "size": len(payload)},
            )
            added = session.merge_received_index(chunk_index)
            session.save(update_fields=["chunks_received", "updated_at"])

        logger.debug(
            "Chunk stored",
            extra={
                "event_type": "upload.chunk_stored",
                "upload_id": str(session.id),
                "chunk_index": chunk_index,
                "chunk_size": len(payload),
                "replaced": not added,
            },
        )
        return session

    # =========================================================================
    # Deletion
    # =========================================================================

    @classmethod
    def delete_session(cls, upload_id) -> bool:
        """
        Delete a session and its chunks.

        Idempotent. Returns True if a session row was removed.
        """
        session_id = parse_upload_id(upload_id)
        if session_id is None:
            return False
        _, per_model = UploadSession.objects.filter(pk=session_id).delete()
        return per_model.get(UploadSession._meta.label, 0) > 0

    @classmethod
    def cleanup_stale_sessions(cls, max_age: timedelta | int | None = None) -> int:
        """
        Delete every session created before now - max_age, complete or not.

        Issues one batched delete; chunk rows cascade with their sessions.
        max_age may be a timedelta or a number of seconds and defaults to
        CHUNKED_UPLOAD_SESSION_MAX_AGE_SECONDS.

        Returns:
            Number of sessions deleted
        """
        if max_age is None:
            max_age = session_max_age()
        elif not isinstance(max_age, timedelta):
            max_age = timedelta(seconds=max_age)

        cutoff = timezone.now() - max_age
        _, per_model = UploadSession.objects.filter(created_at__lt=cutoff).delete()
        deleted = per_model.get(UploadSession._meta.label, 0)

        if deleted:
            logger.info(
                f"Removed {deleted} stale upload session(s)",
                extra={
                    "event_type": "upload.sessions_swept",
                    "deleted": deleted,
                    "cutoff": cutoff.isoformat(),
                },
            )
        return deleted
