"""
UploadSession and UploadChunk models for tracking chunked uploads.

Provides:
- Durable metadata for an in-progress chunked upload
- The set of received chunk indices (owned by UploadSessionManager)
- Raw chunk payloads keyed by (session, index)
- Timestamps used by the stale-session sweep
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from datetime import datetime


def _epoch_millis(value: "datetime | None") -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


class UploadSession(UUIDPrimaryKeyMixin, BaseModel):
    """
    One in-progress chunked upload.

    A session is created by the init call before any chunk is sent,
    mutated once per accepted chunk, consumed once by finalize and then
    deleted. Sessions that are never finalized are removed by the
    stale-session sweep once they are older than the retention window.

    Attributes:
        uploader: User the upload is attributed to (optional)
        filename: Original filename of the file being uploaded
        file_size: Declared total size in bytes
        total_chunks: Number of chunks the client will send
        media_kind: image or video
        duration: Client-measured playback length in seconds (video only)
        chunks_received: Sorted, duplicate-free list of received indices

    Note:
        chunks_received must only be changed through UploadSessionManager,
        which holds a row lock while merging indices. Writing the field
        directly from a view or task can lose concurrent updates.
    """

    # =========================================================================
    # Enums
    # =========================================================================

    class MediaKind(models.TextChoices):
        """Kinds of media accepted by the upload pipeline."""

        IMAGE = "image", "Image"
        VIDEO = "video", "Video"

    # =========================================================================
    # Relationships
    # =========================================================================

    uploader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="upload_sessions",
        null=True,
        blank=True,
        help_text="User who initiated the upload",
    )

    # =========================================================================
    # File Metadata
    # =========================================================================

    filename = models.CharField(
        max_length=255,
        help_text="Original filename of the file being uploaded",
    )
    file_size = models.BigIntegerField(
        help_text="Declared total file size in bytes",
    )
    total_chunks = models.PositiveIntegerField(
        help_text="Number of chunks the client will transfer",
    )
    media_kind = models.CharField(
        max_length=10,
        choices=MediaKind.choices,
        help_text="Media kind (image or video)",
    )
    duration = models.FloatField(
        null=True,
        blank=True,
        help_text="Client-measured playback length in seconds",
    )

    # =========================================================================
    # Progress Tracking
    # =========================================================================

    chunks_received = models.JSONField(
        default=list,
        blank=True,
        help_text="Sorted list of received chunk indices (0-based)",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["uploader", "created_at"],
                name="idx_upload_session_user_time",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"UploadSession({self.filename}, "
            f"{len(self.chunks_received or [])}/{self.total_chunks})"
        )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def received_indices(self) -> frozenset[int]:
        """Indices stored so far, as an immutable set."""
        return frozenset(self.chunks_received or ())

    @property
    def chunks_received_count(self) -> int:
        return len(self.chunks_received or ())

    @property
    def is_complete(self) -> bool:
        """True iff every index in [0, total_chunks) has been received."""
        return self.chunks_received_count == self.total_chunks

    @property
    def bytes_received(self) -> int:
        """Sum of stored chunk sizes (one query)."""
        total = self.chunks.aggregate(total=models.Sum("size"))["total"]
        return total or 0

    @property
    def progress_percent(self) -> int:
        """Whole-number share of chunks received (0-100)."""
        if self.total_chunks <= 0:
            return 0
        return round(100 * self.chunks_received_count / self.total_chunks)

    @property
    def created_at_ms(self) -> int | None:
        return _epoch_millis(self.created_at)

    @property
    def updated_at_ms(self) -> int | None:
        return _epoch_millis(self.updated_at)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def missing_indices(self) -> list[int]:
        """Indices in [0, total_chunks) that have not been received, ascending."""
        received = self.received_indices
        return [i for i in range(self.total_chunks) if i not in received]

    def is_valid_index(self, chunk_index: int) -> bool:
        return 0 <= chunk_index < self.total_chunks

    def merge_received_index(self, chunk_index: int) -> bool:
        """
        Add chunk_index to chunks_received, keeping it sorted and unique.

        Does NOT save. Returns True if the index was not present before.
        Only UploadSessionManager calls this, under a row lock.
        """
        received = set(self.chunks_received or ())
        added = chunk_index not in received
        received.add(chunk_index)
        self.chunks_received = sorted(received)
        return added

    @staticmethod
    def expected_chunk_count(file_size: int, chunk_size: int) -> int:
        """ceil(file_size / chunk_size), the count a splitter would produce."""
        if file_size <= 0 or chunk_size <= 0:
            return 0
        return math.ceil(file_size / chunk_size)


class UploadChunk(BaseModel):
    """
    Raw bytes received for one chunk index of an UploadSession.

    The (session, index) pair is unique, so re-sending an index replaces
    the stored bytes instead of adding a second row.

    Attributes:
        session: Owning upload session (rows cascade on delete)
        index: 0-based chunk index
        payload: Chunk bytes as stored by the database driver
        size: Length of payload in bytes
    """

    session = models.ForeignKey(
        UploadSession,
        on_delete=models.CASCADE,
        related_name="chunks",
        help_text="Upload session this chunk belongs to",
    )
    index = models.PositiveIntegerField(
        help_text="0-based chunk index",
    )
    payload = models.BinaryField(
        help_text="Raw chunk bytes",
    )
    size = models.PositiveIntegerField(
        help_text="Payload length in bytes",
    )

    class Meta:
        ordering = ["session", "index"]
        constraints = [
            models.UniqueConstraint(
                fields=["session", "index"],
                name="uniq_upload_chunk_session_index",
            ),
        ]

    def __str__(self) -> str:
        return f"UploadChunk({self.session_id}, #{self.index}, {self.size}B)"
