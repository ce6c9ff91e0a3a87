"""
Domain errors raised by the chunked upload pipeline.

Every error carries a machine-readable error_code so views can map it to
an HTTP status without isinstance checks:

    DUPLICATE_SESSION       409
    SESSION_NOT_FOUND       404
    INVALID_CHUNK_INDEX     400
    INCOMPLETE_UPLOAD       400  (details.missing_chunks)
    SIZE_MISMATCH           400
    CORRUPT_SESSION         400
    DOWNSTREAM_STORE_ERROR  500
"""

from __future__ import annotations

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)


class ChunkedUploadError(BaseApplicationError):
    """Base class for reassembly consistency failures."""

    default_error_code = "CHUNKED_UPLOAD_ERROR"


class DuplicateSessionError(ConflictError):
    """An upload session with the requested id already exists."""

    default_error_code = "DUPLICATE_SESSION"

    def __init__(self, upload_id):
        self.upload_id = str(upload_id)
        super().__init__(
            f"Upload session {self.upload_id} already exists",
            details={"upload_id": self.upload_id},
        )


class SessionNotFoundError(NotFoundError):
    """The upload session expired or was never created."""

    default_error_code = "SESSION_NOT_FOUND"

    def __init__(self, upload_id):
        self.upload_id = str(upload_id)
        super().__init__(
            "Upload session not found",
            details={"upload_id": self.upload_id},
        )


class InvalidChunkIndexError(ValidationError):
    default_error_code = "INVALID_CHUNK_INDEX"

    def __init__(self, chunk_index: int, total_chunks: int):
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        super().__init__(
            f"Chunk index {chunk_index} is outside [0, {total_chunks})",
            details={"chunk_index": chunk_index, "total_chunks": total_chunks},
        )


class IncompleteUploadError(ValidationError):
    """
    Finalize was called before every chunk arrived.

    missing_chunks lists the absent indices in ascending order so a client
    could resend just those.
    """

    default_error_code = "INCOMPLETE_UPLOAD"

    def __init__(self, missing_chunks: list[int]):
        self.missing_chunks = sorted(missing_chunks)
        super().__init__(
            f"Upload is incomplete: {len(self.missing_chunks)} chunk(s) missing",
            details={"missing_chunks": self.missing_chunks},
        )


class SizeMismatchError(ChunkedUploadError):
    default_error_code = "SIZE_MISMATCH"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Reassembled size {actual} does not match declared size {expected}",
            details={"expected": expected, "actual": actual},
        )


class CorruptSessionError(ChunkedUploadError):
    """A chunk index is marked received but its payload is missing."""

    default_error_code = "CORRUPT_SESSION"

    def __init__(self, chunk_index: int):
        self.chunk_index = chunk_index
        super().__init__(
            f"Payload for chunk {chunk_index} is missing",
            details={"chunk_index": chunk_index},
        )


class DownstreamStoreError(ExternalServiceError):
    """The external object store rejected or failed to persist the file."""

    default_error_code = "DOWNSTREAM_STORE_ERROR"
