"""
Chunked upload pipeline.

Components:
    UploadSessionManager: session creation, chunk storage, cleanup sweep
    reassemble: ordered, verified concatenation of stored chunks
    ChunkedUploadService: init / chunk / finalize / direct protocol facade

Usage:
    from media.services.chunked_upload import ChunkedUploadService

    result = ChunkedUploadService.init_upload(
        filename="clip.mp4",
        file_size=file_size,
        total_chunks=3,
        media_kind="video",
        uploader=request.user,
    )
"""

from media.services.chunked_upload.errors import (
    ChunkedUploadError,
    CorruptSessionError,
    DownstreamStoreError,
    DuplicateSessionError,
    IncompleteUploadError,
    InvalidChunkIndexError,
    SessionNotFoundError,
    SizeMismatchError,
)
from media.services.chunked_upload.reassembly import decode_payload, reassemble
from media.services.chunked_upload.service import (
    ChunkedUploadService,
    ChunkReceipt,
    FinalizeResult,
    UploadProgress,
)
from media.services.chunked_upload.sessions import UploadSessionManager

__all__ = [
    "ChunkReceipt",
    "ChunkedUploadError",
    "ChunkedUploadService",
    "CorruptSessionError",
    "DownstreamStoreError",
    "DuplicateSessionError",
    "FinalizeResult",
    "IncompleteUploadError",
    "InvalidChunkIndexError",
    "SessionNotFoundError",
    "SizeMismatchError",
    "UploadProgress",
    "UploadSessionManager",
    "decode_payload",
    "reassemble",
]
