"""
Media models package.

Exports:
    UploadSession: Tracks an in-progress chunked upload
    UploadChunk: Stored payload for one chunk of an UploadSession
"""

from media.models.upload_session import UploadChunk, UploadSession

__all__ = [
    "UploadChunk",
    "UploadSession",
]
