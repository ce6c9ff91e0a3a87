"""
Client-side driver for the media upload API.

Splits files into fixed-size chunks, sends them sequentially with progress
reporting, and finalizes the upload. Images and single-chunk files go
through the single-shot endpoint instead.
"""

from upload_client.config import UploadClientConfig
from upload_client.duration import probe_duration
from upload_client.orchestrator import UploadOrchestrator, UploadResult, UploadState
from upload_client.splitter import (
    DEFAULT_CHUNK_SIZE,
    ChunkRange,
    count_chunks,
    read_chunk,
    split_ranges,
)
from upload_client.transport import HttpUploadTransport, TransportError, UploadTransport

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ChunkRange",
    "HttpUploadTransport",
    "TransportError",
    "UploadClientConfig",
    "UploadOrchestrator",
    "UploadResult",
    "UploadState",
    "UploadTransport",
    "count_chunks",
    "probe_duration",
    "read_chunk",
    "split_ranges",
]
