"""In-memory object store double for upload tests."""

from __future__ import annotations

from media.services.chunked_upload.errors import DownstreamStoreError
from media.services.object_store import ObjectStoreBase, StoredObject, file_format


class RecordingObjectStore(ObjectStoreBase):
    """
    ObjectStoreBase that keeps every stored buffer in memory.

    Attributes:
        stored: List of (data, filename, media_kind) per successful call
        fail: When True, every store() raises DownstreamStoreError
        duration: Duration reported on every StoredObject
    """

    def __init__(self, fail: bool = False, duration: float | None = None) -> None:
        self.stored: list[tuple[bytes, str, str]] = []
        self.fail = fail
        self.duration = duration
        self.calls = 0

    def store(self, data: bytes, filename: str, media_kind: str) -> StoredObject:
        self.calls += 1
        if self.fail:
            raise DownstreamStoreError("Object store unavailable")
        self.stored.append((data, filename, media_kind))
        number = len(self.stored)
        return StoredObject(
            url=f"https://cdn.test/{media_kind}s/{number}.{file_format(filename)}",
            object_id=f"obj-{number}",
            format=file_format(filename),
            duration=self.duration,
        )
