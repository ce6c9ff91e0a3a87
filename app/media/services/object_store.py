"""
External object store collaborator.

The upload pipeline hands a finished byte buffer to an object store and
gets back a durable URL and identifier. The pipeline never retries on the
store's behalf; any failure surfaces as DownstreamStoreError.

The backend is selected at process start from settings:

    MEDIA_OBJECT_STORE_CLASS = "media.services.object_store.DefaultStorageObjectStore"

DefaultStorageObjectStore writes through Django's default_storage, so the
same code targets the local filesystem in development and S3 (via
django-storages) in production.
"""

from __future__ import annotations

import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string

from media.services.chunked_upload.errors import DownstreamStoreError

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_STORE_CLASS = "media.services.object_store.DefaultStorageObjectStore"


@dataclass(frozen=True)
class StoredObject:
    """
    Durable handle returned by an object store.

    Attributes:
        url: Public or signed URL of the stored file
        object_id: Store-specific identifier of the stored file
        format: File format (lowercase extension without the dot)
        duration: Playback length in seconds, if the store measured one
    """

    url: str
    object_id: str
    format: str
    duration: float | None = None


def file_format(filename: str) -> str:
    """Lowercase extension of filename without the dot, or 'bin'."""
    _, ext = os.path.splitext(filename or "")
    return ext[1:].lower() or "bin"


class ObjectStoreBase(ABC):
    """Interface for the external object store."""

    @abstractmethod
    def store(self, data: bytes, filename: str, media_kind: str) -> StoredObject:
        """
        Persist data and return its durable handle.

        Raises:
            DownstreamStoreError: The store could not persist the file
        """


class DefaultStorageObjectStore(ObjectStoreBase):
    """Object store backed by Django's configured default storage."""

    def __init__(self, prefix: str | None = None, storage=None) -> None:
        self.prefix = (
            prefix
            if prefix is not None
            else getattr(settings, "MEDIA_OBJECT_STORE_PREFIX", "uploads")
        )
        self.storage = storage or default_storage

    def build_key(self, filename: str, media_kind: str) -> str:
        """Storage key: <prefix>/<kind>s/<uuid>.<format>"""
        name = f"{uuid.uuid4().hex}.{file_format(filename)}"
        return "/".join(part for part in (self.prefix, f"{media_kind}s", name) if part)

    def store(self, data: bytes, filename: str, media_kind: str) -> StoredObject:
        key = self.build_key(filename, media_kind)
        try:
            saved_name = self.storage.save(key, ContentFile(data))
            url = self.storage.url(saved_name)
        except Exception as e:
            logger.error(
                f"Object store write failed for {filename}: {e}",
                exc_info=True,
                extra={"event_type": "upload.store_failed", "key": key},
            )
            raise DownstreamStoreError(
                "Object store failed to persist the file",
                details={"original_error": str(e)},
            ) from e

        logger.info(
            "Stored uploaded object",
            extra={
                "event_type": "upload.object_stored",
                "object_id": saved_name,
                "size": len(data),
                "media_kind": media_kind,
            },
        )
        return StoredObject(
            url=url,
            object_id=saved_name,
            format=file_format(filename),
        )


def get_object_store() -> ObjectStoreBase:
    """
    Instantiate the configured object store.

    Usage:
        stored = get_object_store().store(data, "clip.mp4", "video")
    """
    dotted_path = getattr(settings, "MEDIA_OBJECT_STORE_CLASS", DEFAULT_OBJECT_STORE_CLASS)
    return import_string(dotted_path)()
