"""
Tests for the object store collaborator.

These tests verify:
- DefaultStorageObjectStore writes through the configured storage
- Keys are grouped by media kind and carry the file format
- Storage failures surface as DownstreamStoreError
- get_object_store() honors MEDIA_OBJECT_STORE_CLASS
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from django.core.files.storage import default_storage

from media.services.chunked_upload import DownstreamStoreError
from media.services.object_store import (
    DefaultStorageObjectStore,
    StoredObject,
    file_format,
    get_object_store,
)
from media.tests.fakes import RecordingObjectStore


class TestFileFormat:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("clip.mp4", "mp4"),
            ("PHOTO.JPG", "jpg"),
            ("archive.tar.gz", "gz"),
            ("noext", "bin"),
            ("", "bin"),
        ],
    )
    def test_extension(self, filename, expected):
        assert file_format(filename) == expected


class TestDefaultStorageObjectStore:
    def test_stores_bytes_in_default_storage(self):
        store = DefaultStorageObjectStore(prefix="uploads")

        stored = store.store(b"video-bytes", "clip.MP4", "video")

        assert isinstance(stored, StoredObject)
        assert stored.format == "mp4"
        assert stored.object_id.startswith("uploads/videos/")
        assert stored.object_id.endswith(".mp4")
        assert stored.duration is None
        with default_storage.open(stored.object_id) as f:
            assert f.read() == b"video-bytes"

    def test_prefix_from_settings(self, settings):
        settings.MEDIA_OBJECT_STORE_PREFIX = "firegram"

        key = DefaultStorageObjectStore().build_key("photo.png", "image")

        assert key.startswith("firegram/images/")
        assert key.endswith(".png")

    def test_empty_prefix(self):
        key = DefaultStorageObjectStore(prefix="").build_key("photo.png", "image")

        assert key.startswith("images/")

    def test_keys_are_unique(self):
        store = DefaultStorageObjectStore()

        assert store.build_key("a.mp4", "video") != store.build_key("a.mp4", "video")

    def test_storage_failure_raises_downstream_error(self):
        storage = MagicMock()
        storage.save.side_effect = OSError("bucket unavailable")
        store = DefaultStorageObjectStore(storage=storage)

        with pytest.raises(DownstreamStoreError) as exc_info:
            store.store(b"x", "a.mp4", "video")

        assert exc_info.value.error_code == "DOWNSTREAM_STORE_ERROR"
        assert exc_info.value.details == {"original_error": "bucket unavailable"}

    def test_url_comes_from_storage(self):
        storage = MagicMock()
        storage.save.return_value = "uploads/videos/abc.mp4"
        storage.url.return_value = "https://bucket.example/uploads/videos/abc.mp4"

        stored = DefaultStorageObjectStore(storage=storage).store(b"x", "a.mp4", "video")

        assert stored.url == "https://bucket.example/uploads/videos/abc.mp4"
        assert stored.object_id == "uploads/videos/abc.mp4"


class TestGetObjectStore:
    def test_default_class(self):
        assert isinstance(get_object_store(), DefaultStorageObjectStore)

    def test_configured_class(self, settings):
        settings.MEDIA_OBJECT_STORE_CLASS = "media.tests.fakes.RecordingObjectStore"

        assert isinstance(get_object_store(), RecordingObjectStore)
