"""
Tests for UploadSessionManager.

These tests verify:
- Session creation and metadata validation
- Duplicate upload_id rejection
- Idempotent, out-of-order chunk storage
- Uploader scoping of lookups
- Stale-session cleanup (periodic and opportunistic)
"""

from __future__ import annotations

import threading
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from django.db import DatabaseError, connection
from django.utils import timezone
from freezegun import freeze_time

from core.exceptions import ValidationError
from media.models import UploadChunk, UploadSession
from media.services.chunked_upload import (
    DuplicateSessionError,
    InvalidChunkIndexError,
    SessionNotFoundError,
    UploadSessionManager,
)
from media.services.chunked_upload.sessions import parse_upload_id
from media.tests.factories import UploadSessionFactory

if TYPE_CHECKING:
    from authentication.models import User


pytestmark = pytest.mark.django_db


def _create(**overrides) -> UploadSession:
    params = {
        "filename": "clip.mp4",
        "file_size": 30,
        "total_chunks": 3,
        "media_kind": "video",
    }
    params.update(overrides)
    return UploadSessionManager.create_session(**params)


class TestCreateSession:
    """Tests for UploadSessionManager.create_session()."""

    def test_creates_empty_session(self, user: "User"):
        session = _create(duration=12.5, uploader=user)

        assert isinstance(session.id, uuid.UUID)
        assert session.filename == "clip.mp4"
        assert session.file_size == 30
        assert session.total_chunks == 3
        assert session.media_kind == UploadSession.MediaKind.VIDEO
        assert session.duration == 12.5
        assert session.uploader == user
        assert session.chunks_received == []

    def test_ids_are_unique(self):
        first = _create()
        second = _create()

        assert first.id != second.id

    def test_client_chosen_upload_id(self):
        upload_id = uuid.uuid4()

        session = _create(upload_id=str(upload_id))

        assert session.id == upload_id

    def test_duplicate_upload_id_raises(self):
        upload_id = uuid.uuid4()
        _create(upload_id=upload_id)

        with pytest.raises(DuplicateSessionError) as exc_info:
            _create(upload_id=upload_id)

        assert exc_info.value.error_code == "DUPLICATE_SESSION"
        assert UploadSession.objects.filter(pk=upload_id).count() == 1

    def test_malformed_upload_id_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _create(upload_id="not-a-uuid")

        assert "upload_id" in exc_info.value.details

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"filename": ""}, "filename"),
            ({"filename": "   "}, "filename"),
            ({"file_size": 0}, "file_size"),
            ({"file_size": -5}, "file_size"),
            ({"total_chunks": 0}, "total_chunks"),
            ({"file_size": 2, "total_chunks": 3}, "total_chunks"),
            ({"file_size": 10 * 1024 * 1024, "total_chunks": 1}, "total_chunks"),
            ({"media_kind": "audio"}, "media_kind"),
            ({"duration": -1.0}, "duration"),
        ],
    )
    def test_invalid_metadata_rejected(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            _create(**overrides)

        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert field in exc_info.value.details
        assert UploadSession.objects.count() == 0

    def test_file_size_limit(self, settings):
        settings.CHUNKED_UPLOAD_MAX_FILE_SIZE = 100

        with pytest.raises(ValidationError) as exc_info:
            _create(file_size=101)

        assert "file_size" in exc_info.value.details

    def test_chunk_count_floor_follows_chunk_size(self, settings):
        settings.CHUNKED_UPLOAD_CHUNK_SIZE = 10

        with pytest.raises(ValidationError) as exc_info:
            _create(file_size=30, total_chunks=2)

        assert "at least 3" in exc_info.value.details["total_chunks"]
        assert _create(file_size=30, total_chunks=3).total_chunks == 3


class TestGetSession:
    """Tests for lookups and uploader scoping."""

    def test_unknown_id_raises_not_found(self):
        with pytest.raises(SessionNotFoundError) as exc_info:
            UploadSessionManager.get_session(uuid.uuid4())

        assert exc_info.value.error_code == "SESSION_NOT_FOUND"

    def test_malformed_id_raises_not_found(self):
        with pytest.raises(SessionNotFoundError):
            UploadSessionManager.get_session("nope")

    def test_owner_can_read(self, user: "User"):
        session = _create(uploader=user)

        assert UploadSessionManager.get_session(session.id, uploader=user) == session

    def test_other_user_cannot_read(self, user: "User", other_user: "User"):
        session = _create(uploader=user)

        with pytest.raises(SessionNotFoundError):
            UploadSessionManager.get_session(session.id, uploader=other_user)

    def test_unowned_session_visible_to_anyone(self, user: "User"):
        session = _create()

        assert UploadSessionManager.get_session(session.id, uploader=user) == session

    def test_parse_upload_id(self):
        value = uuid.uuid4()

        assert parse_upload_id(value) is value
        assert parse_upload_id(str(value)) == value
        assert parse_upload_id("garbage") is None
        assert parse_upload_id(None) is None


class TestStoreChunk:
    """Tests for UploadSessionManager.store_chunk()."""

    def test_records_index_and_payload(self):
        session = _create()

        UploadSessionManager.store_chunk(session.id, 1, b"B" * 10)

        session.refresh_from_db()
        assert session.chunks_received == [1]
        chunk = session.chunks.get(index=1)
        assert bytes(chunk.payload) == b"B" * 10
        assert chunk.size == 10

    def test_out_of_order_indices_stay_sorted(self):
        session = _create()

        for index in (2, 0, 1):
            UploadSessionManager.store_chunk(session.id, index, b"x" * 10)

        session.refresh_from_db()
        assert session.chunks_received == [0, 1, 2]
        assert UploadSessionManager.all_chunks_received(session.id) is True

    def test_resend_replaces_payload(self):
        session = _create()
        UploadSessionManager.store_chunk(session.id, 0, b"old-bytes!")

        UploadSessionManager.store_chunk(session.id, 0, b"new-bytes!")

        session.refresh_from_db()
        assert session.chunks_received == [0]
        assert session.chunks.count() == 1
        assert bytes(session.chunks.get(index=0).payload) == b"new-bytes!"

    def test_accepts_memoryview(self):
        session = _create()

        UploadSessionManager.store_chunk(session.id, 0, memoryview(b"abc"))

        assert bytes(session.chunks.get(index=0).payload) == b"abc"

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_out_of_range_index_rejected(self, index):
        session = _create()

        with pytest.raises(InvalidChunkIndexError) as exc_info:
            UploadSessionManager.store_chunk(session.id, index, b"x")

        assert exc_info.value.error_code == "INVALID_CHUNK_INDEX"
        session.refresh_from_db()
        assert session.chunks_received == []
        assert not UploadChunk.objects.filter(session=session).exists()

    @pytest.mark.django_db(transaction=True)
    def test_concurrent_writers_keep_every_index(self):
        total = 8
        session = _create(file_size=10 * total, total_chunks=total)
        barrier = threading.Barrier(total)
        errors: list[Exception] = []

        def store(index: int):
            try:
                barrier.wait()
                UploadSessionManager.store_chunk(session.id, index, b"x" * 10)
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=store, args=(i,)) for i in range(total)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        session.refresh_from_db()
        assert session.chunks_received == list(range(total))
        assert UploadChunk.objects.filter(session=session).count() == total

    def test_unknown_session_raises(self):
        with pytest.raises(SessionNotFoundError):
            UploadSessionManager.store_chunk(uuid.uuid4(), 0, b"x")

    def test_other_user_cannot_write(self, user: "User", other_user: "User"):
        session = _create(uploader=user)

        with pytest.raises(SessionNotFoundError):
            UploadSessionManager.store_chunk(session.id, 0, b"x", uploader=other_user)

    def test_all_chunks_received_false_until_complete(self):
        session = _create()
        UploadSessionManager.store_chunk(session.id, 0, b"x" * 10)
        UploadSessionManager.store_chunk(session.id, 2, b"x" * 10)

        assert UploadSessionManager.all_chunks_received(session.id) is False


class TestDeleteSession:
    """Tests for UploadSessionManager.delete_session()."""

    def test_deletes_session_and_chunks(self):
        session = _create()
        UploadSessionManager.store_chunk(session.id, 0, b"x" * 10)

        assert UploadSessionManager.delete_session(session.id) is True

        assert not UploadSession.objects.filter(pk=session.id).exists()
        assert not UploadChunk.objects.filter(session_id=session.id).exists()

    def test_delete_is_idempotent(self):
        session = _create()
        UploadSessionManager.delete_session(session.id)

        assert UploadSessionManager.delete_session(session.id) is False
        assert UploadSessionManager.delete_session("garbage") is False


class TestCleanupStaleSessions:
    """Tests for UploadSessionManager.cleanup_stale_sessions()."""

    def test_removes_only_sessions_past_cutoff(self, settings):
        settings.CHUNKED_UPLOAD_SESSION_MAX_AGE_SECONDS = 3600
        with freeze_time(timezone.now() - timedelta(hours=2)):
            stale = UploadSessionFactory()
        with freeze_time(timezone.now() - timedelta(minutes=30)):
            fresh = UploadSessionFactory()

        deleted = UploadSessionManager.cleanup_stale_sessions()

        assert deleted == 1
        assert not UploadSession.objects.filter(pk=stale.pk).exists()
        assert UploadSession.objects.filter(pk=fresh.pk).exists()

    def test_complete_sessions_are_also_removed(self):
        with freeze_time(timezone.now() - timedelta(hours=2)):
            session = _create(file_size=1, total_chunks=1)
            UploadSessionManager.store_chunk(session.id, 0, b"x")

        assert UploadSessionManager.cleanup_stale_sessions() == 1
        assert not UploadChunk.objects.filter(session_id=session.id).exists()

    def test_accepts_seconds_and_timedelta(self):
        with freeze_time(timezone.now() - timedelta(minutes=10)):
            UploadSessionFactory()

        assert UploadSessionManager.cleanup_stale_sessions(max_age=3600) == 0
        assert UploadSessionManager.cleanup_stale_sessions(max_age=timedelta(minutes=5)) == 1

    def test_nothing_to_remove(self):
        UploadSessionFactory()

        assert UploadSessionManager.cleanup_stale_sessions() == 0

    def test_create_session_sweeps_stale_sessions(self):
        with freeze_time(timezone.now() - timedelta(hours=2)):
            stale = UploadSessionFactory()

        _create()

        assert not UploadSession.objects.filter(pk=stale.pk).exists()

    def test_failed_sweep_does_not_block_creation(self):
        with patch.object(
            UploadSessionManager,
            "cleanup_stale_sessions",
            side_effect=DatabaseError("locked"),
        ):
            session = _create()

        assert UploadSession.objects.filter(pk=session.id).exists()
