"""
Tests for UploadSession and UploadChunk models.

These tests verify:
- Computed progress properties
- Sorted, duplicate-free merging of received indices
- Chunk uniqueness per (session, index)
- Cascade deletion of chunk rows
"""

from __future__ import annotations

import pytest
from django.db import IntegrityError

from media.models import UploadChunk, UploadSession
from media.tests.factories import UploadChunkFactory, UploadSessionFactory


@pytest.mark.django_db
class TestUploadSessionProperties:
    """Tests for UploadSession computed properties."""

    def test_new_session_has_nothing_received(self):
        session = UploadSessionFactory(total_chunks=3)

        assert session.chunks_received == []
        assert session.chunks_received_count == 0
        assert session.is_complete is False
        assert session.progress_percent == 0
        assert session.bytes_received == 0

    def test_missing_indices_ascending(self):
        session = UploadSessionFactory(total_chunks=5, chunks_received=[1, 3])

        assert session.missing_indices() == [0, 2, 4]

    def test_is_complete_when_every_index_received(self):
        session = UploadSessionFactory(total_chunks=3, chunks_received=[0, 1, 2])

        assert session.is_complete is True
        assert session.missing_indices() == []
        assert session.progress_percent == 100

    def test_progress_percent_rounds(self):
        session = UploadSessionFactory(total_chunks=3, chunks_received=[0])

        assert session.progress_percent == 33

    def test_bytes_received_sums_chunk_sizes(self):
        session = UploadSessionFactory(total_chunks=3)
        UploadChunkFactory(session=session, index=0, payload=b"x" * 10)
        UploadChunkFactory(session=session, index=1, payload=b"y" * 4)

        assert session.bytes_received == 14

    def test_millisecond_timestamps(self):
        session = UploadSessionFactory()

        assert session.created_at_ms == int(session.created_at.timestamp() * 1000)
        assert session.updated_at_ms >= session.created_at_ms

    def test_str_shows_progress(self):
        session = UploadSessionFactory(
            filename="clip.mp4", total_chunks=3, chunks_received=[0]
        )

        assert str(session) == "UploadSession(clip.mp4, 1/3)"


class TestUploadSessionHelpers:
    """Tests for index helpers that do not touch the database."""

    def test_merge_keeps_sorted_and_unique(self):
        session = UploadSession(total_chunks=4, chunks_received=[])

        assert session.merge_received_index(2) is True
        assert session.merge_received_index(0) is True
        assert session.merge_received_index(2) is False

        assert session.chunks_received == [0, 2]

    @pytest.mark.parametrize(
        "index,expected",
        [(-1, False), (0, True), (2, True), (3, False)],
    )
    def test_is_valid_index(self, index, expected):
        session = UploadSession(total_chunks=3)

        assert session.is_valid_index(index) is expected

    @pytest.mark.parametrize(
        "file_size,chunk_size,expected",
        [
            (10 * 1024 * 1024, 4 * 1024 * 1024, 3),
            (8, 4, 2),
            (1, 4, 1),
            (0, 4, 0),
        ],
    )
    def test_expected_chunk_count(self, file_size, chunk_size, expected):
        assert UploadSession.expected_chunk_count(file_size, chunk_size) == expected


@pytest.mark.django_db
class TestUploadChunk:
    """Tests for UploadChunk constraints."""

    def test_index_unique_per_session(self):
        chunk = UploadChunkFactory(index=0)

        with pytest.raises(IntegrityError):
            UploadChunk.objects.create(
                session=chunk.session, index=0, payload=b"again", size=5
            )

    def test_same_index_allowed_across_sessions(self):
        UploadChunkFactory(index=0)
        UploadChunkFactory(index=0)

        assert UploadChunk.objects.filter(index=0).count() == 2

    def test_chunks_cascade_with_session(self):
        chunk = UploadChunkFactory()

        chunk.session.delete()

        assert not UploadChunk.objects.filter(pk=chunk.pk).exists()
