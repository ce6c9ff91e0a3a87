"""
Test fixtures for media app.

Provides fixtures for:
- Authenticated API clients (JWT)
- Users owning upload sessions
- A recording object store patched in place of the configured one
- Chunked sample payloads
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from media.services.chunked_upload import UploadSessionManager
from media.tests.fakes import RecordingObjectStore

if TYPE_CHECKING:
    from authentication.models import User
    from media.models import UploadSession


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client() -> APIClient:
    """Return unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db) -> "User":
    return UserFactory()


@pytest.fixture
def other_user(db) -> "User":
    return UserFactory()


def _jwt_client(user: "User") -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def authenticated_client(user: "User") -> APIClient:
    """Return API client authenticated with JWT token."""
    return _jwt_client(user)


@pytest.fixture
def other_client(other_user: "User") -> APIClient:
    return _jwt_client(other_user)


# =============================================================================
# Object Store Fixtures
# =============================================================================


@pytest.fixture
def object_store() -> RecordingObjectStore:
    """Replace the configured object store with an in-memory recorder."""
    store = RecordingObjectStore()
    with patch("media.services.object_store.get_object_store", return_value=store):
        yield store


@pytest.fixture
def failing_object_store() -> RecordingObjectStore:
    store = RecordingObjectStore(fail=True)
    with patch("media.services.object_store.get_object_store", return_value=store):
        yield store


# =============================================================================
# Payload Fixtures
# =============================================================================


@pytest.fixture
def chunks() -> list[bytes]:
    """Three distinct chunks: 10 + 10 + 5 bytes."""
    return [b"A" * 10, b"B" * 10, b"C" * 5]


@pytest.fixture
def session(db, user: "User", chunks: list[bytes]) -> "UploadSession":
    """Empty video session sized for the chunks fixture, owned by user."""
    return UploadSessionManager.create_session(
        filename="clip.mp4",
        file_size=sum(len(c) for c in chunks),
        total_chunks=len(chunks),
        media_kind="video",
        uploader=user,
    )


@pytest.fixture
def complete_session(session: "UploadSession", chunks: list[bytes]) -> "UploadSession":
    """Session with every chunk stored."""
    for index, data in enumerate(chunks):
        UploadSessionManager.store_chunk(session.id, index, data)
    session.refresh_from_db()
    return session
