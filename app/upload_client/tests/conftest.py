"""
Test fixtures for the upload client.

Provides:
- transport: a fresh RecordingTransport
- Sample file fixtures written to tmp_path
"""

from __future__ import annotations

from pathlib import Path

import pytest

from upload_client.tests.fakes import MiB, RecordingTransport


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    """10 MiB video-like file: three chunks at 4 MiB."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(bytes(range(256)) * (10 * MiB // 256))
    return path


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff" + b"i" * 2048)
    return path
