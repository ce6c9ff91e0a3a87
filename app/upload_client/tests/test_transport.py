"""Tests for the HTTP transport."""

from unittest.mock import MagicMock

import pytest
import requests

from upload_client.config import UploadClientConfig
from upload_client.transport import HttpUploadTransport, TransportError


def _response(status_code: int = 200, body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "Error"
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session() -> MagicMock:
    mock_session = MagicMock(spec=requests.Session)
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def http_transport(session: MagicMock) -> HttpUploadTransport:
    config = UploadClientConfig(
        base_url="https://api.example.com/api/v1/media",
        token="access-token",
        request_timeout=5,
    )
    return HttpUploadTransport(config, session=session)


class TestHttpUploadTransport:
    def test_sets_bearer_token(self, http_transport, session) -> None:
        assert session.headers["Authorization"] == "Bearer access-token"

    def test_init_posts_json_and_returns_id(self, http_transport, session) -> None:
        session.post.return_value = _response(201, {"upload_id": "abc"})

        upload_id = http_transport.init_upload("clip.mp4", 100, 3, "video", duration=2.0)

        assert upload_id == "abc"
        url = session.post.call_args.args[0]
        kwargs = session.post.call_args.kwargs
        assert url == "https://api.example.com/api/v1/media/chunked/init/"
        assert kwargs["json"] == {
            "filename": "clip.mp4",
            "file_size": 100,
            "total_chunks": 3,
            "media_kind": "video",
            "duration": 2.0,
        }
        assert kwargs["timeout"] == 5

    def test_init_omits_missing_duration(self, http_transport, session) -> None:
        session.post.return_value = _response(201, {"upload_id": "abc"})

        http_transport.init_upload("clip.mp4", 100, 3, "video")

        assert "duration" not in session.post.call_args.kwargs["json"]

    def test_chunk_sent_as_multipart(self, http_transport, session) -> None:
        session.post.return_value = _response(200, {"chunk_index": 1, "received": True})

        http_transport.upload_chunk("abc", 1, 3, b"bytes")

        kwargs = session.post.call_args.kwargs
        assert session.post.call_args.args[0].endswith("/chunked/chunk/")
        assert kwargs["data"] == {"upload_id": "abc", "chunk_index": 1, "total_chunks": 3}
        assert kwargs["files"]["chunk"][1] == b"bytes"

    def test_error_response_raises_with_error_code(self, http_transport, session) -> None:
        session.post.return_value = _response(
            400,
            {
                "success": False,
                "error": "Upload is incomplete",
                "error_code": "INCOMPLETE_UPLOAD",
                "errors": {"missing_chunks": [2]},
            },
        )

        with pytest.raises(TransportError) as exc_info:
            http_transport.finalize("abc", "clip.mp4", "video")

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "INCOMPLETE_UPLOAD"
        assert exc_info.value.errors == {"missing_chunks": [2]}

    def test_non_json_error_body(self, http_transport, session) -> None:
        session.post.return_value = _response(502)

        with pytest.raises(TransportError) as exc_info:
            http_transport.upload_direct(b"img", "a.jpg", "image")

        assert exc_info.value.status_code == 502
        assert exc_info.value.error_code is None

    def test_network_error_wrapped(self, http_transport, session) -> None:
        session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError):
            http_transport.upload_chunk("abc", 0, 3, b"x")
