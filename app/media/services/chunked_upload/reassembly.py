"""
Reassembly of stored chunk payloads into the original byte stream.

reassemble() never trusts an earlier completeness check: it recomputes
the missing set, fetches every payload in ascending index order, and
compares the final length against the declared file size.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from media.services.chunked_upload.errors import (
    CorruptSessionError,
    IncompleteUploadError,
    SizeMismatchError,
)

if TYPE_CHECKING:
    from media.models import UploadSession


def decode_payload(payload) -> bytes:
    """
    Convert a stored payload back to bytes.

    Database drivers return BinaryField values as bytes or memoryview
    depending on the backend.
    """
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, (memoryview, bytearray)):
        return bytes(payload)
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def reassemble(session: "UploadSession") -> bytes:
    """
    Concatenate a session's chunk payloads in index order.

    Raises:
        IncompleteUploadError: Some index in [0, total_chunks) was never received
        CorruptSessionError: An index is marked received but has no payload
        SizeMismatchError: Result length differs from session.file_size
    """
    missing = session.missing_indices()
    if missing:
        raise IncompleteUploadError(missing)

    payloads = dict(session.chunks.values_list("index", "payload"))

    parts = []
    for index in range(session.total_chunks):
        if index not in payloads:
            raise CorruptSessionError(index)
        parts.append(decode_payload(payloads[index]))

    data = b"".join(parts)
    if len(data) != session.file_size:
        raise SizeMismatchError(expected=session.file_size, actual=len(data))
    return data
