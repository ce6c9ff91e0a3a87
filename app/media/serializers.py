"""
Serializers for chunked and direct media uploads.

Provides:
- ChunkedUploadInitSerializer: Validate session metadata for init
- ChunkUploadSerializer: Validate one multipart chunk transfer
- ChunkedUploadFinalizeSerializer: Validate finalize requests
- DirectUploadSerializer: Validate single-shot uploads
- ChunkReceiptSerializer / UploadResultSerializer / UploadProgressSerializer:
  Response shapes
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers

from media.models import UploadSession

# =============================================================================
# Chunked Upload Serializers
# =============================================================================


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Large video file",
            value={
                "filename": "skate_session.mp4",
                "file_size": 10485760,
                "total_chunks": 3,
                "media_kind": "video",
                "duration": 42.5,
            },
            request_only=True,
        ),
    ]
)
class ChunkedUploadInitSerializer(serializers.Serializer):
    """
    Serializer for initializing a chunked upload session.

    upload_id is optional; when omitted the server generates one.
    """

    filename = serializers.CharField(max_length=255, help_text="Original filename")
    file_size = serializers.IntegerField(
        min_value=1, help_text="Total file size in bytes"
    )
    total_chunks = serializers.IntegerField(
        min_value=1, help_text="Number of chunks the client will send"
    )
    media_kind = serializers.ChoiceField(
        choices=UploadSession.MediaKind.choices, help_text="image or video"
    )
    duration = serializers.FloatField(
        min_value=0,
        required=False,
        allow_null=True,
        help_text="Client-measured playback length in seconds",
    )
    upload_id = serializers.UUIDField(
        required=False, help_text="Client-chosen session id"
    )

    def validate(self, attrs: dict) -> dict:
        if attrs["total_chunks"] > attrs["file_size"]:
            raise serializers.ValidationError(
                {"total_chunks": "total_chunks cannot exceed file_size."}
            )
        return attrs


class ChunkUploadSerializer(serializers.Serializer):
    """
    Serializer for one chunk transfer (multipart/form-data).

    The chunk field carries the raw bytes of the chunk.
    """

    upload_id = serializers.UUIDField(help_text="Session id returned by init")
    chunk_index = serializers.IntegerField(help_text="0-based chunk index")
    total_chunks = serializers.IntegerField(
        min_value=1, help_text="Total chunk count declared at init"
    )
    chunk = serializers.FileField(
        allow_empty_file=False, help_text="Raw chunk bytes"
    )


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Finalize video upload",
            value={
                "upload_id": "e5f6a7b8-c9d0-1234-ef01-234567890abc",
                "filename": "skate_session.mp4",
                "media_kind": "video",
                "duration": 42.5,
            },
            request_only=True,
        ),
    ]
)
class ChunkedUploadFinalizeSerializer(serializers.Serializer):
    upload_id = serializers.UUIDField()
    filename = serializers.CharField(max_length=255, required=False)
    media_kind = serializers.ChoiceField(
        choices=UploadSession.MediaKind.choices, required=False
    )
    duration = serializers.FloatField(min_value=0, required=False, allow_null=True)


class DirectUploadSerializer(serializers.Serializer):
    """Single-shot upload of a whole file (multipart/form-data)."""

    file = serializers.FileField(allow_empty_file=False, help_text="The file to upload")
    media_kind = serializers.ChoiceField(
        choices=UploadSession.MediaKind.choices, help_text="image or video"
    )
    duration = serializers.FloatField(min_value=0, required=False, allow_null=True)


# =============================================================================
# Response Serializers
# =============================================================================


class ChunkedUploadInitResultSerializer(serializers.Serializer):
    upload_id = serializers.UUIDField()


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Second of three chunks",
            value={
                "chunk_index": 1,
                "received": True,
                "chunks_received": 2,
                "total_chunks": 3,
            },
            response_only=True,
        ),
    ]
)
class ChunkReceiptSerializer(serializers.Serializer):
    chunk_index = serializers.IntegerField()
    received = serializers.BooleanField()
    chunks_received = serializers.IntegerField(
        help_text="Number of distinct chunks stored so far"
    )
    total_chunks = serializers.IntegerField()


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Stored video",
            value={
                "url": "/media/uploads/videos/3f1c0d2e9a8b4c7d.mp4",
                "object_id": "uploads/videos/3f1c0d2e9a8b4c7d.mp4",
                "format": "mp4",
                "duration": 42.5,
            },
            response_only=True,
        ),
    ]
)
class UploadResultSerializer(serializers.Serializer):
    """Durable handle of a finished upload."""

    url = serializers.CharField()
    object_id = serializers.CharField()
    format = serializers.CharField()
    duration = serializers.FloatField(allow_null=True)


class UploadProgressSerializer(serializers.Serializer):
    upload_id = serializers.UUIDField()
    filename = serializers.CharField()
    media_kind = serializers.CharField()
    file_size = serializers.IntegerField()
    total_chunks = serializers.IntegerField()
    chunks_received = serializers.ListField(child=serializers.IntegerField())
    missing_chunks = serializers.ListField(child=serializers.IntegerField())
    bytes_received = serializers.IntegerField()
    progress_percent = serializers.IntegerField()
    is_complete = serializers.BooleanField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()
