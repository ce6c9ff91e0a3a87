"""
API views for chunked and direct media uploads.

Provides:
- ChunkedUploadInitView: Create an upload session
- ChunkedUploadChunkView: Receive one chunk
- ChunkedUploadFinalizeView: Reassemble and store a complete upload
- ChunkedUploadSessionDetailView: Inspect or abort a session
- MediaUploadView: Single-shot upload for images and small files
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from media.serializers import (
    ChunkedUploadFinalizeSerializer,
    ChunkedUploadInitResultSerializer,
    ChunkedUploadInitSerializer,
    ChunkReceiptSerializer,
    ChunkUploadSerializer,
    DirectUploadSerializer,
    UploadProgressSerializer,
    UploadResultSerializer,
)
from media.services.chunked_upload import ChunkedUploadService

ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_CHUNK_INDEX": status.HTTP_400_BAD_REQUEST,
    "INCOMPLETE_UPLOAD": status.HTTP_400_BAD_REQUEST,
    "SIZE_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "CORRUPT_SESSION": status.HTTP_400_BAD_REQUEST,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DUPLICATE_SESSION": status.HTTP_409_CONFLICT,
    "DOWNSTREAM_STORE_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(result) -> Response:
    """Render a failed ServiceResult with the status for its error_code."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


class ChunkedUploadInitView(APIView):
    """
    Create a new chunked upload session.

    POST /api/v1/media/chunked/init/

    Request:
        - filename (required): Original filename
        - file_size (required): Total file size in bytes
        - total_chunks (required): Number of chunks that will be sent
        - media_kind (required): image or video
        - duration (optional): Playback length in seconds
        - upload_id (optional): Client-chosen session id

    Response:
        201 Created: {"upload_id": "..."}
        400 Bad Request: Invalid metadata
        409 Conflict: upload_id already in use
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    @extend_schema(
        operation_id="init_chunked_upload",
        summary="Create chunked upload session",
        description=(
            "Initialize an upload session before sending chunks. "
            "Stale sessions older than the retention window are swept first."
        ),
        request=ChunkedUploadInitSerializer,
        responses={
            201: OpenApiResponse(
                response=ChunkedUploadInitResultSerializer,
                description="Session created",
            ),
            400: OpenApiResponse(description="Invalid file metadata"),
            401: OpenApiResponse(description="Authentication required"),
            409: OpenApiResponse(description="upload_id already exists"),
        },
        tags=["Media - Chunked Upload"],
    )
    def post(self, request):
        serializer = ChunkedUploadInitSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        result = ChunkedUploadService.init_upload(
            filename=data["filename"],
            file_size=data["file_size"],
            total_chunks=data["total_chunks"],
            media_kind=data["media_kind"],
            duration=data.get("duration"),
            upload_id=data.get("upload_id"),
            uploader=request.user,
        )
        if not result.success:
            return error_response(result)

        return Response(
            {"upload_id": str(result.data.id)},
            status=status.HTTP_201_CREATED,
        )


class ChunkedUploadChunkView(APIView):
    """
    Receive one chunk of an upload.

    POST /api/v1/media/chunked/chunk/

    Request (multipart/form-data):
        - upload_id, chunk_index, total_chunks, chunk

    Re-sending an index replaces its bytes.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        operation_id="upload_chunk",
        summary="Upload chunk",
        description=(
            "Store one chunk of an upload session. Chunks may arrive in any order; "
            "sending the same index twice overwrites the earlier bytes."
        ),
        request={"multipart/form-data": ChunkUploadSerializer},
        responses={
            200: OpenApiResponse(
                response=ChunkReceiptSerializer,
                description="Chunk stored",
            ),
            400: OpenApiResponse(description="Invalid chunk index or fields"),
            404: OpenApiResponse(description="Session not found"),
        },
        tags=["Media - Chunked Upload"],
    )
    def post(self, request):
        serializer = ChunkUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        result = ChunkedUploadService.receive_chunk(
            upload_id=data["upload_id"],
            chunk_index=data["chunk_index"],
            total_chunks=data["total_chunks"],
            data=data["chunk"].read(),
            uploader=request.user,
        )
        if not result.success:
            return error_response(result)

        return Response(ChunkReceiptSerializer(result.data).data)


class ChunkedUploadFinalizeView(APIView):
    """
    Finalize a chunked upload.

    POST /api/v1/media/chunked/finalize/

    Verifies every chunk is present, reassembles the file in index order,
    checks its size, hands it to the object store and deletes the session.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    @extend_schema(
        operation_id="finalize_chunked_upload",
        summary="Finalize chunked upload",
        description=(
            "Reassemble all chunks and store the file. Incomplete uploads report "
            "the missing chunk indices in errors.missing_chunks."
        ),
        request=ChunkedUploadFinalizeSerializer,
        responses={
            200: OpenApiResponse(
                response=UploadResultSerializer,
                description="File stored",
            ),
            400: OpenApiResponse(description="Incomplete upload or size mismatch"),
            404: OpenApiResponse(description="Session not found"),
            500: OpenApiResponse(description="Object store failure"),
        },
        tags=["Media - Chunked Upload"],
    )
    def post(self, request):
        serializer = ChunkedUploadFinalizeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        result = ChunkedUploadService.finalize_upload(
            upload_id=data["upload_id"],
            filename=data.get("filename"),
            media_kind=data.get("media_kind"),
            duration=data.get("duration"),
            uploader=request.user,
        )
        if not result.success:
            return error_response(result)

        return Response(UploadResultSerializer(result.data).data)


class ChunkedUploadSessionDetailView(APIView):
    """
    Get or abort a chunked upload session.

    GET /api/v1/media/chunked/sessions/{upload_id}/
    DELETE /api/v1/media/chunked/sessions/{upload_id}/

    Only the session owner can see or abort it.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_chunked_upload_session",
        summary="Get upload session progress",
        responses={
            200: OpenApiResponse(
                response=UploadProgressSerializer,
                description="Received and missing chunk indices",
            ),
            404: OpenApiResponse(description="Session not found"),
        },
        tags=["Media - Chunked Upload"],
    )
    def get(self, request, upload_id):
        result = ChunkedUploadService.get_progress(upload_id, uploader=request.user)
        if not result.success:
            return error_response(result)
        return Response(UploadProgressSerializer(result.data).data)

    @extend_schema(
        operation_id="abort_chunked_upload_session",
        summary="Abort upload session",
        responses={
            204: OpenApiResponse(description="Session and chunks deleted"),
            404: OpenApiResponse(description="Session not found"),
        },
        tags=["Media - Chunked Upload"],
    )
    def delete(self, request, upload_id):
        result = ChunkedUploadService.abort_upload(upload_id, uploader=request.user)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MediaUploadView(APIView):
    """
    Single-shot media upload.

    POST /api/v1/media/upload/

    Request (multipart/form-data):
        - file (required): The whole file
        - media_kind (required): image or video
        - duration (optional): Playback length in seconds

    Response:
        200 OK: {"url", "object_id", "format", "duration"}
        400 Bad Request: Empty file or size over the per-kind limit
        500 Internal Server Error: Object store failure
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        operation_id="upload_media_file",
        summary="Upload media file",
        description=(
            "Upload a whole file in one request, bypassing session bookkeeping. "
            "Used for images and files that fit in a single chunk."
        ),
        request={"multipart/form-data": DirectUploadSerializer},
        responses={
            200: OpenApiResponse(
                response=UploadResultSerializer,
                description="File stored",
            ),
            400: OpenApiResponse(description="Empty file or size limit exceeded"),
            401: OpenApiResponse(description="Authentication required"),
            500: OpenApiResponse(description="Object store failure"),
        },
        tags=["Media - Upload"],
    )
    def post(self, request):
        serializer = DirectUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        upload = data["file"]
        result = ChunkedUploadService.upload_direct(
            data=upload.read(),
            filename=upload.name,
            media_kind=data["media_kind"],
            duration=data.get("duration"),
        )
        if not result.success:
            return error_response(result)

        return Response(UploadResultSerializer(result.data).data)
