"""
URL configuration for media app.

API Documentation Groups (following [App Name] - [Group Name] pattern):

Media - Upload:
    POST /upload/                          - Single-shot upload

Media - Chunked Upload:
    POST /chunked/init/                    - Create upload session
    POST /chunked/chunk/                   - Upload one chunk
    POST /chunked/finalize/                - Reassemble and store
    GET /chunked/sessions/{id}/            - Get session progress
    DELETE /chunked/sessions/{id}/         - Abort session
"""

from django.urls import path

from media.views import (
    ChunkedUploadChunkView,
    ChunkedUploadFinalizeView,
    ChunkedUploadInitView,
    ChunkedUploadSessionDetailView,
    MediaUploadView,
)

app_name = "media"

urlpatterns = [
    # Upload
    path("upload/", MediaUploadView.as_view(), name="upload"),
    # Chunked Upload
    path("chunked/init/", ChunkedUploadInitView.as_view(), name="chunked-init"),
    path("chunked/chunk/", ChunkedUploadChunkView.as_view(), name="chunked-chunk"),
    path(
        "chunked/finalize/",
        ChunkedUploadFinalizeView.as_view(),
        name="chunked-finalize",
    ),
    path(
        "chunked/sessions/<uuid:upload_id>/",
        ChunkedUploadSessionDetailView.as_view(),
        name="chunked-session-detail",
    ),
]
