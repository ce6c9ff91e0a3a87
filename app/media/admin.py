"""Django admin configuration for media app."""

from django.contrib import admin

from media.models import UploadChunk, UploadSession


class UploadChunkInline(admin.TabularInline):
    model = UploadChunk
    fields = ["index", "size", "updated_at"]
    readonly_fields = fields
    extra = 0
    can_delete = False
    ordering = ["index"]


@admin.register(UploadSession)
class UploadSessionAdmin(admin.ModelAdmin):
    """Admin configuration for UploadSession model."""

    list_display = [
        "id",
        "filename",
        "media_kind",
        "file_size",
        "total_chunks",
        "chunks_received_count",
        "uploader",
        "created_at",
    ]
    list_filter = ["media_kind"]
    search_fields = ["filename", "uploader__email"]
    readonly_fields = [
        "id",
        "chunks_received",
        "created_at",
        "updated_at",
    ]
    inlines = [UploadChunkInline]
