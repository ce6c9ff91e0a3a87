import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UploadSession",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "filename",
                    models.CharField(
                        help_text="Original filename of the file being uploaded",
                        max_length=255,
                    ),
                ),
                (
                    "file_size",
                    models.BigIntegerField(help_text="Declared total file size in bytes"),
                ),
                (
                    "total_chunks",
                    models.PositiveIntegerField(
                        help_text="Number of chunks the client will transfer"
                    ),
                ),
                (
                    "media_kind",
                    models.CharField(
                        choices=[("image", "Image"), ("video", "Video")],
                        help_text="Media kind (image or video)",
                        max_length=10,
                    ),
                ),
                (
                    "duration",
                    models.FloatField(
                        blank=True,
                        help_text="Client-measured playback length in seconds",
                        null=True,
                    ),
                ),
                (
                    "chunks_received",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Sorted list of received chunk indices (0-based)",
                    ),
                ),
                (
                    "uploader",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who initiated the upload",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="upload_sessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["uploader", "created_at"],
                        name="idx_upload_session_user_time",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="UploadChunk",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("index", models.PositiveIntegerField(help_text="0-based chunk index")),
                ("payload", models.BinaryField(help_text="Raw chunk bytes")),
                ("size", models.PositiveIntegerField(help_text="Payload length in bytes")),
                (
                    "session",
                    models.ForeignKey(
                        help_text="Upload session this chunk belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chunks",
                        to="media.uploadsession",
                    ),
                ),
            ],
            options={
                "ordering": ["session", "index"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("session", "index"),
                        name="uniq_upload_chunk_session_index",
                    )
                ],
            },
        ),
    ]
