"""
Celery tasks for the media upload pipeline.

This module provides:
- cleanup_stale_upload_sessions: periodic sweep of abandoned upload sessions

The same sweep also runs opportunistically before every session creation;
the periodic task keeps the table bounded when no new uploads arrive.

Usage:
    from media.tasks import cleanup_stale_upload_sessions

    # Scheduled via CELERY_BEAT_SCHEDULE, or on demand:
    cleanup_stale_upload_sessions.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import OperationalError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 3},
)
def cleanup_stale_upload_sessions(self, max_age_seconds: int | None = None) -> dict:
    """
    Delete upload sessions older than the retention window.

    Completed-but-unfinalized sessions are removed too; age is the only
    criterion. Chunk payloads cascade with their sessions.

    Args:
        max_age_seconds: Override for CHUNKED_UPLOAD_SESSION_MAX_AGE_SECONDS

    Returns:
        Dict with the number of sessions deleted.
    """
    from media.services.chunked_upload import UploadSessionManager

    deleted_count = UploadSessionManager.cleanup_stale_sessions(max_age=max_age_seconds)

    logger.info(
        "Stale upload sessions cleaned up",
        extra={
            "event_type": "upload_session_cleanup",
            "deleted_count": deleted_count,
            "task_id": self.request.id,
        },
    )

    return {"deleted_count": deleted_count}
