"""
Celery configuration for the media upload backend.

Celery runs background and scheduled work for the upload pipeline:
- Periodic sweep of stale upload sessions (CELERY_BEAT_SCHEDULE)

Redis is the message broker and result backend. Tasks are auto-discovered
from every installed Django app's tasks.py.

Usage:
    # Worker
    celery -A config worker -l info

    # Scheduler
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

