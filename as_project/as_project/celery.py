"""Celery worker and beat entry point for the books.

    worker: celery -A as_project worker -Q books -l info
    beat:   celery -A as_project beat -l info

Overdue marking and the ledger drift audit are scheduled from
CELERY_BEAT_SCHEDULE in settings.
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "as_project.settings")

celery_app = Celery("as_project")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# books_core.tasks is the only task module
celery_app.autodiscover_tasks(["books_core"])
