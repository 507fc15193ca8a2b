"""
Celery application configuration.

Defines the Celery app with Redis broker, task autodiscovery, and the beat
schedule for the maintenance jobs (all times UTC).
"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as setup_logging_signal

from app.config import settings
from app.core.logging import setup_logging

celery_app = Celery(
    "remitip",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# Auto-discover tasks in the tasks package
celery_app.autodiscover_tasks(["app.tasks"])

# Beat schedule — periodic tasks
celery_app.conf.beat_schedule = {
    "daily-cleanup": {
        "task": "app.tasks.scheduled_tasks.run_daily_cleanup",
        "schedule": crontab(hour=2, minute=0),
    },
    "daily-summary": {
        "task": "app.tasks.scheduled_tasks.generate_daily_summary",
        "schedule": crontab(hour=1, minute=0),
    },
    "corridor-popularity": {
        "task": "app.tasks.scheduled_tasks.update_corridor_popularity",
        "schedule": crontab(hour="*/6", minute=0),
    },
    "health-check": {
        "task": "app.tasks.scheduled_tasks.perform_health_check",
        "schedule": crontab(minute=0),
    },
    "weekly-report": {
        "task": "app.tasks.scheduled_tasks.generate_weekly_report",
        "schedule": crontab(hour=3, minute=0, day_of_week="sun"),
    },
}


@setup_logging_signal.connect
def configure_worker_logging(**kwargs):
    """Use the application log format in workers instead of Celery's own."""
    setup_logging()
