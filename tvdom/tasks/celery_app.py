"""
Celery application configuration for background maintenance.

This provides:
1. Celery app initialization with the Redis broker
2. Task registration
3. Beat schedule for the retention / staleness purges
"""

from celery import Celery

from tvdom.config import settings

# Create Celery instance
celery_app = Celery(
    "tvdom",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["tvdom.tasks.maintenance_tasks"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_routes={
        "tvdom.tasks.maintenance_tasks.*": {"queue": "maintenance"},
    },
    result_expires=3600,  # 1 hour
    beat_schedule={
        "purge-expired-notifications": {
            "task": "purge_expired_notifications",
            "schedule": 86400.0,  # Daily
        },
        "purge-stale-currently-watching": {
            "task": "purge_stale_currently_watching",
            "schedule": 3600.0,  # Hourly
        },
    },
    beat_schedule_filename="/tmp/celerybeat-schedule",
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,
)

if __name__ == "__main__":
    celery_app.start()
