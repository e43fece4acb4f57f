"""Celery worker configuration."""

from celery import Celery

from history_talks.config import settings
from history_talks.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "history_talks",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution: task bodies are idempotent, so redelivery is safe
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=3600,  # Large uploads can take a long time to transcode
    task_soft_time_limit=3540,
    task_always_eager=settings.celery_task_always_eager,
    task_store_eager_result=True,
    task_track_started=True,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "media.optimize_video": {"queue": "media"},
        "media.optimize_all_videos": {"queue": "media"},
        "media.generate_thumbnails": {"queue": "media"},
        "maintenance.cleanup_storage": {"queue": "maintenance"},
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["history_talks.jobs"], related_name="media_tasks")
