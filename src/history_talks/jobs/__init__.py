"""Celery job definitions."""

from history_talks.jobs.media_tasks import (
    cleanup_storage_task,
    generate_thumbnails_task,
    optimize_all_videos_task,
    optimize_video_task,
)

__all__ = [
    "cleanup_storage_task",
    "generate_thumbnails_task",
    "optimize_all_videos_task",
    "optimize_video_task",
]
