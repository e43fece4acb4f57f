"""Admin endpoints for media maintenance.

Long-running work is handed to Celery; the endpoints return a task id that
can be polled through /admin/tasks/{task_id}.
"""

from typing import Any

from celery import Task
from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException, status
from kombu.exceptions import OperationalError

from history_talks.api.schemas import TaskAcceptedResponse, TaskStatusResponse
from history_talks.config import settings
from history_talks.domain.enums import TaskState
from history_talks.jobs.media_tasks import (
    cleanup_storage_task,
    generate_thumbnails_task,
    optimize_all_videos_task,
)
from history_talks.logging import get_logger
from history_talks.services.storage_stats import get_storage_stats
from history_talks.worker import celery_app

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger(__name__)


def _enqueue(task: Task, event: str) -> AsyncResult:
    """Send a task to the broker; an unreachable broker becomes a 503."""
    try:
        result = task.delay()
    except OperationalError as e:
        logger.error("task_enqueue_failed", task=task.name, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Task queue unavailable: {e}",
        )
    logger.info(event, task_id=result.id)
    return result


@router.post(
    "/optimize-videos",
    response_model=TaskAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Optimize all videos",
    description="Re-encode every unoptimized video in the content root in the background.",
)
def optimize_videos() -> TaskAcceptedResponse:
    task = _enqueue(optimize_all_videos_task, "optimize_all_triggered")
    return TaskAcceptedResponse(
        message="Video optimization started in the background",
        task_id=task.id,
    )


@router.post(
    "/cleanup-storage",
    response_model=TaskAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Clean up and reorganize storage",
    description="Delete unreferenced media files, then sort loose files into folders.",
)
def cleanup_storage() -> TaskAcceptedResponse:
    task = _enqueue(cleanup_storage_task, "cleanup_storage_triggered")
    return TaskAcceptedResponse(
        message="Storage maintenance started in the background",
        task_id=task.id,
    )


@router.post(
    "/generate-thumbnails",
    response_model=TaskAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate video thumbnails",
)
def generate_thumbnails() -> TaskAcceptedResponse:
    task = _enqueue(generate_thumbnails_task, "generate_thumbnails_triggered")
    return TaskAcceptedResponse(
        message="Thumbnail generation started in the background",
        task_id=task.id,
    )


@router.get(
    "/storage-stats",
    summary="Storage statistics",
    description="Byte counts for the content root, per file extension and per directory.",
)
def storage_stats() -> dict[str, Any]:
    return get_storage_stats(settings.upload_dir, settings.data_dir)


@router.get(
    "/tasks/{task_id}",
    response_model=TaskStatusResponse,
    summary="Background task status",
)
def get_task_status(task_id: str) -> TaskStatusResponse:
    result = AsyncResult(task_id, app=celery_app)

    if result.state == "SUCCESS":
        payload = result.result if isinstance(result.result, dict) else None
        failed = payload is not None and payload.get("success") is False
        return TaskStatusResponse(
            task_id=task_id,
            status=(TaskState.FAILED if failed else TaskState.COMPLETED).value,
            result=payload,
            error=payload.get("error") if failed and payload else None,
        )
    elif result.state == "FAILURE":
        return TaskStatusResponse(
            task_id=task_id,
            status=TaskState.FAILED.value,
            error=str(result.result),
        )
    elif result.state in ("STARTED", "RETRY"):
        return TaskStatusResponse(task_id=task_id, status=TaskState.PROCESSING.value)
    else:
        return TaskStatusResponse(task_id=task_id, status=TaskState.QUEUED.value)
