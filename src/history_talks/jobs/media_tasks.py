"""Celery tasks for media processing and storage maintenance.

Every task body is safe to run more than once: optimization overwrites its
own output, repointing only happens while the persona still points at the
source, and maintenance converges to a state where a rerun changes nothing.
"""

from datetime import datetime
from typing import Any

from history_talks.db.session import get_session_context
from history_talks.logging import get_logger
from history_talks.services.catalog import PersonaCatalog, get_video_url_map
from history_talks.services.maintenance import StorageMaintenance
from history_talks.services.optimizer import OptimizationResult, VideoOptimizer
from history_talks.services.storage import MediaStorage
from history_talks.services.thumbnails import ThumbnailGenerator
from history_talks.worker import celery_app

logger = get_logger(__name__)


def _result_dict(result: OptimizationResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "input_path": str(result.input_path),
        "url": result.url,
        "original_size_bytes": result.original_size_bytes,
        "optimized_size_bytes": result.optimized_size_bytes,
        "savings_percent": result.savings_percent,
        "original_deleted": result.original_deleted,
        "error": result.error_message,
    }


@celery_app.task(bind=True, name="media.optimize_video")
def optimize_video_task(self: Any, persona_id: int, source_url: str) -> dict[str, Any]:
    """Optimize a freshly uploaded video and repoint its persona.

    Args:
        persona_id: Persona that received the upload
        source_url: URL the upload was stored under

    Returns:
        Result dict; on failure the persona keeps serving source_url
    """
    task_id = self.request.id
    logger.info(
        "optimize_video_started",
        task_id=task_id,
        persona_id=persona_id,
        source_url=source_url,
    )

    storage = MediaStorage()
    source_path = storage.path_for(source_url)
    if source_path is None or not source_path.is_file():
        logger.error("optimize_video_source_missing", task_id=task_id, source_url=source_url)
        return {"success": False, "task_id": task_id, "error": "Source video not found"}

    result = VideoOptimizer(storage).optimize(source_path)
    if not result.success or result.url is None:
        return {"task_id": task_id, "persona_id": persona_id, **_result_dict(result)}

    with get_session_context() as session:
        catalog = PersonaCatalog(session)
        repointed = catalog.repoint_video(
            persona_id,
            expected_url=source_url,
            new_url=result.url,
            size_bytes=result.optimized_size_bytes,
        )

    logger.info(
        "optimize_video_completed",
        task_id=task_id,
        persona_id=persona_id,
        video_url=result.url,
        repointed=repointed,
    )
    return {
        "task_id": task_id,
        "persona_id": persona_id,
        "repointed": repointed,
        **_result_dict(result),
    }


@celery_app.task(bind=True, name="media.optimize_all_videos")
def optimize_all_videos_task(self: Any) -> dict[str, Any]:
    """Optimize every unoptimized video in the content root.

    Personas pointing at a video that was optimized are repointed to the
    optimized copy.
    """
    task_id = self.request.id
    logger.info("optimize_all_started", task_id=task_id)

    storage = MediaStorage()
    results = VideoOptimizer(storage).batch_optimize()

    repointed = 0
    with get_session_context() as session:
        catalog = PersonaCatalog(session)
        for result in results:
            if not result.success or result.url is None:
                continue
            source_url = storage.url_for(result.input_path)
            for persona in catalog.personas_with_video(source_url):
                if catalog.repoint_video(
                    persona.id, source_url, result.url, result.optimized_size_bytes
                ):
                    repointed += 1

    succeeded = sum(1 for r in results if r.success)
    summary = {
        "success": True,
        "task_id": task_id,
        "total": len(results),
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
        "repointed": repointed,
        "completed_at": datetime.now().isoformat(),
    }
    logger.info("optimize_all_completed", **summary)
    return summary


@celery_app.task(bind=True, name="maintenance.cleanup_storage")
def cleanup_storage_task(self: Any) -> dict[str, Any]:
    """Delete unreferenced media, then sort loose files into category folders."""
    task_id = self.request.id
    logger.info("cleanup_storage_started", task_id=task_id)

    with get_session_context() as session:
        protected = PersonaCatalog(session).media_urls()

    maintenance = StorageMaintenance(MediaStorage(), get_video_url_map())
    try:
        stats = maintenance.perform_full_maintenance(protected)
    except OSError as e:
        logger.error("cleanup_storage_failed", task_id=task_id, error=str(e))
        return {"success": False, "task_id": task_id, "error": str(e)}

    return {"success": True, "task_id": task_id, **stats}


@celery_app.task(bind=True, name="media.generate_thumbnails")
def generate_thumbnails_task(self: Any) -> dict[str, Any]:
    """Extract a poster frame for every video in the content root."""
    task_id = self.request.id
    logger.info("generate_thumbnails_started", task_id=task_id)
    counts = ThumbnailGenerator().batch_generate()
    return {"success": True, "task_id": task_id, **counts}
