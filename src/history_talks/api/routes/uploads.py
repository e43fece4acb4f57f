"""Media upload endpoints."""

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, UploadFile, status
from kombu.exceptions import OperationalError

from history_talks.api.deps import CatalogDep, StorageDep
from history_talks.api.schemas import PersonaResponse
from history_talks.config import settings
from history_talks.domain.enums import MediaKind
from history_talks.errors import InvalidMediaTypeError
from history_talks.logging import get_logger
from history_talks.services.catalog import PersonaCatalog
from history_talks.services.storage import VOICES_DIR, MediaStorage, StoredMedia

router = APIRouter(prefix="/subs", tags=["Uploads"])
logger = get_logger(__name__)


def _require_media_type(upload: UploadFile, category: str) -> None:
    content_type = upload.content_type or ""
    if not content_type.startswith(f"{category}/"):
        raise InvalidMediaTypeError(category, upload.content_type)


def _store_upload(
    persona_id: int,
    upload: UploadFile | None,
    kind: MediaKind,
    category: str,
    catalog: PersonaCatalog,
    storage: MediaStorage,
    subdir: str | None = None,
) -> StoredMedia:
    """Validate and write an upload; nothing touches disk until validation passes."""
    if catalog.get_persona(persona_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sub not found")
    if upload is None or not upload.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No {kind.value} file uploaded",
        )
    try:
        _require_media_type(upload, category)
    except InvalidMediaTypeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        return storage.save_stream(
            upload.file,
            upload.filename,
            subdir=subdir,
            mime_type=upload.content_type,
        )
    except OSError as e:
        logger.error("upload_write_failed", persona_id=persona_id, kind=kind.value, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Upload processing error: {e}",
        )


def enqueue_optimization(persona_id: int, video_url: str) -> None:
    """Queue the optimizer for a fresh upload; a queue outage is only logged."""
    from history_talks.jobs.media_tasks import optimize_video_task

    try:
        task = optimize_video_task.delay(persona_id, video_url)
    except OperationalError as e:
        logger.error(
            "optimize_video_enqueue_failed",
            persona_id=persona_id,
            video_url=video_url,
            error=str(e),
        )
        return
    logger.info("optimize_video_enqueued", persona_id=persona_id, task_id=task.id)


@router.post(
    "/{persona_id}/upload",
    response_model=PersonaResponse,
    summary="Upload a persona video",
    description=(
        "Stores the video without a size limit and points the persona at it. "
        "An optimized copy is produced in the background and replaces the URL "
        "once it is ready."
    ),
)
def upload_video(
    persona_id: int,
    catalog: CatalogDep,
    storage: StorageDep,
    background_tasks: BackgroundTasks,
    video: UploadFile | None = File(None),
) -> PersonaResponse:
    stored = _store_upload(persona_id, video, MediaKind.VIDEO, "video", catalog, storage)
    persona = catalog.set_video(persona_id, stored.url, stored.file_size_bytes)
    logger.info(
        "video_upload_completed",
        persona_id=persona_id,
        video_url=stored.url,
        file_size=stored.file_size_bytes,
    )

    response = PersonaResponse.model_validate(persona)
    if settings.optimize_on_upload:
        # Runs after the response is sent
        background_tasks.add_task(enqueue_optimization, persona_id, stored.url)
    return response


@router.post(
    "/{persona_id}/upload-voice",
    response_model=PersonaResponse,
    summary="Upload a persona voice clip",
)
def upload_voice(
    persona_id: int,
    catalog: CatalogDep,
    storage: StorageDep,
    voice: UploadFile | None = File(None),
) -> PersonaResponse:
    stored = _store_upload(
        persona_id, voice, MediaKind.VOICE, "audio", catalog, storage, subdir=VOICES_DIR
    )
    persona = catalog.set_voice_file(persona_id, stored.url)
    logger.info(
        "voice_upload_completed",
        persona_id=persona_id,
        voice_file=stored.url,
        file_size=stored.file_size_bytes,
    )
    return PersonaResponse.model_validate(persona)
