"""Persona catalog endpoints."""

from fastapi import APIRouter, HTTPException, status

from history_talks.api.deps import CatalogDep, StorageDep
from history_talks.api.schemas import (
    MessageOnlyResponse,
    MessageResponse,
    PersonaCreate,
    PersonaResponse,
    PersonaUpdate,
    ThumbnailResponse,
)
from history_talks.logging import get_logger
from history_talks.services.thumbnails import ThumbnailGenerator

router = APIRouter(prefix="/subs", tags=["Personas"])
logger = get_logger(__name__)

PERSONA_NOT_FOUND = "Sub not found"


@router.get("", response_model=list[PersonaResponse], summary="List personas")
def list_personas(catalog: CatalogDep) -> list[PersonaResponse]:
    return [PersonaResponse.model_validate(p) for p in catalog.list_personas()]


@router.get("/{persona_id}", response_model=PersonaResponse, summary="Get persona")
def get_persona(persona_id: int, catalog: CatalogDep) -> PersonaResponse:
    persona = catalog.get_persona(persona_id)
    if persona is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PERSONA_NOT_FOUND)
    return PersonaResponse.model_validate(persona)


@router.post(
    "",
    response_model=PersonaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create persona",
)
def create_persona(request: PersonaCreate, catalog: CatalogDep) -> PersonaResponse:
    persona = catalog.create_persona(request.model_dump())
    return PersonaResponse.model_validate(persona)


@router.patch("/{persona_id}", response_model=PersonaResponse, summary="Update persona")
def update_persona(
    persona_id: int,
    request: PersonaUpdate,
    catalog: CatalogDep,
) -> PersonaResponse:
    if catalog.get_persona(persona_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PERSONA_NOT_FOUND)
    persona = catalog.update_persona(persona_id, request.model_dump(exclude_unset=True))
    return PersonaResponse.model_validate(persona)


@router.delete("/{persona_id}", response_model=MessageOnlyResponse, summary="Delete persona")
def delete_persona(persona_id: int, catalog: CatalogDep) -> MessageOnlyResponse:
    """Delete a persona. Its media files stay on disk until the next cleanup."""
    if not catalog.delete_persona(persona_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PERSONA_NOT_FOUND)
    return MessageOnlyResponse(message="Sub deleted successfully")


@router.get(
    "/{persona_id}/messages",
    response_model=list[MessageResponse],
    summary="Conversation history",
)
def list_messages(persona_id: int, catalog: CatalogDep) -> list[MessageResponse]:
    return [MessageResponse.model_validate(m) for m in catalog.list_messages(persona_id)]


@router.get(
    "/{persona_id}/thumbnail",
    response_model=ThumbnailResponse,
    summary="Poster frame of the persona's video",
)
def get_thumbnail(persona_id: int, catalog: CatalogDep, storage: StorageDep) -> ThumbnailResponse:
    persona = catalog.get_persona(persona_id)
    if persona is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PERSONA_NOT_FOUND)
    thumbnail_url = ThumbnailGenerator(storage).url_for_video(persona.video_url)
    if thumbnail_url is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thumbnail not found")
    return ThumbnailResponse(thumbnail_url=thumbnail_url)
