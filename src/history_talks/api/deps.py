"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from history_talks.db.session import get_session
from history_talks.services.catalog import PersonaCatalog
from history_talks.services.chat import ChatService
from history_talks.services.storage import MediaStorage

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]


def get_media_storage() -> MediaStorage:
    """Media storage rooted at the configured upload directory."""
    return MediaStorage()


StorageDep = Annotated[MediaStorage, Depends(get_media_storage)]


def get_catalog(session: SessionDep) -> PersonaCatalog:
    return PersonaCatalog(session)


CatalogDep = Annotated[PersonaCatalog, Depends(get_catalog)]


def get_chat_service(catalog: CatalogDep, storage: StorageDep) -> ChatService:
    return ChatService(catalog, storage=storage)


ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
