"""Persona catalog and message log."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from history_talks.catalog_seed import SEED_PERSONAS
from history_talks.config import settings
from history_talks.db.models import MessageModel, PersonaModel
from history_talks.errors import PersonaNotFoundError
from history_talks.logging import get_logger
from history_talks.services.storage import MediaStorage
from history_talks.services.url_map import VideoUrlMap

logger = get_logger(__name__)

PERSONA_FIELDS = {
    "name",
    "title",
    "bio",
    "prompt",
    "bg_color",
    "video_url",
    "avatar_url",
    "voice_file",
}


def get_video_url_map() -> VideoUrlMap:
    """The persistence record at its configured location."""
    return VideoUrlMap(settings.video_url_map_path)


class PersonaCatalog:
    """CRUD over personas and their messages.

    Every change to a persona's video URL is mirrored to the video URL map
    after the database commit and before the call returns.
    """

    def __init__(
        self,
        session: Session,
        url_map: VideoUrlMap | None = None,
        large_asset_threshold: int | None = None,
    ) -> None:
        self.session = session
        self.url_map = url_map or get_video_url_map()
        self.large_asset_threshold = (
            large_asset_threshold
            if large_asset_threshold is not None
            else settings.large_asset_threshold_bytes
        )

    # -------------------------------------------------------------------------
    # Personas
    # -------------------------------------------------------------------------

    def list_personas(self) -> list[PersonaModel]:
        return list(self.session.scalars(select(PersonaModel).order_by(PersonaModel.id)))

    def get_persona(self, persona_id: int) -> PersonaModel | None:
        return self.session.get(PersonaModel, persona_id)

    def require_persona(self, persona_id: int) -> PersonaModel:
        persona = self.get_persona(persona_id)
        if persona is None:
            raise PersonaNotFoundError(persona_id)
        return persona

    def create_persona(self, data: dict[str, Any]) -> PersonaModel:
        persona = PersonaModel(**{k: v for k, v in data.items() if k in PERSONA_FIELDS})
        self.session.add(persona)
        self.session.commit()
        self.session.refresh(persona)
        if persona.video_url:
            self.url_map.set_url(persona.id, persona.video_url)
        logger.info("persona_created", persona_id=persona.id, name=persona.name)
        return persona

    def update_persona(self, persona_id: int, changes: dict[str, Any]) -> PersonaModel:
        """Apply a partial update; unknown keys are ignored."""
        persona = self.require_persona(persona_id)
        video_changed = "video_url" in changes and changes["video_url"] != persona.video_url
        for key, value in changes.items():
            if key in PERSONA_FIELDS:
                setattr(persona, key, value)
        if video_changed:
            # Size of a URL set by hand is unknown until the next upload
            persona.video_size_bytes = None
            persona.is_large_asset = False
        self.session.commit()
        if video_changed:
            self.url_map.set_url(persona.id, persona.video_url)
        return persona

    def delete_persona(self, persona_id: int) -> bool:
        """Delete a persona; its media files are orphaned, not removed."""
        persona = self.get_persona(persona_id)
        if persona is None:
            return False
        self.session.delete(persona)
        self.session.commit()
        self.url_map.remove(persona_id)
        logger.info("persona_deleted", persona_id=persona_id)
        return True

    def set_video(self, persona_id: int, video_url: str, size_bytes: int | None) -> PersonaModel:
        """Point a persona at a stored video and record its measured size."""
        persona = self.require_persona(persona_id)
        persona.video_url = video_url
        persona.video_size_bytes = size_bytes
        persona.is_large_asset = size_bytes is not None and size_bytes >= self.large_asset_threshold
        self.session.commit()
        self.url_map.set_url(persona.id, video_url)
        logger.info(
            "persona_video_updated",
            persona_id=persona_id,
            video_url=video_url,
            size_bytes=size_bytes,
            is_large_asset=persona.is_large_asset,
        )
        return persona

    def repoint_video(
        self,
        persona_id: int,
        expected_url: str,
        new_url: str,
        size_bytes: int | None,
    ) -> bool:
        """Swap a persona's video only if it still points at expected_url.

        A newer upload that landed while the optimizer ran wins.
        """
        persona = self.get_persona(persona_id)
        if persona is None or persona.video_url != expected_url:
            logger.info(
                "persona_video_repoint_skipped",
                persona_id=persona_id,
                expected_url=expected_url,
                current_url=persona.video_url if persona else None,
            )
            return False
        self.set_video(persona_id, new_url, size_bytes)
        return True

    def set_voice_file(self, persona_id: int, voice_url: str) -> PersonaModel:
        persona = self.require_persona(persona_id)
        persona.voice_file = voice_url
        self.session.commit()
        logger.info("persona_voice_updated", persona_id=persona_id, voice_file=voice_url)
        return persona

    def personas_with_video(self, video_url: str) -> list[PersonaModel]:
        return list(
            self.session.scalars(select(PersonaModel).where(PersonaModel.video_url == video_url))
        )

    def media_urls(self) -> set[str]:
        """Every media URL any persona currently references."""
        urls: set[str] = set()
        for persona in self.list_personas():
            urls.update(u for u in (persona.video_url, persona.avatar_url, persona.voice_file) if u)
        return urls

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def list_messages(self, persona_id: int) -> list[MessageModel]:
        return list(
            self.session.scalars(
                select(MessageModel)
                .where(MessageModel.sub_id == persona_id)
                .order_by(MessageModel.created_at, MessageModel.id)
            )
        )

    def create_message(
        self,
        persona_id: int,
        user_message: str,
        ai_response: str,
        audio_url: str | None = None,
    ) -> MessageModel:
        self.require_persona(persona_id)
        message = MessageModel(
            sub_id=persona_id,
            user_message=user_message,
            ai_response=ai_response,
            audio_url=audio_url or None,
        )
        self.session.add(message)
        self.session.commit()
        self.session.refresh(message)
        return message

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    def seed_if_empty(self, seed: Iterable[dict[str, Any]] = SEED_PERSONAS) -> int:
        """Load seed personas into an empty catalog; returns how many were added."""
        count = self.session.scalar(select(func.count()).select_from(PersonaModel)) or 0
        if count:
            return 0
        added = 0
        for data in seed:
            self.session.add(
                PersonaModel(**{k: v for k, v in data.items() if k in PERSONA_FIELDS})
            )
            added += 1
        self.session.commit()
        logger.info("catalog_seeded", personas=added)
        return added

    def reconcile_video_urls(self, storage: MediaStorage) -> dict[str, int]:
        """Bring catalog and video URL map back in line after a restart.

        A persona whose video is missing on disk gets the map's URL back; a
        persona whose existing video differs from the map updates the map.
        """
        mapping = self.url_map.load()
        restored = 0
        recorded = 0

        for persona in self.list_personas():
            key = str(persona.id)
            mapped = mapping.get(key)

            if mapped and mapped != persona.video_url and not storage.exists(persona.video_url):
                path = storage.path_for(mapped)
                size = path.stat().st_size if path is not None and path.is_file() else None
                logger.info(
                    "persona_video_restored",
                    persona_id=persona.id,
                    missing_url=persona.video_url,
                    video_url=mapped,
                )
                self.set_video(persona.id, mapped, size)
                restored += 1
            elif persona.video_url and mapped != persona.video_url:
                if not storage.exists(persona.video_url):
                    logger.warning(
                        "persona_video_missing",
                        persona_id=persona.id,
                        video_url=persona.video_url,
                    )
                self.url_map.set_url(persona.id, persona.video_url)
                recorded += 1

        logger.info("video_urls_reconciled", restored=restored, recorded=recorded)
        return {"restored": restored, "recorded": recorded}
