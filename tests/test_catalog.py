"""Tests for the persona catalog."""

from pathlib import Path
from typing import Any

import pytest

from history_talks.catalog_seed import SEED_PERSONAS
from history_talks.errors import PersonaNotFoundError
from history_talks.services.catalog import PersonaCatalog
from history_talks.services.storage import MediaStorage
from history_talks.services.url_map import VideoUrlMap


class TestPersonaCrud:
    """Create, read, update and delete personas."""

    def test_create_assigns_id(self, catalog: PersonaCatalog, persona_data: dict[str, Any]) -> None:
        persona = catalog.create_persona(persona_data)

        assert persona.id is not None
        assert catalog.get_persona(persona.id).name == "Hypatia"
        assert persona.is_large_asset is False

    def test_create_with_video_records_map(
        self, catalog: PersonaCatalog, url_map: VideoUrlMap, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona({**persona_data, "video_url": "/uploads/h.mp4"})

        assert url_map.get(persona.id) == "/uploads/h.mp4"

    def test_require_missing_persona_raises(self, catalog: PersonaCatalog) -> None:
        with pytest.raises(PersonaNotFoundError):
            catalog.require_persona(999)

    def test_update_ignores_unknown_fields(
        self, catalog: PersonaCatalog, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona(persona_data)
        updated = catalog.update_persona(persona.id, {"title": "Philosopher", "id": 42})

        assert updated.id == persona.id
        assert updated.title == "Philosopher"

    def test_update_video_url_syncs_map(
        self, catalog: PersonaCatalog, url_map: VideoUrlMap, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona(persona_data)
        catalog.set_video(persona.id, "/uploads/big.mp4", 5000)
        updated = catalog.update_persona(persona.id, {"video_url": "/uploads/other.mp4"})

        assert url_map.get(persona.id) == "/uploads/other.mp4"
        assert updated.video_size_bytes is None
        assert updated.is_large_asset is False

    def test_delete_removes_map_entry(
        self, catalog: PersonaCatalog, url_map: VideoUrlMap, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona({**persona_data, "video_url": "/uploads/h.mp4"})

        assert catalog.delete_persona(persona.id) is True
        assert catalog.get_persona(persona.id) is None
        assert url_map.get(persona.id) is None
        assert catalog.delete_persona(persona.id) is False


class TestVideoPointer:
    """Video URL changes and the measured large-asset flag."""

    def test_set_video_flags_large_assets(
        self, catalog: PersonaCatalog, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona(persona_data)

        assert catalog.set_video(persona.id, "/uploads/small.mp4", 999).is_large_asset is False
        assert catalog.set_video(persona.id, "/uploads/large.mp4", 1000).is_large_asset is True

    def test_set_video_updates_map(
        self, catalog: PersonaCatalog, url_map: VideoUrlMap, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona(persona_data)
        catalog.set_video(persona.id, "/uploads/a.mp4", 10)

        assert url_map.get(persona.id) == "/uploads/a.mp4"

    def test_repoint_only_from_expected_url(
        self, catalog: PersonaCatalog, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona(persona_data)
        catalog.set_video(persona.id, "/uploads/new-upload.mp4", 10)

        moved = catalog.repoint_video(
            persona.id, "/uploads/old-upload.mp4", "/uploads/optimized/optimized-old.mp4", 5
        )

        assert moved is False
        assert catalog.get_persona(persona.id).video_url == "/uploads/new-upload.mp4"

    def test_repoint(self, catalog: PersonaCatalog, persona_data: dict[str, Any]) -> None:
        persona = catalog.create_persona(persona_data)
        catalog.set_video(persona.id, "/uploads/a.mp4", 5000)

        assert catalog.repoint_video(persona.id, "/uploads/a.mp4", "/uploads/optimized/o.mp4", 10)
        refreshed = catalog.get_persona(persona.id)
        assert refreshed.video_url == "/uploads/optimized/o.mp4"
        assert refreshed.video_size_bytes == 10
        assert refreshed.is_large_asset is False

    def test_media_urls(self, catalog: PersonaCatalog, persona_data: dict[str, Any]) -> None:
        catalog.create_persona(
            {**persona_data, "video_url": "/uploads/a.mp4", "voice_file": "/uploads/voices/a.mp3"}
        )
        catalog.create_persona({**persona_data, "avatar_url": "/uploads/images/b.png"})

        assert catalog.media_urls() == {
            "/uploads/a.mp4",
            "/uploads/voices/a.mp3",
            "/uploads/images/b.png",
        }


class TestMessages:
    def test_messages_in_creation_order(
        self, catalog: PersonaCatalog, persona_data: dict[str, Any]
    ) -> None:
        persona = catalog.create_persona(persona_data)
        first = catalog.create_message(persona.id, "Hello?", "Greetings.")
        second = catalog.create_message(persona.id, "Why?", "Because.", "/uploads/audio/x.mp3")

        messages = catalog.list_messages(persona.id)
        assert [m.id for m in messages] == [first.id, second.id]
        assert messages[0].audio_url is None
        assert messages[1].audio_url == "/uploads/audio/x.mp3"

    def test_message_for_unknown_persona(self, catalog: PersonaCatalog) -> None:
        with pytest.raises(PersonaNotFoundError):
            catalog.create_message(404, "Anyone there?", "No.")


class TestStartup:
    """Seeding and reconciling the video URL map after a restart."""

    def test_seed_only_when_empty(self, catalog: PersonaCatalog) -> None:
        assert catalog.seed_if_empty() == len(SEED_PERSONAS)
        assert catalog.seed_if_empty() == 0
        assert len(catalog.list_personas()) == len(SEED_PERSONAS)

    def test_seed_personas_have_prompts(self) -> None:
        names = [p["name"] for p in SEED_PERSONAS]

        assert len(names) == len(set(names))
        for persona in SEED_PERSONAS:
            assert persona["prompt"].startswith(f"You are {persona['name']},")
            assert persona["bg_color"].startswith("#")

    def test_reconcile_restores_missing_video(
        self,
        catalog: PersonaCatalog,
        url_map: VideoUrlMap,
        storage: MediaStorage,
        media_root: Path,
        persona_data: dict[str, Any],
    ) -> None:
        persona = catalog.create_persona(persona_data)
        (media_root / "kept.mp4").write_bytes(b"v" * 2000)
        url_map.set_url(persona.id, "/uploads/kept.mp4")

        result = catalog.reconcile_video_urls(storage)

        refreshed = catalog.get_persona(persona.id)
        assert result == {"restored": 1, "recorded": 0}
        assert refreshed.video_url == "/uploads/kept.mp4"
        assert refreshed.video_size_bytes == 2000
        assert refreshed.is_large_asset is True

    def test_reconcile_records_catalog_video(
        self,
        catalog: PersonaCatalog,
        url_map: VideoUrlMap,
        storage: MediaStorage,
        media_root: Path,
        persona_data: dict[str, Any],
    ) -> None:
        (media_root / "current.mp4").write_bytes(b"v")
        persona = catalog.create_persona({**persona_data, "video_url": "/uploads/current.mp4"})
        url_map.remove(persona.id)

        result = catalog.reconcile_video_urls(storage)

        assert result == {"restored": 0, "recorded": 1}
        assert url_map.get(persona.id) == "/uploads/current.mp4"

    def test_reconcile_is_idempotent(
        self,
        catalog: PersonaCatalog,
        storage: MediaStorage,
        media_root: Path,
        persona_data: dict[str, Any],
    ) -> None:
        (media_root / "current.mp4").write_bytes(b"v")
        catalog.create_persona({**persona_data, "video_url": "/uploads/current.mp4"})

        assert catalog.reconcile_video_urls(storage) == {"restored": 0, "recorded": 0}
