"""Persona id -> video URL map mirrored to a flat JSON file.

The map is the ground truth for "which media files are in use": the cleanup
job never deletes a file named here. Every mutation reads the current file,
applies one change and rewrites the whole document before returning, so the
mapping survives a restart even if the catalog database is rebuilt.
"""

import json
import os
import tempfile
from pathlib import Path, PurePosixPath

from history_talks.logging import get_logger

logger = get_logger(__name__)


class VideoUrlMap:
    """Flat `{ "<persona id>": "<video url>" }` document on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, str]:
        """Read the map; a missing or unreadable file is an empty map."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("video_url_map_read_failed", path=str(self.path), error=str(e))
            return {}

        if isinstance(data, list):
            # Older files stored only the list of URLs
            logger.warning("video_url_map_legacy_format", path=str(self.path))
            return {}
        if not isinstance(data, dict):
            logger.error("video_url_map_invalid", path=str(self.path), type=type(data).__name__)
            return {}
        return {str(k): str(v) for k, v in data.items() if v}

    def save(self, mapping: dict[str, str]) -> None:
        """Rewrite the whole document atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(mapping, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, persona_id: int) -> str | None:
        return self.load().get(str(persona_id))

    def set_url(self, persona_id: int, url: str | None) -> None:
        """Record (or clear, when url is falsy) the video URL of a persona."""
        mapping = self.load()
        key = str(persona_id)
        if url:
            if mapping.get(key) == url:
                return
            mapping[key] = url
        elif key in mapping:
            del mapping[key]
        else:
            return
        self.save(mapping)
        logger.info("video_url_map_updated", persona_id=persona_id, video_url=url)

    def remove(self, persona_id: int) -> None:
        self.set_url(persona_id, None)

    def referenced_filenames(self) -> set[str]:
        """Bare filenames of every URL in the map."""
        return {PurePosixPath(url).name for url in self.load().values()}
