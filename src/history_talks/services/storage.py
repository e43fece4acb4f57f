"""Media storage under the content root."""

import random
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from history_talks.config import settings
from history_talks.domain.enums import MediaCategory
from history_talks.logging import get_logger

logger = get_logger(__name__)

URL_PREFIX = "/uploads"
OPTIMIZED_DIR = "optimized"
VOICES_DIR = "voices"
AUDIO_DIR = "audio"
THUMBNAILS_DIR = "thumbnails"

VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov", ".avi"}
AUDIO_EXTENSIONS = {".mp3", ".wav", ".ogg", ".m4a"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")
_COPY_CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredMedia:
    """A file written under the content root."""

    file_path: Path
    url: str
    file_size_bytes: int
    mime_type: str | None


def classify_extension(filename: str) -> MediaCategory:
    """Category subdirectory for a filename, by extension."""
    ext = Path(filename).suffix.lower()
    if ext in VIDEO_EXTENSIONS:
        return MediaCategory.VIDEOS
    if ext in AUDIO_EXTENSIONS:
        return MediaCategory.AUDIO
    if ext in IMAGE_EXTENSIONS:
        return MediaCategory.IMAGES
    return MediaCategory.TEMP


def sanitize_filename(filename: str | None) -> str:
    """Strip directories and unsafe characters from a client-supplied name."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip(" .")
    return name or "upload"


def generate_filename(original_name: str | None) -> str:
    """`<epoch ms>-<random 9 digits>-<sanitized name>`."""
    suffix = random.randint(0, 999_999_999)
    return f"{int(time.time() * 1000)}-{suffix}-{sanitize_filename(original_name)}"


class MediaStorage:
    """Maps between content-root files and their public URLs."""

    def __init__(self, root: Path | None = None, create_dirs: bool = True) -> None:
        self.root = root or settings.upload_dir
        if create_dirs:
            self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        for dir_path in (
            self.root,
            self.root / OPTIMIZED_DIR,
            self.root / VOICES_DIR,
            self.root / AUDIO_DIR,
            self.root / THUMBNAILS_DIR,
        ):
            dir_path.mkdir(parents=True, exist_ok=True)

    def url_for(self, path: Path) -> str:
        """Public URL of a file under the content root."""
        relative = path.resolve().relative_to(self.root.resolve())
        return f"{URL_PREFIX}/{relative.as_posix()}"

    def path_for(self, url: str) -> Path | None:
        """Local path of a /uploads URL, or None for foreign or escaping URLs."""
        prefix = URL_PREFIX + "/"
        if not url or not url.startswith(prefix):
            return None
        candidate = (self.root / url[len(prefix) :]).resolve()
        try:
            candidate.relative_to(self.root.resolve())
        except ValueError:
            return None
        return candidate

    def exists(self, url: str | None) -> bool:
        path = self.path_for(url) if url else None
        return path is not None and path.is_file()

    def save_stream(
        self,
        stream: BinaryIO,
        original_name: str | None,
        subdir: str | None = None,
        mime_type: str | None = None,
    ) -> StoredMedia:
        """Copy an upload stream to a fresh file; no size ceiling is applied.

        A partially written file is left behind on failure; it is unreferenced,
        so the next cleanup run reclaims it.
        """
        target_dir = self.root / subdir if subdir else self.root
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path = target_dir / generate_filename(original_name)

        with file_path.open("wb") as out:
            shutil.copyfileobj(stream, out, _COPY_CHUNK_SIZE)

        size = file_path.stat().st_size
        logger.info(
            "media_stored",
            file_path=str(file_path),
            file_size=size,
            mime_type=mime_type,
        )
        return StoredMedia(
            file_path=file_path,
            url=self.url_for(file_path),
            file_size_bytes=size,
            mime_type=mime_type,
        )
