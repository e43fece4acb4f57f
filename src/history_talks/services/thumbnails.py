"""Poster-frame thumbnails for persona videos."""

import subprocess
from pathlib import Path

from history_talks.config import settings
from history_talks.logging import get_logger
from history_talks.services.storage import THUMBNAILS_DIR, VIDEO_EXTENSIONS, MediaStorage

logger = get_logger(__name__)


class ThumbnailGenerator:
    """Extracts one JPEG frame per video with FFmpeg."""

    def __init__(self, storage: MediaStorage | None = None, ffmpeg_path: str | None = None) -> None:
        self.storage = storage or MediaStorage()
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path or "ffmpeg"
        self.output_dir = self.storage.root / THUMBNAILS_DIR

    def thumbnail_path_for(self, video_path: Path) -> Path:
        return self.output_dir / f"{video_path.stem}.jpg"

    def generate(
        self,
        video_path: Path,
        timestamp: str | None = None,
        size: str | None = None,
        quality: int | None = None,
    ) -> Path:
        """Write the thumbnail for one video and return its path.

        Raises:
            FileNotFoundError: If the video does not exist.
            RuntimeError: If FFmpeg fails.
        """
        if not video_path.is_file():
            raise FileNotFoundError(f"Video file not found: {video_path}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        thumbnail_path = self.thumbnail_path_for(video_path)
        cmd = [
            self.ffmpeg_path,
            "-i",
            str(video_path),
            "-ss",
            timestamp or settings.thumbnail_timestamp,
            "-vframes",
            "1",
            "-vf",
            f"scale={size or settings.thumbnail_size}",
            "-q:v",
            str(quality or settings.thumbnail_quality),
            "-y",
            str(thumbnail_path),
        ]
        try:
            subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise RuntimeError(f"FFmpeg not found: {e}") from e
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"Failed to generate thumbnail: {e.stderr}") from e

        logger.info("thumbnail_generated", video=str(video_path), thumbnail=str(thumbnail_path))
        return thumbnail_path

    def batch_generate(self) -> dict[str, int]:
        """Thumbnail every video in the content root, one at a time."""
        root = self.storage.root
        videos = (
            sorted(p for p in root.iterdir() if p.is_file() and p.suffix.lower() in VIDEO_EXTENSIONS)
            if root.is_dir()
            else []
        )
        succeeded = failed = 0
        for video in videos:
            try:
                self.generate(video)
                succeeded += 1
            except (FileNotFoundError, RuntimeError) as e:
                failed += 1
                logger.error("thumbnail_failed", video=str(video), error=str(e))

        logger.info("thumbnail_batch_completed", succeeded=succeeded, failed=failed)
        return {"videos": len(videos), "succeeded": succeeded, "failed": failed}

    def url_for_video(self, video_url: str | None) -> str | None:
        """Thumbnail URL for a video URL, or None when none was generated."""
        if not video_url:
            return None
        stem = Path(video_url).stem
        path = self.output_dir / f"{stem}.jpg"
        return self.storage.url_for(path) if path.is_file() else None
