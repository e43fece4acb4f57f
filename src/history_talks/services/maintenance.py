"""Storage maintenance: orphan cleanup and content-root reorganization."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from history_talks.domain.enums import MediaCategory
from history_talks.logging import get_logger
from history_talks.services.storage import (
    AUDIO_EXTENSIONS,
    OPTIMIZED_DIR,
    VIDEO_EXTENSIONS,
    MediaStorage,
    classify_extension,
)
from history_talks.services.url_map import VideoUrlMap
from history_talks.utils.formatting import format_bytes

logger = get_logger(__name__)

MEDIA_EXTENSIONS = VIDEO_EXTENSIONS | AUDIO_EXTENSIONS

# Directories scanned for orphans, relative to the content root ("" is the root itself)
CLEANUP_SCAN_DIRS = ("", OPTIMIZED_DIR, MediaCategory.VIDEOS.value)


@dataclass
class CleanupStats:
    """Totals reported by a cleanup run."""

    total_files: int
    used_files: int
    deleted_files: int
    saved_space: int  # bytes

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "usedFiles": self.used_files,
            "deletedFiles": self.deleted_files,
            "savedSpace": self.saved_space,
            "savedSpaceHuman": format_bytes(self.saved_space),
        }


@dataclass
class ReorganizeStats:
    """Totals reported by a reorganize run."""

    move_count: int
    duplicate_count: int
    skipped_count: int
    error_count: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "moveCount": self.move_count,
            "duplicateCount": self.duplicate_count,
            "skippedCount": self.skipped_count,
            "errorCount": self.error_count,
        }


class StorageMaintenance:
    """Cleanup and reorganize jobs over one content root.

    Both jobs are idempotent: a second run with no uploads in between
    changes nothing.
    """

    def __init__(self, storage: MediaStorage, url_map: VideoUrlMap) -> None:
        self.storage = storage
        self.url_map = url_map

    def _media_files(self) -> list[Path]:
        files: list[Path] = []
        for subdir in CLEANUP_SCAN_DIRS:
            directory = self.storage.root / subdir if subdir else self.storage.root
            if not directory.is_dir():
                continue
            files.extend(
                path
                for path in sorted(directory.iterdir())
                if path.is_file() and path.suffix.lower() in MEDIA_EXTENSIONS
            )
        return files

    def cleanup_unused_files(self, extra_protected: Iterable[str] = ()) -> CleanupStats:
        """Delete media files no persona record references.

        The video URL map is read first and is the ground truth: a file named
        there is never deleted, even when no live persona points at it.
        Comparison is by bare filename, so optimized/ copies match their URLs.
        """
        used = self.url_map.referenced_filenames()
        used.update(PurePosixPath(url).name for url in extra_protected if url)
        logger.info("cleanup_started", referenced_files=len(used))

        present = self._media_files()
        unused = [path for path in present if path.name not in used]
        logger.info("cleanup_scanned", present_files=len(present), unused_files=len(unused))

        deleted = 0
        saved = 0
        for path in unused:
            try:
                size = path.stat().st_size
                path.unlink()
            except OSError as e:
                logger.error("cleanup_delete_failed", file=str(path), error=str(e))
                continue
            deleted += 1
            saved += size
            logger.info("cleanup_file_deleted", file=str(path), size=format_bytes(size))

        stats = CleanupStats(
            total_files=len(present),
            used_files=len(used),
            deleted_files=deleted,
            saved_space=saved,
        )
        logger.info(
            "cleanup_completed",
            deleted_files=deleted,
            saved_space=format_bytes(saved),
        )
        return stats

    def reorganize(self, protected_urls: Iterable[str] = ()) -> ReorganizeStats:
        """Sort loose files in the content root into category subdirectories.

        Files some persona URL (or the video URL map) points at stay where
        they are, since moving them would break the URL.
        """
        root = self.storage.root
        for category in MediaCategory:
            (root / category.value).mkdir(parents=True, exist_ok=True)

        urls = set(protected_urls) | set(self.url_map.load().values())
        protected = {p for p in (self.storage.path_for(url) for url in urls) if p is not None}

        moved = duplicates = skipped = errors = 0
        for path in sorted(root.iterdir()):
            if not path.is_file():
                continue
            if path.resolve() in protected:
                skipped += 1
                continue

            category = classify_extension(path.name)
            target = root / category.value / path.name
            try:
                if target.exists():
                    # Same name already sorted: the loose copy is a duplicate
                    path.unlink()
                    duplicates += 1
                    logger.info("reorganize_duplicate_removed", file=path.name, target=str(target))
                else:
                    path.rename(target)
                    moved += 1
                    logger.info("reorganize_file_moved", file=path.name, category=category.value)
            except OSError as e:
                errors += 1
                logger.error("reorganize_file_failed", file=path.name, error=str(e))

        logger.info(
            "reorganize_completed",
            moved=moved,
            duplicates=duplicates,
            skipped=skipped,
            errors=errors,
        )
        return ReorganizeStats(
            move_count=moved,
            duplicate_count=duplicates,
            skipped_count=skipped,
            error_count=errors,
        )

    def perform_full_maintenance(self, protected_urls: Iterable[str] = ()) -> dict[str, Any]:
        """Cleanup, then reorganize."""
        protected = list(protected_urls)
        logger.info("maintenance_started")
        cleanup_stats = self.cleanup_unused_files(protected)
        reorganize_stats = self.reorganize(protected)
        logger.info("maintenance_completed")
        return {
            "cleanupStats": cleanup_stats.as_dict(),
            "reorganizeStats": reorganize_stats.as_dict(),
        }
