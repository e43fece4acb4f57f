"""Disk usage statistics for the admin dashboard."""

from collections import defaultdict
from pathlib import Path
from typing import Any

from history_talks.logging import get_logger
from history_talks.utils.formatting import format_bytes

logger = get_logger(__name__)

NO_EXTENSION = "no-extension"


def directory_size(path: Path) -> int:
    """Total bytes of every file below path; unreadable entries count as 0."""
    if path.is_file():
        return path.stat().st_size
    total = 0
    if not path.is_dir():
        return 0
    for item in path.rglob("*"):
        try:
            if item.is_file():
                total += item.stat().st_size
        except OSError as e:
            logger.warning("storage_stats_stat_failed", path=str(item), error=str(e))
    return total


def file_type_stats(root: Path) -> dict[str, dict[str, int]]:
    """Count and bytes per lower-cased extension, recursively."""
    result: dict[str, dict[str, int]] = defaultdict(lambda: {"count": 0, "size": 0})
    if not root.is_dir():
        return {}
    for item in root.rglob("*"):
        try:
            if not item.is_file():
                continue
            size = item.stat().st_size
        except OSError as e:
            logger.warning("storage_stats_stat_failed", path=str(item), error=str(e))
            continue
        ext = item.suffix.lower() or NO_EXTENSION
        result[ext]["count"] += 1
        result[ext]["size"] += size
    return dict(result)


def _percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def get_storage_stats(upload_dir: Path, data_dir: Path) -> dict[str, Any]:
    """Aggregate and per-extension byte counts for the content root."""
    by_type = file_type_stats(upload_dir)
    uploads_files = sum(entry["count"] for entry in by_type.values())
    uploads_size = sum(entry["size"] for entry in by_type.values())

    directories = {"uploads": uploads_size, "data": directory_size(data_dir)}
    total = sum(directories.values())

    return {
        "total": {"size": total, "sizeHuman": format_bytes(total)},
        "directories": {
            name: {
                "size": size,
                "sizeHuman": format_bytes(size),
                "percentage": _percentage(size, total),
            }
            for name, size in directories.items()
        },
        "uploads": {
            "totalFiles": uploads_files,
            "totalSize": uploads_size,
            "totalSizeHuman": format_bytes(uploads_size),
            "fileTypes": {
                ext: {
                    "count": entry["count"],
                    "size": entry["size"],
                    "sizeHuman": format_bytes(entry["size"]),
                    "percentage": _percentage(entry["size"], uploads_size),
                }
                for ext, entry in sorted(by_type.items(), key=lambda kv: -kv[1]["size"])
            },
        },
    }
