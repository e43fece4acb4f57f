"""Background video optimization via FFmpeg.

Produces a smaller, streaming-friendly copy of an uploaded video: width capped
(aspect ratio preserved), capped video/audio bitrates, and the moov atom moved
to the front (`+faststart`) so browsers can start playback before the whole
file has downloaded. The codec work is FFmpeg's; this module builds the
arguments, supervises the process and interprets the result.
"""

import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from history_talks.config import settings
from history_talks.errors import OptimizationError
from history_talks.logging import get_logger
from history_talks.services.storage import OPTIMIZED_DIR, VIDEO_EXTENSIONS, MediaStorage

logger = get_logger(__name__)

OPTIMIZED_PREFIX = "optimized-"
_STDERR_TAIL = 2000


@dataclass
class OptimizationOptions:
    """Encoding parameters for one optimization run."""

    max_width: int = field(default_factory=lambda: settings.optimize_max_width)
    video_bitrate: str = field(default_factory=lambda: settings.optimize_video_bitrate)
    audio_bitrate: str = field(default_factory=lambda: settings.optimize_audio_bitrate)
    format: str = field(default_factory=lambda: settings.optimize_format)
    preset: str = field(default_factory=lambda: settings.ffmpeg_preset)
    crf: int = field(default_factory=lambda: settings.ffmpeg_crf)
    delete_original: bool = field(default_factory=lambda: settings.optimize_delete_original)


@dataclass
class OptimizationResult:
    """Outcome of optimizing one video."""

    success: bool
    input_path: Path
    output_path: Path | None = None
    url: str | None = None
    original_size_bytes: int | None = None
    optimized_size_bytes: int | None = None
    savings_percent: float | None = None
    original_deleted: bool = False
    error_message: str | None = None


def optimized_name(input_path: Path, fmt: str) -> str:
    return f"{OPTIMIZED_PREFIX}{input_path.stem}.{fmt}"


class VideoOptimizer:
    """Runs FFmpeg to re-encode stored videos into the optimized/ directory."""

    def __init__(
        self,
        storage: MediaStorage | None = None,
        ffmpeg_path: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.storage = storage or MediaStorage()
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path or "ffmpeg"
        self.timeout = timeout if timeout is not None else settings.ffmpeg_timeout
        self.output_dir = self.storage.root / OPTIMIZED_DIR

    def output_path_for(self, input_path: Path, options: OptimizationOptions) -> Path:
        return self.output_dir / optimized_name(input_path, options.format)

    def build_args(
        self,
        input_path: Path,
        output_path: Path,
        options: OptimizationOptions,
    ) -> list[str]:
        """FFmpeg command line for one optimization run."""
        return [
            self.ffmpeg_path,
            "-i",
            str(input_path),
            "-vf",
            f"scale='min({options.max_width},iw)':-2",  # Cap width, keep aspect, even height
            "-c:v",
            "libx264",
            "-crf",
            str(options.crf),
            "-preset",
            options.preset,
            "-b:v",
            options.video_bitrate,
            "-c:a",
            "aac",
            "-b:a",
            options.audio_bitrate,
            "-movflags",
            "+faststart",
            "-y",
            str(output_path),
        ]

    def _run_ffmpeg(self, args: list[str]) -> None:
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise OptimizationError(f"FFmpeg not found: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise OptimizationError(f"FFmpeg timed out after {e.timeout}s") from e
        except OSError as e:
            raise OptimizationError(f"Failed to start FFmpeg: {e}") from e

        if completed.returncode != 0:
            stderr = (completed.stderr or "")[-_STDERR_TAIL:]
            raise OptimizationError(
                f"Video optimization failed with code {completed.returncode}",
                returncode=completed.returncode,
                stderr=stderr,
            )

    def optimize(
        self,
        input_path: Path,
        options: OptimizationOptions | None = None,
    ) -> OptimizationResult:
        """Optimize one video. Never raises for transcoder failures.

        On failure the original is untouched and the result carries the error,
        so callers keep serving the original URL.
        """
        options = options or OptimizationOptions()
        output_path = self.output_path_for(input_path, options)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        args = self.build_args(input_path, output_path, options)

        logger.info(
            "optimizer_started",
            input_path=str(input_path),
            output_path=str(output_path),
            command=" ".join(args),
        )

        try:
            if not input_path.is_file():
                raise OptimizationError(f"Video file not found: {input_path}")
            original_size = input_path.stat().st_size
            self._run_ffmpeg(args)
            if not output_path.is_file():
                raise OptimizationError(f"FFmpeg produced no output at {output_path}")
            optimized_size = output_path.stat().st_size
        except OptimizationError as e:
            logger.error(
                "optimizer_failed",
                input_path=str(input_path),
                error=str(e),
                returncode=e.returncode,
                stderr=e.stderr,
            )
            return OptimizationResult(success=False, input_path=input_path, error_message=str(e))

        savings = (
            round((original_size - optimized_size) / original_size * 100, 2)
            if original_size
            else 0.0
        )
        logger.info(
            "optimizer_completed",
            input_path=str(input_path),
            output_path=str(output_path),
            original_mb=round(original_size / 1024 / 1024, 2),
            optimized_mb=round(optimized_size / 1024 / 1024, 2),
            savings_percent=savings,
        )

        deleted = False
        if options.delete_original:
            try:
                input_path.unlink()
                deleted = True
                logger.info("optimizer_original_deleted", input_path=str(input_path))
            except OSError as e:
                logger.error(
                    "optimizer_original_delete_failed", input_path=str(input_path), error=str(e)
                )

        return OptimizationResult(
            success=True,
            input_path=input_path,
            output_path=output_path,
            url=self.storage.url_for(output_path),
            original_size_bytes=original_size,
            optimized_size_bytes=optimized_size,
            savings_percent=savings,
            original_deleted=deleted,
        )

    def find_unoptimized(self, options: OptimizationOptions | None = None) -> list[Path]:
        """Videos sitting directly in the content root with no optimized copy yet."""
        options = options or OptimizationOptions()
        if not self.storage.root.is_dir():
            return []
        return sorted(
            path
            for path in self.storage.root.iterdir()
            if path.is_file()
            and path.suffix.lower() in VIDEO_EXTENSIONS
            and not self.output_path_for(path, options).exists()
        )

    def batch_optimize(
        self,
        paths: list[Path] | None = None,
        options: OptimizationOptions | None = None,
        batch_size: int | None = None,
    ) -> list[OptimizationResult]:
        """Optimize many videos, at most batch_size FFmpeg processes at a time.

        Each batch finishes completely before the next one starts.
        """
        options = options or OptimizationOptions()
        paths = self.find_unoptimized(options) if paths is None else paths
        batch_size = max(1, batch_size or settings.optimize_batch_size)
        total_batches = (len(paths) + batch_size - 1) // batch_size

        logger.info("batch_optimize_started", videos=len(paths), batch_size=batch_size)

        results: list[OptimizationResult] = []
        for index in range(0, len(paths), batch_size):
            batch = paths[index : index + batch_size]
            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                batch_results = list(executor.map(lambda p: self.optimize(p, options), batch))
            results.extend(batch_results)
            logger.info(
                "batch_optimize_progress",
                batch=index // batch_size + 1,
                total_batches=total_batches,
                succeeded=sum(1 for r in batch_results if r.success),
                failed=sum(1 for r in batch_results if not r.success),
            )

        return results
