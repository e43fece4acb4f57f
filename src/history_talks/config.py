"""Application configuration via environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage locations
    upload_dir: Path = Field(
        default=Path("./uploads"),
        description="Content root for uploaded and derived media, served under /uploads",
    )
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory for the database file and the video URL map",
    )
    video_url_map_filename: str = Field(
        default="video-urls.json",
        description="Name of the persona id -> video URL map inside data_dir",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/history_talks.db",
        description="SQLAlchemy connection string for the persona catalog",
    )

    # Celery
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker URL",
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Celery result backend URL",
    )
    celery_task_always_eager: bool = Field(
        default=False,
        description="Run tasks inline instead of sending them to a worker (tests, local dev)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=5000, description="API server port")
    api_reload: bool = Field(default=False, description="Enable auto-reload for development")

    # Chat completion
    llm_provider: str = Field(
        default="openai",
        description="LLM provider for persona replies (openai, stub)",
    )
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="OpenAI chat model")
    chat_temperature: float = Field(
        default=0.8,
        description="Sampling temperature for persona replies",
    )

    # Speech synthesis
    voiceover_provider: str = Field(
        default="elevenlabs",
        description="Text-to-speech provider (elevenlabs, stub)",
    )
    elevenlabs_api_key: str | None = Field(default=None, description="ElevenLabs API key")
    elevenlabs_model_id: str = Field(
        default="eleven_turbo_v2",
        description="ElevenLabs model used for persona voices",
    )

    # FFmpeg
    ffmpeg_path: str | None = Field(
        default=None,
        description="Path to FFmpeg binary (uses 'ffmpeg' from PATH if not specified)",
    )
    ffmpeg_preset: str = Field(
        default="medium",
        description="FFmpeg encoding preset (ultrafast, fast, medium, slow, veryslow)",
    )
    ffmpeg_crf: int = Field(
        default=23,
        description="FFmpeg CRF quality (0-51, lower = better quality)",
    )
    ffmpeg_timeout: int | None = Field(
        default=None,
        description="Seconds before an FFmpeg run is killed (None waits for the process)",
    )

    # Video optimization
    optimize_on_upload: bool = Field(
        default=True,
        description="Queue a background optimization after every video upload",
    )
    optimize_max_width: int = Field(default=720, description="Maximum output width in pixels")
    optimize_video_bitrate: str = Field(default="1M", description="Target video bitrate")
    optimize_audio_bitrate: str = Field(default="128k", description="Target audio bitrate")
    optimize_format: Literal["mp4", "webm"] = Field(default="mp4", description="Output container")
    optimize_delete_original: bool = Field(
        default=False,
        description="Delete the pre-optimization original after a successful run",
    )
    optimize_batch_size: int = Field(
        default=3,
        description="Number of videos transcoded concurrently by the batch optimizer",
    )
    large_asset_threshold_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Videos at or above this size get aggressive playback memory reclamation",
    )

    # Thumbnails
    thumbnail_timestamp: str = Field(default="00:00:01", description="Frame position")
    thumbnail_size: str = Field(default="320x180", description="Thumbnail dimensions")
    thumbnail_quality: int = Field(default=2, description="JPEG quality scale (2-31, lower is better)")

    # Player registry
    player_sweep_interval_seconds: float = Field(
        default=10.0,
        description="Interval of the stalled-player sweep",
    )
    player_fade_in_volume: float = Field(
        default=0.1,
        description="Volume used while a player starts, to mask audio pop",
    )
    player_fade_in_restore_seconds: float = Field(
        default=0.3,
        description="Delay before restoring the player's volume after playback starts",
    )

    @property
    def video_url_map_path(self) -> Path:
        return self.data_dir / self.video_url_map_filename


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


# Convenience alias
settings = get_settings()
