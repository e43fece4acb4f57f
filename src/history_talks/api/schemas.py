"""Request and response models for the HTTP API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PersonaResponse(CamelModel):
    """A persona as exposed to clients."""

    id: int
    name: str
    title: str
    bio: str
    prompt: str
    bg_color: str | None = None
    video_url: str | None = None
    avatar_url: str | None = None
    voice_file: str | None = None
    video_size_bytes: int | None = None
    is_large_asset: bool = False
    created_at: datetime | None = None


class PersonaCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    bio: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    bg_color: str | None = Field(None, max_length=16)
    video_url: str | None = None
    avatar_url: str | None = None
    voice_file: str | None = None


class PersonaUpdate(CamelModel):
    """Partial update; omitted fields are left alone."""

    name: str | None = Field(None, min_length=1, max_length=255)
    title: str | None = Field(None, min_length=1, max_length=255)
    bio: str | None = None
    prompt: str | None = None
    bg_color: str | None = Field(None, max_length=16)
    video_url: str | None = None
    avatar_url: str | None = None
    voice_file: str | None = None


class MessageCreate(CamelModel):
    sub_id: int
    user_message: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(CamelModel):
    id: int
    sub_id: int
    user_message: str
    ai_response: str
    audio_url: str = ""
    created_at: datetime | None = None

    @field_validator("audio_url", mode="before")
    @classmethod
    def _empty_audio(cls, value: Any) -> Any:
        return value or ""


class VoiceResponse(CamelModel):
    audio_url: str


class ThumbnailResponse(CamelModel):
    thumbnail_url: str


class MessageOnlyResponse(CamelModel):
    message: str


class TaskAcceptedResponse(CamelModel):
    """Returned when background work was enqueued."""

    message: str
    status: str = "processing"
    task_id: str


class TaskStatusResponse(CamelModel):
    task_id: str
    status: str
    result: dict[str, Any] | None = None
    error: str | None = None
