"""SQLAlchemy ORM models."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PersonaModel(Base):
    """Historical-figure persona ORM model."""

    __tablename__ = "personas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    bg_color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    voice_file: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    video_size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_large_asset: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class MessageModel(Base):
    """One user message and the persona's reply."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Not a hard foreign key: messages outlive a deleted persona
    sub_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_message: Mapped[str] = mapped_column(Text, nullable=False)
    ai_response: Mapped[str] = mapped_column(Text, nullable=False)
    audio_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
