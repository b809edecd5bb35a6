"""
SQLAlchemy database models for Trackport.

These models represent the conversation store, the project/NLU model catalog
used to resolve training targets, and the NLU activity (training) log.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Environment(str, enum.Enum):
    """Deployment environment a conversation was imported from."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]


class Project(Base):
    """Project owning conversations and an ordered set of NLU models."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Ordered list of NLUModel ids; order decides which model wins a language
    nlu_model_ids: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default="[]"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id!r}, name={self.name!r})>"


class NLUModel(Base):
    """Trained NLU model for a single language."""

    __tablename__ = "nlu_models"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    language: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<NLUModel(id={self.id!r}, language={self.language!r})>"


class Conversation(Base):
    """Stored conversation with its full tracker."""

    __tablename__ = "conversations"

    # Caller-supplied sender id, immutable once created
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    env: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        server_default=Environment.PRODUCTION.value,
    )
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Rasa-style tracker: {"events": [...], ...}; stored as received
    tracker: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default="{}")

    # Any other envelope keys sent by the exporter
    extra_data: Mapped[dict] = mapped_column(
        "metadata", JSONB, nullable=False, server_default="{}"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_conversations_env_updated_at", "env", "updated_at"),)

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id!r}, "
            f"project_id={self.project_id!r}, env={self.env!r})>"
        )


class Activity(Base):
    """NLU training log entry derived from a parsed user utterance."""

    __tablename__ = "activity"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    model_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("nlu_models.id"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    intent: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    entities: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, model_id={self.model_id!r}, text={self.text!r})>"
