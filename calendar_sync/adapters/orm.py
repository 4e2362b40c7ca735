"""SQLAlchemy ORM models for the scheduling tables the engine writes to."""

from datetime import date, datetime, time
from typing import Optional
from uuid import uuid4

from sqlalchemy import Date, DateTime, Index, String, Text, Time, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class SessionRow(Base):
    """Scheduled session, as stored by the scheduling application."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    client_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    data: Mapped[date] = mapped_column(Date, nullable=False)
    horario: Mapped[time] = mapped_column(Time, nullable=False)
    anotacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    google_event_id: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    google_sync_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    google_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    google_last_synced: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (Index("ix_sessions_user_sync", "user_id", "google_sync_type"),)

    def __repr__(self) -> str:
        return f"SessionRow(id={self.id}, data={self.data}, horario={self.horario})"


class NotificationRow(Base):
    """In-app notification shown to the user."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    titulo: Mapped[str] = mapped_column(String(255), nullable=False)
    conteudo: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"NotificationRow(id={self.id}, titulo={self.titulo})"
