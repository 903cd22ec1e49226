"""SQLAlchemy schema for the local device database.

Each table is its own namespace: guest notes, guest settings, the offline
queue and profile flags never share rows, so clearing one cannot clobber
another.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class NoteRecord(Base):
    """Database record for a guest note."""

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    week_key: Mapped[str] = mapped_column(String(7), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    mood: Mapped[int] = mapped_column(Integer, nullable=False)
    moment_type: Mapped[str] = mapped_column(String(20), nullable=False)
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON array

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_backfill: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("week_key", name="uq_notes_week_key"),)


class SettingsRecord(Base):
    """Single-row table holding the guest profile's settings as JSON."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)


class PendingChangeRecord(Base):
    """Offline queue entry. ``seq`` preserves append order."""

    __tablename__ = "pending_changes"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    change_type: Mapped[str] = mapped_column(String(10), nullable=False)
    table_name: Mapped[str] = mapped_column(String(20), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)  # JSON payload
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), default="", nullable=False)

    __table_args__ = (
        Index("idx_pending_changes_timestamp", "timestamp"),
        Index("idx_pending_changes_user_id", "user_id"),
    )


class FlagRecord(Base):
    """Profile-level flags, e.g. whether guest notes were migrated."""

    __tablename__ = "flags"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)


def get_engine(database_url: str):
    """Create database engine."""
    return create_engine(database_url, echo=False)


def get_session_factory(engine) -> sessionmaker[Session]:
    """Create session factory."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_database(database_url: str) -> sessionmaker[Session]:
    """Initialize database and return session factory."""
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    return get_session_factory(engine)
