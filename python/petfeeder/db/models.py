"""SQLAlchemy ORM models for the identity store.

Uses SQLAlchemy 2.x declarative patterns and portable column types so the
same models run on PostgreSQL and on SQLite in tests.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class AccountRow(Base):
    """Account document.

    subject is set for provider logins, credential_hash for direct ones.
    Both subject and username are unique when present (NULLs never collide).
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    login_method: Mapped[str] = mapped_column(String(16), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(255), unique=True)
    username: Mapped[str | None] = mapped_column(String(128), unique=True)
    email: Mapped[str | None] = mapped_column(String(320))
    display_name: Mapped[str | None] = mapped_column(String(255))
    avatar_url: Mapped[str | None] = mapped_column(String(2048))
    credential_hash: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ScheduleRow(Base):
    """Feeding preferences, one row per account."""

    __tablename__ = "schedules"

    account_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    portion: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    schedule: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    unique_date_times: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
