"""
models/session.py — SQLAlchemy ORM model for server-side HTTP sessions.

Table: sessions

The browser only holds a signed opaque key (the row id). The row holds the
session dict encrypted with the application SECRET (sessions/cipher.py),
so flash messages and the user reference never sit in plaintext.

expires_at is pushed forward on every full write and, lazily, by
SessionStore.touch() at most once per touch_after interval.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from planmystay.database import Base


class SessionRecordORM(Base):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Opaque session key — the value signed into the cookie",
    )
    payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Fernet token of the JSON-encoded session dict",
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
