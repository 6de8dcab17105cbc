"""
store.py — database-backed session store.

Namespace conventions:
  sessions.id          → opaque key signed into the cookie
  sessions.payload     → Fernet-encrypted JSON session dict
  sessions.expires_at  → now + ttl on every write; lazily extended by touch();
                         rows past it are deleted by purge_expired()

Design:
  - The store manages its own AsyncSession scope (one short transaction per call),
    independent of the per-request get_db() session.
  - Store failures are NOT fatal: every SQLAlchemyError goes to the on_error
    callback and the call degrades (load → no session, writes → dropped).
    At worst the user has to sign in again.
  - Logs only session ids, never payload contents.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from planmystay.models.session import SessionRecordORM
from planmystay.sessions.cipher import SessionCipher

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# TTL constants (seconds)
# ---------------------------------------------------------------------------
SESSION_TTL: int = 14 * 86400   # 14 days
TOUCH_AFTER: int = 86400        # at most one lazy refresh write per 24 hours


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def log_store_error(exc: Exception) -> None:
    logger.error("SESSION STORE ERROR: %s", exc)


@dataclass(frozen=True)
class StoredSession:
    data: dict
    last_write: datetime
    expires_at: datetime


class SessionStore:
    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        cipher: SessionCipher,
        ttl: int = SESSION_TTL,
        touch_after: int = TOUCH_AFTER,
        on_error: Callable[[Exception], None] = log_store_error,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if ttl <= touch_after:
            raise ValueError("ttl must be longer than touch_after")
        self._sessionmaker = sessionmaker
        self._cipher = cipher
        self.ttl = ttl
        self.touch_after = touch_after
        self._on_error = on_error
        self.clock = clock

    async def load(self, sid: str) -> Optional[StoredSession]:
        """
        Return the stored session, or None when it is missing, expired,
        undecryptable or the store is unavailable.
        """
        try:
            async with self._sessionmaker() as db:
                result = await db.execute(
                    select(SessionRecordORM).where(SessionRecordORM.id == sid)
                )
                orm = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            self._on_error(exc)
            return None

        if orm is None:
            return None
        expires_at = _as_utc(orm.expires_at)
        if expires_at <= self.clock():
            await self.destroy(sid)
            return None
        data = self._cipher.decrypt(orm.payload)
        if data is None:
            logger.warning("Discarding undecryptable session session_id=%s", sid[:8])
            return None
        return StoredSession(data=data, last_write=_as_utc(orm.updated_at), expires_at=expires_at)

    async def save(self, sid: str, data: dict) -> None:
        """Upsert the full session payload and reset its expiry to now + ttl."""
        now = self.clock()
        payload = self._cipher.encrypt(data)
        try:
            async with self._sessionmaker() as db:
                result = await db.execute(
                    select(SessionRecordORM).where(SessionRecordORM.id == sid)
                )
                orm = result.scalar_one_or_none()
                if orm is None:
                    db.add(
                        SessionRecordORM(
                            id=sid,
                            payload=payload,
                            expires_at=now + timedelta(seconds=self.ttl),
                            created_at=now,
                            updated_at=now,
                        )
                    )
                else:
                    orm.payload = payload
                    orm.expires_at = now + timedelta(seconds=self.ttl)
                    orm.updated_at = now
                await db.commit()
        except SQLAlchemyError as exc:
            self._on_error(exc)

    async def touch(self, sid: str, last_write: datetime) -> bool:
        """
        Extend an unmodified session's expiry, but only when touch_after seconds
        have passed since its last write. Returns True if a write happened.
        """
        now = self.clock()
        if (now - last_write).total_seconds() < self.touch_after:
            return False
        try:
            async with self._sessionmaker() as db:
                await db.execute(
                    update(SessionRecordORM)
                    .where(SessionRecordORM.id == sid)
                    .values(expires_at=now + timedelta(seconds=self.ttl), updated_at=now)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            self._on_error(exc)
            return False
        logger.debug("Touched session session_id=%s", sid[:8])
        return True

    async def destroy(self, sid: str) -> None:
        try:
            async with self._sessionmaker() as db:
                await db.execute(delete(SessionRecordORM).where(SessionRecordORM.id == sid))
                await db.commit()
        except SQLAlchemyError as exc:
            self._on_error(exc)

    async def purge_expired(self) -> int:
        """Delete every record past its expiry. Returns the number removed."""
        now = self.clock()
        try:
            async with self._sessionmaker() as db:
                result = await db.execute(
                    delete(SessionRecordORM).where(SessionRecordORM.expires_at <= now)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            self._on_error(exc)
            return 0
        if result.rowcount:
            logger.info("Purged expired sessions count=%d", result.rowcount)
        return result.rowcount


async def purge_periodically(store: SessionStore, interval: int) -> None:
    """Sweep expired sessions every `interval` seconds until cancelled."""
    while True:
        await store.purge_expired()
        await asyncio.sleep(interval)
