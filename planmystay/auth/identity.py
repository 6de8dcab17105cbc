"""
identity.py — the session/identity boundary.

serialize_user()   Identity → the minimal reference kept in the session (the id)
deserialize_user() reference → Identity, re-resolved on every request;
                   None when the user no longer exists
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.models.user import UserORM

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


@dataclass(frozen=True)
class Identity:
    id: str
    username: str
    email: str

    @classmethod
    def from_orm(cls, user: UserORM) -> "Identity":
        return cls(id=user.id, username=user.username, email=user.email)


def serialize_user(identity: Identity) -> str:
    return identity.id


async def deserialize_user(db: AsyncSession, reference: Optional[str]) -> Optional[Identity]:
    if not reference or not isinstance(reference, str):
        return None
    user = await store.get_user(db, reference)
    if user is None:
        logger.info("Session references missing user user_id=%s", reference)
        return None
    return Identity.from_orm(user)
