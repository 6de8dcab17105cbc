"""
strategies.py — pluggable credential validation.

A strategy turns submitted credentials into an Identity or None. Failure is
an ordinary outcome (the route flashes an error), never an exception.
Swap LocalPasswordStrategy for another CredentialStrategy in create_app()
without touching the routes.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.auth.identity import Identity
from planmystay.auth.passwords import verify_password
from planmystay.schemas import LoginForm

logger = logging.getLogger(__name__)


class CredentialStrategy(ABC):
    name: str = "abstract"

    @abstractmethod
    async def authenticate(self, db: AsyncSession, credentials: LoginForm) -> Optional[Identity]:
        ...


class LocalPasswordStrategy(CredentialStrategy):
    """Username + bcrypt password against the users table."""

    name = "local"

    async def authenticate(self, db: AsyncSession, credentials: LoginForm) -> Optional[Identity]:
        user = await store.get_user_by_username(db, credentials.username)
        if user is None:
            logger.info("Login failed: unknown username=%s", credentials.username)
            return None
        if not verify_password(credentials.password, user.password_hash):
            logger.info("Login failed: bad password username=%s", credentials.username)
            return None
        return Identity.from_orm(user)
