"""
context.py — per-request view/auth context.

RequestContextMiddleware runs once per request, after the session middleware
and before routing. It resolves the session's identity reference and drains
the success/error flash queues into an immutable RequestContext stored at
request.state.context. Templates read it through templating.view_context;
require_auth reads it to gate routes. It never short-circuits.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from planmystay.auth.identity import SESSION_USER_KEY, Identity, deserialize_user, serialize_user
from planmystay.sessions.flash import pop_flashed
from planmystay.sessions.middleware import rotate_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    current_user: Optional[Identity] = None
    success: tuple[str, ...] = field(default_factory=tuple)
    error: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None


ANONYMOUS = RequestContext()


def get_context(request: Request) -> RequestContext:
    return getattr(request.state, "context", ANONYMOUS)


class RequestContextMiddleware:
    def __init__(self, app: ASGIApp, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self.app = app
        self.sessionmaker = sessionmaker

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        session = scope["session"]
        reference = session.get(SESSION_USER_KEY)
        user = None
        if reference is not None:
            async with self.sessionmaker() as db:
                user = await deserialize_user(db, reference)
            if user is None:
                # Stale reference: treat exactly like an anonymous session
                session.pop(SESSION_USER_KEY, None)

        scope.setdefault("state", {})["context"] = RequestContext(
            current_user=user,
            success=tuple(pop_flashed(session, "success")),
            error=tuple(pop_flashed(session, "error")),
        )
        await self.app(scope, receive, send)


def login_user(request: Request, identity: Identity) -> None:
    """Store the identity reference and issue a fresh session key."""
    request.session[SESSION_USER_KEY] = serialize_user(identity)
    rotate_session(request)
    logger.info("User logged in user_id=%s", identity.id)


def logout_user(request: Request) -> None:
    user_id = request.session.pop(SESSION_USER_KEY, None)
    if user_id:
        logger.info("User logged out user_id=%s", user_id)
