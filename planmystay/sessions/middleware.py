"""
middleware.py — ASGI session middleware backed by SessionStore.

Request lifecycle:
  1. The cookie carries the session key signed with itsdangerous; a missing,
     tampered or older-than-max_age cookie means "no session".
  2. The stored dict is exposed as scope["session"] (Starlette request.session).
  3. When the response starts:
       - empty session          → destroy the stored one (if any), expire the cookie
       - new, non-empty session → persist under a fresh key, issue the cookie
       - modified session       → full write, cookie re-issued
       - unmodified session     → lazy touch (at most once per touch_after),
                                  cookie re-issued when the touch writes
     Empty new sessions are never persisted.
"""
import json
import logging
import secrets
from typing import Optional

from itsdangerous import BadSignature, TimestampSigner
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from planmystay.sessions.store import SessionStore, StoredSession

logger = logging.getLogger(__name__)

ROTATE_SCOPE_KEY = "planmystay.session.rotate"


def rotate_session(request: Request) -> None:
    """Issue a new session key at the end of this request, keeping the data."""
    request.scope[ROTATE_SCOPE_KEY] = True


def _fingerprint(data: dict) -> str:
    return json.dumps(data, sort_keys=True, default=str)


class SessionMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        secret: str,
        cookie_name: str = "planmystay.sid",
        max_age: int = 24 * 3600,
        https_only: bool = False,
        same_site: str = "lax",
        path: str = "/",
    ) -> None:
        self.app = app
        self.store = store
        self.signer = TimestampSigner(secret, salt="planmystay.session")
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.path = path
        self.security_flags = f"HttpOnly; SameSite={same_site}"
        if https_only:  # Secure flag only set in production
            self.security_flags += "; Secure"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        sid = self._read_cookie(HTTPConnection(scope))
        stored: Optional[StoredSession] = None
        if sid is not None:
            stored = await self.store.load(sid)
            if stored is None:
                sid = None

        scope["session"] = dict(stored.data) if stored else {}
        snapshot = _fingerprint(scope["session"])

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                await self._commit(scope, sid, stored, snapshot, headers)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _read_cookie(self, connection: HTTPConnection) -> Optional[str]:
        value = connection.cookies.get(self.cookie_name)
        if not value:
            return None
        try:
            return self.signer.unsign(value.encode("utf-8"), max_age=self.max_age).decode("utf-8")
        except BadSignature:
            return None

    async def _commit(
        self,
        scope: Scope,
        sid: Optional[str],
        stored: Optional[StoredSession],
        snapshot: str,
        headers: MutableHeaders,
    ) -> None:
        session = scope["session"]
        rotate = scope.pop(ROTATE_SCOPE_KEY, False)

        if not session:
            if sid is not None:
                await self.store.destroy(sid)
                headers.append("Set-Cookie", self._cookie_header("null", max_age=0))
            return

        if sid is not None and rotate:
            await self.store.destroy(sid)
            sid = None

        if sid is None:
            sid = secrets.token_urlsafe(32)
            await self.store.save(sid, session)
            headers.append("Set-Cookie", self._cookie_header(self._sign(sid)))
        elif _fingerprint(session) != snapshot:
            await self.store.save(sid, session)
            headers.append("Set-Cookie", self._cookie_header(self._sign(sid)))
        elif stored is not None:
            if await self.store.touch(sid, stored.last_write):
                headers.append("Set-Cookie", self._cookie_header(self._sign(sid)))

    def _sign(self, sid: str) -> str:
        return self.signer.sign(sid.encode("utf-8")).decode("utf-8")

    def _cookie_header(self, value: str, max_age: Optional[int] = None) -> str:
        max_age = self.max_age if max_age is None else max_age
        header = f"{self.cookie_name}={value}; Path={self.path}; Max-Age={max_age}; {self.security_flags}"
        if max_age == 0:
            header += "; Expires=Thu, 01 Jan 1970 00:00:00 GMT"
        return header
