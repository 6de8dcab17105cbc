"""
middleware.py — HTTP method override for HTML forms, and the prefix auth gate.

Browsers can only submit GET and POST. A POST that carries `_method`
(query string, or field of an urlencoded form body) is dispatched as the
named verb. Only PUT, PATCH and DELETE are honoured; anything else leaves
the request untouched. The buffered body is replayed downstream.
"""
import logging
from typing import Iterable
from urllib.parse import parse_qs

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from planmystay.auth.context import get_context
from planmystay.auth.dependencies import AuthenticationRequired, requested_path
from planmystay.errors import authentication_required_response

logger = logging.getLogger(__name__)

OVERRIDE_FIELD = "_method"
ALLOWED_OVERRIDES = frozenset({"PUT", "PATCH", "DELETE"})
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _extract_override(raw: bytes, field: str) -> str | None:
    values = parse_qs(raw.decode("latin-1"), keep_blank_values=True).get(field)
    return values[0].strip().upper() if values else None


class MethodOverrideMiddleware:
    def __init__(self, app: ASGIApp, field: str = OVERRIDE_FIELD) -> None:
        self.app = app
        self.field = field

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        override = _extract_override(scope.get("query_string", b""), self.field)

        content_type = ""
        for name, value in scope["headers"]:
            if name == b"content-type":
                content_type = value.decode("latin-1").split(";")[0].strip().lower()
                break

        if override is None and content_type == FORM_CONTENT_TYPE:
            body, receive = await self._buffer_body(receive)
            override = _extract_override(body, self.field)

        if override in ALLOWED_OVERRIDES:
            logger.debug("Method override POST -> %s path=%s", override, scope["path"])
            scope["method"] = override
        await self.app(scope, receive, send)

    @staticmethod
    async def _buffer_body(receive: Receive) -> tuple[bytes, Receive]:
        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away; hand the disconnect on as-is
                async def replay_disconnect() -> Message:
                    return message
                return b"", replay_disconnect
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return body, replay


class AuthGateMiddleware:
    """
    Rejects anonymous requests anywhere under the gated prefixes, before
    routing. Unknown sub-paths and unsupported verbs get the same 303 / 401
    as real routes, so the route table is not visible to anonymous clients.

    Runs inside RequestContextMiddleware, which has already resolved the
    current user.
    """

    def __init__(self, app: ASGIApp, prefixes: Iterable[str]) -> None:
        self.app = app
        self.prefixes = tuple(p.rstrip("/") for p in prefixes)

    def is_gated(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self.prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.is_gated(scope["path"]):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        if get_context(request).is_authenticated:
            await self.app(scope, receive, send)
            return

        logger.debug("Anonymous request blocked %s %s", scope["method"], scope["path"])
        exc = AuthenticationRequired(return_to=requested_path(request))
        response = authentication_required_response(request, exc)
        await response(scope, receive, send)
