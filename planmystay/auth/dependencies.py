"""
dependencies.py — FastAPI dependencies for the authentication gate.

require_auth is attached to whole routers in create_app(), so an anonymous
request is rejected before any route-specific code runs.
"""
from fastapi import Request

from planmystay.auth.context import get_context
from planmystay.auth.identity import Identity
from planmystay.auth.strategies import CredentialStrategy


class AuthenticationRequired(Exception):
    """Raised for anonymous requests to gated routes; handled in errors.py."""

    def __init__(self, return_to: str = "/") -> None:
        super().__init__("You must be signed in first!")
        self.return_to = return_to


class AlreadyAuthenticated(Exception):
    """Raised when a signed-in user opens the login or register pages."""


def requested_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path += f"?{request.url.query}"
    return path


async def require_auth(request: Request) -> Identity:
    user = get_context(request).current_user
    if user is None:
        raise AuthenticationRequired(return_to=requested_path(request))
    return user


async def redirect_if_authenticated(request: Request) -> None:
    if get_context(request).is_authenticated:
        raise AlreadyAuthenticated()


def get_strategy(request: Request) -> CredentialStrategy:
    return request.app.state.auth_strategy
