"""
auth — credential strategies, session identity mapping and the route gate.
"""
from planmystay.auth.context import (
    RequestContext,
    RequestContextMiddleware,
    get_context,
    login_user,
    logout_user,
)
from planmystay.auth.dependencies import (
    AlreadyAuthenticated,
    AuthenticationRequired,
    get_strategy,
    redirect_if_authenticated,
    require_auth,
)
from planmystay.auth.identity import Identity, deserialize_user, serialize_user
from planmystay.auth.strategies import CredentialStrategy, LocalPasswordStrategy

__all__ = [
    "AlreadyAuthenticated",
    "AuthenticationRequired",
    "CredentialStrategy",
    "Identity",
    "LocalPasswordStrategy",
    "RequestContext",
    "RequestContextMiddleware",
    "deserialize_user",
    "get_context",
    "get_strategy",
    "login_user",
    "logout_user",
    "redirect_if_authenticated",
    "require_auth",
    "serialize_user",
]
