"""
sessions — server-side HTTP sessions for PlanMyStay.

The cookie holds a signed opaque key; the session dict lives encrypted in
the sessions table. See middleware.py for the request lifecycle.
"""
from planmystay.sessions.cipher import SessionCipher
from planmystay.sessions.flash import flash, pop_flashed
from planmystay.sessions.middleware import SessionMiddleware, rotate_session
from planmystay.sessions.store import SessionStore, StoredSession

__all__ = [
    "SessionCipher",
    "SessionMiddleware",
    "SessionStore",
    "StoredSession",
    "flash",
    "pop_flashed",
    "rotate_session",
]
