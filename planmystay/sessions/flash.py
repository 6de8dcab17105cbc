"""
flash.py — one-shot, session-scoped messages.

Producers enqueue under a category; the next reader of that category drains
it. RequestContextMiddleware drains "success" and "error" once per request,
so a message flashed before a redirect shows on the page that follows and
never again.
"""
from typing import MutableMapping

from starlette.requests import Request

FLASH_KEY = "_flash"


def flash(request: Request, message: str, category: str = "success") -> None:
    queues = request.session.setdefault(FLASH_KEY, {})
    queues.setdefault(category, []).append(message)


def pop_flashed(session: MutableMapping, category: str) -> list[str]:
    """Drain and return the messages queued under category."""
    queues = session.get(FLASH_KEY)
    if not queues or category not in queues:
        return []
    messages = list(queues.pop(category))
    if queues:
        session[FLASH_KEY] = queues
    else:
        session.pop(FLASH_KEY, None)
    return messages
