"""
templating.py — Jinja2 view rendering.

Every template extends layouts/boilerplate.html. view_context is registered
as a context processor, so current_user, success and error are available to
all renders without each route passing them.
"""
from pathlib import Path

from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from planmystay.auth.context import get_context


def view_context(request: Request) -> dict:
    context = get_context(request)
    return {
        "current_user": context.current_user,
        "success": list(context.success),
        "error": list(context.error),
    }


def create_templates(views_dir: Path) -> Jinja2Templates:
    return Jinja2Templates(directory=str(views_dir), context_processors=[view_context])


def render(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    templates: Jinja2Templates = request.app.state.templates
    return templates.TemplateResponse(request, name, context or {}, status_code=status_code)
