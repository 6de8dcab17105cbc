"""
errors.py — terminal error handling for PlanMyStay.

Taxonomy:
  - AuthenticationRequired → flash + 303 to /users/login (HTML), 401 envelope (/api/)
  - AlreadyAuthenticated   → 303 to /listings
  - HTTPException          → error.html (HTML) or {error: {...}} envelope (/api/)
  - RequestValidationError → 422 envelope
  - anything else          → logged with traceback, 500

HTML vs JSON is decided by path: everything under /api/ gets the envelope.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from planmystay.auth.dependencies import AlreadyAuthenticated, AuthenticationRequired
from planmystay.schemas import ErrorBody, ErrorResponse
from planmystay.sessions.flash import flash
from planmystay.templating import render

logger = logging.getLogger(__name__)

LOGIN_URL = "/users/login"
RETURN_TO_KEY = "return_to"

_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
}


def wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


# ---------------------------------------------------------------------------
# Error response helper
# ---------------------------------------------------------------------------
def make_error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Build a standard {error: {code, message, details}} response."""
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _render_error(request: Request, status_code: int, message: str):
    return render(
        request,
        "error.html",
        {"status_code": status_code, "message": message},
        status_code=status_code,
    )


def authentication_required_response(request: Request, exc: AuthenticationRequired) -> Response:
    """401 envelope under /api/, otherwise flash + 303 to the login page."""
    if wants_json(request):
        return make_error_response("UNAUTHORIZED", str(exc), status_code=401)
    if "session" in request.scope:
        if request.method == "GET":
            request.session[RETURN_TO_KEY] = exc.return_to
        flash(request, str(exc), "error")
    return RedirectResponse(LOGIN_URL, status_code=303)


def install_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register the fallback handlers. Called last in create_app()."""

    @app.exception_handler(AuthenticationRequired)
    async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
        return authentication_required_response(request, exc)

    @app.exception_handler(AlreadyAuthenticated)
    async def already_authenticated_handler(request: Request, exc: AlreadyAuthenticated):
        return RedirectResponse("/listings", status_code=303)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Converts FastAPI 422 validation errors to standard format.
        Returns ALL field violations in one response.
        """
        details = []
        for error in exc.errors():
            # Build dot-notation field path, excluding the top-level 'body' loc
            field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
            details.append({"field": field or None, "issue": error["msg"]})
        return make_error_response(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details=details,
            status_code=422,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Not-found and other HTTP errors: error page for HTML, envelope for /api/."""
        if exc.status_code == 404:
            message = exc.detail if exc.detail != "Not Found" else "Page Not Found"
        else:
            message = str(exc.detail)
        if wants_json(request):
            code = _CODE_MAP.get(exc.status_code, f"HTTP_{exc.status_code}")
            return make_error_response(code=code, message=message, status_code=exc.status_code)
        return _render_error(request, exc.status_code, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors.
        debug=True  → includes exception type & message (dev only).
        debug=False → generic message; full traceback logged server-side only.
        """
        logger.error(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        message = "Something went wrong"
        if debug:
            message = f"{message}: {type(exc).__name__}: {exc}"
        if wants_json(request):
            return make_error_response(code="INTERNAL_ERROR", message=message, status_code=500)
        return _render_error(request, 500, message)
