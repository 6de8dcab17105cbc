"""
main.py — PlanMyStay FastAPI application entry point.

Start with: python -m planmystay
       or:  uvicorn planmystay.main:app --port 3000

create_app() is the composition root. Order matters and is fixed:
  1. settings        (config.py — fail fast in production without secrets)
  2. database        (one async engine; connectivity verified in lifespan)
  3. templates       (Jinja2, views/ + layouts/boilerplate.html)
  4. method override + static files (public/ at /static)
  5-6. session store + cookie (expired records swept by a lifespan task)
  7. flash           (sessions/flash.py, drained by the context middleware)
  8. auth strategy   (LocalPasswordStrategy, swappable)
  9. request context (current_user, success, error)
  10. routers; GATED_PREFIXES are enforced by AuthGateMiddleware before
      routing, and require_auth hands the Identity to the handlers
  11. not-found / error handlers
"""
import asyncio
import logging
import os
import subprocess
import sys
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.staticfiles import StaticFiles

from planmystay.auth import LocalPasswordStrategy, RequestContextMiddleware, require_auth
from planmystay.config import PACKAGE_DIR, Settings, settings as default_settings
from planmystay.database import (
    DatabaseConnectionError,
    check_connection,
    create_engine,
    create_sessionmaker,
)
from planmystay.errors import install_error_handlers
from planmystay.middleware import AuthGateMiddleware, MethodOverrideMiddleware
from planmystay.routes import insights, journey, listings, pages, reviews, services, users
from planmystay.schemas import ErrorResponse
from planmystay.sessions import SessionCipher, SessionMiddleware, SessionStore
from planmystay.sessions.store import log_store_error, purge_periodically
from planmystay.templating import create_templates

# ---------------------------------------------------------------------------
# Logging — configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if default_settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Every path under these requires a signed-in user, matched route or not
GATED_PREFIXES = ("/listings", "/services", "/api/insights")


def run_migrations(database_url: str) -> None:
    """Apply Alembic migrations up to head; raises RuntimeError on failure."""
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=PACKAGE_DIR,
        env={**os.environ, "DATABASE_URL": database_url},
    )
    if result.returncode != 0:
        logger.error("Alembic migration failed:\n%s", result.stderr)
        raise RuntimeError(f"Alembic migration failed: {result.stderr}")
    msg = result.stdout.strip() or "No pending migrations"
    logger.info("Alembic: %s", msg)


# ---------------------------------------------------------------------------
# Lifespan — startup & shutdown hooks
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      1. Verify the database connection — failure is fatal, the server never
         starts accepting connections (no retry, no degraded mode)
      2. Run Alembic migrations when auto_migrate is on
      3. Start the expired-session sweeper
    Shutdown:
      1. Cancel the sweeper
      2. Dispose of the engine's connection pool
    """
    settings: Settings = app.state.settings

    # --- 1. Database: fail fast ---
    try:
        await check_connection(app.state.engine)
    except DatabaseConnectionError as exc:
        logger.error("Database connection error: %s", exc)
        await app.state.engine.dispose()
        raise
    logger.info("Connected to database successfully")

    # --- 2. Database: run Alembic migrations ---
    if settings.auto_migrate:
        run_migrations(settings.database_url)

    # --- 3. Sessions: periodic purge of expired records ---
    app.state.session_purge_task = asyncio.create_task(
        purge_periodically(app.state.session_store, settings.session_purge_interval)
    )

    logger.info(
        "PlanMyStay v%s ready on port %d (environment=%s)",
        settings.app_version,
        settings.port,
        settings.node_env,
    )
    yield

    # --- Shutdown ---
    app.state.session_purge_task.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.session_purge_task
    await app.state.engine.dispose()
    logger.info("Database connection pool closed")
    logger.info("PlanMyStay shutting down")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title="PlanMyStay",
        version=settings.app_version,
        description="Travel listings: browse, host and review places to stay.",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )

    # --- Shared resources ---
    engine = create_engine(settings.database_url, echo=settings.debug)
    sessionmaker = create_sessionmaker(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    app.state.templates = create_templates(settings.views_dir)
    app.state.auth_strategy = LocalPasswordStrategy()
    app.state.session_store = SessionStore(
        sessionmaker,
        SessionCipher(settings.secret),
        ttl=settings.session_store_ttl,
        touch_after=settings.session_touch_after,
        on_error=log_store_error,
    )

    # --- Middleware — added innermost first ---
    app.add_middleware(AuthGateMiddleware, prefixes=GATED_PREFIXES)
    app.add_middleware(RequestContextMiddleware, sessionmaker=sessionmaker)
    app.add_middleware(
        SessionMiddleware,
        store=app.state.session_store,
        secret=settings.secret,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_max_age,
        https_only=settings.is_production,
    )
    app.add_middleware(MethodOverrideMiddleware)

    # --- Routes — fixed order ---
    gated = [Depends(require_auth)]
    api_errors = {401: {"model": ErrorResponse}}
    app.include_router(users.router, prefix="/users")
    app.include_router(listings.router, prefix="/listings", dependencies=gated)
    app.include_router(reviews.router, prefix="/listings/{listing_id}/reviews", dependencies=gated)
    app.include_router(insights.router, prefix="/api/insights", dependencies=gated, responses=api_errors)
    app.include_router(services.router, prefix="/services", dependencies=gated)
    app.include_router(journey.router, prefix="/api/journey", responses={404: {"model": ErrorResponse}})
    app.include_router(pages.router)
    app.mount(
        "/static",
        StaticFiles(directory=settings.public_dir, check_dir=False),
        name="static",
    )

    # --- Fallback handlers — last ---
    install_error_handlers(app, debug=settings.debug)
    return app


app = create_app()
