"""
Test configuration for PlanMyStay tests.

Every test app runs against a private in-memory SQLite database (aiosqlite)
created straight from Base.metadata — no PostgreSQL, no migrations needed.
Run from the repository root: pytest -v
"""
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import planmystay.models  # noqa: F401  (registers tables on Base.metadata)
from planmystay.database import Base
from planmystay.main import create_app
from planmystay.tests.helpers import make_settings


async def build_app(**overrides):
    application = create_app(make_settings(**overrides))
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return application


@pytest_asyncio.fixture
async def app():
    application = await build_app()
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    """Async httpx client using ASGI transport — no live server needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
