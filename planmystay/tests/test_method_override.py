"""
test_method_override.py — MethodOverrideMiddleware against a bare Starlette echo app.
"""
import pytest
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from planmystay.middleware import MethodOverrideMiddleware


async def echo(request: Request) -> JSONResponse:
    form = await request.form()
    return JSONResponse({"method": request.method, "form": dict(form)})


@pytest.fixture
def echo_app():
    app = Starlette(routes=[Route("/thing", echo, methods=["GET", "POST", "PUT", "PATCH", "DELETE"])])
    app.add_middleware(MethodOverrideMiddleware)
    return app


async def _post(app, url, **kwargs):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(url, **kwargs)


@pytest.mark.asyncio
async def test_query_string_override(echo_app):
    response = await _post(echo_app, "/thing?_method=delete")
    assert response.json()["method"] == "DELETE"


@pytest.mark.asyncio
async def test_form_field_override_keeps_body_readable(echo_app):
    response = await _post(echo_app, "/thing", data={"_method": "PUT", "title": "Villa"})
    body = response.json()
    assert body["method"] == "PUT"
    assert body["form"] == {"_method": "PUT", "title": "Villa"}


@pytest.mark.asyncio
@pytest.mark.parametrize("verb", ["GET", "POST", "TRACE", ""])
async def test_unsupported_override_is_ignored(echo_app, verb):
    response = await _post(echo_app, f"/thing?_method={verb}")
    assert response.json()["method"] == "POST"


@pytest.mark.asyncio
async def test_json_body_is_not_inspected(echo_app):
    async with AsyncClient(transport=ASGITransport(app=echo_app), base_url="http://test") as client:
        response = await client.post("/thing", json={"_method": "DELETE"})
    assert response.json()["method"] == "POST"


@pytest.mark.asyncio
async def test_only_post_is_overridden(echo_app):
    async with AsyncClient(transport=ASGITransport(app=echo_app), base_url="http://test") as client:
        response = await client.get("/thing?_method=DELETE")
    assert response.json()["method"] == "GET"
