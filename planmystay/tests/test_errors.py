"""
test_errors.py — not-found and unhandled-error handling, HTML and JSON flavours.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from planmystay.tests.conftest import build_app


async def _explode():
    raise RuntimeError("kaboom")


async def _client_for(app):
    return AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    )


@pytest.mark.asyncio
async def test_unknown_page_renders_not_found(client):
    response = await client.get("/no/such/page")
    assert response.status_code == 404
    assert "text/html" in response.headers["content-type"]
    assert "Page Not Found" in response.text
    assert "Back to home" in response.text


@pytest.mark.asyncio
async def test_unknown_api_path_returns_envelope(client):
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {
        "error": {"code": "NOT_FOUND", "message": "Page Not Found", "details": []}
    }


@pytest.mark.asyncio
async def test_unhandled_error_hides_details_by_default():
    app = await build_app()
    app.add_api_route("/boom", _explode)
    app.add_api_route("/api/boom", _explode)
    try:
        async with await _client_for(app) as client:
            page = await client.get("/boom")
            api = await client.get("/api/boom")
    finally:
        await app.state.engine.dispose()

    assert page.status_code == 500
    assert "Something went wrong" in page.text
    assert "kaboom" not in page.text

    assert api.status_code == 500
    assert api.json()["error"]["code"] == "INTERNAL_ERROR"
    assert api.json()["error"]["message"] == "Something went wrong"


@pytest.mark.asyncio
async def test_unhandled_error_shows_details_in_debug():
    app = await build_app(debug=True)
    app.add_api_route("/api/boom", _explode)
    try:
        async with await _client_for(app) as client:
            api = await client.get("/api/boom")
    finally:
        await app.state.engine.dispose()

    assert api.status_code == 500
    assert api.json()["error"]["message"] == "Something went wrong: RuntimeError: kaboom"


@pytest.mark.asyncio
async def test_openapi_documents_error_envelope(client):
    schema = (await client.get("/api/openapi.json")).json()
    envelope = "#/components/schemas/ErrorResponse"

    def response_ref(path: str, method: str, status: str) -> str:
        content = schema["paths"][path][method]["responses"][status]["content"]
        return content["application/json"]["schema"]["$ref"]

    assert response_ref("/api/insights/summary", "get", "401") == envelope
    assert response_ref("/api/journey/{slug}", "get", "404") == envelope
    assert response_ref("/api/predict-price", "post", "422") == envelope
    assert set(schema["components"]["schemas"]["ErrorBody"]["properties"]) == {"code", "message", "details"}
