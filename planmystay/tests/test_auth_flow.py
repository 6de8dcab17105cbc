"""
test_auth_flow.py — authentication gate, login/logout, flash and session cookie.

All requests go through the full middleware stack over ASGITransport;
redirects are not followed so each hop can be asserted.
"""
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete

from planmystay import store
from planmystay.models.user import UserORM
from planmystay.tests.conftest import build_app
from planmystay.tests.helpers import login, register

COOKIE = "planmystay.sid"


def _session_cookie(response) -> str:
    for header in response.headers.get_list("set-cookie"):
        if header.startswith(f"{COOKIE}="):
            return header
    raise AssertionError("no session cookie issued")


def _cookie_value(header: str) -> str:
    return header.split(";", 1)[0].split("=", 1)[1]


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/listings", "/listings/new", "/services", "/listings/abc/edit"])
async def test_gated_pages_redirect_anonymous_to_login(client, path):
    response = await client.get(path)
    assert response.status_code == 303
    assert response.headers["location"] == "/users/login"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/services/anything"),
        ("DELETE", "/services"),
        ("GET", "/listings/abc/reviews"),
        ("GET", "/listings/abc/def/ghi"),
        ("PATCH", "/listings"),
    ],
)
async def test_gate_covers_unknown_subpaths_and_verbs(client, method, path):
    response = await client.request(method, path)
    assert response.status_code == 303
    assert response.headers["location"] == "/users/login"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "POST", "DELETE"])
async def test_gate_covers_unknown_api_paths(client, method):
    response = await client.request(method, "/api/insights/nope")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_gate_matches_whole_path_segments(client):
    assert (await client.get("/listingsfoo")).status_code == 404


@pytest.mark.asyncio
async def test_signed_in_user_sees_real_not_found_under_gated_prefix(client):
    await register(client, "alice")
    response = await client.get("/services/anything")
    assert response.status_code == 404
    assert "Page Not Found" in response.text


@pytest.mark.asyncio
async def test_gate_runs_before_handler(client, monkeypatch):
    async def boom(*args, **kwargs):
        raise AssertionError("handler must not run for anonymous requests")

    monkeypatch.setattr(store, "list_listings", boom)
    response = await client.get("/listings")
    assert response.status_code == 303


@pytest.mark.asyncio
async def test_gate_flashes_error_once(client):
    await client.get("/listings")

    page = await client.get("/users/login")
    assert "You must be signed in first!" in page.text

    again = await client.get("/users/login")
    assert "You must be signed in first!" not in again.text


@pytest.mark.asyncio
async def test_gated_api_returns_401_envelope(client):
    response = await client.get("/api/insights/summary")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_public_routes_are_not_gated(client):
    assert (await client.get("/")).status_code == 200
    assert (await client.get("/journey")).status_code == 200
    journey = await client.get("/api/journey")
    assert journey.status_code == 200
    assert journey.json() == {"stages": [], "count": 0}


# ---------------------------------------------------------------------------
# Register / login / logout
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_logs_in_and_shows_welcome(client):
    response = await register(client, "alice")
    assert response.status_code == 303
    assert response.headers["location"] == "/listings"

    page = await client.get("/listings")
    assert page.status_code == 200
    assert "Welcome to PlanMyStay, alice!" in page.text
    assert "Signed in as alice" in page.text

    # Flash shown exactly once, identity persists
    again = await client.get("/listings")
    assert "Welcome to PlanMyStay" not in again.text
    assert "Signed in as alice" in again.text


@pytest.mark.asyncio
async def test_duplicate_registration_is_rejected(client):
    await register(client, "alice")
    await client.post("/users/logout")

    response = await register(client, "alice")
    assert response.headers["location"] == "/users/register"
    page = await client.get("/users/register")
    assert "already registered" in page.text


@pytest.mark.asyncio
async def test_invalid_registration_flashes_first_error(client):
    response = await register(client, "al", password="123")
    assert response.status_code == 303
    assert response.headers["location"] == "/users/register"
    page = await client.get("/users/register")
    assert "alert-error" in page.text


@pytest.mark.asyncio
async def test_failed_login_flashes_once_and_stays_anonymous(client):
    await register(client, "alice")
    await client.post("/users/logout")

    response = await login(client, "alice", "wrong-password")
    assert response.status_code == 303
    assert response.headers["location"] == "/users/login"

    page = await client.get("/users/login")
    assert "Invalid username or password" in page.text
    again = await client.get("/users/login")
    assert "Invalid username or password" not in again.text

    assert (await client.get("/listings")).status_code == 303


@pytest.mark.asyncio
async def test_unknown_user_cannot_login(client):
    response = await login(client, "nobody")
    assert response.headers["location"] == "/users/login"


@pytest.mark.asyncio
async def test_login_returns_to_original_page(client):
    await register(client, "alice")
    await client.post("/users/logout")

    await client.get("/listings?q=goa")
    response = await login(client)
    assert response.status_code == 303
    assert response.headers["location"] == "/listings?q=goa"

    page = await client.get(response.headers["location"])
    assert page.status_code == 200
    assert "Welcome back, alice!" in page.text


@pytest.mark.asyncio
async def test_signed_in_user_is_bounced_from_login_page(client):
    await register(client, "alice")
    response = await client.get("/users/login")
    assert response.status_code == 303
    assert response.headers["location"] == "/listings"


@pytest.mark.asyncio
async def test_logout_ends_the_session(client):
    await register(client, "alice")

    response = await client.post("/users/logout")
    assert response.status_code == 303
    assert response.headers["location"] == "/"

    home = await client.get("/")
    assert "You have been logged out" in home.text
    assert "Signed in as" not in home.text
    assert (await client.get("/listings")).status_code == 303


@pytest.mark.asyncio
async def test_deleted_user_is_treated_as_anonymous(app, client):
    await register(client, "alice")
    async with app.state.sessionmaker() as db:
        await db.execute(delete(UserORM))
        await db.commit()

    response = await client.get("/listings")
    assert response.status_code == 303
    assert response.headers["location"] == "/users/login"


# ---------------------------------------------------------------------------
# Session cookie
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cookie_attributes_in_development(client):
    header = _session_cookie(await register(client, "alice"))
    assert "HttpOnly" in header
    assert "SameSite=lax" in header
    assert "Max-Age=86400" in header
    assert "Path=/" in header
    assert "Secure" not in header


@pytest.mark.asyncio
async def test_cookie_is_secure_in_production():
    app = await build_app(node_env="production")
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            header = _session_cookie(await client.get("/listings"))
    finally:
        await app.state.engine.dispose()
    assert "; Secure" in header
    assert "HttpOnly" in header


@pytest.mark.asyncio
async def test_anonymous_visit_without_session_data_sets_no_cookie(client):
    response = await client.get("/")
    assert COOKIE not in response.headers.get("set-cookie", "")


@pytest.mark.asyncio
async def test_session_key_rotates_on_login(app, client):
    await register(client, "alice")
    await client.post("/users/logout")

    before = _cookie_value(_session_cookie(await client.get("/listings")))
    after = _cookie_value(_session_cookie(await login(client)))
    assert before != after

    # The pre-login key no longer resolves to anything
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={COOKIE: before},
    ) as stale:
        assert (await stale.get("/listings")).status_code == 303


@pytest.mark.asyncio
async def test_tampered_cookie_is_ignored(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={COOKIE: "forged.value.sig"},
    ) as client:
        response = await client.get("/listings")
    assert response.status_code == 303
