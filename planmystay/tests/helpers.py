"""
Shared helpers for PlanMyStay tests.
"""
from httpx import AsyncClient, Response

from planmystay.config import Settings

DEFAULT_PASSWORD = "s3cret-pass"


def make_settings(**overrides) -> Settings:
    values = {
        "node_env": "test",
        "database_url": "sqlite+aiosqlite://",
        "secret": "test-secret",
        "auto_migrate": False,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def register(
    client: AsyncClient,
    username: str = "alice",
    password: str = DEFAULT_PASSWORD,
    email: str | None = None,
) -> Response:
    return await client.post(
        "/users/register",
        data={"username": username, "email": email or f"{username}@planmystay.io", "password": password},
    )


async def login(client: AsyncClient, username: str = "alice", password: str = DEFAULT_PASSWORD) -> Response:
    return await client.post("/users/login", data={"username": username, "password": password})


async def create_listing(client: AsyncClient, **fields) -> str:
    """Create a listing as the signed-in user and return its id."""
    data = {
        "title": "Cozy Beach House",
        "description": "Steps from the sea",
        "image_url": "",
        "price": "3200",
        "location": "Goa",
        "country": "India",
    }
    data.update({k: str(v) for k, v in fields.items()})
    response = await client.post("/listings", data=data)
    assert response.status_code == 303, response.text
    location = response.headers["location"]
    assert location.startswith("/listings/")
    return location.rsplit("/", 1)[-1]
