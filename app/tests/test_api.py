"""End-to-end checks of the HTTP layer against an in-memory database."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.db.session import get_session
from app.main import app
from app.routers.deps import get_media_store
from app.tests.factories import FakeMediaStore

pytest_plugins = ("pytest_asyncio",)

PNG = ("image.png", b"\x89PNG fake", "image/png")


@pytest_asyncio.fixture
async def client(engine, tmp_path, monkeypatch):
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async def _session():
        async with SessionLocal() as session:
            yield session

    store = FakeMediaStore()
    monkeypatch.setattr(settings, "upload_tmp_dir", str(tmp_path / "temp"))
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_media_store] = lambda: store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://test") as http:
        yield http

    app.dependency_overrides.clear()


async def _register_and_login(client: httpx.AsyncClient, username: str) -> dict:
    response = await client.post(
        "/users/register",
        data={"username": username, "email": f"{username}@example.com", "full_name": username, "password": "pw-123"},
        files={"avatar": PNG},
    )
    assert response.status_code == 201, response.text

    response = await client.post("/users/login", json={"username": username, "password": "pw-123"})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.asyncio
async def test_healthcheck(client):
    response = await client.get("/healthz")
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_account_session_flow(client, tmp_path):
    body = await _register_and_login(client, "alice")
    assert body["user"]["username"] == "alice"
    assert "password_hash" not in body["user"]
    assert client.cookies.get("accessToken") == body["access_token"]
    # staged uploads are cleaned up after the request
    assert list((tmp_path / "temp").iterdir()) == []

    me = await client.get("/users/current-user")
    assert me.status_code == 200
    assert me.json()["email"] == "alice@example.com"

    refreshed = await client.post("/users/refresh-token")
    assert refreshed.status_code == 200
    fresh = refreshed.json()

    client.cookies.clear()
    reused = await client.post("/users/refresh-token", json={"refresh_token": body["refresh_token"]})
    assert reused.status_code == 401

    bearer = {"Authorization": f"Bearer {fresh['access_token']}"}
    assert (await client.get("/users/current-user", headers=bearer)).status_code == 200

    logout = await client.post("/users/logout", headers=bearer)
    assert logout.json() == {"message": "User logged out successfully"}
    cleared = logout.headers.get_list("set-cookie")
    assert [header.split("=", 1)[0] for header in cleared] == ["accessToken", "refreshToken"]
    for header in cleared:
        assert "HttpOnly" in header and "Secure" in header and "SameSite=lax" in header
    after_logout = await client.post("/users/refresh-token", json={"refresh_token": fresh["refresh_token"]})
    assert after_logout.status_code == 401


@pytest.mark.asyncio
async def test_auth_errors_map_to_status_codes(client):
    anonymous = await client.get("/users/current-user")
    assert anonymous.status_code == 401
    assert anonymous.json() == {"detail": "Unauthorized request"}

    forged = await client.get("/users/current-user", headers={"Authorization": "Bearer nonsense"})
    assert forged.status_code == 401

    await _register_and_login(client, "bob")
    again = await client.post(
        "/users/register",
        data={"username": "bob", "email": "bob@example.com", "full_name": "Bob", "password": "pw"},
        files={"avatar": PNG},
    )
    assert again.status_code == 409

    missing_avatar = await client.post(
        "/users/register",
        data={"username": "carl", "email": "carl@example.com", "full_name": "Carl", "password": "pw"},
    )
    assert missing_avatar.status_code == 400


@pytest.mark.asyncio
async def test_video_publish_watch_like_and_ownership(client):
    await _register_and_login(client, "creator")
    published = await client.post(
        "/videos",
        data={"title": "Launch", "description": "hello"},
        files={"videoFile": ("clip.mp4", b"video", "video/mp4"), "thumbnail": PNG},
    )
    assert published.status_code == 201, published.text
    video_id = published.json()["id"]

    watched = await client.get(f"/videos/{video_id}")
    assert watched.json()["views"] == 1

    liked = await client.post(f"/likes/toggle/v/{video_id}")
    assert liked.json() == {"active": True}
    detail = await client.get(f"/videos/{video_id}")
    assert (detail.json()["like_count"], detail.json()["is_liked"]) == (1, True)

    history = await client.get("/users/history")
    assert [item["id"] for item in history.json()["items"]] == [video_id]

    listing = await client.get("/videos", params={"page": "abc", "limit": "-3"})
    assert (listing.json()["page"], listing.json()["limit"], listing.json()["total"]) == (1, 10, 1)

    bad_id = await client.get("/videos/not-a-uuid")
    assert bad_id.status_code == 400
    assert bad_id.json() == {"detail": "Invalid video id"}

    client.cookies.clear()
    await _register_and_login(client, "intruder")
    forbidden = await client.delete(f"/videos/{video_id}")
    assert forbidden.status_code == 403

    subscribed = await client.post(f"/subscriptions/c/{published.json()['owner']['id']}")
    assert subscribed.json() == {"active": True}
    profile = await client.get("/users/c/creator")
    assert (profile.json()["subscriber_count"], profile.json()["is_subscribed"]) == (1, True)

    stats = await client.get(f"/dashboard/channels/{published.json()['owner']['id']}/stats")
    assert stats.json()["total_views"] == 2
    assert stats.json()["total_subscribers"] == 1
