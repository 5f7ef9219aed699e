"""Tests for registration, login tokens and the profile endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import jwt

from communitrack.config import get_settings
from communitrack.schemas.user import UserRecord
from communitrack.services.auth import (
    ALGORITHM,
    authenticate_user,
    create_access_token,
    get_password_hash,
    verify_password,
)
from communitrack.storage import InMemoryStore


def test_password_hashing() -> None:
    hashed = get_password_hash("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_access_token_claims() -> None:
    token = create_access_token({"sub": "anna@example.com"})
    payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    assert payload["sub"] == "anna@example.com"
    assert payload["jti"]
    assert "exp" in payload

    other = create_access_token({"sub": "anna@example.com"})
    assert jwt.decode(other, get_settings().secret_key, algorithms=[ALGORITHM])["jti"] != payload["jti"]


@pytest.mark.asyncio
async def test_authenticate_user(store: InMemoryStore, test_user: UserRecord) -> None:
    user = await authenticate_user(store, "TEST@example.com", "testpassword", "127.0.0.1")
    assert user is not None
    assert user.last_login is not None

    assert await authenticate_user(store, "test@example.com", "wrong") is None
    assert await authenticate_user(store, "nobody@example.com", "testpassword") is None

    await store.update_user(test_user.id, {"is_active": False})
    assert await authenticate_user(store, "test@example.com", "testpassword") is None


@pytest.mark.asyncio
async def test_register_and_login(unauthenticated_client: AsyncClient) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/register",
        json={
            "email": "Anna@Example.com",
            "username": "anna",
            "password": "supersecret",
            "language": "en",
        },
    )
    assert response.status_code == 201
    user = response.json()
    assert user["email"] == "anna@example.com"
    assert user["language"] == "en"
    assert "hashed_password" not in user

    response = await unauthenticated_client.post(
        "/api/auth/token",
        data={"username": "anna@example.com", "password": "supersecret"},
    )
    assert response.status_code == 200
    token = response.json()
    assert token["token_type"] == "bearer"
    assert token["expires_in"] == get_settings().auth.token_lifetime_minutes * 60

    response = await unauthenticated_client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {token['access_token']}"},
    )
    assert response.status_code == 200
    assert response.json()["username"] == "anna"
    assert response.json()["last_login"] is not None


@pytest.mark.asyncio
async def test_register_duplicate(unauthenticated_client: AsyncClient, test_user: UserRecord) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/register",
        json={"email": test_user.email, "username": "someoneelse", "password": "supersecret"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_register_validation(unauthenticated_client: AsyncClient) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "username": "anna", "password": "supersecret"},
    )
    assert response.status_code == 422

    response = await unauthenticated_client.post(
        "/api/auth/register",
        json={"email": "anna@example.com", "username": "anna", "password": "short"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_disabled(unauthenticated_client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr(get_settings().config.auth, "registration_enabled", False)
    response = await unauthenticated_client.post(
        "/api/auth/register",
        json={"email": "anna@example.com", "username": "anna", "password": "supersecret"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_login_wrong_password(unauthenticated_client: AsyncClient, test_user: UserRecord) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/token",
        data={"username": test_user.email, "password": "wrongpassword"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_and_expired_tokens(unauthenticated_client: AsyncClient, test_user: UserRecord) -> None:
    response = await unauthenticated_client.get(
        "/api/auth/me", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401

    expired = create_access_token({"sub": test_user.email}, expires_delta=timedelta(minutes=-1))
    response = await unauthenticated_client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {expired}"}
    )
    assert response.status_code == 401

    unknown = create_access_token({"sub": "ghost@example.com"})
    response = await unauthenticated_client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {unknown}"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_me(client: AsyncClient) -> None:
    response = await client.get("/api/auth/me")
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "test@example.com"
    assert data["full_name"] == "Test User"
    assert data["language"] == "de"


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient) -> None:
    response = await client.patch("/api/auth/me", json={"language": "en", "full_name": "Anna B."})
    assert response.status_code == 200
    assert response.json()["language"] == "en"
    assert response.json()["full_name"] == "Anna B."

    response = await client.patch("/api/auth/me", json={"language": None})
    assert response.status_code == 200
    assert response.json()["language"] == "en"

    response = await client.patch("/api/auth/me", json={"language": "fr"})
    assert response.status_code == 422
