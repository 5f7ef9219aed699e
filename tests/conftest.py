"""Pytest configuration and fixtures for CommuniTrack tests.

The API tests run against the in-memory store; no MongoDB is needed.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from communitrack.schemas.user import UserRecord
from communitrack.services.auth import create_access_token, get_password_hash
from communitrack.storage import InMemoryStore

TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "testpassword"


# Create a test-specific app to avoid lifespan conflicts
def create_test_app():
    """Create a FastAPI app configured for testing (no storage lifespan)."""
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse
    from communitrack import __version__
    from communitrack.config import settings

    # Empty lifespan for testing - the store is injected below
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(
        title="CommuniTrack Test",
        version=__version__,
        lifespan=test_lifespan,
    )

    from communitrack.main import app as main_app, limiter as main_limiter
    from communitrack.routers.auth import limiter as auth_limiter

    # Copy all routes except the main app's health check
    for route in main_app.routes:
        if getattr(route, "path", None) == "/health":
            continue
        test_app.routes.append(route)

    main_limiter.enabled = False
    auth_limiter.enabled = False
    test_app.state.limiter = main_limiter
    test_app.state.store = InMemoryStore()

    @test_app.get("/health", tags=["Health"])
    async def health_check() -> JSONResponse:
        return JSONResponse(
            content={
                "status": "healthy",
                "version": __version__,
                "app_name": settings.config.app_name,
                "storage": test_app.state.store.name,
            }
        )

    return test_app


# Get or create test app (singleton for test session)
_test_app = None


def get_test_app():
    """Get the test app singleton."""
    global _test_app
    if _test_app is None:
        _test_app = create_test_app()
    return _test_app


@pytest.fixture
def store() -> InMemoryStore:
    """The test app's store, emptied before each test."""
    memory_store = get_test_app().state.store
    memory_store.reset()
    memory_store.seed_demo_entries = False
    return memory_store


@pytest_asyncio.fixture
async def test_user(store: InMemoryStore) -> UserRecord:
    """Create the default test user."""
    return await store.create_user(
        {
            "email": TEST_EMAIL,
            "username": "testuser",
            "hashed_password": get_password_hash(TEST_PASSWORD),
            "full_name": "Test User",
        }
    )


@pytest.fixture
def auth_headers(test_user: UserRecord) -> dict:
    """Return authorization headers for the test user."""
    access_token = create_access_token(data={"sub": test_user.email})
    return {"Authorization": f"Bearer {access_token}"}


@pytest_asyncio.fixture
async def client(auth_headers: dict) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client authenticated as the test user."""
    transport = ASGITransport(app=get_test_app())
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=auth_headers,
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def unauthenticated_client(store: InMemoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client without authentication."""
    transport = ASGITransport(app=get_test_app())
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac

