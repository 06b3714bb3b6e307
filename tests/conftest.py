"""
Pytest configuration and fixtures for Bookshelf tests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from bookshelf.api.main import create_app
from bookshelf.api.dependencies import (
    Settings,
    get_settings,
    get_session_factory,
    init_stores,
    close_stores,
)
from bookshelf.storage.seed import seed_admin


ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password123"


# =============================================================================
# Test Settings
# =============================================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with throw-away SQLite files for both stores."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}",
        catalogue_database_url=f"sqlite+aiosqlite:///{tmp_path / 'catalogue.db'}",
        database_echo=False,
        environment="test",
        debug=False,
    )


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def stores(settings):
    """Open both stores; ASGITransport does not run the app lifespan."""
    services = await init_stores(settings)
    yield services
    await close_stores()


@pytest_asyncio.fixture(scope="function")
async def session_factory(stores):
    """Accounts database session factory."""
    return get_session_factory()


@pytest_asyncio.fixture(scope="function")
async def repository(stores):
    """Catalogue repository backed by the test catalogue database."""
    return stores.book_repository


@pytest_asyncio.fixture(scope="function")
async def admin_user(session_factory):
    """Seeded administrator with an "Admin Collection"."""
    return await seed_admin(session_factory, ADMIN_USERNAME, ADMIN_PASSWORD)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def app(settings, stores):
    """Create FastAPI application for testing."""
    application = create_app(settings)

    # Override dependencies
    application.dependency_overrides[get_settings] = lambda: settings

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def client_factory(app):
    """
    Make extra clients, each with its own cookie jar.

    Lets one test act as several logged-in users at once.
    """
    clients = []

    def make() -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        return ac

    yield make

    for ac in clients:
        await ac.aclose()


# =============================================================================
# Helpers
# =============================================================================

async def register(client: AsyncClient, username: str, password: str = "correct horse battery") -> dict:
    response = await client.post(
        "/api/auth/register",
        json={"username": username, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def login(client: AsyncClient, username: str, password: str) -> dict:
    response = await client.post(
        "/api/auth/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture(scope="function")
async def admin_client(client_factory, admin_user) -> AsyncClient:
    """Client logged in as the seeded administrator."""
    ac = client_factory()
    await login(ac, ADMIN_USERNAME, ADMIN_PASSWORD)
    return ac


@pytest.fixture
def sample_book_data() -> dict:
    """Sample book data for testing."""
    return {
        "title": "The Design of Everyday Things",
        "author": "Don Norman",
        "isbn": "9780465050659",
        "category": "Design",
    }
