"""
Pytest configuration and fixtures for Librarian tests.
"""

from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from librarian.api.main import create_app
from librarian.api.dependencies import get_repository
from librarian.config import Settings
from librarian.security import create_access_token
from librarian.storage import (
    Author,
    Genre,
    User,
    Role,
    UserStatus,
    InMemoryRepository,
    SQLRepository,
)

TEST_SECRET = "test-secret"


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings() -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url="sqlite://",
        database_echo=False,
        auto_migrate=False,
        jwt_secret=TEST_SECRET,
        jwt_algorithm="HS256",
        environment="test",
        debug=True,
    )


# =============================================================================
# Repository Fixtures
# =============================================================================

@pytest.fixture
def sql_repository():
    """Fresh in-memory SQLite repository with the schema created."""
    repo = SQLRepository("sqlite://")
    repo.create_schema()
    yield repo
    repo.dispose()


@pytest.fixture
def memory_repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture(params=["memory", "sql"])
def repository(request):
    """Every repository implementation, for contract tests."""
    return request.getfixturevalue(f"{request.param}_repository")


# =============================================================================
# Data Fixtures
# =============================================================================

def seed_catalog(repo) -> dict:
    """Users, a genre and two authors."""
    admin = repo.insert(User(name="Admin", email="admin@example.com", password_hash="x", role=Role.ADMIN.value))
    alice = repo.insert(User(name="Alice", email="alice@example.com", password_hash="x"))
    bob = repo.insert(User(name="Bob", email="bob@example.com", password_hash="x"))
    carol = repo.insert(User(name="Carol", email="carol@example.com", password_hash="x"))
    mallory = repo.insert(
        User(name="Mallory", email="mallory@example.com", password_hash="x", status=UserStatus.BLOCKED.value)
    )
    genre = repo.insert(Genre(name="Science Fiction"))
    herbert = repo.insert(Author(name="Frank Herbert", country="USA"))
    le_guin = repo.insert(Author(name="Ursula K. Le Guin", country="USA"))
    return {
        "admin": admin,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "mallory": mallory,
        "genre": genre,
        "herbert": herbert,
        "le_guin": le_guin,
    }


@pytest.fixture
def seeded(sql_repository) -> dict:
    """Seed data in the repository the app uses."""
    return seed_catalog(sql_repository)


@pytest.fixture
def catalog_data(repository) -> dict:
    """Seed data in the parametrized repository."""
    return seed_catalog(repository)


@pytest.fixture
def token_for() -> Callable[[User], str]:
    """Build a bearer token for a user."""
    def _token(user: User) -> str:
        return create_access_token(user.id, TEST_SECRET)
    return _token


@pytest.fixture
def auth_headers(token_for) -> Callable[[User], dict]:
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _headers


@pytest.fixture
def sample_book_data(seeded) -> dict:
    """Sample book creation payload."""
    return {
        "title": "Dune",
        "description": "Desert planet politics.",
        "publication_year": 1965,
        "isbn": "9780441172719",
        "genre_id": seeded["genre"].id,
        "total_copies": 2,
        "author_ids": [seeded["herbert"].id],
    }


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(sql_repository):
    """Create FastAPI application for testing."""
    application = create_app(settings=get_test_settings())

    # Settings come from the factory argument; only the store is swapped
    application.dependency_overrides[get_repository] = lambda: sql_repository

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
