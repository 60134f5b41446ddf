"""
Pytest configuration and shared fixtures.
"""

import os

# Settings are read at import time; the signing secret is mandatory
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_SIGNUP_KEY"] = "test-admin-key"

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from accounts.database import UserRepository
from accounts.models import AuthenticatedUser, Role
from accounts.service import AccountService
from accounts.tokens import TokenService
from catalog.database import BookRepository
from catalog.service import CatalogService

TEST_SECRET = "test-secret"
ADMIN_KEY = "test-admin-key"


@pytest.fixture
def mongo_database():
    """In-memory motor-compatible database, fresh per test."""
    client = AsyncMongoMockClient()
    return client["bookstore_test"]


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest_asyncio.fixture
async def user_repository(mongo_database):
    repository = UserRepository(mongo_database["users"])
    await repository.ensure_indexes()
    return repository


@pytest_asyncio.fixture
async def book_repository(mongo_database):
    repository = BookRepository(mongo_database["books"])
    await repository.ensure_indexes()
    return repository


@pytest.fixture
def account_service(user_repository, token_service):
    return AccountService(user_repository, token_service, admin_signup_key=ADMIN_KEY)


@pytest.fixture
def catalog_service(book_repository):
    return CatalogService(book_repository)


@pytest.fixture
def admin_user():
    return AuthenticatedUser(id="64b000000000000000000001", role=Role.ADMIN)


@pytest.fixture
def regular_user():
    return AuthenticatedUser(id="64b000000000000000000002", role=Role.USER)


@pytest.fixture
def sample_book_payload():
    """Create sample book data for testing."""
    return {
        "title": "Malgudi Days",
        "description": "A collection of short stories",
        "price": 500,
        "stock": 100,
        "category": "Fiction",
        "authorName": "R.K. Narayan",
        "rating": 4.5,
    }


@pytest.fixture
def make_book():
    """Factory for book bodies with sensible defaults."""
    def _make_book(title, category="Fiction", author="R.K. Narayan", rating=4.0, stock=10, price=250.0):
        return {
            "title": title,
            "price": price,
            "stock": stock,
            "category": category,
            "authorName": author,
            "rating": rating,
        }
    return _make_book
