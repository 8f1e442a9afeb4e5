"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- An in-memory MongoDB (mongomock-motor) per test
- Repository fixtures bound to that database
"""

import os

import pytest


# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["MONGO_URI"] = "mongodb://localhost:27017/portfolio_builder_test"
os.environ["MONGO_DB_NAME"] = "portfolio_builder_test"
os.environ["LOG_JSON"] = "true"


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture(scope="function")
def mongo_db():
    """
    Provide a fresh in-memory database for each test.

    Nothing is shared between tests: every call builds a new mock client.
    """
    from mongomock_motor import AsyncMongoMockClient

    client = AsyncMongoMockClient()
    return client["portfolio_builder_test"]


@pytest.fixture
def template_repo(mongo_db):
    from portfolio_builder.repositories.template import TemplateRepository

    return TemplateRepository(mongo_db)


@pytest.fixture
def portfolio_repo(mongo_db):
    from portfolio_builder.repositories.portfolio import PortfolioRepository

    return PortfolioRepository(mongo_db)


@pytest.fixture
def contact_repo(mongo_db):
    from portfolio_builder.repositories.contact import ContactRepository

    return ContactRepository(mongo_db)


@pytest.fixture
def user_repo(mongo_db):
    from portfolio_builder.repositories.user import UserRepository

    return UserRepository(mongo_db)


@pytest.fixture
async def minimal_template(template_repo):
    """A saved, inactive, non-premium template titled "Minimal"."""
    return await template_repo.create(
        {
            "title": "Minimal",
            "description": "Clean single-column layout",
            "primary_color": "#111111",
            "secondary_color": "#fafafa",
            "font": "Inter",
            "premium": False,
            "tags": ["simple", "light"],
            "status": "inactive",
            "created_by": "user_admin",
        }
    )
