"""
Tests for MongoConnectionManager.

The motor client is replaced by a factory returning mocks so connection
caching, retry-after-failure and index setup can be checked without a server.
"""

import asyncio
from collections import defaultdict
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ASCENDING, TEXT
from pymongo.errors import ServerSelectionTimeoutError

from portfolio_builder.core.config import Settings
from portfolio_builder.core.database import MongoConnectionManager
from portfolio_builder.core.exceptions import ConnectionNotInitializedError


def make_settings(**overrides) -> Settings:
    values = {"mongo_uri": "mongodb://db.example:27017/app", "mongo_db_name": "app"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_client(ping_side_effect=None):
    """Mock motor client whose admin ping behaves as given."""
    client = MagicMock()
    client.admin.command = AsyncMock(side_effect=ping_side_effect, return_value={"ok": 1})

    collections = defaultdict(lambda: MagicMock(create_index=AsyncMock()))
    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections[name]
    database.collections = collections
    client.get_default_database.return_value = database
    return client


class FakeClientFactory:
    """Records calls and hands out pre-built clients in order."""

    def __init__(self, *clients):
        self.clients = list(clients)
        self.calls = []

    def __call__(self, uri, **kwargs):
        self.calls.append((uri, kwargs))
        return self.clients.pop(0)


class TestConnect:
    """Tests for connect() caching and failure handling."""

    @pytest.mark.anyio
    async def test_connect_passes_pool_and_timeouts(self):
        # Arrange
        factory = FakeClientFactory(make_client())
        manager = MongoConnectionManager(make_settings(max_pool_size=7), client_factory=factory)

        # Act
        await manager.connect()

        # Assert
        uri, kwargs = factory.calls[0]
        assert uri == "mongodb://db.example:27017/app"
        assert kwargs["maxPoolSize"] == 7
        assert kwargs["serverSelectionTimeoutMS"] == 5000
        assert kwargs["socketTimeoutMS"] == 45000

    @pytest.mark.anyio
    async def test_connect_is_cached(self):
        # Arrange
        client = make_client()
        factory = FakeClientFactory(client)
        manager = MongoConnectionManager(make_settings(), client_factory=factory)

        # Act
        first = await manager.connect()
        second = await manager.connect()

        # Assert
        assert first is second
        assert len(factory.calls) == 1
        assert manager.is_connected is True
        assert manager.database is first
        client.get_default_database.assert_called_once_with(default="app")

    @pytest.mark.anyio
    async def test_concurrent_callers_share_one_attempt(self):
        """
        Arrange: A ping that takes a moment to answer
        Act: Five concurrent connect() calls
        Assert: One client built, every caller gets the same handle
        """
        # Arrange
        async def slow_ping(*args, **kwargs):
            await asyncio.sleep(0.01)
            return {"ok": 1}

        client = make_client(ping_side_effect=slow_ping)
        factory = FakeClientFactory(client)
        manager = MongoConnectionManager(make_settings(), client_factory=factory)

        # Act
        results = await asyncio.gather(*(manager.connect() for _ in range(5)))

        # Assert
        assert len(factory.calls) == 1
        assert all(db is results[0] for db in results)

    @pytest.mark.anyio
    async def test_failed_attempt_is_not_cached(self):
        # Arrange
        failing = make_client(ping_side_effect=ServerSelectionTimeoutError("no servers"))
        working = make_client()
        factory = FakeClientFactory(failing, working)
        manager = MongoConnectionManager(make_settings(), client_factory=factory)

        # Act
        with pytest.raises(ServerSelectionTimeoutError):
            await manager.connect()
        database = await manager.connect()

        # Assert
        assert len(factory.calls) == 2
        failing.close.assert_called_once()
        assert database is working.get_default_database.return_value

    @pytest.mark.anyio
    async def test_failed_attempt_with_no_waiting_caller_is_not_cached(self):
        """
        Arrange: A ping that fails after a delay, then a healthy server
        Act: Cancel the only caller mid-ping, let the attempt fail, connect again
        Assert: The second connect builds a fresh client and succeeds
        """
        # Arrange
        async def failing_ping(*args, **kwargs):
            await asyncio.sleep(0.01)
            raise ServerSelectionTimeoutError("down")

        failing = make_client(ping_side_effect=failing_ping)
        working = make_client()
        factory = FakeClientFactory(failing, working)
        manager = MongoConnectionManager(make_settings(), client_factory=factory)

        first = asyncio.ensure_future(manager.connect())
        await asyncio.sleep(0.001)
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        await asyncio.sleep(0.05)

        # Act
        database = await manager.connect()

        # Assert
        assert len(factory.calls) == 2
        failing.close.assert_called_once()
        assert database is working.get_default_database.return_value

    @pytest.mark.anyio
    async def test_database_before_connect_raises(self):
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory())

        with pytest.raises(ConnectionNotInitializedError):
            manager.database

    def test_not_connected_error_is_a_runtime_error(self):
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory())

        with pytest.raises(RuntimeError):
            manager.database


class TestLifecycle:
    """Tests for close() and the async context manager."""

    @pytest.mark.anyio
    async def test_close_releases_client(self):
        # Arrange
        client = make_client()
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory(client))
        await manager.connect()

        # Act
        await manager.close()
        await manager.close()

        # Assert
        client.close.assert_called_once()
        assert manager.is_connected is False

    @pytest.mark.anyio
    async def test_reconnect_after_close_builds_new_client(self):
        # Arrange
        factory = FakeClientFactory(make_client(), make_client())
        manager = MongoConnectionManager(make_settings(), client_factory=factory)
        await manager.connect()
        await manager.close()

        # Act
        await manager.connect()

        # Assert
        assert len(factory.calls) == 2

    @pytest.mark.anyio
    async def test_context_manager(self):
        # Arrange
        client = make_client()
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory(client))

        # Act
        async with manager as db:
            assert db is client.get_default_database.return_value
            assert manager.is_connected

        # Assert
        client.close.assert_called_once()
        assert manager.is_connected is False


class TestEnsureIndexes:
    """Tests for ensure_indexes()."""

    @pytest.mark.anyio
    async def test_creates_expected_indexes(self):
        # Arrange
        client = make_client()
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory(client))

        # Act
        await manager.ensure_indexes()

        # Assert
        collections = client.get_default_database.return_value.collections
        collections["users"].create_index.assert_awaited_once_with("external_id", unique=True)
        collections["portfolios"].create_index.assert_any_await("slug", unique=True)
        collections["portfolios"].create_index.assert_any_await("user_id")
        collections["templates"].create_index.assert_awaited_once_with(
            [("title", TEXT), ("description", TEXT)],
            name="template_text_search",
        )
        collections["contacts"].create_index.assert_awaited_once_with(
            [("portfolio_id", ASCENDING), ("email", ASCENDING)],
            unique=True,
            name="contact_portfolio_email_unique",
        )
        collections["analytics"].create_index.assert_awaited_once_with("portfolio_id")

    @pytest.mark.anyio
    async def test_unique_template_titles_opt_in(self):
        # Arrange
        client = make_client()
        manager = MongoConnectionManager(
            make_settings(unique_template_titles=True),
            client_factory=FakeClientFactory(client),
        )

        # Act
        await manager.ensure_indexes()

        # Assert
        templates = client.get_default_database.return_value.collections["templates"]
        templates.create_index.assert_any_await(
            "title", unique=True, name="template_title_unique"
        )


class TestCheckConnection:
    """Tests for the health probe."""

    @pytest.mark.anyio
    async def test_healthy(self):
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory(make_client()))

        assert await manager.check_connection() is True

    @pytest.mark.anyio
    async def test_unreachable_returns_false(self):
        # Arrange
        failing = make_client(ping_side_effect=ServerSelectionTimeoutError("no servers"))
        manager = MongoConnectionManager(make_settings(), client_factory=FakeClientFactory(failing))

        # Act & Assert
        assert await manager.check_connection() is False

    @pytest.mark.anyio
    async def test_timeout_returns_false(self):
        # Arrange
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        manager = MongoConnectionManager(
            make_settings(),
            client_factory=FakeClientFactory(make_client(ping_side_effect=hang)),
        )

        # Act & Assert
        assert await manager.check_connection(timeout_seconds=0.05) is False

        await manager.close()
