"""
Database connection management.

Provides the MongoDB connection manager (motor async client), index setup
and a health probe. A single manager owns one pooled client for its
lifetime and is injected into repositories via its database handle.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, TEXT

from portfolio_builder.core.config import Settings, get_settings
from portfolio_builder.core.exceptions import ConnectionNotInitializedError
from portfolio_builder.models.analytics import ANALYTICS_COLLECTION
from portfolio_builder.models.contact import Contact
from portfolio_builder.models.portfolio import Portfolio
from portfolio_builder.models.template import Template
from portfolio_builder.models.user import User

logger = logging.getLogger(__name__)


class MongoConnectionManager:
    """
    Lazily connected, cached MongoDB client.

    The first ``connect()`` starts one connection attempt and stores it;
    concurrent callers await that same attempt instead of opening their own
    clients. A successful attempt is cached until ``close()``. A failed one is
    discarded so the next call starts over.

    Attributes:
        settings: Settings used for the URI, pool size and timeouts

    Example:
        async with MongoConnectionManager() as db:
            repo = TemplateRepository(db)
            page = await repo.find_all_with_filters(TemplateFilters())
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
    ):
        """
        Args:
            settings: Explicit settings; loaded from the environment if None
            client_factory: Callable building the client (AsyncIOMotorClient)
        """
        self.settings = settings or get_settings()
        self._client_factory = client_factory
        self._client: Any = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._connecting: Optional[asyncio.Future] = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """
        Cached database handle.

        Raises:
            ConnectionNotInitializedError: If connect() has not completed
        """
        if self._database is None:
            raise ConnectionNotInitializedError(
                "Database is not connected; await connect() first"
            )
        return self._database

    async def connect(self) -> AsyncIOMotorDatabase:
        """
        Return the database handle, connecting on first use.

        Returns:
            AsyncIOMotorDatabase bound to the configured database

        Raises:
            pymongo.errors.PyMongoError: If the server cannot be reached
                within the server selection timeout
        """
        if self._database is not None:
            return self._database

        if self._connecting is None:
            self._connecting = asyncio.ensure_future(self._open())
            self._connecting.add_done_callback(self._forget_failed_attempt)
        attempt = self._connecting

        # shield: a cancelled caller must not cancel the shared attempt
        database = await asyncio.shield(attempt)

        self._database = database
        return database

    def _forget_failed_attempt(self, attempt: asyncio.Future) -> None:
        # Runs even when every caller was cancelled before the attempt failed
        if attempt.cancelled() or attempt.exception() is not None:
            if self._connecting is attempt:
                self._connecting = None

    async def _open(self) -> AsyncIOMotorDatabase:
        client = self._client_factory(
            self.settings.mongo_uri,
            maxPoolSize=self.settings.max_pool_size,
            serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
            socketTimeoutMS=self.settings.socket_timeout_ms,
            tz_aware=True,
        )

        try:
            await client.admin.command("ping")
        except Exception:
            logger.error("MongoDB connection attempt failed", exc_info=True)
            client.close()
            raise

        self._client = client
        database = client.get_default_database(default=self.settings.mongo_db_name)
        logger.info(
            "Connected to MongoDB",
            extra={
                "operation": "connect",
                "database": self.settings.mongo_db_name,
                "max_pool_size": self.settings.max_pool_size,
            },
        )
        return database

    async def close(self) -> None:
        """
        Close the client and forget the cached handle.

        Safe to call when not connected. A later connect() opens a new client.
        """
        if self._connecting is not None and not self._connecting.done():
            self._connecting.cancel()
        self._connecting = None

        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed", extra={"operation": "close"})

        self._client = None
        self._database = None

    async def __aenter__(self) -> AsyncIOMotorDatabase:
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def ensure_indexes(self) -> None:
        """
        Create the indexes the repositories rely on.

        Uniqueness of slugs, external ids and (portfolio, email) contact pairs
        is enforced here, at the store. Template titles are only made unique
        when ``settings.unique_template_titles`` is enabled.
        """
        db = await self.connect()

        await db[User.__collection__].create_index("external_id", unique=True)

        portfolios = db[Portfolio.__collection__]
        await portfolios.create_index("slug", unique=True)
        await portfolios.create_index("user_id")

        templates = db[Template.__collection__]
        await templates.create_index(
            [("title", TEXT), ("description", TEXT)],
            name="template_text_search",
        )
        if self.settings.unique_template_titles:
            await templates.create_index(
                "title", unique=True, name="template_title_unique"
            )

        await db[Contact.__collection__].create_index(
            [("portfolio_id", ASCENDING), ("email", ASCENDING)],
            unique=True,
            name="contact_portfolio_email_unique",
        )

        await db[ANALYTICS_COLLECTION].create_index("portfolio_id")

        logger.info("MongoDB indexes ensured", extra={"operation": "ensure_indexes"})

    async def check_connection(self, timeout_seconds: float = 2.0) -> bool:
        """
        Check database connectivity.

        Sends a ping with a timeout so an unreachable server cannot hang
        the caller.

        Returns:
            True if the server answered, False otherwise (never raises)

        Example:
            >>> if not await manager.check_connection():
            ...     print("MongoDB unavailable")
        """
        try:
            async with asyncio.timeout(timeout_seconds):
                await self.connect()
                await self._client.admin.command("ping")
                return True
        except asyncio.TimeoutError:
            return False
        except Exception:
            # Any other error (connection refused, auth failure, etc.)
            return False
