"""
Storefront API — Document Store Connection
============================================

What:  Async MongoDB client factory and lifecycle helpers.
How:   PyMongo's AsyncMongoClient, created once in the application lifespan
       and closed at shutdown. Handlers never touch the client directly; they
       receive store adapters through dependency injection.

Connection behaviour:
    The client connects lazily and keeps its own pool (PyMongo defaults).
    serverSelectionTimeoutMS bounds how long a query waits for a reachable
    server, so an outage surfaces as an error instead of a hung request.
"""

import logging
from typing import Any, Dict

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from storefront.config import Settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> AsyncMongoClient:
    """Builds the process-wide MongoDB client from settings."""
    client: AsyncMongoClient[Dict[str, Any]] = AsyncMongoClient(
        settings.mongo_url,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        tz_aware=True,
        appname="storefront-api",
    )
    logger.info("MongoDB client created for database '%s'", settings.mongo_db_name)
    return client


async def ping(database) -> bool:
    """
    Lightweight connectivity probe used by the health check.

    Returns False instead of raising so the health endpoint can report a
    degraded state.
    """
    try:
        await database.command("ping")
        return True
    except PyMongoError as e:
        logger.warning("MongoDB ping failed: %s", str(e))
        return False


async def close_client(client: AsyncMongoClient) -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await client.close()
    logger.info("MongoDB client closed")
