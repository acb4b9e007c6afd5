"""
Process-wide MongoDB and Redis clients.

MongoDB holds accounts and reset tokens (auth_db); Redis holds sessions and
failed-login counters. Both clients are created lazily on first use and
closed from the application lifespan.
"""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from redis.asyncio import Redis

from nakama_auth.config import get_settings
from nakama_auth.database.databases import auth_db

logger = logging.getLogger(__name__)

_mongo_client: Optional[AsyncIOMotorClient] = None
_redis_client: Optional[Redis] = None


async def get_mongo_client() -> AsyncIOMotorClient:
    """Get or create the MongoDB client."""
    global _mongo_client
    if _mongo_client is None:
        settings = get_settings()
        _mongo_client = AsyncIOMotorClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
            tz_aware=False,
        )
        logger.info("MongoDB client created")
    return _mongo_client


async def get_auth_database() -> AsyncIOMotorDatabase:
    """The database holding accounts and reset tokens."""
    client = await get_mongo_client()
    return client[auth_db.DB_NAME]


async def get_redis_client() -> Redis:
    """Get or create the Redis client used for sessions and rate limits."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            socket_timeout=settings.redis_socket_timeout_seconds,
            decode_responses=True,
        )
        logger.info(f"Redis client created for {settings.redis_host}:{settings.redis_port}")
    return _redis_client


async def close_connections():
    """Close both clients; safe to call when they were never opened."""
    global _mongo_client, _redis_client

    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
