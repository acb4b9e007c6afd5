"""
Storage clients and the auth_db layout.
"""
from nakama_auth.database.connections import (
    close_connections,
    get_auth_database,
    get_mongo_client,
    get_redis_client,
)
from nakama_auth.database.databases import auth_db

__all__ = [
    "auth_db",
    "close_connections",
    "get_auth_database",
    "get_mongo_client",
    "get_redis_client",
]
