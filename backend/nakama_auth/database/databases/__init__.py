"""
Database layouts. The service owns a single database, auth_db.
"""
from nakama_auth.database.databases import auth_db

__all__ = ["auth_db"]
