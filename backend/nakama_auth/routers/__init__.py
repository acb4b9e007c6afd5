"""
API Routers module.
"""
from nakama_auth.routers import admin, auth, health, password, profile

__all__ = ["admin", "auth", "health", "password", "profile"]
