"""
Dependencies for dependency injection in routes.
"""
from nakama_auth.dependencies.providers import (
    get_admin_service,
    get_auth_db,
    get_auth_service,
    get_client_ip,
    get_password_hasher,
    get_password_reset_service,
    get_profile_service,
    get_redis,
    get_registration_service,
)
from nakama_auth.dependencies.session import (
    get_optional_session,
    get_or_create_session,
)

__all__ = [
    "get_admin_service",
    "get_auth_db",
    "get_auth_service",
    "get_client_ip",
    "get_password_hasher",
    "get_password_reset_service",
    "get_profile_service",
    "get_redis",
    "get_registration_service",
    "get_optional_session",
    "get_or_create_session",
]
