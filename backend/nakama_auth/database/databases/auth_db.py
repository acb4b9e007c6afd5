"""
Auth database configuration.
Stores user accounts, password reset tokens and in-flight registration slots.
"""

DB_NAME = "auth_db"


class Collections:
    """Collection names in auth_db."""
    USERS = "users"
    PASSWORD_RESET_TOKENS = "password_reset_tokens"
    REGISTRATION_IP_SLOTS = "registration_ip_slots"
    METADATA = "_metadata"


# Manifest written to _metadata on startup
DB_MANIFEST = {
    "db_name": DB_NAME,
    "purpose": "User accounts, credentials and password reset tokens",
    "collections": [
        Collections.USERS,
        Collections.PASSWORD_RESET_TOKENS,
        Collections.REGISTRATION_IP_SLOTS,
        Collections.METADATA,
    ],
    "access_level": "restricted",
}
