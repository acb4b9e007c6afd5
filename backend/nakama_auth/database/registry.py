"""
Database registry management.
Ensures the auth database metadata and indexes exist on startup.
"""
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase

from nakama_auth.database.databases import auth_db

REGISTRATION_SLOT_TTL_SECONDS = 600


async def sync_metadata(db: AsyncIOMotorDatabase) -> None:
    """Upsert the auth_db manifest into its _metadata collection."""
    manifest = auth_db.DB_MANIFEST
    await db[auth_db.Collections.METADATA].update_one(
        {"_id": "db_metadata"},
        {
            "$set": {
                "db_name": manifest["db_name"],
                "purpose": manifest["purpose"],
                "collections": manifest["collections"],
                "access_level": manifest["access_level"],
                "schema_version": "1.0",
                "last_updated_at": datetime.now(timezone.utc),
            },
            "$setOnInsert": {
                "created_at": datetime.now(timezone.utc),
            }
        },
        upsert=True,
    )


async def create_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes the auth flows rely on.

    The unique indexes on username and email are the authority on account
    uniqueness; service-level "already taken" checks only give nicer errors.
    """
    users = db[auth_db.Collections.USERS]
    await users.create_index("username", unique=True)
    await users.create_index("email", unique=True)
    await users.create_index("registration_ip")

    tokens = db[auth_db.Collections.PASSWORD_RESET_TOKENS]
    await tokens.create_index("token", unique=True)
    await tokens.create_index("user_id")
    # Expired tokens are already invalid; the TTL index only reaps them.
    await tokens.create_index("expiration", expireAfterSeconds=0)

    # Slots left behind by a crashed worker stop counting after ten minutes.
    slots = db[auth_db.Collections.REGISTRATION_IP_SLOTS]
    await slots.create_index("updated_at", expireAfterSeconds=REGISTRATION_SLOT_TTL_SECONDS)
