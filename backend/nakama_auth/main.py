"""
NakamaStream accounts - FastAPI Application

Registration, login, sessions, password recovery and profile security for
NakamaStream users.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from nakama_auth.config import get_settings
from nakama_auth.database.connections import close_connections, get_auth_database
from nakama_auth.database.registry import create_indexes, sync_metadata
from nakama_auth.routers import admin, auth, health, password, profile
from nakama_auth.services.captcha_service import close_hcaptcha_verifier

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("nakama_auth")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Write auth_db metadata
    - Create unique and TTL indexes

    Shutdown:
    - Close the hCaptcha HTTP client
    - Close all database connections
    """
    logger.info("Starting up NakamaStream accounts service...")

    try:
        db = await get_auth_database()
        await sync_metadata(db)
        await create_indexes(db)
        logger.info("Database metadata synced and indexes created")
    except Exception as e:
        logger.warning(f"Database initialization warning: {e}")

    yield

    logger.info("Shutting down NakamaStream accounts service...")
    await close_hcaptcha_verifier()
    await close_connections()
    logger.info("Connections closed")


app = FastAPI(
    title="NakamaStream Accounts API",
    description="""
## NakamaStream account security

### Features
- **Registration**: hCaptcha, email provider allowlist, three accounts per IP
- **Login**: word captcha, 5 failed attempts per 15 minutes per IP, ban enforcement
- **Sessions**: server-side sessions in Redis behind a signed cookie
- **Password recovery**: one-hour, single-use reset links by email
- **Profile**: password and profile changes with current-password checks
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(password.router)
app.include_router(profile.router)
app.include_router(admin.router)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "NakamaStream Accounts API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
