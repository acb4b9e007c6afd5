"""
Application configuration loaded from environment variables.

The settings object is frozen and handed to each service at construction time.
"""
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResetEmailTemplate(BaseModel):
    """Password reset email template. `{link}` is replaced by the reset URL."""
    subject: str
    message: str


DEFAULT_CAPTCHA_WORDS = [
    "akatsuki",
    "bankai",
    "chakra",
    "dattebayo",
    "gomu",
    "hokage",
    "kamehameha",
    "nakama",
    "rasengan",
    "shinigami",
    "sharingan",
    "titan",
]

DEFAULT_RESET_TEMPLATES = [
    ResetEmailTemplate(
        subject="Reset your NakamaStream password",
        message=(
            "Hi!\n\nWe received a request to reset your password. "
            "Use the link below within the next hour:\n\n{link}\n\n"
            "If you did not ask for this, you can ignore this email."
        ),
    ),
    ResetEmailTemplate(
        subject="NakamaStream password recovery",
        message=(
            "Someone (hopefully you) asked to recover your account.\n\n"
            "Open this link to choose a new password: {link}\n\n"
            "The link expires in one hour."
        ),
    ),
]


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    # MongoDB
    mongo_uri: str = "mongodb://mongodb:27017"
    mongo_server_selection_timeout_ms: int = 5000

    # Redis
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    redis_socket_timeout_seconds: float = 5.0

    # Sessions (cookie carries a signed JWT whose subject is the session id)
    jwt_secret_key: str = "CHANGE_ME_IN_PRODUCTION_USE_STRONG_SECRET"
    jwt_algorithm: str = "HS256"
    session_cookie_name: str = "nakama_session"
    session_ttl_minutes: int = 60 * 24 * 7
    session_cookie_secure: bool = False

    # Password hashing
    bcrypt_rounds: int = 10

    # Local word captcha
    captcha_words: list[str] = DEFAULT_CAPTCHA_WORDS

    # hCaptcha
    hcaptcha_site_key: str = "10000000-ffff-ffff-ffff-000000000001"
    hcaptcha_secret_key: str = "0x0000000000000000000000000000000000000000"
    hcaptcha_verify_url: str = "https://hcaptcha.com/siteverify"
    hcaptcha_timeout_seconds: float = 10.0

    # Registration abuse gate
    allowed_email_domains: list[str] = [
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
    ]
    max_accounts_per_ip: int = 3

    # Login rate limiting (failed attempts per IP)
    login_rate_limit_attempts: int = 5
    login_rate_limit_window_seconds: int = 15 * 60

    # Password reset
    reset_token_ttl_seconds: int = 3600
    reset_password_base_url: str = "http://localhost:3000"
    reset_password_templates: list[ResetEmailTemplate] = DEFAULT_RESET_TEMPLATES

    # Outbound mail
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@nakamastream.lat"
    smtp_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
