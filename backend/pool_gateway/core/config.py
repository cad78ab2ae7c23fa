"""
Application settings loaded from environment variables.

Uses pydantic-settings so that every config value is validated at startup.
The store location is the only thing the gateway really needs; everything
else has a sensible default for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration.

    DATABASE_URL must use the aiosqlite scheme:
        sqlite+aiosqlite:///./pool_gateway.db
        sqlite+aiosqlite:////var/lib/pool-gateway/pool.db
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Store ───────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./pool_gateway.db"

    # ── Optional (sensible defaults) ────────────────────────
    APP_NAME: str = "Pool Gateway"
    DEBUG: bool = False
    ENVIRONMENT: str = "dev"

    # ── Serving ─────────────────────────────────────────────
    HOST: str = "127.0.0.1"
    PORT: int = 8000


# Singleton, imported as `from pool_gateway.core.config import settings`
settings = Settings()
