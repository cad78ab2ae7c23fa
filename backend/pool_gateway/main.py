"""
FastAPI application entrypoint.

Lifespan:
  • On startup: open the Store (schema setup + migrations), build the
    background runner and the API key gateway, publish them on app.state.
  • On shutdown: let pending last_used_at writes finish, close the Store.

Routes:
  • /health — shallow liveness probe

Serving:
  • run() / `pool-gateway` starts uvicorn on HOST:PORT from settings

Protected routes live with the host service and depend on
pool_gateway.auth.dependencies.require_api_key.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from pool_gateway.auth.dependencies import register_auth_handlers
from pool_gateway.auth.gateway import ApiKeyGateway
from pool_gateway.core.background import BackgroundRunner
from pool_gateway.core.config import Settings, settings
from pool_gateway.services.errors import StoreError
from pool_gateway.services.store import Store

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app_settings: Settings = app.state.settings

    # Startup: the store is required, nothing can authenticate without it
    try:
        store = await Store.open(app_settings.DATABASE_URL, echo=app_settings.DEBUG)
    except StoreError:
        logger.exception("Could not open the store on startup")
        raise

    runner = BackgroundRunner()
    app.state.store = store
    app.state.runner = runner
    app.state.gateway = ApiKeyGateway(store, runner)
    logger.info(
        "%s started (environment=%s) ✓", app_settings.APP_NAME, app_settings.ENVIRONMENT
    )

    yield  # ← application runs here

    # Shutdown: flush bookkeeping writes before the handle goes away
    await runner.drain()
    await store.close()


# ── App ─────────────────────────────────────────────────────
def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the application around ``app_settings``."""
    app = FastAPI(
        title=app_settings.APP_NAME,
        version="0.1.0",
        description="Account-pool and API key store with API key authentication.",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    register_auth_handlers(app)

    # ── Health check ────────────────────────────────────────
    @app.get(
        "/health",
        tags=["System"],
        summary="Liveness probe",
    )
    async def health_check() -> dict[str, str]:
        """Shallow health check — confirms the process is alive."""
        return {"status": "healthy"}

    return app


app = create_app()


def run() -> None:
    """Serve the default app with uvicorn (``pool-gateway`` console script)."""
    uvicorn.run(
        "pool_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    run()
