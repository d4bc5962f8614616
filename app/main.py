import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import alembic.command
import alembic.config
from fastapi import FastAPI

from app.ai_feature.service import Services
from app.api.router import api_router
from app.core.config import settings
from app.mcp_server import create_mcp_server

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def run_migrations():
    """Sync function to run migrations"""
    alembic_cfg = alembic.config.Config("alembic.ini")
    alembic.command.upgrade(alembic_cfg, "head")


def create_app(
    services: Optional[Services] = None,
    migrate: bool = True,
    allowed_hosts: Optional[List[str]] = None,
) -> FastAPI:
    services = services or Services.from_settings(settings)
    if allowed_hosts is None:
        allowed_hosts = settings.MCP_ALLOWED_HOSTS
    mcp = create_mcp_server(services, allowed_hosts)
    mcp_app = mcp.streamable_http_app()

    # Run the MCP session manager for the app's lifetime, then close the shared clients
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if migrate:
            # Apply any pending migrations automatically when the app starts
            try:
                await asyncio.to_thread(run_migrations)
                logger.info("Migrations applied successfully (or already up-to-date)")
            except Exception as e:
                logger.error(f"Migration error during startup: {e}")

        async with mcp.session_manager.run():
            yield
        await services.close()

    app = FastAPI(title="Warehouse Analytics MCP", lifespan=lifespan)
    app.state.services = services

    # REST mirror of the MCP tools
    app.include_router(api_router)

    # MCP streamable HTTP endpoint: /api/mcp
    app.mount("/api", mcp_app)

    @app.get("/")
    async def root():
        return {"message": "Warehouse Analytics MCP server", "mcp_endpoint": "/api/mcp"}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
