"""FastAPI application for the DM ads dashboard.

This module provides the main application setup and router configuration.
All route handlers are organized in the api/routers/ directory.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig, ConfigManager
from storage import KeyValueStore, SQLiteKeyValueStore
from api.routers import (
    backup_router,
    entries_router,
    imports_router,
    system_router,
)

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    kv_store: Optional[KeyValueStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Configuration to use; loaded from ~/.dmads when omitted.
        kv_store: Backing store; a SQLite store at the configured path
            when omitted.
        clock: Source of "now" for timestamps and presets.

    Returns:
        Configured FastAPI application instance.
    """
    config = config or ConfigManager().get_config()

    application = FastAPI(
        title="DM Ads Dashboard",
        description="API for importing Facebook Ads exports and tracking DM funnel metrics",
        version="0.1.0",
    )

    application.state.config = config
    application.state.kv_store = kv_store or SQLiteKeyValueStore(config.storage.path)
    application.state.clock = clock

    # Configure CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(system_router)
    application.include_router(imports_router)
    application.include_router(entries_router)
    application.include_router(backup_router)

    logger.info("DM Ads Dashboard API created")
    return application


def run() -> None:
    """Run the API with uvicorn using the configured host and port."""
    import uvicorn

    config = ConfigManager().get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(config), host=config.api_host, port=config.api_port)


if __name__ == "__main__":
    run()
