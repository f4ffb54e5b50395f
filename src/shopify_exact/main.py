"""Shopify ExactOnline Order Sync - Main Entry Point."""

import os

from shopify_exact.config.settings import settings
from shopify_exact.server.app import create_app

# Create FastAPI application
app = create_app()


def main():
    import uvicorn

    reload = os.getenv("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "shopify_exact.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=120,
        timeout_keep_alive=5,
        access_log=False,  # Structured logging only
    )


if __name__ == "__main__":
    main()
