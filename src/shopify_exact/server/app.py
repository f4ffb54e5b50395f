"""FastAPI application setup and configuration."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopify_exact.config.settings import settings
from shopify_exact.core.failure_log import FailureLog
from shopify_exact.core.logger import setup_logger
from shopify_exact.core.monitoring import init_monitoring
from shopify_exact.core.token_manager import ExactTokenManager
from shopify_exact.db import get_engine, get_session_factory, init_db
from shopify_exact.erp.exact_client import ExactOnlineClient
from shopify_exact.handlers.order_created import OrderIngestionHandler
from shopify_exact.services.address_reconciler import AddressReconciler
from shopify_exact.services.cache import (
    InMemoryReservationCache,
    RedisReservationCache,
    ReservationCache,
)
from shopify_exact.services.order_composer import OrderComposer
from shopify_exact.services.reservation_gate import ReservationGate
from shopify_exact.shopify.client import ShopifyClient

logger = setup_logger(__name__)

# Global variables for resource management
_engine = None
_cache: Optional[ReservationCache] = None
_token_manager: Optional[ExactTokenManager] = None
_exact_client: Optional[ExactOnlineClient] = None
_shopify_client: Optional[ShopifyClient] = None
_gate: Optional[ReservationGate] = None
_handler: Optional[OrderIngestionHandler] = None


def get_ingestion_handler() -> OrderIngestionHandler:
    """Dependency for the order ingestion handler."""
    if _handler is None:
        raise RuntimeError("Application not initialized")
    return _handler


def get_reservation_gate() -> ReservationGate:
    """Dependency for the reservation gate."""
    if _gate is None:
        raise RuntimeError("Application not initialized")
    return _gate


def get_shopify_client() -> Optional[ShopifyClient]:
    """Dependency for the Shopify client (None when not configured)."""
    return _shopify_client


def build_cache() -> ReservationCache:
    """Redis when enabled, otherwise a process-local cache."""
    if settings.redis_enabled:
        return RedisReservationCache(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
        )
    logger.info("Using in-memory reservation cache")
    return InMemoryReservationCache()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Shopify ExactOnline Order Sync",
        version="1.0.0",
        description="Receives Shopify order webhooks and creates ExactOnline sales orders exactly once",
    )

    # GlitchTip error monitoring (Sentry-compatible)
    init_monitoring(settings.glitchtip_dsn, settings.environment)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import router AFTER defining the dependencies
    from shopify_exact.server import routes

    app.include_router(routes.router)

    # Override the stub dependencies with the initialized resources
    app.dependency_overrides[routes.get_ingestion_handler] = get_ingestion_handler
    app.dependency_overrides[routes.get_reservation_gate] = get_reservation_gate
    app.dependency_overrides[routes.get_shopify_client] = get_shopify_client

    @app.on_event("startup")
    async def startup_handler():
        """Initialize database, cache and API clients on application startup."""
        global _engine, _cache, _token_manager, _exact_client, _shopify_client, _gate, _handler

        try:
            logger.info(f"Initializing database: {settings.database_url}")
            await init_db(settings.database_url)

            _engine = get_engine(settings.database_url)
            session_factory = get_session_factory(_engine)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}", exc_info=True)
            raise

        _cache = build_cache()

        _token_manager = ExactTokenManager(
            base_url=settings.exact_base_url,
            client_id=settings.exact_client_id,
            client_secret=settings.exact_client_secret,
            token_file=settings.exact_token_file,
            access_token=settings.exact_access_token,
            refresh_token=settings.exact_refresh_token,
        )
        _exact_client = ExactOnlineClient(
            base_url=settings.exact_base_url,
            division=settings.exact_division_code,
            token_manager=_token_manager,
            timeout_seconds=settings.exact_timeout_seconds,
        )

        if settings.shopify_store_url and settings.shopify_access_token:
            _shopify_client = ShopifyClient(
                store_url=settings.shopify_store_url,
                access_token=settings.shopify_access_token,
                api_version=settings.shopify_api_version,
            )
        else:
            logger.info("Shopify API not configured, manual sync disabled")

        _gate = ReservationGate(
            session_factory,
            _cache,
            lock_ttl_seconds=settings.lock_ttl_seconds,
            seen_ttl_seconds=settings.seen_ttl_seconds,
        )
        _handler = OrderIngestionHandler(
            gate=_gate,
            resolver=_exact_client,
            address_reconciler=AddressReconciler(
                _exact_client,
                division=settings.exact_division_code,
                unflag_previous_main=settings.exact_unflag_previous_main_address,
            ),
            composer=OrderComposer(_exact_client, settings),
            failure_log=FailureLog(settings.failure_log_path),
        )

        logger.info("Application startup completed")

    # Graceful shutdown handler
    @app.on_event("shutdown")
    async def shutdown_handler():
        """
        Gracefully shut down all resources.

        Closes the HTTP clients, the cache and the database connections.
        """
        logger.info("Starting graceful shutdown...")

        try:
            for name, resource in [
                ("Exact client", _exact_client),
                ("Exact token manager", _token_manager),
                ("Shopify client", _shopify_client),
                ("reservation cache", _cache),
            ]:
                if resource is None:
                    continue
                try:
                    await resource.close()
                except Exception as e:
                    logger.error(f"Error closing {name}: {e}")

            if _engine:
                logger.info("Closing database connections...")
                try:
                    await _engine.dispose()
                    logger.info("Database connections closed successfully")
                except Exception as e:
                    logger.error(f"Error closing database connections: {e}")

            logger.info("Graceful shutdown completed successfully")

        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

    return app
