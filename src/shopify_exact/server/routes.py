"""API routes for the Shopify order webhook receiver."""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import text

from shopify_exact.config.settings import Settings, settings
from shopify_exact.core.logger import setup_logger
from shopify_exact.core.signature import validate_webhook_request
from shopify_exact.handlers.order_created import (
    IngestionOutcome,
    IngestionResult,
    OrderIngestionHandler,
)
from shopify_exact.models.shopify import ShopifyOrder
from shopify_exact.services.reservation_gate import ReservationGate
from shopify_exact.shopify.client import ShopifyClient

logger = setup_logger(__name__)
router = APIRouter()


# Stub dependencies, overridden in create_app() once resources are initialized
def get_ingestion_handler() -> OrderIngestionHandler:
    raise RuntimeError("Ingestion handler not initialized")


def get_reservation_gate() -> ReservationGate:
    raise RuntimeError("Reservation gate not initialized")


def get_shopify_client() -> Optional[ShopifyClient]:
    raise RuntimeError("Shopify client not initialized")


def get_settings() -> Settings:
    return settings


def _result_response(result: IngestionResult) -> JSONResponse:
    if result.outcome == IngestionOutcome.ERROR:
        return JSONResponse(status_code=500, content={"error": result.error, "order_id": result.order_id})
    return JSONResponse(status_code=200, content={"status": result.outcome.value, "order_id": result.order_id})


@router.get("/")
async def root() -> dict:
    """Root endpoint with basic service info."""
    return {
        "service": "Shopify ExactOnline Order Sync",
        "version": "1.0.0",
        "endpoints": {
            "webhook": "POST /webhooks/order-created",
            "health": "GET /health",
            "processed_order": "GET /orders/processed/{order_id}",
            "manual_sync": "POST /orders/{order_id}/sync",
            "docs": "GET /docs",
        },
    }


@router.get("/health")
async def health_check(
    gate: ReservationGate = Depends(get_reservation_gate),
    app_settings: Settings = Depends(get_settings),
) -> dict:
    """Health check endpoint for monitoring."""
    health_status = {
        "status": "healthy",
        "service": "shopify-exact-sync",
        "checks": {},
    }

    try:
        async with gate.session_factory() as session:
            await session.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["checks"]["database"] = "error"
        health_status["status"] = "unhealthy"

    if await gate.cache.health_check():
        health_status["checks"]["cache"] = "ok"
    else:
        health_status["checks"]["cache"] = "error"
        health_status["status"] = "degraded"

    health_status["checks"]["exact_credentials"] = (
        "ok" if app_settings.exact_client_id and app_settings.exact_client_secret else "missing"
    )
    health_status["checks"]["webhook_signature"] = (
        "enabled" if app_settings.shopify_webhook_secret else "disabled"
    )

    return health_status


@router.post("/webhooks/order-created")
async def order_created_webhook(
    request: Request,
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    handler: OrderIngestionHandler = Depends(get_ingestion_handler),
    app_settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Shopify `orders/create` webhook.

    Anything that cannot be processed (bad signature, empty or unparseable
    body) is answered with 200 so Shopify does not keep retrying. Only an
    unexpected failure inside the pipeline returns 500.
    """
    raw_body = await request.body()

    is_valid, error_msg = validate_webhook_request(
        raw_body, x_shopify_hmac_sha256, app_settings.shopify_webhook_secret
    )
    if not is_valid:
        logger.warning(f"Invalid webhook request: {error_msg}")
        return JSONResponse(status_code=200, content={"status": "ignored", "reason": error_msg})

    try:
        order = ShopifyOrder.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError) as e:
        logger.warning(f"Unparseable order payload: {e}")
        return JSONResponse(status_code=200, content={"status": "ignored", "reason": "Unparseable order payload"})

    logger.info(
        f"Webhook received: order_id={order.id}, order_number={order.order_number}",
        extra={"order_id": order.id, "order_number": order.order_number},
    )

    try:
        result = await handler.handle(order)
    except Exception as e:
        logger.error(f"Unhandled error for order {order.id}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(e), "order_id": order.id})

    return _result_response(result)


@router.get("/orders/processed/{order_id}")
async def get_processed_order(
    order_id: int,
    gate: ReservationGate = Depends(get_reservation_gate),
) -> dict:
    """Reservation record of a Shopify order."""
    record = await gate.lookup(order_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} has not been processed")

    return {
        "shopify_order_id": record.shopify_order_id,
        "shopify_order_number": record.shopify_order_number,
        "processed_at": record.processed_at.isoformat() if record.processed_at else None,
        "exact_order_id": record.exact_order_id,
        "exact_order_number": record.exact_order_number,
        "pending": record.is_pending,
    }


@router.post("/orders/{order_id}/sync")
async def sync_order(
    order_id: int,
    handler: OrderIngestionHandler = Depends(get_ingestion_handler),
    shopify_client: Optional[ShopifyClient] = Depends(get_shopify_client),
) -> JSONResponse:
    """Fetch an order from Shopify and push it through the same pipeline."""
    if shopify_client is None:
        raise HTTPException(status_code=503, detail="Shopify API not configured")

    order = await shopify_client.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Shopify order {order_id} not found")

    logger.info(f"Manual sync requested for order {order_id}")
    result = await handler.handle(order)

    status_code = 500 if result.outcome == IngestionOutcome.ERROR else 200
    return JSONResponse(status_code=status_code, content=result.to_dict())
