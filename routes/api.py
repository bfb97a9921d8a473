"""
Central API route registration. All HTTP controllers are mounted here under /api.
"""
import logging
from fastapi import FastAPI

from app.http.controllers import (
    products,
    images,
    orders,
    hs_codes,
    landed_cost,
    esg,
)

logger = logging.getLogger(__name__)


def register_routes(app: FastAPI, settings) -> None:
    """Register all API routers. Call from main.py after creating the FastAPI app."""
    prefix = settings.API_PREFIX
    app.include_router(products.router, prefix=f"{prefix}/shopify", tags=["products"])
    app.include_router(images.router, prefix=f"{prefix}/shopify", tags=["images"])
    app.include_router(orders.router, prefix=f"{prefix}/shopify", tags=["orders"])
    app.include_router(hs_codes.counts_router, prefix=f"{prefix}/shopify", tags=["hs-code"])
    app.include_router(hs_codes.router, prefix=f"{prefix}/dutify", tags=["hs-code"])
    app.include_router(landed_cost.router, prefix=f"{prefix}/dutify", tags=["landed-cost"])
    app.include_router(esg.router, prefix=f"{prefix}/esg", tags=["esg"])
    logger.debug("Registered %s routes", len(app.routes))
