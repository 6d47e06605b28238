"""
Parts Marketplace - FastAPI application for the web UI.

Serves the client-side cart and catalog state as JSON.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from marketplace.cart import CartStore, get_cart_store
from marketplace.contexts import PartsContext
from marketplace.logging import get_logger
from marketplace.routers import cart_router, parts_router
from marketplace.services import PartService

logger = get_logger(__name__)


def create_app(
    cart: Optional[CartStore] = None,
    parts: Optional[PartsContext] = None,
    load_on_startup: bool = True,
) -> FastAPI:
    """
    Build the app around a cart store and a parts context.

    Args:
        cart: Cart store (default: singleton over the local store)
        parts: Parts context (default: one over the default PartService)
        load_on_startup: Fetch the public listing when the app starts
    """
    cart = cart or get_cart_store()
    parts = parts or PartsContext(PartService())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if load_on_startup:
            await parts.start()
        yield
        parts.close()
        logger.info("Parts context closed")

    app = FastAPI(title="Parts Marketplace", lifespan=lifespan)
    app.state.cart = cart
    app.state.parts = parts

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(cart_router, prefix="/api")
    app.include_router(parts_router, prefix="/api")
    return app
