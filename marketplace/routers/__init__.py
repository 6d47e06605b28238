"""HTTP routers exposing client state to a web UI."""
from .cart import router as cart_router
from .parts import router as parts_router

__all__ = ["cart_router", "parts_router"]
