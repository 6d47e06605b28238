"""Cart package: models, persistence, and the cart store."""
from .models import CartItem, CartState
from .service import CartStore, get_cart_store

__all__ = [
    "CartItem",
    "CartState",
    "CartStore",
    "get_cart_store",
]
