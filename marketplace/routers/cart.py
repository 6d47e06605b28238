"""
Cart Router

Cart endpoints over the client-side cart store. Every response is the
full cart summary so the UI can re-render from one payload.
"""
from fastapi import APIRouter, Depends, HTTPException

from marketplace.cart import CartStore
from marketplace.contexts import PartsContext
from marketplace.logging import get_logger, sanitize_id_for_logging
from .deps import get_cart, get_parts_context
from .models import AddToCartRequest, UpdateCartItemRequest

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


@router.get("/cart")
async def get_cart_summary(cart: CartStore = Depends(get_cart)):
    return cart.snapshot().summary()


@router.post("/cart/items")
async def add_to_cart(
    request: AddToCartRequest,
    cart: CartStore = Depends(get_cart),
    parts: PartsContext = Depends(get_parts_context),
):
    """Add a part from the loaded catalog to the cart."""
    part = parts.find_part(request.part_id)
    if part is None:
        raise HTTPException(status_code=404, detail="Part not found")
    if not part.is_available:
        raise HTTPException(status_code=400, detail="Part is not available for order")

    logger.debug(f"Adding {request.quantity} x {sanitize_id_for_logging(part.id)} to cart")
    return cart.add_item(part, request.quantity).summary()


@router.patch("/cart/items/{part_id}")
async def update_cart_item(part_id: str, request: UpdateCartItemRequest, cart: CartStore = Depends(get_cart)):
    """Set a line's quantity (0 or less removes it)."""
    if request.quantity > 0 and cart.get_item(part_id) is None:
        raise HTTPException(status_code=404, detail="Part is not in the cart")
    return cart.update_quantity(part_id, request.quantity).summary()


@router.delete("/cart/items/{part_id}")
async def remove_cart_item(part_id: str, cart: CartStore = Depends(get_cart)):
    return cart.remove_item(part_id).summary()


@router.delete("/cart")
async def clear_cart(cart: CartStore = Depends(get_cart)):
    return cart.clear().summary()
