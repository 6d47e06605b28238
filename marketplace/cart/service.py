"""Cart store: in-memory cart with derived totals and a persisted snapshot."""
from typing import Callable, List, Optional

from marketplace.config import CART_STORAGE_KEY
from marketplace.logging import get_logger, sanitize_id_for_logging
from marketplace.models import Part
from marketplace.storage import KeyValueStore, get_default_store
from .models import CartItem, CartState
from .storage import load_cart, save_cart

logger = get_logger(__name__)

CartListener = Callable[[CartState], None]


class CartStore:
    """
    Authoritative shopping cart for the current client session.

    - One line per part id, in first-added order
    - Totals are rebuilt from the lines after every change
    - Every change is written to the local store; the stored cart is
      read once, at construction
    - Persistence problems are logged, never raised
    """

    def __init__(self, store: KeyValueStore, key: str = CART_STORAGE_KEY):
        self._store = store
        self._key = key
        self._state = load_cart(store, key)
        self._items: List[CartItem] = [item.copy() for item in self._state.items]
        self._listeners: List[CartListener] = []

    # ---------- reads ----------

    def snapshot(self) -> CartState:
        """Current cart by value; mutating the result never touches the store."""
        return CartState.from_items(self._items)

    @property
    def total_items(self) -> int:
        return self._state.total_items

    @property
    def total_amount(self):
        return self._state.total_amount

    def get_item(self, part_id: str) -> Optional[CartItem]:
        item = self._find(part_id)
        return item.copy() if item else None

    # ---------- mutations ----------

    def add_item(self, part: Part, quantity: int = 1) -> CartState:
        """Add `quantity` of a part, merging into its existing line."""
        existing = self._find(part.id)
        if existing:
            existing.quantity += quantity
            if existing.quantity <= 0:
                self._items.remove(existing)
        elif quantity > 0:
            self._items.append(CartItem(part=part.model_copy(deep=True), quantity=quantity))
        else:
            logger.debug(f"Ignoring add of {quantity} x {sanitize_id_for_logging(part.id)}")
        return self._commit()

    def remove_item(self, part_id: str) -> CartState:
        """Drop the part's line. Unknown ids are a no-op."""
        self._items = [item for item in self._items if item.part_id != part_id]
        return self._commit()

    def update_quantity(self, part_id: str, quantity: int) -> CartState:
        """Set (not increment) a line's quantity; <= 0 removes the line."""
        if quantity <= 0:
            return self.remove_item(part_id)

        existing = self._find(part_id)
        if existing:
            existing.quantity = quantity
        return self._commit()

    def clear(self) -> CartState:
        self._items = []
        return self._commit()

    # ---------- change notifications ----------

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Call `listener(snapshot)` after every change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------- internals ----------

    def _find(self, part_id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.part_id == part_id), None)

    def _commit(self) -> CartState:
        self._state = CartState.from_items(self._items)
        save_cart(self._store, self._key, self._state)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Cart listener failed")
        return self._state


# Singleton instance
_cart_store: Optional[CartStore] = None


def get_cart_store() -> CartStore:
    """Get CartStore singleton over the default local store."""
    global _cart_store
    if _cart_store is None:
        _cart_store = CartStore(get_default_store())
    return _cart_store
