"""Cart snapshot persistence in the local key-value store."""
import json

from marketplace.errors import PersistenceReadError
from marketplace.logging import get_logger
from marketplace.storage import KeyValueStore
from .models import CartState

logger = get_logger(__name__)


def load_cart(store: KeyValueStore, key: str) -> CartState:
    """
    Read the persisted cart.

    Never raises: missing data gives an empty cart, corrupt data or a
    failing store gives an empty cart and a warning.
    """
    try:
        raw = store.get(key)
    except Exception as e:
        logger.warning(f"Could not read stored cart '{key}', starting empty: {e}")
        return CartState()

    if not raw:
        return CartState()

    try:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise PersistenceReadError(f"Cart is not valid JSON: {e}") from e
        return CartState.from_dict(data)
    except PersistenceReadError as e:
        logger.warning(f"Corrupted cart data under '{key}', starting empty: {e}")
        return CartState()


def save_cart(store: KeyValueStore, key: str, state: CartState) -> bool:
    """Write the cart snapshot. Returns False (and logs) if the store fails."""
    try:
        store.set(key, json.dumps(state.to_dict()))
        return True
    except Exception as e:
        logger.error(f"Failed to persist cart '{key}': {e}")
        return False
