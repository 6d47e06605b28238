"""Session token persistence (bearer JWT kept in the local store)."""
import base64
import json
import time
from typing import Optional

from marketplace.config import TOKEN_STORAGE_KEY
from marketplace.logging import get_logger
from marketplace.storage import KeyValueStore

logger = get_logger(__name__)


def _decode_jwt_payload(token: str) -> dict:
    """Decode the payload segment of a JWT without verifying the signature."""
    segment = token.split(".")[1]
    padded = segment + "=" * (-len(segment) % 4)
    payload = json.loads(base64.urlsafe_b64decode(padded))
    if not isinstance(payload, dict):
        raise ValueError("JWT payload is not an object")
    return payload


class SessionTokenStore:
    """Read/write/clear the session token under a fixed key."""

    def __init__(self, store: KeyValueStore, key: str = TOKEN_STORAGE_KEY):
        self._store = store
        self._key = key

    def get(self) -> Optional[str]:
        return self._store.get(self._key) or None

    def set(self, token: str) -> None:
        self._store.set(self._key, token)

    def clear(self) -> None:
        self._store.delete(self._key)

    def is_authenticated(self, now: Optional[float] = None) -> bool:
        """
        True when a token is stored and its `exp` claim is in the future.

        Expired or undecodable tokens are cleared. A token without `exp`
        is accepted; the server remains the authority.
        """
        token = self.get()
        if not token:
            return False

        try:
            payload = _decode_jwt_payload(token)
        except (IndexError, ValueError) as e:
            logger.warning(f"Stored token could not be decoded, clearing it: {e}")
            self.clear()
            return False

        exp = payload.get("exp")
        if exp is None:
            return True

        current = time.time() if now is None else now
        try:
            expired = current >= float(exp)
        except (TypeError, ValueError):
            logger.warning("Stored token has a non-numeric exp claim, clearing it")
            self.clear()
            return False

        if expired:
            logger.warning("Token expired, clearing it")
            self.clear()
            return False
        return True
