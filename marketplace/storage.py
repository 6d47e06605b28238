"""
Durable local key-value stores.

String keys, string values, synchronous. Used for the cart snapshot
and the session token.

- MemoryKeyValueStore: process-local, for tests and throwaway sessions
- FileKeyValueStore: one JSON file on disk (the desktop/CLI default)
- RedisKeyValueStore: Upstash Redis, when a session spans machines
"""

import json
import os
import tempfile
from typing import Dict, Optional, Protocol, runtime_checkable

from marketplace import config
from marketplace.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Storage contract used by the cart store and the session token store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileKeyValueStore:
    """
    All keys in a single JSON object on disk.

    The file is read lazily and rewritten atomically (temp file + replace)
    on every set/delete. A missing file is an empty store; an unreadable
    one is logged and treated as empty.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data

        self._data = {}
        if not os.path.exists(self.path):
            return self._data

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Local store {self.path} unreadable, starting empty: {e}")
            return self._data

        if not isinstance(raw, dict):
            logger.warning(f"Local store {self.path} is not a JSON object, starting empty")
            return self._data

        self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        return self._data

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".kv-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()


class RedisKeyValueStore:
    """Upstash Redis (REST) store with a key prefix."""

    def __init__(self, client=None, prefix: str = config.REDIS_KEY_PREFIX):
        self._client = client
        self.prefix = prefix

    @property
    def client(self):
        """Sync Upstash client (lazy initialization)."""
        if self._client is None:
            if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
                raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
            from upstash_redis import Redis
            self._client = Redis(url=config.UPSTASH_REDIS_REST_URL, token=config.UPSTASH_REDIS_REST_TOKEN)
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def set(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))


# Singleton instance
_default_store: Optional[KeyValueStore] = None


def get_default_store() -> KeyValueStore:
    """
    Get the configured durable store (singleton).

    Redis when Upstash credentials are set, the JSON file otherwise.
    """
    global _default_store
    if _default_store is None:
        if config.UPSTASH_REDIS_REST_URL and config.UPSTASH_REDIS_REST_TOKEN:
            _default_store = RedisKeyValueStore()
        else:
            _default_store = FileKeyValueStore(config.STORAGE_PATH)
    return _default_store
