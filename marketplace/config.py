"""
Client Configuration

Settings are read from the environment once at import time.
A local .env file is loaded first when present.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


# ==================== API ====================

API_BASE_URL = os.environ.get("MARKET_API_URL", "http://localhost:3000/api").rstrip("/")

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
}

# Seconds; enforced by the transport, not by the retry layer
REQUEST_TIMEOUT = _env_float("MARKET_REQUEST_TIMEOUT", 30.0)


class Endpoints:
    """API routes, relative to API_BASE_URL."""

    AUTH_REGISTER = "/auth/register"
    AUTH_LOGIN = "/auth/login"
    AUTH_PROFILE = "/auth/profile"

    PARTS = "/parts"
    PARTS_PUBLIC = "/parts/public"
    PARTS_STORE = "/parts/store"

    @staticmethod
    def part_detail(part_id: str) -> str:
        return f"/parts/{part_id}"


# ==================== RETRY ====================

MAX_RETRY_ATTEMPTS = 3
BASE_RETRY_DELAY = 1.0  # seconds
MAX_RETRY_DELAY = 10.0  # seconds


# ==================== LOCAL STORAGE ====================

CART_STORAGE_KEY = "cart"
TOKEN_STORAGE_KEY = "token"

STORAGE_PATH = os.path.expanduser(
    os.environ.get("MARKET_STORAGE_PATH", "~/.parts_marketplace.json")
)

UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")
REDIS_KEY_PREFIX = os.environ.get("MARKET_REDIS_PREFIX", "market:")


# ==================== UI ====================

# Show sample parts when the public listing gives up
PLACEHOLDER_FALLBACK = _env_bool("MARKET_PLACEHOLDER_FALLBACK", True)
