"""
Parts Marketplace Client

This package contains the client-side core of the parts marketplace:
- cart: shopping cart store with persisted snapshots
- services: retrying HTTP client and catalog/auth API services
- contexts: resource contexts with loading/error state and retry policy
- storage: durable local key-value stores
- routers: JSON surface for a web UI

Note: Imports are lazy so that importing a light module (e.g. models)
does not pull in httpx or FastAPI.
"""

__all__ = [
    "CartStore",
    "HttpClient",
    "PartsContext",
    "AuthContext",
    "create_app",
]


def __getattr__(name):
    """Lazy attribute access for the main entry points."""
    if name == "CartStore":
        from marketplace.cart import CartStore
        return CartStore
    elif name == "HttpClient":
        from marketplace.services.http import HttpClient
        return HttpClient
    elif name == "PartsContext":
        from marketplace.contexts import PartsContext
        return PartsContext
    elif name == "AuthContext":
        from marketplace.contexts import AuthContext
        return AuthContext
    elif name == "create_app":
        from marketplace.app import create_app
        return create_app
    raise AttributeError(f"module 'marketplace' has no attribute '{name}'")
