"""Resource contexts: observable UI state over the API services."""
from .base import ResourceContext, ResourceRetry, ResourceState
from .parts import PartsContext, sample_parts
from .auth import AuthContext

__all__ = [
    "ResourceContext",
    "ResourceRetry",
    "ResourceState",
    "PartsContext",
    "AuthContext",
    "sample_parts",
]
