# Services Module
from .http import HttpClient, calculate_backoff_delay, get_http_client
from .parts import PartService
from .auth import AuthService

__all__ = ["HttpClient", "PartService", "AuthService", "calculate_backoff_delay", "get_http_client"]
