"""
Client Errors

Every failure the fetch layer reports is a MarketplaceError subclass.
`code` selects the user-facing message; `retryable` tells the retry
layers whether another attempt may help.
"""

from typing import Optional

# Error codes
NETWORK_ERROR = "NETWORK_ERROR"
SERVER_ERROR = "SERVER_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"
NOT_FOUND = "NOT_FOUND"
VALIDATION_ERROR = "VALIDATION_ERROR"
DEFAULT = "DEFAULT"

ERROR_MESSAGES = {
    NETWORK_ERROR: "Network error. Please check your internet connection.",
    SERVER_ERROR: "Server error. Please try again later.",
    UNAUTHORIZED: "You are not authorized to perform this action.",
    NOT_FOUND: "The requested resource was not found.",
    VALIDATION_ERROR: "Please check your input and try again.",
    DEFAULT: "Something went wrong. Please try again.",
}

ERROR_INVALID_RESPONSE = "Invalid response format from server"
ERROR_CART_CORRUPTED = "Stored cart could not be read"


class MarketplaceError(Exception):
    """Base error for API and client failures."""

    def __init__(
        self,
        message: Optional[str] = None,
        code: str = DEFAULT,
        retryable: bool = False,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, ERROR_MESSAGES[DEFAULT]))
        self.code = code
        self.retryable = retryable
        self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


class NetworkError(MarketplaceError):
    """The request never completed (DNS, connect, timeout, reset)."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message, code=NETWORK_ERROR, retryable=True)


class ServerError(MarketplaceError):
    """HTTP 5xx."""

    def __init__(self, message: Optional[str] = None, status_code: int = 500) -> None:
        if message is None and status_code != 500:
            message = ERROR_MESSAGES[DEFAULT]
        super().__init__(message, code=SERVER_ERROR, retryable=True, status_code=status_code)


class ValidationError(MarketplaceError):
    """HTTP 4xx other than 401/403/404."""

    def __init__(self, message: Optional[str] = None, status_code: int = 400) -> None:
        code = VALIDATION_ERROR if status_code == 400 else DEFAULT
        super().__init__(message, code=code, status_code=status_code)


class AuthError(MarketplaceError):
    """HTTP 401/403."""

    def __init__(self, message: Optional[str] = None, status_code: int = 401) -> None:
        super().__init__(message, code=UNAUTHORIZED, status_code=status_code)


class NotFoundError(MarketplaceError):
    """HTTP 404."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message, code=NOT_FOUND, status_code=404)


class MalformedResponseError(MarketplaceError):
    """Success status, but the body is not the expected JSON shape."""

    def __init__(self, message: str = ERROR_INVALID_RESPONSE, status_code: Optional[int] = None) -> None:
        super().__init__(message, code=DEFAULT, status_code=status_code)


class PersistenceReadError(Exception):
    """Persisted cart data is corrupt. Never leaves the cart store."""

    def __init__(self, message: str = ERROR_CART_CORRUPTED) -> None:
        super().__init__(message)


def error_for_status(status_code: int, message: Optional[str] = None) -> MarketplaceError:
    """
    Map an HTTP error status to a classified error.

    Args:
        status_code: HTTP status (>= 400)
        message: Server-provided message; preferred over the default text

    Returns:
        MarketplaceError subclass instance (not raised)
    """
    if status_code in (401, 403):
        return AuthError(message, status_code=status_code)
    if status_code == 404:
        return NotFoundError(message)
    if 500 <= status_code <= 599:
        return ServerError(message, status_code=status_code)
    if 400 <= status_code <= 499:
        return ValidationError(message, status_code=status_code)
    return MarketplaceError(message, code=DEFAULT, status_code=status_code)


def invalid_input(error: Exception) -> ValidationError:
    """Wrap a local (pydantic) input validation failure as a 400-style error."""
    errors = getattr(error, "errors", None)
    if callable(errors):
        details = errors()
        if details:
            first = details[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            message = first.get("msg", str(error))
            return ValidationError(f"{field}: {message}" if field else message)
    return ValidationError(str(error))
