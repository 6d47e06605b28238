"""
Retrying HTTP Client

Single entry point for every call to the marketplace API:
default headers, bearer auth, retry with exponential backoff for
transient failures, and classification of everything else into
MarketplaceError subclasses.

Retry policy:
- transport failure (no response): retry
- 5xx: retry
- 4xx: never retried; 401 also clears the stored session token
- delay before retry N (0-based) is min(1s * 2**N, 10s), at most
  MAX_RETRY_ATTEMPTS retries after the first attempt
"""

import asyncio
from functools import lru_cache
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from marketplace import config
from marketplace.errors import (
    DEFAULT,
    MalformedResponseError,
    MarketplaceError,
    NetworkError,
    ServerError,
    error_for_status,
)
from marketplace.logging import get_logger, sanitize_url_for_logging
from marketplace.session import SessionTokenStore

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def calculate_backoff_delay(attempt: int) -> float:
    """Delay in seconds before retry number `attempt` (0-based)."""
    return min(config.BASE_RETRY_DELAY * (2 ** attempt), config.MAX_RETRY_DELAY)


@lru_cache(maxsize=None)
def _type_adapter(response_model: Any) -> TypeAdapter:
    return TypeAdapter(response_model)


def _server_message(response: httpx.Response) -> Optional[str]:
    """`message` field of a JSON error body, if any."""
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
        return data["message"]
    return None


class HttpClient:
    """
    Async JSON client with transparent retry.

    Args:
        base_url: API root, endpoints are appended to it
        token_store: Session token source for requires_auth requests
        client: httpx.AsyncClient to use (tests pass one with MockTransport)
        max_retries: Retries after the first attempt
        sleep: Awaitable used for backoff waits
        timeout: Transport timeout in seconds for the default client
    """

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        token_store: Optional[SessionTokenStore] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: int = config.MAX_RETRY_ATTEMPTS,
        sleep: Sleep = asyncio.sleep,
        timeout: float = config.REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.max_retries = max_retries
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def client(self) -> httpx.AsyncClient:
        """Underlying httpx client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ==================== Public API ====================

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        requires_auth: bool = False,
        params: Optional[Mapping[str, str]] = None,
        response_model: Any = None,
    ) -> Any:
        """
        Perform one logical request.

        Args:
            method: HTTP method
            endpoint: Path relative to base_url
            body: JSON-serializable body or pydantic model
            requires_auth: Attach the bearer token from token_store
            params: Query parameters
            response_model: Type to validate the JSON body into (None = raw JSON)

        Returns:
            Parsed body, or None for 204 No Content

        Raises:
            NetworkError / ServerError: after the retry budget is spent
            AuthError, NotFoundError, ValidationError: 4xx, immediately
            MalformedResponseError: success status with an unusable or undecodable body
            MarketplaceError: request could not be issued (bad URL, redirect loop)
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._build_headers(requires_auth)
        if isinstance(body, BaseModel):
            body = body.model_dump(mode="json", by_alias=True, exclude_unset=True)

        response = None
        async for attempt in self._retrying(method, url):
            with attempt:
                response = await self._send(method, url, headers, body, params)

        return self._handle_response(method, url, response, response_model)

    async def get(self, endpoint: str, requires_auth: bool = False, **kwargs) -> Any:
        return await self.request("GET", endpoint, requires_auth=requires_auth, **kwargs)

    async def post(self, endpoint: str, body: Any, requires_auth: bool = False, **kwargs) -> Any:
        return await self.request("POST", endpoint, body=body, requires_auth=requires_auth, **kwargs)

    async def put(self, endpoint: str, body: Any, requires_auth: bool = False, **kwargs) -> Any:
        return await self.request("PUT", endpoint, body=body, requires_auth=requires_auth, **kwargs)

    async def delete(self, endpoint: str, requires_auth: bool = False, **kwargs) -> Any:
        return await self.request("DELETE", endpoint, requires_auth=requires_auth, **kwargs)

    # ==================== Helpers ====================

    def _build_headers(self, requires_auth: bool) -> dict:
        headers = dict(config.DEFAULT_HEADERS)
        if not requires_auth:
            return headers

        token = self.token_store.get() if self.token_store else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No authentication token found for authenticated request")
        return headers

    def _retrying(self, method: str, url: str) -> AsyncRetrying:
        safe_url = sanitize_url_for_logging(url)

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.warning(
                f"Retrying {method} {safe_url} in {delay:.0f}s "
                f"(retry {retry_state.attempt_number}/{self.max_retries}): {error}"
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=config.BASE_RETRY_DELAY, max=config.MAX_RETRY_DELAY),
            retry=retry_if_exception_type((NetworkError, ServerError)),
            sleep=self._sleep,
            before_sleep=log_retry,
            reraise=True,
        )

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict,
        body: Any,
        params: Optional[Mapping[str, str]],
    ) -> httpx.Response:
        """One attempt. Every failure is raised as a MarketplaceError; only NetworkError and ServerError are retried."""
        logger.debug(f"{method} {sanitize_url_for_logging(url)}")
        try:
            response = await self.client.request(method, url, headers=headers, json=body, params=params)
        except httpx.TransportError as e:
            logger.warning(f"Network error for {method} {sanitize_url_for_logging(url)}: {e!r}")
            raise NetworkError() from e
        except httpx.DecodingError as e:
            logger.error(f"Undecodable response body from {sanitize_url_for_logging(url)}: {e!r}")
            raise MalformedResponseError() from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # Redirect loops and bad URLs: repeating the request cannot help
            logger.error(f"Request failed for {method} {sanitize_url_for_logging(url)}: {e!r}")
            raise MarketplaceError(code=DEFAULT) from e

        if 500 <= response.status_code <= 599:
            raise ServerError(_server_message(response), status_code=response.status_code)
        return response

    def _handle_response(
        self,
        method: str,
        url: str,
        response: httpx.Response,
        response_model: Any,
    ) -> Any:
        status = response.status_code

        if not response.is_success:
            message = _server_message(response)
            logger.error(f"API error ({status}) for {method} {sanitize_url_for_logging(url)}: {message or 'no message'}")
            if status == 401 and self.token_store is not None:
                logger.warning("Unauthorized request detected, clearing token")
                self.token_store.clear()
            raise error_for_status(status, message)

        if status == 204:
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Error parsing JSON response from {sanitize_url_for_logging(url)}: {e}")
            raise MalformedResponseError(status_code=status) from e

        if response_model is None:
            return data

        try:
            return _type_adapter(response_model).validate_python(data)
        except PydanticValidationError as e:
            logger.error(f"Unexpected response shape from {sanitize_url_for_logging(url)}: {e.error_count()} errors")
            raise MalformedResponseError(status_code=status) from e


# Singleton instance
_http_client: Optional[HttpClient] = None


def get_http_client() -> HttpClient:
    """Get HttpClient singleton using the default local token store."""
    global _http_client
    if _http_client is None:
        from marketplace.storage import get_default_store
        _http_client = HttpClient(token_store=SessionTokenStore(get_default_store()))
    return _http_client
