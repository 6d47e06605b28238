"""Authentication API and local session handling."""
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from marketplace.config import Endpoints
from marketplace.errors import AuthError, invalid_input
from marketplace.logging import get_logger, sanitize_string_for_logging
from marketplace.models import AuthResponse, LoginRequest, RegisterRequest, User
from marketplace.session import SessionTokenStore
from .http import HttpClient, get_http_client

logger = get_logger(__name__)


class AuthService:
    """Register/login/profile, keeping the session token in the token store."""

    def __init__(self, http: Optional[HttpClient] = None, token_store: Optional[SessionTokenStore] = None):
        self._http = http
        self._token_store = token_store

    @property
    def http(self) -> HttpClient:
        if self._http is None:
            self._http = get_http_client()
        return self._http

    @property
    def token_store(self) -> SessionTokenStore:
        if self._token_store is None:
            if self.http.token_store is None:
                raise ValueError("AuthService needs a token store")
            self._token_store = self.http.token_store
        return self._token_store

    async def register(self, data: Union[RegisterRequest, dict]) -> AuthResponse:
        """Register a buyer or store account and keep the returned token."""
        request = _parse(RegisterRequest, data)
        logger.info(
            f"Registering {request.user_type.value} account {sanitize_string_for_logging(request.username)}"
        )
        response = await self.http.post(
            Endpoints.AUTH_REGISTER,
            request.model_dump(mode="json", by_alias=True, exclude_none=True),
            response_model=AuthResponse,
        )
        self._store_token(response)
        return response

    async def login(self, data: Union[LoginRequest, dict]) -> AuthResponse:
        request = _parse(LoginRequest, data)
        logger.info(f"Logging in {sanitize_string_for_logging(request.username)}")
        response = await self.http.post(
            Endpoints.AUTH_LOGIN,
            request.model_dump(mode="json", by_alias=True),
            response_model=AuthResponse,
        )
        self._store_token(response)
        return response

    async def get_profile(self) -> User:
        """Current user. A rejected session is logged out before re-raising."""
        try:
            return await self.http.get(Endpoints.AUTH_PROFILE, requires_auth=True, response_model=User)
        except AuthError:
            logger.warning("Profile request rejected, logging out")
            self.logout()
            raise

    def logout(self) -> None:
        self.token_store.clear()
        logger.info("User logged out, token removed")

    def is_authenticated(self) -> bool:
        return self.token_store.is_authenticated()

    def _store_token(self, response: AuthResponse) -> None:
        if response.token:
            self.token_store.set(response.token)
        else:
            logger.warning("No token received in auth response")


def _parse(model, data):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise invalid_input(e) from e
