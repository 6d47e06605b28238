"""Auth context: current user and login/register/logout state."""
import asyncio
from typing import Optional, Union

from marketplace import config
from marketplace.errors import AuthError, MarketplaceError
from marketplace.logging import get_logger
from marketplace.models import AuthResponse, LoginRequest, RegisterRequest, User
from marketplace.services.auth import AuthService
from marketplace.services.http import Sleep
from .base import ResourceContext

logger = get_logger(__name__)

PROFILE = "profile"


class AuthContext(ResourceContext):
    """
    Session state for the UI.

    `loading` starts True until `load_user()` has run. The profile
    fetch is retried only for transient failures; an authorization
    failure ends the session at once.
    """

    resource_kinds = (PROFILE,)

    def __init__(
        self,
        service: AuthService,
        max_attempts: int = config.MAX_RETRY_ATTEMPTS,
        sleep: Optional[Sleep] = None,
    ):
        super().__init__(max_attempts=max_attempts, sleep=sleep or asyncio.sleep)
        self.service = service
        self.user: Optional[User] = None
        self.is_authenticated = False
        self.loading = True

    async def start(self) -> None:
        await self.load_user()

    async def load_user(self) -> bool:
        """Restore the session from a stored, unexpired token."""
        if not self.service.is_authenticated():
            self._update(loading=False, user=None, is_authenticated=False)
            return False

        def on_terminal(error: Optional[MarketplaceError]) -> None:
            if isinstance(error, AuthError):
                logger.warning("Stored session rejected, signed out")
            self._update(user=None, is_authenticated=False)

        return await self._run(
            PROFILE,
            self.service.get_profile,
            lambda user: self._update(user=user, is_authenticated=True),
            label="user profile",
            on_terminal=on_terminal,
            should_retry=lambda error: error.retryable,
        )

    async def login(self, data: Union[LoginRequest, dict]) -> AuthResponse:
        return await self._authenticate(self.service.login, data)

    async def register(self, data: Union[RegisterRequest, dict]) -> AuthResponse:
        return await self._authenticate(self.service.register, data)

    def logout(self) -> None:
        self.service.logout()
        self._retries[PROFILE].reset()
        self._update(user=None, is_authenticated=False, error=None, error_kind=None, last_error=None)

    async def _authenticate(self, call, data) -> AuthResponse:
        self._update(loading=True, error=None, error_kind=None, last_error=None)
        try:
            response = await call(data)
        except MarketplaceError as e:
            self._set_failure(e)
            raise
        self._retries[PROFILE].reset()
        self._update(loading=False, user=response.user, is_authenticated=True)
        return response
