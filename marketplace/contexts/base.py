"""
Resource Context Base

A context owns observable state (loading, error, data) for one area of
the UI and re-fetches each resource kind under its own retry counter.
This is a coarser policy than the HTTP client's per-request retries:
one "attempt" here is a full HttpClient.request() call.

State machine per resource kind:

    IDLE -> LOADING -> SUCCESS
                    -> FAILED -> (backoff) -> LOADING   while attempt < max
                    -> FAILED (terminal)                once attempt == max

A terminal kind stays FAILED until retry()/reset() sets attempt back to 0.
Each fetch gets a generation number; results of a superseded fetch and
any write after close() are dropped.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from marketplace import config
from marketplace.errors import MarketplaceError
from marketplace.logging import get_logger
from marketplace.services.http import Sleep, calculate_backoff_delay

logger = get_logger(__name__)

Listener = Callable[["ResourceContext"], None]


class ResourceState(str, Enum):
    """Lifecycle of one resource kind."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class ResourceRetry:
    """Retry counter and state for one resource kind."""
    kind: str
    max_attempts: int = config.MAX_RETRY_ATTEMPTS
    attempt: int = 0
    state: ResourceState = ResourceState.IDLE
    generation: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    @property
    def is_terminal(self) -> bool:
        return self.state == ResourceState.FAILED and self.exhausted

    def begin(self) -> int:
        """Enter LOADING under a new generation and return it."""
        self.generation += 1
        self.state = ResourceState.LOADING
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def succeed(self) -> None:
        self.attempt = 0
        self.state = ResourceState.SUCCESS

    def fail(self) -> None:
        self.attempt += 1
        self.state = ResourceState.FAILED

    def give_up(self) -> None:
        """Force the terminal state (non-retryable error)."""
        self.attempt = max(self.attempt, self.max_attempts)
        self.state = ResourceState.FAILED

    def reset(self) -> None:
        self.attempt = 0
        if self.state == ResourceState.FAILED:
            self.state = ResourceState.IDLE

    def next_delay(self) -> float:
        return calculate_backoff_delay(self.attempt)


class ResourceContext:
    """
    Observable state holder with per-kind retry orchestration.

    Subclasses call `_run()` for fetches and `_update()` for state writes.
    """

    # Resource kinds tracked by this context
    resource_kinds: tuple = ()

    def __init__(self, max_attempts: int = config.MAX_RETRY_ATTEMPTS, sleep: Sleep = asyncio.sleep):
        self.loading = False
        self.error: Optional[str] = None
        self.error_kind: Optional[str] = None
        self.last_error: Optional[MarketplaceError] = None
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._active = True
        self._listeners: List[Listener] = []
        self._retries: Dict[str, ResourceRetry] = {
            kind: ResourceRetry(kind=kind, max_attempts=max_attempts) for kind in self.resource_kinds
        }

    # ---------- lifecycle ----------

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        """Tear down: in-flight fetches finish but no longer write state."""
        self._active = False
        self._listeners.clear()

    # ---------- observation ----------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(context)` after every state change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def retry_state(self, kind: str) -> ResourceRetry:
        return self._retries[kind]

    # ---------- error slot ----------

    def clear_error(self) -> None:
        """Clear the error and reset every retry counter."""
        for retry in self._retries.values():
            retry.reset()
        self._update(error=None, error_kind=None, last_error=None)

    # ---------- internals ----------

    def _update(self, **changes: Any) -> None:
        if not self._active:
            return
        for name, value in changes.items():
            setattr(self, name, value)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"{type(self).__name__} listener failed")

    def _set_failure(self, error: MarketplaceError, **changes: Any) -> None:
        self._update(
            loading=False,
            error=error.message,
            error_kind=error.code,
            last_error=error,
            **changes,
        )

    def _accepts(self, retry: ResourceRetry, generation: int) -> bool:
        return self._active and retry.is_current(generation)

    async def _run(
        self,
        kind: str,
        fetch: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], None],
        label: str,
        on_terminal: Optional[Callable[[Optional[MarketplaceError]], None]] = None,
        should_retry: Callable[[MarketplaceError], bool] = lambda error: True,
    ) -> bool:
        """
        Fetch one resource kind under its retry counter.

        Returns True when `on_success` was applied. On terminal failure the
        error slot is set and `on_terminal(error)` is called; it receives
        None when the kind was already exhausted before this call.
        """
        retry = self._retries[kind]

        if retry.exhausted:
            retry.state = ResourceState.FAILED
            error = MarketplaceError(
                f"Failed to fetch {label} after {retry.max_attempts} attempts. Please try again later."
            )
            self._set_failure(error)
            if on_terminal and self._active:
                on_terminal(None)
            return False

        while self._active:
            generation = retry.begin()
            self._update(loading=True, error=None, error_kind=None, last_error=None)

            try:
                data = await fetch()
            except MarketplaceError as e:
                if not self._accepts(retry, generation):
                    return False

                retry.fail()
                logger.warning(
                    f"Error fetching {label} (attempt {retry.attempt}/{retry.max_attempts}): {e}"
                )
                if not should_retry(e):
                    retry.give_up()

                if retry.exhausted:
                    logger.error(f"Giving up on {label}: {e}")
                    self._set_failure(e)
                    if on_terminal:
                        on_terminal(e)
                    return False

                await self._sleep(retry.next_delay())
                if not self._accepts(retry, generation):
                    return False
                continue

            if not self._accepts(retry, generation):
                logger.debug(f"Discarding stale {label} result")
                return False

            retry.succeed()
            on_success(data)
            self._update(loading=False)
            return True

        return False
