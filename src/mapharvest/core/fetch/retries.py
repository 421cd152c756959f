"""
Retry utilities with tenacity.

Every flaky page interaction (scrolling an item into view, opening and
closing the detail panel) runs through a RetryExecutor so that a transient
timing failure costs at most one item, never the session.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)


DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_MS = 1000
DEFAULT_BASE_TIMEOUT_MS = 2000

AttemptAction = Callable[[int], Awaitable[Any]]


def attempt_timeout_ms(attempt: int, base_ms: int = DEFAULT_BASE_TIMEOUT_MS) -> int:
    """Timeout for a 0-based attempt, growing linearly: base * (attempt + 1)."""
    return base_ms * (attempt + 1)


class RetryExecutor:
    """Runs an action up to ``max_attempts`` times with a fixed delay.

    The action receives the 0-based attempt index so it can grow its own
    wait timeouts. ``execute`` reports success as a bool and never raises
    the action's failure; the caller treats ``False`` as "skip this unit of
    work and continue".
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_ms: int = DEFAULT_DELAY_MS,
        base_timeout_ms: int = DEFAULT_BASE_TIMEOUT_MS,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        """Initialize the executor.

        Args:
            max_attempts: Total attempts, including the first
            delay_ms: Fixed wait between attempts (not exponential)
            base_timeout_ms: Base for ``timeout_for`` per-attempt timeouts
            log: Logger to report failures on
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms
        self.base_timeout_ms = base_timeout_ms
        self.log = log or logger

    def timeout_for(self, attempt: int) -> int:
        """Per-attempt timeout in milliseconds."""
        return attempt_timeout_ms(attempt, self.base_timeout_ms)

    def _log_failure(self, action_name: str) -> Callable[[RetryCallState], None]:
        def after(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            self.log.warning(
                "%s failed (attempt %d/%d): %s",
                action_name,
                retry_state.attempt_number,
                self.max_attempts,
                error,
            )

        return after

    async def execute(self, action: AttemptAction, action_name: str) -> bool:
        """Run ``action`` until it succeeds or the attempt budget is spent.

        Args:
            action: Coroutine function taking the 0-based attempt index
            action_name: Label used in failure logs

        Returns:
            True if an attempt succeeded, False once all attempts failed
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_fixed(self.delay_ms / 1000),
                retry=retry_if_exception_type(Exception),
                after=self._log_failure(action_name),
                reraise=True,
            ):
                with attempt:
                    await action(attempt.retry_state.attempt_number - 1)
        except Exception:
            self.log.error(
                "%s gave up after %d/%d attempts",
                action_name,
                self.max_attempts,
                self.max_attempts,
            )
            return False

        return True
