"""
Query Retry Policies

A policy answers one question: after `attempt_number` failed attempts
ending in `error`, should the query try again? The cache turns a policy
into a tenacity retrying loop with exponential backoff.

Rules shared by every policy:
- a cancelled request is never retried
- asyncio cancellation (a BaseException) is never retried
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_base,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from finance_dashboard.services.api.errors import is_cancelled, is_transient

logger = structlog.get_logger(__name__)


class RetryPolicy(ABC):
    """Decides whether a failed query attempt is retried."""

    @property
    @abstractmethod
    def max_attempts(self) -> int:
        """Hard upper bound on attempts, whatever the error."""
        pass

    @abstractmethod
    def should_retry(self, attempt_number: int, error: BaseException) -> bool:
        """
        Args:
            attempt_number: Attempts made so far (1 after the first failure)
            error: What the last attempt failed with
        """
        pass


class RetryUnlessCancelled(RetryPolicy):
    """Retry any failure except cancellation, up to `max_attempts` in total."""

    def __init__(self, max_attempts: int = 2):
        self._max_attempts = max_attempts

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def should_retry(self, attempt_number: int, error: BaseException) -> bool:
        if not isinstance(error, Exception) or is_cancelled(error):
            return False
        return attempt_number < self._max_attempts


class NetworkAwareRetry(RetryPolicy):
    """
    Retry network and timeout failures harder than anything else.

    Transient failures get `network_max_attempts` attempts in total,
    every other failure gets `default_max_attempts`.
    """

    def __init__(self, network_max_attempts: int = 3, default_max_attempts: int = 2):
        self._network_max_attempts = network_max_attempts
        self._default_max_attempts = default_max_attempts

    @property
    def max_attempts(self) -> int:
        return max(self._network_max_attempts, self._default_max_attempts)

    def should_retry(self, attempt_number: int, error: BaseException) -> bool:
        if not isinstance(error, Exception) or is_cancelled(error):
            return False
        if is_transient(error):
            return attempt_number < self._network_max_attempts
        return attempt_number < self._default_max_attempts


class retry_if_policy_allows(retry_base):
    """Tenacity retry strategy backed by a RetryPolicy."""

    def __init__(self, policy: RetryPolicy):
        self._policy = policy

    def __call__(self, retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        return self._policy.should_retry(retry_state.attempt_number, outcome.exception())


def _retry_logger(query_key: Optional[tuple]):
    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.info(
            "query_retry_scheduled",
            query_key=list(query_key) if query_key else None,
            attempt=retry_state.attempt_number,
            error_type=type(error).__name__ if error else None,
            sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    return log_retry


def build_retrying(
    policy: RetryPolicy,
    base_delay_seconds: float = 1.0,
    max_delay_seconds: float = 30.0,
    query_key: Optional[tuple] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> AsyncRetrying:
    """
    Build the retry loop for one fetch.

    Delays double from `base_delay_seconds` up to `max_delay_seconds`.
    The original exception is re-raised once the policy gives up.
    A custom `sleep` lets a cancelled fetch stop waiting between attempts.
    """
    if base_delay_seconds > 0:
        wait = wait_exponential(multiplier=base_delay_seconds, max=max_delay_seconds)
    else:
        wait = wait_none()

    options = {}
    if sleep is not None:
        options["sleep"] = sleep

    return AsyncRetrying(
        retry=retry_if_policy_allows(policy),
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        before_sleep=_retry_logger(query_key),
        reraise=True,
        **options,
    )
