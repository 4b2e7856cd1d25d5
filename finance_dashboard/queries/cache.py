"""
Query Cache

DESIGN DECISION: All reads from the finance API go through one cache.
It guarantees:
1. Single-flight: at most one in-flight request per key; concurrent
   readers of the same key share its result
2. Staleness: fresh data is served from memory, stale data is re-fetched
3. Invalidation: writes mark related keys stale so the next read re-fetches
4. Cancellation: an aborted request never updates a cache entry

Everything runs on one asyncio event loop; there are no locks because no
state is touched across an `await` without re-checking it.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from finance_dashboard.config import get_settings
from finance_dashboard.queries.keys import QueryKey, matches_key
from finance_dashboard.queries.retry import RetryPolicy, RetryUnlessCancelled, build_retrying
from finance_dashboard.services.api.cancellation import AbortSignal
from finance_dashboard.services.api.errors import RequestCancelledError

logger = structlog.get_logger(__name__)

T = TypeVar("T")
QueryFn = Callable[[AbortSignal], Awaitable[T]]


class QueryStatus(str, Enum):
    """Lifecycle of a cache entry (CANCELLED only appears on query results)."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass
class QueryState:
    """One cache entry."""

    key: QueryKey
    data: Any = None
    error: Optional[BaseException] = None
    status: QueryStatus = QueryStatus.IDLE
    data_updated_at: Optional[float] = None
    last_used_at: float = 0.0
    is_invalidated: bool = False
    fetch_count: int = 0
    task: Optional[asyncio.Future] = field(default=None, repr=False)
    signal: Optional[AbortSignal] = field(default=None, repr=False)

    @property
    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()

    @property
    def has_data(self) -> bool:
        return self.data_updated_at is not None


def _consume_result(task: asyncio.Future) -> None:
    # Every waiter may have gone away; retrieve the outcome so asyncio
    # does not report it as never retrieved.
    if not task.cancelled():
        task.exception()


class QueryClient:
    """
    Keyed request cache with single-flight fetching.

    Keys are tuples (see `queries.keys`); operations that take a prefix
    apply to every key underneath it.
    """

    def __init__(
        self,
        stale_time_seconds: Optional[float] = None,
        gc_time_seconds: Optional[float] = None,
        retry_base_delay_seconds: Optional[float] = None,
        retry_max_delay_seconds: Optional[float] = None,
        default_retry: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        query_settings = get_settings().query
        self._stale_time = (
            query_settings.stale_time_seconds if stale_time_seconds is None else stale_time_seconds
        )
        self._gc_time = query_settings.gc_time_seconds if gc_time_seconds is None else gc_time_seconds
        self._retry_base_delay = (
            query_settings.retry_base_delay_seconds
            if retry_base_delay_seconds is None
            else retry_base_delay_seconds
        )
        self._retry_max_delay = (
            query_settings.retry_max_delay_seconds
            if retry_max_delay_seconds is None
            else retry_max_delay_seconds
        )
        self._default_retry = default_retry or RetryUnlessCancelled(
            query_settings.default_max_attempts
        )
        self._clock = clock
        self._states: dict[QueryKey, QueryState] = {}

    # =========================================================================
    # Inspection
    # =========================================================================

    def get_query_state(self, key: QueryKey) -> Optional[QueryState]:
        return self._states.get(key)

    def get_query_data(self, key: QueryKey) -> Any:
        state = self._states.get(key)
        return state.data if state else None

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        """Write data for a key as if it had just been fetched."""
        state = self._ensure_state(key)
        state.data = data
        state.error = None
        state.status = QueryStatus.SUCCESS
        state.data_updated_at = self._clock()
        state.is_invalidated = False

    def find_all(self, prefix: QueryKey = ()) -> list[QueryState]:
        return [state for key, state in self._states.items() if matches_key(key, prefix)]

    def is_stale(self, state: QueryState, stale_time_seconds: Optional[float] = None) -> bool:
        if state.is_invalidated or state.data_updated_at is None:
            return True
        stale_time = self._stale_time if stale_time_seconds is None else stale_time_seconds
        return self._clock() - state.data_updated_at >= stale_time

    # =========================================================================
    # Fetching
    # =========================================================================

    async def fetch_query(
        self,
        key: QueryKey,
        query_fn: QueryFn,
        retry: Optional[RetryPolicy] = None,
        stale_time_seconds: Optional[float] = None,
    ) -> Any:
        """
        Return data for `key`, fetching it only if needed.

        - a request already in flight for `key` is joined, not duplicated
        - fresh data is returned without a request
        - otherwise `query_fn(signal)` runs under the retry policy

        Raises:
            RequestCancelledError: If the request was aborted
            Exception: Whatever the last attempt failed with
        """
        self.garbage_collect()
        state = self._ensure_state(key)
        state.last_used_at = self._clock()

        if state.is_fetching:
            logger.debug("query_joined_in_flight", query_key=list(key))
            return await asyncio.shield(state.task)

        if state.status is QueryStatus.SUCCESS and not self.is_stale(state, stale_time_seconds):
            return state.data

        task = self._start_fetch(state, query_fn, retry or self._default_retry)
        return await asyncio.shield(task)

    async def refetch_query(
        self,
        key: QueryKey,
        query_fn: QueryFn,
        retry: Optional[RetryPolicy] = None,
    ) -> Any:
        """Fetch `key` now, superseding (and aborting) any request in flight."""
        state = self._ensure_state(key)
        state.last_used_at = self._clock()
        if state.is_fetching:
            state.signal.abort("superseded")

        task = self._start_fetch(state, query_fn, retry or self._default_retry)
        return await asyncio.shield(task)

    def _start_fetch(self, state: QueryState, query_fn: QueryFn, retry: RetryPolicy) -> asyncio.Future:
        signal = AbortSignal()
        state.signal = signal
        state.fetch_count += 1
        if not state.has_data:
            state.status = QueryStatus.LOADING

        task = asyncio.ensure_future(self._run_fetch(state, query_fn, retry, signal))
        task.add_done_callback(_consume_result)
        state.task = task
        return task

    async def _run_fetch(
        self,
        state: QueryState,
        query_fn: QueryFn,
        retry: RetryPolicy,
        signal: AbortSignal,
    ) -> Any:
        retrying = build_retrying(
            retry,
            base_delay_seconds=self._retry_base_delay,
            max_delay_seconds=self._retry_max_delay,
            query_key=state.key,
            sleep=signal.sleep,
        )

        try:
            data = await retrying(query_fn, signal)
            signal.raise_if_aborted()
        except RequestCancelledError:
            self._settle_cancelled(state, signal)
            raise
        except Exception as e:
            if signal.aborted:
                self._settle_cancelled(state, signal)
                raise RequestCancelledError(f"Request cancelled: {signal.reason}") from e
            if state.signal is signal:
                state.error = e
                state.status = QueryStatus.ERROR
            logger.warning(
                "query_failed",
                query_key=list(state.key),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        if state.signal is signal:
            state.data = data
            state.error = None
            state.status = QueryStatus.SUCCESS
            state.data_updated_at = self._clock()
            state.is_invalidated = False
        return data

    def _settle_cancelled(self, state: QueryState, signal: AbortSignal) -> None:
        """An aborted fetch leaves the entry as it was before the fetch."""
        logger.debug("query_cancelled", query_key=list(state.key), reason=signal.reason)
        if state.signal is signal and state.status is QueryStatus.LOADING:
            state.status = QueryStatus.IDLE

    # =========================================================================
    # Invalidation & lifecycle
    # =========================================================================

    def invalidate_queries(self, prefix: QueryKey) -> int:
        """
        Mark every entry under `prefix` stale.

        Requests in flight for those keys are aborted so the next read
        starts a fresh one. Returns the number of entries invalidated.
        """
        invalidated = 0
        for state in self.find_all(prefix):
            state.is_invalidated = True
            if state.is_fetching:
                state.signal.abort("invalidated")
            invalidated += 1
        logger.debug("queries_invalidated", prefix=list(prefix), count=invalidated)
        return invalidated

    def cancel_queries(self, prefix: QueryKey) -> int:
        """Abort in-flight requests under `prefix`. Returns how many were aborted."""
        cancelled = 0
        for state in self.find_all(prefix):
            if state.is_fetching and not state.signal.aborted:
                state.signal.abort("cancelled")
                cancelled += 1
        return cancelled

    def remove_queries(self, prefix: QueryKey) -> int:
        """Drop entries under `prefix`, aborting their requests."""
        removed = 0
        for state in self.find_all(prefix):
            if state.is_fetching:
                state.signal.abort("removed")
            del self._states[state.key]
            removed += 1
        return removed

    def garbage_collect(self) -> int:
        """Drop idle entries not used for longer than the GC time."""
        now = self._clock()
        expired = [
            key
            for key, state in self._states.items()
            if not state.is_fetching and now - state.last_used_at >= self._gc_time
        ]
        for key in expired:
            del self._states[key]
        return len(expired)

    def clear(self) -> None:
        """Drop everything (e.g. on logout)."""
        self.remove_queries(())

    def _ensure_state(self, key: QueryKey) -> QueryState:
        state = self._states.get(key)
        if state is None:
            state = QueryState(key=key, last_used_at=self._clock())
            self._states[key] = state
        return state
