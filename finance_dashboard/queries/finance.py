"""
Finance Queries and Mutations

Binds each finance API operation to the query cache.

Queries (history, summary, single record):
- are cached and de-duplicated per key
- retry according to their policy, never retrying a cancellation
- on persistent failure show a toast and return an error result; the
  caller then renders fallback data
- when cancelled, return a cancelled result without any toast

Mutations (create, update, delete, upload):
- run exactly once, no retry
- on success invalidate the keys that may now be stale, then toast
- on failure toast the error and leave every cache entry untouched
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

import structlog

from finance_dashboard.config import get_settings
from finance_dashboard.models.finance import (
    DocumentUpload,
    FinanceDocument,
    FinanceHistory,
    FinanceSummary,
    Transaction,
    TransactionCreate,
    TransactionFilters,
    TransactionUpdate,
)
from finance_dashboard.notifications import Toaster
from finance_dashboard.queries.cache import QueryClient, QueryStatus
from finance_dashboard.queries.keys import QueryKey, finance_keys
from finance_dashboard.queries.retry import NetworkAwareRetry, RetryPolicy, RetryUnlessCancelled
from finance_dashboard.services.api import (
    FinanceApiClient,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    extract_error_message,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")
FinanceId = Union[int, str]

FALLBACK_NOTICE = "Menggunakan data cadangan"


@dataclass
class QueryResult(Generic[T]):
    """Outcome of one query read."""

    status: QueryStatus
    data: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def is_loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR

    @property
    def is_cancelled(self) -> bool:
        return self.status is QueryStatus.CANCELLED

    def data_or(self, fallback: T) -> T:
        """The fetched data, or `fallback` when there is none."""
        return self.data if self.data is not None else fallback


@dataclass
class MutationResult(Generic[T]):
    """Outcome of one mutation."""

    data: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def is_success(self) -> bool:
        return self.error is None


def summary_error_description(error: BaseException) -> str:
    if isinstance(error, RequestTimeoutError):
        return "Waktu permintaan habis. Menggunakan data cadangan."
    if isinstance(error, NetworkError):
        return "Masalah jaringan. Menggunakan data cadangan."
    return FALLBACK_NOTICE


class FinanceQueries:
    """Cached reads of finance data."""

    def __init__(
        self,
        api: FinanceApiClient,
        query_client: QueryClient,
        toaster: Toaster,
        default_retry: Optional[RetryPolicy] = None,
        summary_retry: Optional[RetryPolicy] = None,
    ):
        query_settings = get_settings().query
        self._api = api
        self._query_client = query_client
        self._toaster = toaster
        self._default_retry = default_retry or RetryUnlessCancelled(
            query_settings.default_max_attempts
        )
        self._summary_retry = summary_retry or NetworkAwareRetry(
            network_max_attempts=query_settings.network_max_attempts,
            default_max_attempts=query_settings.default_max_attempts,
        )

    async def _run(
        self,
        key: QueryKey,
        query_fn: Callable[[Any], Awaitable[T]],
        retry: RetryPolicy,
        error_title: str,
        error_description: Callable[[BaseException], str],
        refetch: bool = False,
        notify: bool = True,
    ) -> QueryResult[T]:
        fetch = self._query_client.refetch_query if refetch else self._query_client.fetch_query
        try:
            data = await fetch(key, query_fn, retry=retry)
        except RequestCancelledError:
            return QueryResult(status=QueryStatus.CANCELLED)
        except Exception as e:
            logger.error(
                "finance_query_failed",
                query_key=list(key),
                error_type=type(e).__name__,
                error=str(e),
            )
            if notify:
                self._toaster.error(error_title, error_description(e))
            return QueryResult(status=QueryStatus.ERROR, error=e)
        return QueryResult(status=QueryStatus.SUCCESS, data=data)

    async def finance_history(
        self,
        filters: Optional[TransactionFilters] = None,
        refetch: bool = False,
        notify: bool = True,
    ) -> QueryResult[FinanceHistory]:
        """
        Transaction list; on failure the caller shows an empty list.

        With notify=False a failure is only logged; the caller decides
        what the user sees.
        """
        return await self._run(
            finance_keys.list(filters),
            lambda signal: self._api.get_finance_history(filters, signal=signal),
            self._default_retry,
            "Gagal memuat riwayat transaksi",
            lambda _: FALLBACK_NOTICE,
            refetch=refetch,
            notify=notify,
        )

    async def finance_summary(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        refetch: bool = False,
        notify: bool = True,
    ) -> QueryResult[FinanceSummary]:
        """Summary; on failure the caller shows FALLBACK_SUMMARY."""
        return await self._run(
            finance_keys.summary(start_date, end_date),
            lambda signal: self._api.get_finance_summary(start_date, end_date, signal=signal),
            self._summary_retry,
            "Gagal memuat data keuangan",
            summary_error_description,
            refetch=refetch,
            notify=notify,
        )

    async def finance(self, finance_id: Optional[FinanceId]) -> QueryResult[Transaction]:
        """A single transaction. Disabled (idle) without an id."""
        if not finance_id:
            return QueryResult(status=QueryStatus.IDLE)
        return await self._run(
            finance_keys.detail(finance_id),
            lambda signal: self._api.get_finance(finance_id, signal=signal),
            self._default_retry,
            "Gagal memuat detail transaksi",
            lambda _: FALLBACK_NOTICE,
        )

    def peek(self, key: QueryKey) -> QueryResult:
        """Current cache state for `key` without fetching."""
        state = self._query_client.get_query_state(key)
        if state is None:
            return QueryResult(status=QueryStatus.IDLE)
        if state.is_fetching and not state.has_data:
            return QueryResult(status=QueryStatus.LOADING)
        return QueryResult(status=state.status, data=state.data, error=state.error)

    def cancel(self, key: QueryKey = finance_keys.all) -> int:
        """Abort in-flight reads under `key` (e.g. when a page goes away)."""
        return self._query_client.cancel_queries(key)


class FinanceMutations:
    """Writes to the finance API with cache invalidation."""

    def __init__(
        self,
        api: FinanceApiClient,
        query_client: QueryClient,
        toaster: Toaster,
    ):
        self._api = api
        self._query_client = query_client
        self._toaster = toaster

    async def _mutate(
        self,
        name: str,
        call: Callable[[], Awaitable[T]],
        invalidate: list[QueryKey],
        success_message: str,
        on_success: Optional[Callable[[T], None]] = None,
    ) -> MutationResult[T]:
        try:
            data = await call()
        except Exception as e:
            logger.warning(
                "finance_mutation_failed",
                mutation=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            self._toaster.error("Error", extract_error_message(e))
            return MutationResult(error=e)

        # Only after the write is acknowledged
        for prefix in invalidate:
            self._query_client.invalidate_queries(prefix)

        logger.info("finance_mutation_succeeded", mutation=name)
        self._toaster.success(success_message)
        if on_success is not None:
            on_success(data)
        return MutationResult(data=data)

    async def create_finance(
        self,
        data: TransactionCreate,
        on_success: Optional[Callable[[Transaction], None]] = None,
    ) -> MutationResult[Transaction]:
        return await self._mutate(
            "create_finance",
            lambda: self._api.create_finance(data),
            [finance_keys.lists(), finance_keys.summaries()],
            "Transaksi berhasil dibuat",
            on_success,
        )

    async def update_finance(
        self,
        finance_id: FinanceId,
        data: TransactionUpdate,
        on_success: Optional[Callable[[Transaction], None]] = None,
    ) -> MutationResult[Transaction]:
        return await self._mutate(
            "update_finance",
            lambda: self._api.update_finance(finance_id, data),
            [finance_keys.detail(finance_id), finance_keys.lists(), finance_keys.summaries()],
            "Transaksi berhasil diperbarui",
            on_success,
        )

    async def delete_finance(
        self,
        finance_id: FinanceId,
        on_success: Optional[Callable[[None], None]] = None,
    ) -> MutationResult[None]:
        return await self._mutate(
            "delete_finance",
            lambda: self._api.delete_finance(finance_id),
            [finance_keys.detail(finance_id), finance_keys.lists(), finance_keys.summaries()],
            "Transaksi berhasil dihapus",
            on_success,
        )

    async def upload_document(
        self,
        finance_id: FinanceId,
        upload: DocumentUpload,
        on_success: Optional[Callable[[FinanceDocument], None]] = None,
    ) -> MutationResult[FinanceDocument]:
        return await self._mutate(
            "upload_document",
            lambda: self._api.upload_finance_document(finance_id, upload),
            [finance_keys.detail(finance_id)],
            "Dokumen berhasil diunggah",
            on_success,
        )
