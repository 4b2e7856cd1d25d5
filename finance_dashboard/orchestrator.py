"""
Main Orchestrator for the Finance Dashboard

This module ties together all the components and defines the
end-to-end flows for:
1. The finance page (load -> render -> add / edit / delete -> re-read)
2. The dashboard balance card (summary -> list -> fallback)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No write is sent without validated form input
- The list is re-read only after a write was acknowledged
- Every failure reaches the user as a toast, never as an exception

This is the "glue" that keeps the page usable even when the remote
API misbehaves.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx
import structlog
from pydantic import ValidationError

from finance_dashboard.config import Settings, get_settings
from finance_dashboard.models.finance import (
    FALLBACK_SUMMARY,
    DocumentUpload,
    FinanceDocument,
    FinanceHistory,
    FinanceSummary,
    Transaction,
    TransactionFilters,
    TransactionFormInput,
)
from finance_dashboard.notifications import Toaster
from finance_dashboard.presentation.views import (
    StatCard,
    SummaryCard,
    TransactionTable,
    build_balance_stat_card,
    build_summary_cards,
    build_transaction_table,
)
from finance_dashboard.queries import (
    FinanceMutations,
    FinanceQueries,
    MutationResult,
    QueryClient,
    QueryResult,
)
from finance_dashboard.queries.finance import FALLBACK_NOTICE
from finance_dashboard.services.api import FinanceApiClient, extract_error_message
from finance_dashboard.services.storage import CredentialStoreInterface, FileCredentialStore

logger = structlog.get_logger(__name__)

FinanceId = Union[int, str]


@dataclass
class FinancePageState:
    """Everything the finance page renders after a load."""

    history: QueryResult[FinanceHistory]
    summary: QueryResult[FinanceSummary]
    cards: list[SummaryCard]
    table: TransactionTable


class FinancePageFlow:
    """
    Orchestrates the finance management page.

    Flow:
    1. Load -> history and summary are read concurrently
    2. Render -> summary cards and the transaction table
    3. Add / Edit -> form input is validated, then sent
    4. Delete -> sent only after the user confirmed the dialog
    5. Re-read -> the list is fetched again after every acknowledged write
    """

    def __init__(
        self,
        queries: FinanceQueries,
        mutations: FinanceMutations,
        toaster: Toaster,
        filters: Optional[TransactionFilters] = None,
    ):
        self._queries = queries
        self._mutations = mutations
        self._toaster = toaster
        self._filters = filters

    @property
    def filters(self) -> Optional[TransactionFilters]:
        return self._filters

    def set_filters(self, filters: Optional[TransactionFilters]) -> None:
        self._filters = filters

    async def load(
        self,
        sort_by: str = "date",
        descending: bool = True,
        refetch: bool = False,
    ) -> FinancePageState:
        """Read history and summary, then build the views."""
        filters = self._filters or TransactionFilters()
        start_date = filters.start_date.isoformat() if filters.start_date else None
        end_date = filters.end_date.isoformat() if filters.end_date else None

        history, summary = await asyncio.gather(
            self._queries.finance_history(self._filters, refetch=refetch),
            self._queries.finance_summary(start_date, end_date, refetch=refetch),
        )

        return FinancePageState(
            history=history,
            summary=summary,
            cards=build_summary_cards(summary, history),
            table=build_transaction_table(history, sort_by, descending),
        )

    def parse_form(self, raw: dict[str, Any]) -> Optional[TransactionFormInput]:
        """
        Validate what the dialog collected.

        Returns None (after a toast) if the input is not acceptable.
        """
        try:
            return TransactionFormInput.model_validate(raw)
        except ValidationError as e:
            logger.info("finance_form_rejected", errors=e.error_count())
            self._toaster.error("Error", extract_error_message(e))
            return None

    async def _refresh_list(self) -> None:
        await self._queries.finance_history(self._filters, refetch=True)

    async def add_transaction(self, form: TransactionFormInput) -> MutationResult[Transaction]:
        result = await self._mutations.create_finance(form.to_create())
        if result.is_success:
            await self._refresh_list()
        return result

    async def edit_transaction(
        self,
        finance_id: FinanceId,
        form: TransactionFormInput,
    ) -> MutationResult[Transaction]:
        result = await self._mutations.update_finance(finance_id, form.to_update())
        if result.is_success:
            await self._refresh_list()
        return result

    async def delete_transaction(self, finance_id: FinanceId) -> MutationResult[None]:
        """
        Delete a transaction.

        CRITICAL: Called ONLY after the user confirmed the delete dialog.
        """
        result = await self._mutations.delete_finance(finance_id)
        if result.is_success:
            await self._refresh_list()
        return result

    async def attach_document(
        self,
        finance_id: FinanceId,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> Optional[MutationResult[FinanceDocument]]:
        """Validate and upload a supporting document. None if it was rejected."""
        try:
            upload = DocumentUpload(filename=filename, content=content, content_type=content_type)
        except ValidationError as e:
            self._toaster.error("Error", extract_error_message(e))
            return None
        return await self._mutations.upload_document(finance_id, upload)

    def leave(self) -> int:
        """Abort reads still in flight when the page goes away."""
        return self._queries.cancel()


class DashboardFinanceFlow:
    """
    Resolves the balance shown on the main dashboard.

    Fallback chain:
    1. The summary endpoint
    2. The transaction list, summed client-side
    3. The hardcoded fallback summary

    The dashboard never shows an error instead of a number. Failures
    along the chain are logged; the user gets one toast, and only when
    the hardcoded figures are shown.
    """

    def __init__(self, queries: FinanceQueries, toaster: Toaster):
        self._queries = queries
        self._toaster = toaster

    async def resolve_summary(self) -> FinanceSummary:
        summary = await self._queries.finance_summary(notify=False)
        if summary.is_success and summary.data is not None:
            return summary.data

        history = await self._queries.finance_history(notify=False)
        if history.is_success and history.data is not None:
            logger.info("dashboard_summary_from_list", transactions=len(history.data.transactions))
            return history.data.summarize()

        logger.warning("dashboard_summary_fallback")
        if not (summary.is_cancelled or history.is_cancelled):
            self._toaster.error("Gagal memuat data keuangan", FALLBACK_NOTICE)
        return FALLBACK_SUMMARY

    async def balance_card(self) -> StatCard:
        return build_balance_stat_card(await self.resolve_summary())


@dataclass
class AppComponents:
    """Everything the UI needs, wired together."""

    settings: Settings
    credential_store: CredentialStoreInterface
    api: FinanceApiClient
    query_client: QueryClient
    toaster: Toaster
    queries: FinanceQueries
    mutations: FinanceMutations
    finance_page: FinancePageFlow
    dashboard: DashboardFinanceFlow

    async def close(self) -> None:
        """Abort in-flight reads and release the HTTP client."""
        self.query_client.cancel_queries(())
        await self.api.close()


def create_app_components(
    settings: Optional[Settings] = None,
    credential_store: Optional[CredentialStoreInterface] = None,
    toaster: Optional[Toaster] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to get_settings()
        credential_store: Where the bearer token lives; defaults to the
                          JSON file at APP credentials_path
        toaster: Notification service; a new one by default
        transport: Custom httpx transport (tests use MockTransport)

    Returns:
        AppComponents
    """
    settings = settings or get_settings()
    app_settings = settings.app
    api_settings = settings.finance_api
    query_settings = settings.query

    credential_store = credential_store or FileCredentialStore(app_settings.credentials_path)
    toaster = toaster or Toaster()

    api = FinanceApiClient(
        credential_store,
        base_url=api_settings.base_url,
        timeout_seconds=api_settings.timeout_seconds,
        upload_timeout_seconds=api_settings.upload_timeout_seconds,
        token_key=app_settings.token_key,
        transport=transport,
    )
    query_client = QueryClient(
        stale_time_seconds=query_settings.stale_time_seconds,
        gc_time_seconds=query_settings.gc_time_seconds,
        retry_base_delay_seconds=query_settings.retry_base_delay_seconds,
        retry_max_delay_seconds=query_settings.retry_max_delay_seconds,
    )
    queries = FinanceQueries(api, query_client, toaster)
    mutations = FinanceMutations(api, query_client, toaster)

    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        base_url=api.base_url,
    )

    return AppComponents(
        settings=settings,
        credential_store=credential_store,
        api=api,
        query_client=query_client,
        toaster=toaster,
        queries=queries,
        mutations=mutations,
        finance_page=FinancePageFlow(queries, mutations, toaster),
        dashboard=DashboardFinanceFlow(queries, toaster),
    )


class AppSession:
    """
    One user's session: its own event loop and its own components.

    Streamlit runs every browser session on a separate thread, so nothing
    that holds per-user state (the query cache, the filters, pending
    toasts) or an event loop may be shared between sessions. The loop
    outlives a single rerun because the HTTP client and in-flight query
    tasks are bound to it.
    """

    def __init__(self, components: Optional[AppComponents] = None):
        self._loop = asyncio.new_event_loop()
        self.components = components or create_app_components()

    @property
    def is_closed(self) -> bool:
        return self._loop.is_closed()

    def run(self, coro):
        """Run a coroutine to completion on this session's loop."""
        asyncio.set_event_loop(self._loop)
        return self._loop.run_until_complete(coro)

    def close(self) -> None:
        """Abort in-flight reads, release the HTTP client and close the loop."""
        if self._loop.is_closed():
            return
        try:
            self.run(self.components.close())
        finally:
            self._loop.close()
