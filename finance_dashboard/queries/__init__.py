"""Cached queries and mutations over the finance API."""

from finance_dashboard.queries.cache import QueryClient, QueryState, QueryStatus
from finance_dashboard.queries.finance import (
    FinanceMutations,
    FinanceQueries,
    MutationResult,
    QueryResult,
)
from finance_dashboard.queries.keys import finance_keys, matches_key
from finance_dashboard.queries.retry import (
    NetworkAwareRetry,
    RetryPolicy,
    RetryUnlessCancelled,
)

__all__ = [
    "FinanceMutations",
    "FinanceQueries",
    "MutationResult",
    "NetworkAwareRetry",
    "QueryClient",
    "QueryResult",
    "QueryState",
    "QueryStatus",
    "RetryPolicy",
    "RetryUnlessCancelled",
    "finance_keys",
    "matches_key",
]
