"""
Query Keys

Cache keys are tuples that start with the resource kind and end with the
parameters that identify one result. Keys form a hierarchy, so a prefix
such as `finance_keys.lists()` addresses every cached list at once.
"""

from typing import Optional, Union

from finance_dashboard.models.finance import TransactionFilters

QueryKey = tuple


def _normalize_id(finance_id: Union[int, str]) -> Union[int, str]:
    """`5` and `"5"` must address the same cache entry."""
    if isinstance(finance_id, str) and finance_id.strip().isdigit():
        return int(finance_id)
    return finance_id


class FinanceKeys:
    """Key factory for everything under the `finances` resource."""

    all: QueryKey = ("finances",)

    def lists(self) -> QueryKey:
        return (*self.all, "list")

    def list(self, filters: Optional[TransactionFilters] = None) -> QueryKey:
        return (*self.lists(), filters.cache_key() if filters else ())

    def details(self) -> QueryKey:
        return (*self.all, "detail")

    def detail(self, finance_id: Union[int, str]) -> QueryKey:
        return (*self.details(), _normalize_id(finance_id))

    def summaries(self) -> QueryKey:
        return (*self.all, "summary")

    def summary(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> QueryKey:
        return (*self.summaries(), (start_date, end_date))


finance_keys = FinanceKeys()


def matches_key(key: QueryKey, prefix: QueryKey) -> bool:
    """True when `key` equals `prefix` or lives underneath it."""
    return key[:len(prefix)] == prefix
