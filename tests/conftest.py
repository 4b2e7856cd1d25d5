"""
Shared fixtures.

`FakeFinanceApi` is an in-memory stand-in for the remote finance service,
served to the real client through httpx.MockTransport. No test talks to
the network.
"""

import json
from typing import Any, Union

import httpx
import pytest

from finance_dashboard.config import get_settings
from finance_dashboard.orchestrator import create_app_components
from finance_dashboard.services.storage import InMemoryCredentialStore

Failure = Union[int, type]


class FakeFinanceApi:
    """
    Minimal finance service.

    `fail[(method, path)]` makes every matching request fail, either with
    an HTTP status (int) or by raising an httpx transport error class.
    """

    def __init__(self, records: list[dict[str, Any]] = None, wrap_list: bool = False):
        self.records = [dict(r) for r in (records or [])]
        self.wrap_list = wrap_list
        self.fail: dict[tuple[str, str], Failure] = {}
        self.requests: list[httpx.Request] = []

    def count(self, method: str, path: str) -> int:
        return sum(
            1 for r in self.requests
            if r.method == method and r.url.path == "/api/v1" + path
        )

    def _find(self, finance_id: int) -> dict[str, Any]:
        for record in self.records:
            if record["id"] == finance_id:
                return record
        return None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api/v1"):]

        failure = self.fail.get((request.method, path))
        if isinstance(failure, int):
            return httpx.Response(failure, json={"detail": f"failure {failure}"})
        if failure is not None:
            raise failure("simulated failure", request=request)

        parts = [p for p in path.split("/") if p]

        if parts == ["finances"] and request.method == "GET":
            if self.wrap_list:
                return httpx.Response(200, json={"transactions": self.records})
            return httpx.Response(200, json=self.records)

        if parts == ["finances"] and request.method == "POST":
            body = json.loads(request.content)
            record = {"id": max([r["id"] for r in self.records] or [0]) + 1, **body}
            self.records.append(record)
            return httpx.Response(201, json=record)

        if parts == ["finance", "summary"]:
            income = sum(r["amount"] for r in self.records if r["category"] == "Pemasukan")
            expense = sum(r["amount"] for r in self.records if r["category"] == "Pengeluaran")
            return httpx.Response(200, json={
                "total_income": income,
                "total_expense": expense,
                "current_balance": income - expense,
            })

        if len(parts) >= 2 and parts[0] == "finances":
            record = self._find(int(parts[1]))
            if record is None:
                return httpx.Response(404, json={"detail": "Finance not found"})

            if len(parts) == 3 and parts[2] == "documents":
                return httpx.Response(201, json={
                    "id": 1,
                    "finance_id": record["id"],
                    "filename": "receipt.pdf",
                    "url": "https://files.test/receipt.pdf",
                })
            if request.method == "GET":
                return httpx.Response(200, json=record)
            if request.method == "PUT":
                record.update(json.loads(request.content))
                return httpx.Response(200, json=record)
            if request.method == "DELETE":
                self.records.remove(record)
                return httpx.Response(204)

        return httpx.Response(405)


SAMPLE_RECORDS = [
    {
        "id": 1,
        "date": "2024-03-01T00:00:00",
        "description": "Gaji",
        "amount": 20000,
        "category": "Pemasukan",
    },
    {
        "id": 2,
        "date": "2024-03-05T00:00:00",
        "description": "Makan siang",
        "amount": 5000,
        "category": "Pengeluaran",
    },
]


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """No backoff delays in tests; settings re-read for each test."""
    monkeypatch.setenv("QUERY_RETRY_BASE_DELAY_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_api():
    return FakeFinanceApi(SAMPLE_RECORDS)


@pytest.fixture
def credential_store():
    return InMemoryCredentialStore({"token": "secret-token"})


@pytest.fixture
def make_components(fake_api, credential_store):
    """Build the full component graph against the fake service."""

    def build(api=None):
        return create_app_components(
            credential_store=credential_store,
            transport=httpx.MockTransport(api or fake_api),
        )

    return build
