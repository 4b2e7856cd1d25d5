"""
Finance API Client

This service handles:
1. One async method per REST action of the remote finance service
2. Attaching the bearer token from the local credential store
3. Mapping transport and HTTP failures onto the FinanceApiError taxonomy
4. Parsing responses into our models

DESIGN DECISION: The client does NOT retry. Retrying is a caching/query
concern (different operations retry differently), and mutations must never
be retried at all. Keeping the client single-shot makes both possible.
"""

from typing import Any, Optional, Union

import httpx
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
from finance_dashboard.services.api.cancellation import AbortSignal
from finance_dashboard.services.api.errors import (
    AuthorizationError,
    FinanceApiError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    RequestValidationError,
    ServerError,
)
from finance_dashboard.services.storage import CredentialStoreInterface

logger = structlog.get_logger(__name__)

FinanceId = Union[int, str]


class FinanceApiClient:
    """
    Client for the remote finance API.

    IMPORTANT BOUNDARIES:
    1. Every request carries `Authorization: Bearer <token>` when a token
       is stored; the token is re-read for each request
    2. Every method accepts an AbortSignal; an aborted call raises
       RequestCancelledError and its response is discarded
    3. Errors are categorized, never returned as data
    """

    def __init__(
        self,
        credential_store: CredentialStoreInterface,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        upload_timeout_seconds: Optional[float] = None,
        token_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            credential_store: Where the bearer token is read from
            base_url: API base URL; defaults to FINANCE_API_BASE_URL
            timeout_seconds: Per-request timeout for regular calls
            upload_timeout_seconds: Per-request timeout for uploads
            token_key: Key of the token in the credential store
            transport: Custom httpx transport (tests use MockTransport)
        """
        api_settings = get_settings().finance_api
        self._credential_store = credential_store
        self._base_url = (base_url or api_settings.base_url).rstrip("/")
        self._timeout = timeout_seconds or api_settings.timeout_seconds
        self._upload_timeout = upload_timeout_seconds or api_settings.upload_timeout_seconds
        self._token_key = token_key or get_settings().app.token_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "FinanceApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # HTTP plumbing
    # =========================================================================

    def _auth_headers(self) -> dict[str, str]:
        token = self._credential_store.get_item(self._token_key)
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _raise_for_status(self, response: httpx.Response) -> None:
        """
        Map error responses onto the error taxonomy.

        Raises:
            AuthorizationError: For 401/403 responses
            RequestValidationError: For 400/422 responses
            NotFoundError: For 404 responses
            ServerError: For 5xx responses
            FinanceApiError: For anything else unsuccessful
        """
        if response.is_success:
            return

        status = response.status_code
        try:
            body = response.json()
            detail = body.get("detail", body) if isinstance(body, dict) else body
        except ValueError:
            detail = response.text or None

        message = f"HTTP {status} from {response.request.method} {response.request.url.path}"

        if status in (401, 403):
            raise AuthorizationError(message, status_code=status, detail=detail)
        if status in (400, 422):
            raise RequestValidationError(message, status_code=status, detail=detail)
        if status == 404:
            raise NotFoundError(message, status_code=status, detail=detail)
        if status >= 500:
            raise ServerError(message, status_code=status, detail=detail)
        raise FinanceApiError(message, status_code=status, detail=detail)

    async def _request(
        self,
        method: str,
        path: str,
        signal: Optional[AbortSignal] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request; categorize whatever goes wrong."""
        if signal is not None:
            signal.raise_if_aborted()

        client = self._get_client()
        headers = {**kwargs.pop("headers", {}), **self._auth_headers()}
        request = client.request(method, path, headers=headers, **kwargs)

        try:
            if signal is None:
                response = await request
            else:
                response = await signal.run(request)
        except httpx.TimeoutException as e:
            logger.warning("finance_request_timeout", method=method, path=path)
            raise RequestTimeoutError(f"Request to {path} timed out: {e}") from e
        except httpx.TransportError as e:
            logger.warning("finance_request_unreachable", method=method, path=path, error=str(e))
            raise NetworkError(f"Cannot reach finance API at {self._base_url}: {e}") from e

        try:
            self._raise_for_status(response)
        except FinanceApiError as e:
            logger.warning(
                "finance_request_failed",
                method=method,
                path=path,
                status_code=e.status_code,
                error_type=type(e).__name__,
            )
            raise

        logger.debug("finance_request_ok", method=method, path=path, status_code=response.status_code)
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise FinanceApiError(
                f"Finance API returned invalid JSON ({response.status_code})",
                status_code=response.status_code,
            ) from e

    def _parse(self, parse, payload: Any) -> Any:
        """Run a model parser, reporting schema mismatches as API errors."""
        try:
            return parse(payload)
        except ValueError as e:
            raise FinanceApiError(f"Unexpected finance API response: {e}") from e

    # =========================================================================
    # Operations
    # =========================================================================

    async def get_finance_history(
        self,
        filters: Optional[TransactionFilters] = None,
        signal: Optional[AbortSignal] = None,
    ) -> FinanceHistory:
        """List transactions, optionally filtered."""
        params = filters.to_params() if filters else {}
        response = await self._request("GET", "/finances", signal=signal, params=params)
        return self._parse(FinanceHistory.from_payload, self._json(response))

    async def get_finance_summary(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        signal: Optional[AbortSignal] = None,
    ) -> FinanceSummary:
        """Income, expense and balance, optionally for a date range."""
        params = {
            key: value
            for key, value in (("start_date", start_date), ("end_date", end_date))
            if value
        }
        response = await self._request("GET", "/finance/summary", signal=signal, params=params)
        return self._parse(FinanceSummary.model_validate, self._json(response))

    async def get_finance(
        self,
        finance_id: FinanceId,
        signal: Optional[AbortSignal] = None,
    ) -> Transaction:
        """Fetch a single transaction."""
        response = await self._request("GET", f"/finances/{finance_id}", signal=signal)
        return self._parse(Transaction.model_validate, self._json(response))

    async def create_finance(
        self,
        data: TransactionCreate,
        signal: Optional[AbortSignal] = None,
    ) -> Transaction:
        """Create a transaction; returns the stored record."""
        response = await self._request(
            "POST", "/finances", signal=signal, json=data.to_payload()
        )
        return self._parse(Transaction.model_validate, self._json(response))

    async def update_finance(
        self,
        finance_id: FinanceId,
        data: TransactionUpdate,
        signal: Optional[AbortSignal] = None,
    ) -> Transaction:
        """Update the fields set on `data`; returns the stored record."""
        response = await self._request(
            "PUT", f"/finances/{finance_id}", signal=signal, json=data.to_payload()
        )
        return self._parse(Transaction.model_validate, self._json(response))

    async def delete_finance(
        self,
        finance_id: FinanceId,
        signal: Optional[AbortSignal] = None,
    ) -> None:
        """Delete a transaction."""
        await self._request("DELETE", f"/finances/{finance_id}", signal=signal)

    async def upload_finance_document(
        self,
        finance_id: FinanceId,
        upload: DocumentUpload,
        signal: Optional[AbortSignal] = None,
    ) -> FinanceDocument:
        """Attach a supporting document to a transaction (multipart upload)."""
        response = await self._request(
            "POST",
            f"/finances/{finance_id}/documents",
            signal=signal,
            files={"file": (upload.filename, upload.content, upload.content_type)},
            timeout=self._upload_timeout,
        )
        if not response.content:
            return FinanceDocument(filename=upload.filename)
        return self._parse(FinanceDocument.model_validate, self._json(response))
