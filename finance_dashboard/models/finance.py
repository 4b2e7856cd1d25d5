"""
Core Data Models for the Finance Dashboard

These models define the schemas for everything exchanged with the remote
finance API and everything the dashboard renders.

DESIGN DECISION: Money is held as Decimal. The API is loose about types
(amounts arrive as numbers or numeric strings), so response models coerce
while request models are strict about what they send.
"""

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from finance_dashboard.config import get_settings


# =============================================================================
# ENUMS
# =============================================================================

class FinanceCategory(str, Enum):
    """
    Transaction category as stored by the finance API.

    The API speaks Indonesian; only these two literals are valid.
    """
    INCOME = "Pemasukan"
    EXPENSE = "Pengeluaran"

    @classmethod
    def from_form_type(cls, value: str) -> "FinanceCategory":
        """Map the form's income/expense switch onto an API category."""
        normalised = value.strip().lower()
        if normalised == "income":
            return cls.INCOME
        if normalised == "expense":
            return cls.EXPENSE
        raise ValueError(f"Unsupported transaction type: {value}")

    @property
    def form_type(self) -> str:
        return "income" if self is FinanceCategory.INCOME else "expense"


def _to_decimal(value: Any) -> Any:
    """Coerce API money values ("20000", 20000, None) into Decimal."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            return value  # let pydantic report it
    return value


def _parse_iso_datetime(value: Any) -> Any:
    """Accept ISO-8601 strings with a trailing Z and bare dates."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return value
    return value


def _json_number(value: Decimal) -> Union[int, float]:
    """Serialize money the way the API expects it: as a JSON number."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """A single income or expense record owned by the finance API."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: int = Field(..., description="Server-assigned identifier")
    date: datetime = Field(..., description="When the transaction happened")
    description: str = Field(default="", description="Free text description")
    amount: Decimal = Field(..., description="Transaction amount in IDR")
    category: FinanceCategory = Field(..., description="Income or expense")

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _to_decimal(v)

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_iso_datetime(v)

    @property
    def is_income(self) -> bool:
        return self.category is FinanceCategory.INCOME


class TransactionCreate(BaseModel):
    """Payload for creating a transaction. All fields are required."""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0, description="Amount in IDR")
    category: FinanceCategory
    date: datetime
    description: str = Field(..., min_length=1, max_length=500)

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_iso_datetime(v)

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> Union[int, float]:
        return _json_number(v)

    def to_payload(self) -> dict:
        """JSON body sent to the API."""
        return self.model_dump(mode="json")


class TransactionUpdate(BaseModel):
    """
    Partial update payload.

    Only fields that were explicitly set are sent to the API.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(default=None, gt=0)
    category: Optional[FinanceCategory] = None
    date: Optional[datetime] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_iso_datetime(v)

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Optional[Decimal]) -> Optional[Union[int, float]]:
        return None if v is None else _json_number(v)

    def to_payload(self) -> dict:
        """JSON body sent to the API."""
        return self.model_dump(mode="json", exclude_none=True)


class TransactionFilters(BaseModel):
    """
    Optional filters for the transaction list.

    Passed straight through to the API as query parameters; no client-side
    pagination happens.
    """

    model_config = ConfigDict(frozen=True)

    skip: Optional[int] = Field(default=None, ge=0)
    limit: Optional[int] = Field(default=None, ge=1, le=1000)
    category: Optional[FinanceCategory] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_range(self) -> 'TransactionFilters':
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self

    def to_params(self) -> dict[str, Any]:
        """Query parameters for the list endpoint (unset filters omitted)."""
        return self.model_dump(mode="json", exclude_none=True)

    def cache_key(self) -> tuple:
        """Hashable, order-independent identity of these filters."""
        return tuple(sorted(self.to_params().items()))


# =============================================================================
# AGGREGATES
# =============================================================================

class FinanceSummary(BaseModel):
    """
    Aggregate income, expense and balance.

    Normally computed server-side; `from_transactions` rebuilds it from a
    transaction list when the summary endpoint is unavailable.
    """

    model_config = ConfigDict(extra="ignore")

    total_income: Decimal = Field(default=Decimal("0"))
    total_expense: Decimal = Field(default=Decimal("0"))
    current_balance: Decimal = Field(default=Decimal("0"))

    @field_validator('total_income', 'total_expense', 'current_balance', mode='before')
    @classmethod
    def coerce_money(cls, v: Any) -> Any:
        return _to_decimal(v)

    @classmethod
    def from_transactions(cls, transactions: list[Transaction]) -> "FinanceSummary":
        """Sum transactions by category; balance is income minus expense."""
        income = sum(
            (t.amount for t in transactions if t.category is FinanceCategory.INCOME),
            Decimal("0"),
        )
        expense = sum(
            (t.amount for t in transactions if t.category is FinanceCategory.EXPENSE),
            Decimal("0"),
        )
        return cls(
            total_income=income,
            total_expense=expense,
            current_balance=income - expense,
        )


# Shown whenever the summary cannot be loaded, so the dashboard is never
# blank while the hosted API cold-starts.
FALLBACK_SUMMARY = FinanceSummary(
    total_income=Decimal("20000"),
    total_expense=Decimal("5000"),
    current_balance=Decimal("15000"),
)


class FinanceHistory(BaseModel):
    """Normalized response of the transaction list endpoint."""

    transactions: list[Transaction] = Field(default_factory=list)
    current_balance: Decimal = Field(default=Decimal("0"))

    @field_validator('current_balance', mode='before')
    @classmethod
    def coerce_balance(cls, v: Any) -> Any:
        return _to_decimal(v)

    @classmethod
    def from_payload(cls, payload: Any) -> "FinanceHistory":
        """
        Build a history from either response shape.

        The API answers with `{"transactions": [...], "current_balance": x}`
        or with a bare array; the balance of a bare array (or of an object
        without one) is computed from the transactions.
        """
        if isinstance(payload, list):
            transactions = [Transaction.model_validate(item) for item in payload]
            balance = FinanceSummary.from_transactions(transactions).current_balance
            return cls(transactions=transactions, current_balance=balance)

        if isinstance(payload, dict):
            transactions = [
                Transaction.model_validate(item)
                for item in payload.get("transactions") or []
            ]
            if payload.get("current_balance") is None:
                balance = FinanceSummary.from_transactions(transactions).current_balance
            else:
                balance = payload["current_balance"]
            return cls(transactions=transactions, current_balance=balance)

        raise ValueError(f"Unexpected finance history payload: {type(payload).__name__}")

    def summarize(self) -> FinanceSummary:
        return FinanceSummary.from_transactions(self.transactions)


EMPTY_HISTORY = FinanceHistory()


# =============================================================================
# DOCUMENTS
# =============================================================================

class DocumentUpload(BaseModel):
    """A supporting document (receipt, invoice scan) to attach to a transaction."""

    filename: str = Field(..., min_length=1, max_length=255)
    content: bytes = Field(..., repr=False)
    content_type: str

    @field_validator('content_type')
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        """Only allow the configured document types."""
        allowed = get_settings().app.supported_types_list
        if v.lower() not in allowed:
            raise ValueError(f"Unsupported document type: {v}. Allowed: {allowed}")
        return v.lower()

    @model_validator(mode='after')
    def validate_size(self) -> 'DocumentUpload':
        if not self.content:
            raise ValueError("Document is empty")
        max_bytes = get_settings().app.max_upload_size_bytes
        if len(self.content) > max_bytes:
            raise ValueError(
                f"Document is {len(self.content)} bytes; the limit is {max_bytes} bytes"
            )
        return self

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class FinanceDocument(BaseModel):
    """What the API returns after a document upload."""

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    finance_id: Optional[int] = None
    filename: Optional[str] = None
    url: Optional[str] = None


# =============================================================================
# FORM INPUT
# =============================================================================

class TransactionFormInput(BaseModel):
    """
    What the add/edit dialog collects.

    The form works with an income/expense switch and a free-text amount;
    `to_create` converts it into the API payload.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    date: datetime
    description: str = Field(..., min_length=1, max_length=500)
    amount: str = Field(..., min_length=1)
    type: Literal["income", "expense"]

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_iso_datetime(v)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: str) -> str:
        try:
            parsed = Decimal(v)
        except InvalidOperation:
            raise ValueError("Jumlah harus berupa angka")
        if not parsed.is_finite() or parsed <= 0:
            raise ValueError("Jumlah harus lebih dari 0")
        return v

    def to_create(self) -> TransactionCreate:
        return TransactionCreate(
            amount=Decimal(self.amount),
            category=FinanceCategory.from_form_type(self.type),
            date=self.date,
            description=self.description,
        )

    def to_update(self) -> TransactionUpdate:
        return TransactionUpdate(**self.to_create().model_dump())

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionFormInput":
        """Default values for the edit dialog."""
        return cls(
            date=transaction.date,
            description=transaction.description or "-",
            amount=str(transaction.amount),
            type=transaction.category.form_type,
        )
