"""Invoice domain models.

All amounts are Decimal quantized to cents. Tax rate and percentage discounts
are plain percents (10 = 10%).
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from core.models.line_item import LineItem
from core.models.money import to_money
from core.models.payment import Payment


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


class PaymentTerms(str, Enum):
    """When payment falls due relative to the issue date."""

    DUE_ON_RECEIPT = "due_on_receipt"
    NET_15 = "net_15"
    NET_30 = "net_30"
    NET_60 = "net_60"

    @property
    def days(self) -> int:
        """Days between issue date and due date."""
        if self is PaymentTerms.DUE_ON_RECEIPT:
            return 0
        return int(self.value.removeprefix("net_"))

    @property
    def label(self) -> str:
        if self is PaymentTerms.DUE_ON_RECEIPT:
            return "Due on receipt"
        return f"Net {self.days}"


class Currency(str, Enum):
    """Supported invoice currencies. No conversion between them."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"

    @property
    def symbol(self) -> str:
        return _CURRENCY_SYMBOLS[self]

    @property
    def label(self) -> str:
        return f"{self.value} - {_CURRENCY_NAMES[self]}"

    def format_amount(self, amount: Decimal) -> str:
        """Render an amount for display, e.g. "$1,234.50"."""
        value = to_money(amount)
        sign = "-" if value < 0 else ""
        return f"{sign}{self.symbol}{abs(value):,.2f}"


_CURRENCY_SYMBOLS = {
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
    Currency.CAD: "C$",
}

_CURRENCY_NAMES = {
    Currency.USD: "US Dollar",
    Currency.EUR: "Euro",
    Currency.GBP: "British Pound",
    Currency.CAD: "Canadian Dollar",
}


class DiscountType(str, Enum):
    """How discount_amount is interpreted."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class InvoiceCreate(BaseModel):
    """
    Data required to create an invoice.

    Fields left as None fall back to ledger configuration defaults. A missing
    due_date is derived from payment terms and the issue date.
    """

    client_id: int
    project_id: int | None = None
    issue_date: date | None = None
    due_date: date | None = None
    currency: Currency | None = None
    payment_terms: PaymentTerms | None = None
    items: list[LineItem] = Field(default_factory=list)
    tax_rate: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    discount_type: DiscountType = DiscountType.FIXED
    notes: str = Field("", max_length=2000)
    terms_and_conditions: str = Field("", max_length=5000)
    thank_you_message: str | None = Field(None, max_length=500)

    model_config = {"extra": "forbid"}


# Fields that may legitimately be cleared with an explicit null.
_NULLABLE_UPDATE_FIELDS = {"project_id"}


class InvoiceUpdate(BaseModel):
    """
    Patch for an invoice. Only fields explicitly set are applied.

    Which fields a patch touches is read from model_fields_set, so passing a
    field with its default value still counts as touching it.
    """

    client_id: int | None = None
    project_id: int | None = None
    status: InvoiceStatus | None = None
    issue_date: date | None = None
    due_date: date | None = None
    currency: Currency | None = None
    payment_terms: PaymentTerms | None = None
    items: list[LineItem] | None = None
    tax_rate: Decimal | None = Field(None, ge=0)
    discount_amount: Decimal | None = Field(None, ge=0)
    discount_type: DiscountType | None = None
    notes: str | None = Field(None, max_length=2000)
    terms_and_conditions: str | None = Field(None, max_length=5000)
    thank_you_message: str | None = Field(None, max_length=500)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "InvoiceUpdate":
        """Only nullable fields may be set to None explicitly."""
        for field in self.model_fields_set - _NULLABLE_UPDATE_FIELDS:
            if getattr(self, field) is None:
                raise ValueError(f"'{field}' cannot be null")
        return self

    def touched_fields(self) -> set[str]:
        return set(self.model_fields_set)

    def changes(self) -> dict:
        """Touched fields and their new values, models kept as models."""
        return {field: getattr(self, field) for field in self.model_fields_set}


class EmailData(BaseModel):
    """Where and how to deliver an invoice."""

    to: str = Field(..., min_length=3, max_length=320)
    subject: str | None = Field(None, max_length=200)
    message: str | None = Field(None, max_length=5000)

    model_config = {"extra": "forbid"}


class DeliveryAcknowledgment(BaseModel):
    """Result of handing an invoice to the mail transport."""

    success: bool
    message: str
    sent_at: datetime
    recipient: str
    invoice_id: int


class Invoice(BaseModel):
    """Full invoice entity as stored."""

    id: int
    invoice_number: str
    client_id: int
    project_id: int | None
    status: InvoiceStatus
    issue_date: date
    due_date: date
    currency: Currency
    payment_terms: PaymentTerms
    items: list[LineItem]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    notes: str
    terms_and_conditions: str
    thank_you_message: str
    paid_date: date | None = None
    sent_date: date | None = None
    payments: list[Payment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_paid(self) -> bool:
        """Whether invoice is fully paid."""
        return self.status == InvoiceStatus.PAID

    @property
    def is_editable(self) -> bool:
        """Only drafts accept edits to anything besides status."""
        return self.status == InvoiceStatus.DRAFT

    @property
    def remaining_balance(self) -> Decimal:
        """Largest payment the invoice can still accept."""
        return self.total - self.amount_paid

    @property
    def formatted_total(self) -> str:
        return self.currency.format_amount(self.total)

    @property
    def formatted_balance_due(self) -> str:
        return self.currency.format_amount(self.balance_due)


class DashboardStats(BaseModel):
    """Aggregate view of the ledger for the dashboard."""

    total_invoices: int
    total_outstanding: Decimal
    total_paid: Decimal
    overdue_count: int
    recent_invoices: list[Invoice]
