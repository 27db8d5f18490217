"""Payment domain models.

Payments are append-only. Once recorded against an invoice they are never
mutated or removed, so the stored entity is frozen.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    """How a payment was made."""

    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CASH = "cash"
    CARD = "card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    OTHER = "other"

    @property
    def label(self) -> str:
        return _PAYMENT_METHOD_LABELS[self]


_PAYMENT_METHOD_LABELS = {
    PaymentMethod.BANK_TRANSFER: "Bank Transfer",
    PaymentMethod.CHECK: "Check",
    PaymentMethod.CASH: "Cash",
    PaymentMethod.CARD: "Credit/Debit Card",
    PaymentMethod.PAYPAL: "PayPal",
    PaymentMethod.STRIPE: "Stripe",
    PaymentMethod.OTHER: "Other",
}


class PaymentCreate(BaseModel):
    """
    Data required to record a payment.

    Amount bounds are checked by the service, not here, because the upper
    bound depends on the invoice's remaining balance.
    """

    amount: Decimal
    method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    reference: str = Field("", max_length=200)
    notes: str = Field("", max_length=2000)
    date: dt.date | None = None

    model_config = {"extra": "forbid"}


class Payment(BaseModel):
    """Full payment entity as stored on its invoice."""

    id: UUID
    amount: Decimal
    method: PaymentMethod
    reference: str
    notes: str
    date: dt.date
    created_at: dt.datetime

    model_config = {"frozen": True, "from_attributes": True}
