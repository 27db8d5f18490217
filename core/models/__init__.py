"""Core domain models."""

from core.models.money import CENT, ZERO, to_money
from core.models.line_item import LineItem
from core.models.payment import Payment, PaymentCreate, PaymentMethod
from core.models.invoice import (
    Currency,
    DashboardStats,
    DeliveryAcknowledgment,
    DiscountType,
    EmailData,
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    InvoiceUpdate,
    PaymentTerms,
)

__all__ = [
    # Money
    "CENT", "ZERO", "to_money",
    # LineItem
    "LineItem",
    # Payment
    "Payment", "PaymentCreate", "PaymentMethod",
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceUpdate", "InvoiceStatus",
    "PaymentTerms", "Currency", "DiscountType",
    "EmailData", "DeliveryAcknowledgment", "DashboardStats",
]
