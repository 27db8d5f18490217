"""
Invoice totals calculation.

Pure functions only. Identical inputs always produce identical totals, and
nothing here reads the clock or the ledger.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.exceptions import ValidationError
from core.models import DiscountType, LineItem, to_money

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InvoiceTotals:
    """Derived monetary figures for a set of line items."""

    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


def calculate_subtotal(items: Iterable[LineItem]) -> Decimal:
    return to_money(sum((item.line_total for item in items), Decimal("0")))


def calculate_discount(
    subtotal: Decimal,
    discount_amount: Decimal,
    discount_type: DiscountType
) -> Decimal:
    if discount_type == DiscountType.PERCENTAGE:
        return to_money(subtotal * discount_amount / _HUNDRED)
    return to_money(discount_amount)


def calculate_totals(
    items: Iterable[LineItem],
    tax_rate: Decimal = Decimal("0"),
    discount_amount: Decimal = Decimal("0"),
    discount_type: DiscountType = DiscountType.FIXED
) -> InvoiceTotals:
    """
    Compute subtotal, discount, tax and total for an invoice.

    Each component is rounded to cents before it feeds the next, so
    total == subtotal - discount + tax holds exactly.

    Args:
        items: Line items in invoice order
        tax_rate: Flat tax percentage applied after discount (10 = 10%)
        discount_amount: Fixed amount or percentage, per discount_type
        discount_type: How to interpret discount_amount

    Returns:
        InvoiceTotals

    Raises:
        ValidationError: If a rate is negative or the discount exceeds the subtotal
    """
    if tax_rate < 0:
        raise ValidationError(f"Tax rate cannot be negative (got {tax_rate})")
    if discount_amount < 0:
        raise ValidationError(f"Discount cannot be negative (got {discount_amount})")

    subtotal = calculate_subtotal(items)
    discount = calculate_discount(subtotal, discount_amount, discount_type)

    if discount > subtotal:
        raise ValidationError(
            f"Discount {discount} exceeds subtotal {subtotal}"
        )

    discounted = subtotal - discount
    tax = to_money(discounted * tax_rate / _HUNDRED)
    total = discounted + tax

    return InvoiceTotals(subtotal=subtotal, discount=discount, tax=tax, total=total)
