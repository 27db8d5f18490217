"""Line item domain model.

A line item is a billable unit on an invoice. Its total (quantity x rate) is
derived on read, never stored.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class LineItem(BaseModel):
    """A single billable row on an invoice."""

    description: str = Field("", max_length=500)
    quantity: Decimal = Field(..., ge=0)
    rate: Decimal = Field(..., ge=0)

    @property
    def line_total(self) -> Decimal:
        """Unrounded quantity x rate."""
        return self.quantity * self.rate
