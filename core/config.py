"""Ledger configuration."""

import os

from pydantic import BaseModel, Field

from core.models import Currency, PaymentTerms

_ENV_PREFIX = "LEDGER_"


class LedgerConfig(BaseModel):
    """
    Invoice ledger configuration.

    Defaults match the behaviour invoices had before configuration existed,
    so an empty environment yields a working ledger.
    """

    # Invoice numbering
    invoice_number_prefix: str = Field(
        default="INV",
        description="Prefix for generated invoice numbers",
        min_length=1,
        max_length=10,
    )
    invoice_number_width: int = Field(
        default=3,
        description="Zero-padded width of the invoice number sequence",
        ge=1,
        le=10,
    )

    # Lifecycle
    duplicate_due_days: int = Field(
        default=30,
        description="Days until a duplicated invoice falls due",
        ge=0,
        le=365,
    )
    recent_invoices_limit: int = Field(
        default=5,
        description="How many recent invoices the dashboard shows",
        ge=1,
        le=100,
    )

    # Defaults for new invoices
    default_currency: Currency = Field(
        default=Currency.USD,
        description="Currency when create() does not specify one",
    )
    default_payment_terms: PaymentTerms = Field(
        default=PaymentTerms.NET_30,
        description="Payment terms when create() does not specify any",
    )
    default_thank_you_message: str = Field(
        default="Thank you for your business!",
        description="Closing line printed on invoices and receipts",
        max_length=500,
    )

    # Delivery
    sender_name: str = Field(
        default="Billing",
        description="Display name on outgoing invoice emails",
        min_length=1,
    )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "LedgerConfig":
        """
        Build config from LEDGER_* environment variables.

        LEDGER_DUPLICATE_DUE_DAYS=14 sets duplicate_due_days. Unknown
        LEDGER_* variables are ignored; invalid values raise pydantic's
        ValidationError.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            key = f"{_ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        return cls(**values)
