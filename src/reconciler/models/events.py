"""Canonical payment event built from any gateway's envelope."""

import re
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import EventClass, PaymentGateway

# Upper bound for a single payment, in major currency units
MAX_PAYMENT_AMOUNT = Decimal("10000000")

# RFC 4122 UUID, versions 1-5
_REFERENCE_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_reference(value: str) -> bool:
    """Check whether a record reference has the expected identifier format."""
    return bool(_REFERENCE_PATTERN.match(value))


class CanonicalPaymentEvent(BaseModel):
    """Gateway-independent view of one inbound payment notification.

    Built once per accepted request and never persisted directly.
    """

    model_config = ConfigDict(frozen=True)

    gateway_source: PaymentGateway
    event_class: EventClass
    event_type: str = Field(..., description="Provider event type string")
    amount: Decimal | None = Field(
        default=None,
        ge=0,
        le=MAX_PAYMENT_AMOUNT,
        description="Captured amount in major currency units",
    )
    booking_reference: str | None = None
    payment_intent_reference: str | None = None
    provider_transaction_reference: str | None = Field(
        default=None,
        description="Provider-side id used for ledger linkage",
    )
    tenant_reference: str | None = Field(
        default=None,
        description="Tenant hint from metadata; informational only",
    )
    raw_status: str | None = Field(
        default=None,
        description="Provider status string, kept for logging",
    )
