"""Gateway-specific webhook envelopes.

Envelopes are strict: unknown fields are rejected everywhere except inside
the ``metadata`` bag, which accepts a bounded number of extra scalar values
alongside the typed references.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Bounds on the extra metadata bag (mirrors Stripe's own metadata limits)
MAX_EXTRA_METADATA_KEYS = 50
MAX_METADATA_KEY_LENGTH = 40
MAX_METADATA_VALUE_LENGTH = 500


class PaymentMetadata(BaseModel):
    """Merchant metadata attached to a payment at checkout time.

    ``appointment_id`` and ``payment_intent_id`` are typed here; their format
    is checked during normalization. Anything else lands in ``model_extra``.
    """

    model_config = ConfigDict(strict=True, extra="allow")

    appointment_id: str | None = Field(
        default=None,
        description="Booking the payment is applied against",
        examples=["4f1c2a7e-9b3d-4c5e-8f6a-1b2c3d4e5f60"],
    )
    payment_intent_id: str | None = Field(
        default=None,
        description="Internal payment intent tracking this collection attempt",
    )

    @model_validator(mode="after")
    def _bound_extra_fields(self) -> "PaymentMetadata":
        extra = self.model_extra or {}
        if len(extra) > MAX_EXTRA_METADATA_KEYS:
            raise ValueError(
                f"metadata has {len(extra)} extra keys (max {MAX_EXTRA_METADATA_KEYS})"
            )
        for key, value in extra.items():
            if len(key) > MAX_METADATA_KEY_LENGTH:
                raise ValueError(f"metadata key too long: {key[:MAX_METADATA_KEY_LENGTH]}...")
            if not _is_scalar(value):
                raise ValueError(f"metadata value for '{key}' must be a scalar")
            if isinstance(value, str) and len(value) > MAX_METADATA_VALUE_LENGTH:
                raise ValueError(f"metadata value for '{key}' is too long")
        return self

    @property
    def extra(self) -> dict[str, Any]:
        """Extra metadata values outside the typed references."""
        return dict(self.model_extra or {})


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


# === Stripe ===


class StripePaymentObject(BaseModel):
    """The ``data.object`` of a Stripe event (session or payment intent)."""

    model_config = ConfigDict(strict=True, extra="forbid")

    id: str
    object: str | None = None
    status: str | None = None
    amount_received: int | float | None = Field(
        default=None,
        description="Captured amount in minor currency units",
    )
    currency: str | None = None
    metadata: PaymentMetadata | None = None


class StripeEventData(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    object: StripePaymentObject


class StripeEnvelope(BaseModel):
    """Stripe webhook event."""

    model_config = ConfigDict(strict=True, extra="forbid")

    type: str
    data: StripeEventData
    id: str | None = None
    object: str | None = None
    created: int | None = None
    livemode: bool | None = None
    api_version: str | None = None


# === Paystack ===


class PaystackEventData(BaseModel):
    """The ``data`` block of a Paystack event."""

    model_config = ConfigDict(strict=True, extra="forbid")

    id: int | str | None = None
    reference: str | None = None
    status: str | None = None
    amount: int | float | None = Field(
        default=None,
        description="Amount in minor currency units (kobo, pesewas, ...)",
    )
    currency: str | None = None
    metadata: PaymentMetadata | None = None


class PaystackEnvelope(BaseModel):
    """Paystack webhook event."""

    model_config = ConfigDict(strict=True, extra="forbid")

    event: str
    data: PaystackEventData
