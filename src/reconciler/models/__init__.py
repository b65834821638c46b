"""Pydantic models for the payment webhook pipeline."""

from .enums import (
    BookingPaymentStatus,
    EventClass,
    LedgerEntryType,
    PaymentGateway,
    PaymentIntentStatus,
    StepResult,
    TransactionStatus,
    WebhookState,
)
from .envelopes import (
    PaymentMetadata,
    PaystackEnvelope,
    PaystackEventData,
    StripeEnvelope,
    StripeEventData,
    StripePaymentObject,
)
from .errors import (
    ERROR_MESSAGES,
    ErrorResponse,
    StoreError,
    WebhookError,
    WebhookErrorCode,
)
from .events import MAX_PAYMENT_AMOUNT, CanonicalPaymentEvent, is_valid_reference
from .records import (
    BookingSnapshot,
    LedgerEntry,
    Notification,
    ReconciliationOutcome,
    StepOutcome,
)

__all__ = [
    # Enums
    "BookingPaymentStatus",
    "EventClass",
    "LedgerEntryType",
    "PaymentGateway",
    "PaymentIntentStatus",
    "StepResult",
    "TransactionStatus",
    "WebhookState",
    # Envelopes
    "PaymentMetadata",
    "PaystackEnvelope",
    "PaystackEventData",
    "StripeEnvelope",
    "StripeEventData",
    "StripePaymentObject",
    # Canonical event
    "CanonicalPaymentEvent",
    "MAX_PAYMENT_AMOUNT",
    "is_valid_reference",
    # Records
    "BookingSnapshot",
    "LedgerEntry",
    "Notification",
    "ReconciliationOutcome",
    "StepOutcome",
    # Errors
    "ERROR_MESSAGES",
    "ErrorResponse",
    "StoreError",
    "WebhookError",
    "WebhookErrorCode",
]
