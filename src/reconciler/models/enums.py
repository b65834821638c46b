"""Enumerations shared by the webhook pipeline and the record stores."""

from enum import Enum


class PaymentGateway(str, Enum):
    """External payment processors that deliver webhooks."""

    STRIPE = "stripe"
    PAYSTACK = "paystack"


class EventClass(str, Enum):
    """Outcome class of a canonical payment event."""

    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


class BookingPaymentStatus(str, Enum):
    """Payment status written onto a booking record."""

    PAID = "paid"


class PaymentIntentStatus(str, Enum):
    """Lifecycle of a tracked payment intent."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class LedgerEntryType(str, Enum):
    """Kind of ledger entry."""

    PAYMENT = "payment"


class TransactionStatus(str, Enum):
    """Status of a ledger entry. Entries are only written once settled."""

    COMPLETED = "completed"


class StepResult(str, Enum):
    """Result of a single reconciliation step."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class WebhookState(str, Enum):
    """Stages a webhook request moves through.

    The last six members are terminal error states.
    """

    RECEIVED = "received"
    GATEWAY_IDENTIFIED = "gateway_identified"
    SIGNATURE_VERIFIED = "signature_verified"
    SCHEMA_VALIDATED = "schema_validated"
    EVENT_NORMALIZED = "event_normalized"
    RECONCILED = "reconciled"
    ACKNOWLEDGED = "acknowledged"

    REJECTED_NO_SIGNATURE = "rejected_no_signature"
    REJECTED_BAD_SIGNATURE = "rejected_bad_signature"
    REJECTED_BAD_SCHEMA = "rejected_bad_schema"
    REJECTED_BAD_BODY = "rejected_bad_body"
    CONFIG_ERROR = "config_error"
