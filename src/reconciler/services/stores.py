"""Record stores the reconciliation engine writes to.

The booking, ledger, payment-intent and notification records are owned by
the rest of the platform. This module defines the operations the engine
needs from them and DynamoDB-backed implementations.
"""

import datetime as dt
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Protocol

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from reconciler.models import (
    BookingPaymentStatus,
    BookingSnapshot,
    LedgerEntry,
    Notification,
    PaymentIntentStatus,
    StoreError,
)

from .dynamodb import DynamoDBService

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    def update_payment_status(
        self, booking_id: str, status: BookingPaymentStatus, amount_paid: Decimal
    ) -> None: ...

    def get(self, booking_id: str) -> BookingSnapshot | None: ...


class LedgerStore(Protocol):
    def insert(self, entry: LedgerEntry) -> None: ...


class PaymentIntentStore(Protocol):
    def update_status(
        self,
        intent_id: str,
        status: PaymentIntentStatus,
        reference: str | None = None,
    ) -> None: ...


class NotificationStore(Protocol):
    def insert(self, notification: Notification) -> None: ...


@contextmanager
def _store_call(operation: str) -> Iterator[None]:
    """Translate botocore failures (including timeouts) into StoreError."""
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        raise StoreError(f"{operation} failed: {e}", operation=operation) from e


def _now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


class DynamoDBBookingStore:
    """Bookings (appointments) table."""

    TABLE = "appointments"

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def update_payment_status(
        self, booking_id: str, status: BookingPaymentStatus, amount_paid: Decimal
    ) -> None:
        """Overwrite payment status and amount paid (last write wins).

        Raises:
            StoreError: If the booking does not exist or the write fails.
        """
        with _store_call("booking.update_payment_status"):
            updated = self.db.set_attributes(
                self.TABLE,
                {"appointment_id": booking_id},
                {
                    "payment_status": status.value,
                    "amount_paid": amount_paid,
                    "updated_at": _now_iso(),
                },
            )
        if not updated:
            raise StoreError(
                f"Booking {booking_id} not found",
                operation="booking.update_payment_status",
            )

    def get(self, booking_id: str) -> BookingSnapshot | None:
        with _store_call("booking.get"):
            item = self.db.get_item(
                self.TABLE,
                {"appointment_id": booking_id},
                projection=["tenant_id", "customer_id", "total_amount"],
            )
        if not item:
            return None
        try:
            return BookingSnapshot.model_validate(item)
        except ValidationError as e:
            raise StoreError(
                f"Booking {booking_id} is malformed: {e.error_count()} error(s)",
                operation="booking.get",
            ) from e


class DynamoDBLedgerStore:
    """Transactions ledger table (append-only)."""

    TABLE = "transactions"

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def insert(self, entry: LedgerEntry) -> None:
        item = entry.model_dump(mode="json", exclude_none=True)
        item["amount"] = entry.amount
        with _store_call("ledger.insert"):
            inserted = self.db.put_item(self.TABLE, item, unique_key="transaction_id")
        if not inserted:
            raise StoreError(
                f"Ledger entry {entry.transaction_id} already exists",
                operation="ledger.insert",
            )


class DynamoDBPaymentIntentStore:
    """Payment intents table."""

    TABLE = "payment-intents"

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def update_status(
        self,
        intent_id: str,
        status: PaymentIntentStatus,
        reference: str | None = None,
    ) -> None:
        """Set the intent status, recording the gateway reference if given.

        Raises:
            StoreError: If the intent does not exist or the write fails.
        """
        values = {"status": status.value, "updated_at": _now_iso()}
        if reference:
            values["gateway_reference"] = reference

        with _store_call("payment_intent.update_status"):
            updated = self.db.set_attributes(
                self.TABLE, {"payment_intent_id": intent_id}, values
            )
        if not updated:
            raise StoreError(
                f"Payment intent {intent_id} not found",
                operation="payment_intent.update_status",
            )


class DynamoDBNotificationStore:
    """Operator notifications table."""

    TABLE = "notifications"

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def insert(self, notification: Notification) -> None:
        with _store_call("notification.insert"):
            self.db.put_item(
                self.TABLE, notification.model_dump(mode="json", exclude_none=True)
            )
