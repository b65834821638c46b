"""Reconciliation engine: applies a canonical payment event to the stores.

Steps are independent best-effort writes. A failed step is logged and
recorded in the outcome, and later steps still run. There is no
transaction across steps and no idempotency key, so a redelivered event
repeats every step (including a second ledger entry).
"""

from collections.abc import Callable

from reconciler.models import (
    BookingPaymentStatus,
    BookingSnapshot,
    CanonicalPaymentEvent,
    EventClass,
    LedgerEntry,
    Notification,
    PaymentGateway,
    PaymentIntentStatus,
    ReconciliationOutcome,
    StepResult,
    StoreError,
)
from reconciler.utils.logging import get_logger, log_reconciliation_step

from .dynamodb import DynamoDBService, get_dynamodb_service
from .stores import (
    BookingStore,
    DynamoDBBookingStore,
    DynamoDBLedgerStore,
    DynamoDBNotificationStore,
    DynamoDBPaymentIntentStore,
    LedgerStore,
    NotificationStore,
    PaymentIntentStore,
)

logger = get_logger(__name__)


class ReconciliationEngine:
    """Applies payment events to booking, ledger, intent and notification records."""

    BOOKING_UPDATE = "booking_update"
    BOOKING_READ = "booking_read"
    LEDGER_INSERT = "ledger_insert"
    NOTIFICATION_INSERT = "notification_insert"
    PAYMENT_INTENT_UPDATE = "payment_intent_update"

    def __init__(
        self,
        bookings: BookingStore,
        ledger: LedgerStore,
        payment_intents: PaymentIntentStore,
        notifications: NotificationStore,
    ) -> None:
        self.bookings = bookings
        self.ledger = ledger
        self.payment_intents = payment_intents
        self.notifications = notifications

    def reconcile(self, event: CanonicalPaymentEvent) -> ReconciliationOutcome:
        """Apply one canonical event.

        Never raises for store failures; they are reported in the outcome.

        Args:
            event: Normalized payment event

        Returns:
            Outcome listing every attempted or skipped step
        """
        outcome = ReconciliationOutcome()

        if event.event_class == EventClass.SUCCESS:
            self._apply_success(event, outcome)
        elif event.event_class == EventClass.FAILURE:
            self._apply_failure(event, outcome)
        else:
            logger.info(
                "Ignoring unclassified %s event type %s (status=%s)",
                event.gateway_source.value,
                event.event_type,
                event.raw_status,
            )

        return outcome

    def _apply_success(
        self, event: CanonicalPaymentEvent, outcome: ReconciliationOutcome
    ) -> None:
        booking_id = event.booking_reference
        amount = event.amount

        if booking_id is None or amount is None:
            logger.warning(
                "Successful %s payment %s has no %s; nothing to reconcile",
                event.gateway_source.value,
                event.provider_transaction_reference,
                "booking reference" if booking_id is None else "amount",
            )
            return

        self._run_step(
            outcome,
            self.BOOKING_UPDATE,
            lambda: self.bookings.update_payment_status(
                booking_id, BookingPaymentStatus.PAID, amount
            ),
            booking_reference=booking_id,
            amount=amount,
        )

        booking = self._read_booking(booking_id, outcome)
        if booking is None:
            for step in (self.LEDGER_INSERT, self.NOTIFICATION_INSERT):
                outcome.record(step, StepResult.SKIPPED, "booking unavailable")
                log_reconciliation_step(
                    logger, step, StepResult.SKIPPED.value, booking_reference=booking_id
                )
        else:
            entry = LedgerEntry(
                tenant_id=booking.tenant_id,
                customer_id=booking.customer_id,
                appointment_id=booking_id,
                amount=amount,
                gateway=event.gateway_source,
                gateway_reference=event.provider_transaction_reference,
                paystack_reference=(
                    event.provider_transaction_reference
                    if event.gateway_source == PaymentGateway.PAYSTACK
                    else None
                ),
            )
            self._run_step(
                outcome,
                self.LEDGER_INSERT,
                lambda: self.ledger.insert(entry),
                booking_reference=booking_id,
                amount=amount,
                transaction_id=entry.transaction_id,
            )

            notification = Notification(
                tenant_id=booking.tenant_id,
                title="Payment Received",
                description=f"Payment of {amount} received for booking",
                entity_id=booking_id,
            )
            self._run_step(
                outcome,
                self.NOTIFICATION_INSERT,
                lambda: self.notifications.insert(notification),
                booking_reference=booking_id,
            )

        intent_id = event.payment_intent_reference
        if intent_id:
            self._run_step(
                outcome,
                self.PAYMENT_INTENT_UPDATE,
                lambda: self.payment_intents.update_status(
                    intent_id,
                    PaymentIntentStatus.COMPLETED,
                    event.provider_transaction_reference,
                ),
                payment_intent_reference=intent_id,
            )

    def _apply_failure(
        self, event: CanonicalPaymentEvent, outcome: ReconciliationOutcome
    ) -> None:
        intent_id = event.payment_intent_reference
        if not intent_id:
            logger.info(
                "Failed %s payment %s has no payment intent reference",
                event.gateway_source.value,
                event.provider_transaction_reference,
            )
            return

        self._run_step(
            outcome,
            self.PAYMENT_INTENT_UPDATE,
            lambda: self.payment_intents.update_status(
                intent_id, PaymentIntentStatus.FAILED
            ),
            payment_intent_reference=intent_id,
        )

    def _read_booking(
        self, booking_id: str, outcome: ReconciliationOutcome
    ) -> BookingSnapshot | None:
        try:
            booking = self.bookings.get(booking_id)
        except StoreError as e:
            outcome.record(self.BOOKING_READ, StepResult.FAILED, str(e))
            log_reconciliation_step(
                logger,
                self.BOOKING_READ,
                StepResult.FAILED.value,
                booking_reference=booking_id,
                error=str(e),
            )
            return None

        if booking is None:
            outcome.record(self.BOOKING_READ, StepResult.SKIPPED, "booking not found")
            log_reconciliation_step(
                logger,
                self.BOOKING_READ,
                StepResult.SKIPPED.value,
                booking_reference=booking_id,
            )
            return None

        outcome.record(self.BOOKING_READ, StepResult.SUCCESS)
        return booking

    def _run_step(
        self,
        outcome: ReconciliationOutcome,
        step: str,
        action: Callable[[], None],
        **context: object,
    ) -> bool:
        """Run one write, recording and logging its result."""
        try:
            action()
        except StoreError as e:
            outcome.record(step, StepResult.FAILED, str(e))
            log_reconciliation_step(
                logger, step, StepResult.FAILED.value, error=str(e), **context
            )
            return False

        outcome.record(step, StepResult.SUCCESS)
        log_reconciliation_step(logger, step, StepResult.SUCCESS.value, **context)
        return True


def build_reconciliation_engine(db: DynamoDBService | None = None) -> ReconciliationEngine:
    """Engine wired to the DynamoDB-backed stores.

    Args:
        db: DynamoDB service to use. Defaults to the shared instance.
    """
    db = db or get_dynamodb_service()
    return ReconciliationEngine(
        bookings=DynamoDBBookingStore(db),
        ledger=DynamoDBLedgerStore(db),
        payment_intents=DynamoDBPaymentIntentStore(db),
        notifications=DynamoDBNotificationStore(db),
    )
