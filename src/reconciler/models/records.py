"""Records written to and read from the external stores."""

import datetime as dt
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    LedgerEntryType,
    PaymentGateway,
    StepResult,
    TransactionStatus,
)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class BookingSnapshot(BaseModel):
    """Fields of a booking record needed to write a ledger entry."""

    tenant_id: str
    customer_id: str | None = None
    total_amount: Decimal | None = None


class LedgerEntry(BaseModel):
    """Append-only record of a completed transaction.

    Every insert gets a fresh ``transaction_id``; there is no uniqueness
    on the provider reference.
    """

    model_config = ConfigDict(strict=True)

    transaction_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str
    customer_id: str | None = None
    appointment_id: str
    type: LedgerEntryType = LedgerEntryType.PAYMENT
    amount: Decimal = Field(..., ge=0)
    payment_method: str = "card"
    gateway: PaymentGateway
    gateway_reference: str | None = None
    paystack_reference: str | None = None
    status: TransactionStatus = TransactionStatus.COMPLETED
    created_at: dt.datetime = Field(default_factory=_utc_now)


class Notification(BaseModel):
    """Operator-facing notification row."""

    model_config = ConfigDict(strict=True)

    notification_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str
    type: str = "payment_received"
    title: str
    description: str
    entity_type: str = "appointment"
    entity_id: str
    urgent: bool = False
    created_at: dt.datetime = Field(default_factory=_utc_now)


class StepOutcome(BaseModel):
    """Result of one reconciliation step."""

    step: str
    result: StepResult
    error: str | None = None


class ReconciliationOutcome(BaseModel):
    """Everything the engine attempted for one canonical event."""

    steps: list[StepOutcome] = Field(default_factory=list)

    def record(self, step: str, result: StepResult, error: str | None = None) -> None:
        self.steps.append(StepOutcome(step=step, result=result, error=error))

    @property
    def failed_steps(self) -> list[str]:
        return [s.step for s in self.steps if s.result == StepResult.FAILED]

    @property
    def succeeded_steps(self) -> list[str]:
        return [s.step for s in self.steps if s.result == StepResult.SUCCESS]

    def result_of(self, step: str) -> StepResult | None:
        for outcome in self.steps:
            if outcome.step == step:
                return outcome.result
        return None
