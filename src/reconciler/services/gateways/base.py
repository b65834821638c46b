"""Common behaviour of gateway adapters.

Each adapter owns one provider's signature scheme, envelope shape and event
vocabulary, and turns a verified request body into a CanonicalPaymentEvent.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from reconciler.models import (
    CanonicalPaymentEvent,
    EventClass,
    PaymentGateway,
    PaymentMetadata,
    WebhookError,
    WebhookErrorCode,
    is_valid_reference,
)
from reconciler.models.events import MAX_PAYMENT_AMOUNT

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


class GatewayAdapter(ABC):
    """Verify, parse and normalize webhooks from a single gateway."""

    gateway: ClassVar[PaymentGateway]
    default_signature_header: ClassVar[str]
    secret_env_var: ClassVar[str]
    secret_parameter: ClassVar[str]
    envelope_model: ClassVar[type[BaseModel]]
    success_events: ClassVar[frozenset[str]]
    failure_events: ClassVar[frozenset[str]]

    def __init__(self, signature_header: str | None = None) -> None:
        self.signature_header = signature_header or self.default_signature_header

    @abstractmethod
    def verify(self, raw_body: bytes, header_value: str, secret: str) -> bool:
        """Check the request signature. Never raises; any error means False."""

    @abstractmethod
    def normalize(self, envelope: Any) -> CanonicalPaymentEvent:
        """Map a validated envelope to the canonical event."""

    def parse_envelope(self, body: Any) -> Any:
        """Validate a decoded body against this gateway's envelope.

        Raises:
            WebhookError: SCHEMA_VIOLATION if the body does not match.
        """
        try:
            return self.envelope_model.model_validate(body)
        except ValidationError as e:
            logger.warning(
                "%s payload failed schema validation: %d error(s)",
                self.gateway.value,
                e.error_count(),
            )
            raise WebhookError(
                WebhookErrorCode.SCHEMA_VIOLATION,
                details={"errors": str(e.error_count())},
            ) from e

    def classify(self, event_type: str) -> EventClass:
        """Map a provider event type to an event class."""
        if event_type in self.success_events:
            return EventClass.SUCCESS
        if event_type in self.failure_events:
            return EventClass.FAILURE
        return EventClass.UNKNOWN

    def amount_from_minor_units(self, minor: int | float | None) -> Decimal | None:
        """Convert a provider minor-unit amount to major units.

        Zero or missing amounts are treated as absent, and so are amounts
        outside [0, MAX_PAYMENT_AMOUNT]. Fractional minor units are rounded
        to whole cents with a warning.
        """
        if not minor:
            return None
        try:
            minor_units = Decimal(str(minor))
            amount = (minor_units / 100).quantize(_CENTS)
        except InvalidOperation:
            logger.warning("Unparseable %s amount %r ignored", self.gateway.value, minor)
            return None
        if minor_units.is_finite() and minor_units != minor_units.to_integral_value():
            logger.warning(
                "Fractional %s minor-unit amount %s rounded to %s",
                self.gateway.value,
                minor_units,
                amount,
            )
        if not amount.is_finite() or amount < 0 or amount > MAX_PAYMENT_AMOUNT:
            logger.warning(
                "Out of range %s amount %s ignored (bounds 0..%s)",
                self.gateway.value,
                amount,
                MAX_PAYMENT_AMOUNT,
            )
            return None
        return amount

    def references(
        self, metadata: PaymentMetadata | None
    ) -> tuple[str | None, str | None, str | None]:
        """Extract booking, payment intent and tenant references from metadata.

        Returns:
            (booking_reference, payment_intent_reference, tenant_reference)

        Raises:
            WebhookError: INVALID_REFERENCE_FORMAT for a malformed reference.
        """
        if metadata is None:
            return None, None, None

        booking = self._checked_reference("appointment_id", metadata.appointment_id)
        intent = self._checked_reference("payment_intent_id", metadata.payment_intent_id)
        tenant = metadata.extra.get("tenant_id")
        return booking, intent, tenant if isinstance(tenant, str) and tenant else None

    def _checked_reference(self, field: str, value: str | None) -> str | None:
        if not value:
            return None
        if not is_valid_reference(value):
            logger.error(
                "Invalid %s format in %s metadata: %r", field, self.gateway.value, value
            )
            raise WebhookError(
                WebhookErrorCode.INVALID_REFERENCE_FORMAT,
                message=f"Invalid {field} format",
                details={"field": field},
            )
        return value
