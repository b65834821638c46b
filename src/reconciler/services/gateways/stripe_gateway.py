"""Stripe webhook adapter."""

import logging
import time
from typing import Callable

import stripe

from reconciler.models import (
    CanonicalPaymentEvent,
    PaymentGateway,
    StripeEnvelope,
)

from .base import GatewayAdapter

logger = logging.getLogger(__name__)

# Maximum age (and clock skew) of a signed Stripe timestamp
SIGNATURE_TOLERANCE_SECONDS = 300


def signed_timestamp(header_value: str) -> int:
    """Extract the ``t=`` timestamp from a Stripe-Signature header.

    Raises:
        ValueError: If the header has no integer timestamp.
    """
    for item in header_value.split(","):
        key, _, value = item.partition("=")
        if key == "t":
            return int(value)
    raise ValueError("Stripe-Signature header has no timestamp")


class StripeGatewayAdapter(GatewayAdapter):
    """Stripe: ``t=<ts>,v1=<hex>`` HMAC-SHA256 over ``"<ts>.<body>"``."""

    gateway = PaymentGateway.STRIPE
    default_signature_header = "Stripe-Signature"
    secret_env_var = "STRIPE_WEBHOOK_SECRET"
    secret_parameter = "stripe/webhook_secret"
    envelope_model = StripeEnvelope
    success_events = frozenset({"checkout.session.completed", "payment_intent.succeeded"})
    failure_events = frozenset({"payment_intent.payment_failed", "charge.failed"})

    def __init__(
        self,
        signature_header: str | None = None,
        tolerance_seconds: int = SIGNATURE_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(signature_header)
        self.tolerance_seconds = tolerance_seconds
        self._clock = clock

    def verify(self, raw_body: bytes, header_value: str, secret: str) -> bool:
        try:
            timestamp = signed_timestamp(header_value)
            age = self._clock() - timestamp
            if abs(age) > self.tolerance_seconds:
                logger.warning(
                    "Stripe webhook timestamp outside tolerance (age=%ds)", int(age)
                )
                return False
            # Freshness is checked above against our own clock
            stripe.WebhookSignature.verify_header(
                raw_body.decode("utf-8"), header_value, secret, tolerance=None
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Stripe signature verification failed: %s", e)
            return False
        except Exception as e:
            logger.warning("Stripe signature header rejected: %s", e)
            return False
        return True

    def normalize(self, envelope: StripeEnvelope) -> CanonicalPaymentEvent:
        payment = envelope.data.object
        booking, intent, tenant = self.references(payment.metadata)

        return CanonicalPaymentEvent(
            gateway_source=self.gateway,
            event_class=self.classify(envelope.type),
            event_type=envelope.type,
            amount=self.amount_from_minor_units(payment.amount_received),
            booking_reference=booking,
            payment_intent_reference=intent,
            provider_transaction_reference=payment.id,
            tenant_reference=tenant,
            raw_status=payment.status,
        )
