"""Paystack webhook adapter."""

import hashlib
import hmac
import logging

from reconciler.models import (
    CanonicalPaymentEvent,
    PaymentGateway,
    PaystackEnvelope,
)

from .base import GatewayAdapter

logger = logging.getLogger(__name__)


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Hex HMAC-SHA512 of the raw body, as Paystack sends it."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


class PaystackGatewayAdapter(GatewayAdapter):
    """Paystack: hex HMAC-SHA512 of the raw body in ``X-Paystack-Signature``."""

    gateway = PaymentGateway.PAYSTACK
    default_signature_header = "X-Paystack-Signature"
    secret_env_var = "PAYSTACK_SECRET_KEY"
    secret_parameter = "paystack/secret_key"
    envelope_model = PaystackEnvelope
    success_events = frozenset({"charge.success"})
    failure_events = frozenset({"charge.failed"})

    def verify(self, raw_body: bytes, header_value: str, secret: str) -> bool:
        try:
            expected = compute_signature(raw_body, secret)
            valid = hmac.compare_digest(
                expected.encode("ascii"), header_value.encode("utf-8")
            )
        except Exception as e:
            logger.warning("Paystack signature header rejected: %s", e)
            return False
        if not valid:
            logger.warning("Paystack signature mismatch")
        return valid

    def normalize(self, envelope: PaystackEnvelope) -> CanonicalPaymentEvent:
        data = envelope.data
        booking, intent, tenant = self.references(data.metadata)

        return CanonicalPaymentEvent(
            gateway_source=self.gateway,
            event_class=self.classify(envelope.event),
            event_type=envelope.event,
            amount=self.amount_from_minor_units(data.amount),
            booking_reference=booking,
            payment_intent_reference=intent,
            provider_transaction_reference=data.reference,
            tenant_reference=tenant,
            raw_status=data.status,
        )
