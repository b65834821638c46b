"""Unit tests for the webhook request pipeline.

The reconciliation engine is mocked, so a rejected request can be checked
for "engine never called" directly.
"""

import logging
from unittest.mock import MagicMock

import pytest

from factories import (
    PAYSTACK_TEST_SECRET,
    STRIPE_TEST_SECRET,
    TEST_BOOKING_ID,
    TEST_TENANT_ID,
    encode,
    paystack_event,
    paystack_signature,
    stripe_event,
    stripe_signature,
)
from reconciler.models import (
    EventClass,
    PaymentGateway,
    ReconciliationOutcome,
    WebhookError,
    WebhookErrorCode,
    WebhookState,
)
from reconciler.services import WebhookHandler
from reconciler.services.secrets import WebhookSecretProvider
from reconciler.services.webhook_handler import decode_body


@pytest.fixture
def engine() -> MagicMock:
    mock = MagicMock()
    mock.reconcile.return_value = ReconciliationOutcome()
    return mock


@pytest.fixture
def handler(engine: MagicMock, webhook_secrets) -> WebhookHandler:
    return WebhookHandler(engine=engine)


def stripe_request(event: dict | None = None) -> tuple[dict[str, str], bytes]:
    payload = encode(event or stripe_event())
    return {"Stripe-Signature": stripe_signature(payload)}, payload


def paystack_request(event: dict | None = None) -> tuple[dict[str, str], bytes]:
    payload = encode(event or paystack_event())
    return {"X-Paystack-Signature": paystack_signature(payload)}, payload


# === Body Decoding ===


class TestDecodeBody:
    def test_json_object_decoded(self):
        assert decode_body(b'{"event": "charge.success"}') == {"event": "charge.success"}

    @pytest.mark.parametrize(
        "raw",
        [b"", b"not json", b'{"event": ', b"\xff\xfe{}", b'{"amount": NaN}'],
    )
    def test_malformed_body_rejected(self, raw: bytes):
        with pytest.raises(WebhookError) as exc_info:
            decode_body(raw)

        assert exc_info.value.code == WebhookErrorCode.MALFORMED_BODY
        assert exc_info.value.message == "Invalid JSON payload"

    def test_deeply_nested_body_rejected(self):
        raw = b"[" * 100_000 + b"]" * 100_000

        with pytest.raises(WebhookError) as exc_info:
            decode_body(raw)

        assert exc_info.value.code == WebhookErrorCode.MALFORMED_BODY


# === Pipeline ===


class TestAcceptedRequests:
    def test_stripe_event_reconciled(self, handler, engine):
        headers, payload = stripe_request()

        result = handler.handle(headers, payload)

        assert result.state == WebhookState.ACKNOWLEDGED
        assert result.event.gateway_source == PaymentGateway.STRIPE
        assert result.event.event_class == EventClass.SUCCESS
        assert result.event.booking_reference == TEST_BOOKING_ID
        engine.reconcile.assert_called_once_with(result.event)

    def test_paystack_event_reconciled(self, handler, engine):
        headers, payload = paystack_request()

        result = handler.handle(headers, payload)

        assert result.event.gateway_source == PaymentGateway.PAYSTACK
        assert result.event.provider_transaction_reference == "ref-1"
        engine.reconcile.assert_called_once()

    def test_unknown_event_still_acknowledged(self, handler, engine):
        headers, payload = paystack_request(paystack_event("transfer.success"))

        result = handler.handle(headers, payload)

        assert result.state == WebhookState.ACKNOWLEDGED
        assert result.event.event_class == EventClass.UNKNOWN

    def test_acknowledgement_logged(self, handler, caplog):
        headers, payload = stripe_request()

        with caplog.at_level(logging.INFO, logger="reconciler"):
            handler.handle(headers, payload)

        results = [getattr(r, "result", None) for r in caplog.records]
        assert "received" in results
        assert "acknowledged" in results

    def test_tenant_reference_logged_on_receipt(self, handler, caplog):
        headers, payload = stripe_request()

        with caplog.at_level(logging.INFO, logger="reconciler"):
            handler.handle(headers, payload)

        (received,) = [r for r in caplog.records if getattr(r, "result", None) == "received"]
        assert received.tenant_reference == TEST_TENANT_ID
        assert f"tenant_reference={TEST_TENANT_ID}" in received.getMessage()


class TestRejectedRequests:
    def _assert_rejected(self, handler, engine, headers, payload, code):
        with pytest.raises(WebhookError) as exc_info:
            handler.handle(headers, payload)

        assert exc_info.value.code == code
        engine.reconcile.assert_not_called()
        return exc_info.value

    def test_invalid_json_rejected_before_gateway_check(self, handler, engine):
        self._assert_rejected(handler, engine, {}, b"{not json", WebhookErrorCode.MALFORMED_BODY)

    def test_missing_signature(self, handler, engine):
        self._assert_rejected(
            handler, engine, {}, encode(stripe_event()), WebhookErrorCode.UNRECOGNIZED_GATEWAY
        )

    def test_bad_signature(self, handler, engine):
        payload = encode(paystack_event())
        headers = {"X-Paystack-Signature": paystack_signature(payload, "sk_test_wrong")}

        self._assert_rejected(handler, engine, headers, payload, WebhookErrorCode.INVALID_SIGNATURE)

    def test_missing_secret(self, engine, no_webhook_secrets):
        handler = WebhookHandler(
            engine=engine, secrets=WebhookSecretProvider(environment="test", source="env")
        )
        headers, payload = stripe_request()

        error = self._assert_rejected(
            handler, engine, headers, payload, WebhookErrorCode.MISSING_SECRET_CONFIG
        )
        assert error.message == "Webhook secret not configured"

    def test_signature_checked_before_schema(self, handler, engine):
        """An unsigned garbage body reports the signature, not the schema."""
        payload = encode({"unexpected": True})
        headers = {"Stripe-Signature": "t=1,v1=abc"}

        self._assert_rejected(handler, engine, headers, payload, WebhookErrorCode.INVALID_SIGNATURE)

    def test_schema_violation(self, handler, engine):
        headers, payload = stripe_request({"type": "payment_intent.succeeded", "data": {}})

        self._assert_rejected(handler, engine, headers, payload, WebhookErrorCode.SCHEMA_VIOLATION)

    def test_invalid_reference(self, handler, engine):
        headers, payload = stripe_request(stripe_event(booking_id="not-an-id"))

        error = self._assert_rejected(
            handler, engine, headers, payload, WebhookErrorCode.INVALID_REFERENCE_FORMAT
        )
        assert error.message == "Invalid appointment_id format"

    def test_stripe_body_signed_as_paystack_fails_schema(self, handler, engine):
        payload = encode(stripe_event())
        headers = {"X-Paystack-Signature": paystack_signature(payload, PAYSTACK_TEST_SECRET)}

        self._assert_rejected(handler, engine, headers, payload, WebhookErrorCode.SCHEMA_VIOLATION)

    def test_rejection_logged_as_warning(self, handler, caplog):
        payload = encode(stripe_event())
        headers = {"Stripe-Signature": stripe_signature(payload, "whsec_wrong")}

        with caplog.at_level(logging.WARNING, logger="reconciler"), pytest.raises(WebhookError):
            handler.handle(headers, payload)

        rejected = [r for r in caplog.records if getattr(r, "result", None) == "rejected"]
        assert len(rejected) == 1
        assert rejected[0].gateway == "stripe"
        assert rejected[0].state == WebhookState.REJECTED_BAD_SIGNATURE.value

    def test_secret_not_used_across_gateways(self, engine, monkeypatch):
        """The Stripe secret never validates a Paystack signature."""
        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", STRIPE_TEST_SECRET)
        monkeypatch.delenv("PAYSTACK_SECRET_KEY", raising=False)
        monkeypatch.delenv("WEBHOOK_SECRETS_SOURCE", raising=False)
        handler = WebhookHandler(engine=engine)
        payload = encode(paystack_event())
        headers = {"X-Paystack-Signature": paystack_signature(payload, STRIPE_TEST_SECRET)}

        self._assert_rejected(
            handler, engine, headers, payload, WebhookErrorCode.MISSING_SECRET_CONFIG
        )
