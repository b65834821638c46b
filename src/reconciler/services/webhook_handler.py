"""Webhook handler for processing payment gateway notifications.

Provides the request pipeline separate from HTTP routing concerns:

    decode body -> identify gateway -> resolve secret -> verify signature
    -> validate envelope -> normalize -> reconcile

Every rejection raises WebhookError before any record is written. Once a
request is authenticated and structurally valid it is acknowledged, whatever
the individual reconciliation steps reported.
"""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from reconciler.models import (
    CanonicalPaymentEvent,
    EventClass,
    ReconciliationOutcome,
    WebhookError,
    WebhookErrorCode,
    WebhookState,
)
from reconciler.utils.logging import get_logger, log_webhook_event

from .gateways import GatewayAdapter, GatewayRegistry, default_registry
from .reconciliation import ReconciliationEngine, build_reconciliation_engine
from .secrets import WebhookSecretProvider

logger = get_logger(__name__)


class WebhookResult(BaseModel):
    """What happened to an acknowledged webhook."""

    state: WebhookState
    event: CanonicalPaymentEvent
    outcome: ReconciliationOutcome


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def decode_body(raw_body: bytes) -> Any:
    """Decode the raw request body exactly once.

    Raises:
        WebhookError: MALFORMED_BODY for invalid UTF-8 or JSON, including
            bodies nested too deeply to decode.
    """
    try:
        return json.loads(raw_body.decode("utf-8"), parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        logger.warning("Invalid JSON payload: %s", e)
        raise WebhookError(WebhookErrorCode.MALFORMED_BODY) from e


class WebhookHandler:
    """Handler for inbound payment webhooks from any supported gateway."""

    def __init__(
        self,
        registry: GatewayRegistry | None = None,
        secrets: WebhookSecretProvider | None = None,
        engine: ReconciliationEngine | None = None,
    ) -> None:
        """Initialize webhook handler.

        Args:
            registry: Gateway adapters to select from
            secrets: Signing secret lookup
            engine: Reconciliation engine (DynamoDB-backed by default)
        """
        self.registry = registry or default_registry()
        self.secrets = secrets or WebhookSecretProvider()
        self._engine = engine

    @property
    def engine(self) -> ReconciliationEngine:
        # Built lazily so rejected requests never touch the stores
        if self._engine is None:
            self._engine = build_reconciliation_engine()
        return self._engine

    def handle(self, headers: Mapping[str, str], raw_body: bytes) -> WebhookResult:
        """Run the full pipeline for one request.

        Args:
            headers: Request headers
            raw_body: Raw request body, exactly as received

        Returns:
            Result of an acknowledged request

        Raises:
            WebhookError: If the request is rejected
        """
        gateway_name = "unknown"
        try:
            body = decode_body(raw_body)

            adapter, signature = self.registry.identify(headers)
            gateway_name = adapter.gateway.value
            self._advance(WebhookState.GATEWAY_IDENTIFIED, gateway_name)

            secret = self._secret_for(adapter)
            if not adapter.verify(raw_body, signature, secret):
                raise WebhookError(WebhookErrorCode.INVALID_SIGNATURE)
            self._advance(WebhookState.SIGNATURE_VERIFIED, gateway_name)

            envelope = adapter.parse_envelope(body)
            self._advance(WebhookState.SCHEMA_VALIDATED, gateway_name)

            event = adapter.normalize(envelope)
            self._advance(WebhookState.EVENT_NORMALIZED, gateway_name)
        except WebhookError as e:
            log_webhook_event(
                logger,
                gateway_name,
                None,
                state=e.state.value,
                result="rejected",
                error=e.message,
            )
            raise

        log_webhook_event(
            logger,
            gateway_name,
            event.event_type,
            state=WebhookState.EVENT_NORMALIZED.value,
            booking_reference=event.booking_reference,
            provider_reference=event.provider_transaction_reference,
            result="received",
            tenant_reference=event.tenant_reference,
            event_class=event.event_class.value,
            raw_status=event.raw_status,
        )

        outcome = self.engine.reconcile(event)
        self._advance(WebhookState.RECONCILED, gateway_name)

        log_webhook_event(
            logger,
            gateway_name,
            event.event_type,
            state=WebhookState.ACKNOWLEDGED.value,
            booking_reference=event.booking_reference,
            provider_reference=event.provider_transaction_reference,
            result="ignored" if event.event_class == EventClass.UNKNOWN else "acknowledged",
            failed_steps=",".join(outcome.failed_steps) or "none",
        )
        return WebhookResult(
            state=WebhookState.ACKNOWLEDGED, event=event, outcome=outcome
        )

    def _secret_for(self, adapter: GatewayAdapter) -> str:
        secret = self.secrets.get_secret(adapter.secret_env_var, adapter.secret_parameter)
        if not secret:
            logger.error("%s not configured", adapter.secret_env_var)
            raise WebhookError(
                WebhookErrorCode.MISSING_SECRET_CONFIG,
                details={"gateway": adapter.gateway.value},
            )
        return secret

    @staticmethod
    def _advance(state: WebhookState, gateway: str) -> None:
        logger.debug("Webhook %s -> %s", gateway, state.value)
