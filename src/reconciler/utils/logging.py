"""Logging for the webhook pipeline.

Each request gets a correlation id, held in a ContextVar so it follows the
request into Starlette's threadpool, and every log line is prefixed with it.
Pipeline events and reconciliation steps are logged through two helpers that
put the same fields in the message (``key=value``) and in ``extra``.

Usage:
    from reconciler.utils.logging import get_logger, log_reconciliation_step

    logger = get_logger(__name__)
    log_reconciliation_step(logger, "ledger_insert", "success", amount="50.00")
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Any

_NO_CORRELATION_ID = "no-correlation-id"

_request_correlation_id: ContextVar[str | None] = ContextVar(
    "request_correlation_id", default=None
)

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context.

    Args:
        correlation_id: Id supplied by the caller; a new one is generated if empty.

    Returns:
        The id now bound
    """
    bound = correlation_id or generate_correlation_id()
    _request_correlation_id.set(bound)
    return bound


def get_correlation_id() -> str | None:
    return _request_correlation_id.get()


def clear_correlation_id() -> None:
    _request_correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamps ``correlation_id`` onto every record that passes through."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or _NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes each formatted line with ``[<correlation id>]``."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id is None:
            correlation_id = get_correlation_id() or _NO_CORRELATION_ID
            record.correlation_id = correlation_id
        return f"[{correlation_id}] {super().format(record)}"


def configure_logging(level: str | None = None) -> None:
    """Install the structured formatter on the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL env var, then INFO.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level_name)
    root = logging.getLogger()
    root.setLevel(level_name)
    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(DEFAULT_LOG_FORMAT))


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with the correlation id filter attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(existing, CorrelationIdFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def log_webhook_event(
    logger: logging.Logger,
    gateway: str,
    event_type: str | None,
    *,
    state: str | None = None,
    booking_reference: str | None = None,
    provider_reference: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a webhook pipeline event with structured context.

    Args:
        logger: Logger instance
        gateway: Gateway name (stripe, paystack) or "unknown"
        event_type: Provider event type if already known
        state: Pipeline state reached
        booking_reference: Booking the event applies to, if any
        provider_reference: Provider transaction reference, if any
        result: Processing result (received, acknowledged, ignored, rejected)
        error: Error message if the request was rejected
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "gateway": gateway,
        "event_type": event_type,
    }

    if state:
        context["state"] = state
    if booking_reference:
        context["booking_reference"] = booking_reference
    if provider_reference:
        context["provider_reference"] = provider_reference
    if result:
        context["result"] = result
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Webhook event: {event_type or 'unparsed'} ({gateway})"]
    for key in ("state", "result", "booking_reference", "provider_reference", "error"):
        if key in context:
            msg_parts.append(f"{key}={context[key]}")
    for key, value in extra.items():
        msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if result == "rejected":
        logger.warning(message, extra=context)
    elif result == "ignored":
        logger.info(message, extra=context)
    elif error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_reconciliation_step(
    logger: logging.Logger,
    step: str,
    result: str,
    *,
    booking_reference: str | None = None,
    payment_intent_reference: str | None = None,
    amount: Any = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log the result of one reconciliation step.

    Args:
        logger: Logger instance
        step: Step name (e.g., "booking_update", "ledger_insert")
        result: success, failed or skipped
        booking_reference: Booking ID if relevant
        payment_intent_reference: Payment intent ID if relevant
        amount: Amount in major units if relevant
        error: Error message if the step failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"step": step, "result": result}

    if booking_reference:
        context["booking_reference"] = booking_reference
    if payment_intent_reference:
        context["payment_intent_reference"] = payment_intent_reference
    if amount is not None:
        context["amount"] = str(amount)
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Reconciliation step: {step}"]
    for key, value in context.items():
        if key != "step":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if result == "failed":
        logger.error(message, extra=context)
    elif result == "skipped":
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
