"""Unit tests for structured logging helpers."""

import logging

import pytest

from reconciler.utils.logging import (
    CorrelationIdFilter,
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_reconciliation_step,
    log_webhook_event,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def _clear_correlation():
    clear_correlation_id()
    yield
    clear_correlation_id()


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


class TestCorrelationId:
    def test_set_and_get(self):
        assert set_correlation_id("abc-123") == "abc-123"
        assert get_correlation_id() == "abc-123"

    def test_generated_when_missing(self):
        cid = set_correlation_id()

        assert cid
        assert get_correlation_id() == cid

    def test_filter_adds_correlation_id(self):
        set_correlation_id("abc-123")
        record = _record()

        assert CorrelationIdFilter().filter(record)
        assert record.correlation_id == "abc-123"

    def test_formatter_prefixes_correlation_id(self):
        set_correlation_id("abc-123")

        formatted = StructuredFormatter("%(message)s").format(_record())

        assert formatted == "[abc-123] hello"

    def test_formatter_without_correlation_id(self):
        formatted = StructuredFormatter("%(message)s").format(_record())

        assert formatted == "[no-correlation-id] hello"

    def test_get_logger_adds_filter_once(self):
        logger = get_logger("reconciler.tests.logging")
        get_logger("reconciler.tests.logging")

        filters = [f for f in logger.filters if isinstance(f, CorrelationIdFilter)]
        assert len(filters) == 1


class TestWebhookEventLogging:
    def test_rejected_logged_as_warning(self, caplog):
        logger = logging.getLogger("reconciler.tests.events")

        with caplog.at_level(logging.INFO, logger="reconciler.tests.events"):
            log_webhook_event(
                logger, "paystack", None, state="rejected_bad_signature",
                result="rejected", error="Invalid signature",
            )

        (record,) = caplog.records
        assert record.levelno == logging.WARNING
        assert record.gateway == "paystack"
        assert "error=Invalid signature" in record.getMessage()
        assert "unparsed" in record.getMessage()

    def test_acknowledged_logged_as_info(self, caplog):
        logger = logging.getLogger("reconciler.tests.events")

        with caplog.at_level(logging.INFO, logger="reconciler.tests.events"):
            log_webhook_event(
                logger, "stripe", "payment_intent.succeeded",
                booking_reference="b-1", result="acknowledged", failed_steps="none",
            )

        (record,) = caplog.records
        assert record.levelno == logging.INFO
        assert record.failed_steps == "none"
        assert "booking_reference=b-1" in record.getMessage()


class TestReconciliationStepLogging:
    @pytest.mark.parametrize(
        ("result", "level"),
        [("success", logging.INFO), ("skipped", logging.WARNING), ("failed", logging.ERROR)],
    )
    def test_level_follows_result(self, caplog, result, level):
        logger = logging.getLogger("reconciler.tests.steps")

        with caplog.at_level(logging.INFO, logger="reconciler.tests.steps"):
            log_reconciliation_step(logger, "ledger_insert", result, amount="50.00")

        (record,) = caplog.records
        assert record.levelno == level
        assert record.step == "ledger_insert"
        assert "amount=50.00" in record.getMessage()
