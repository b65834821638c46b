"""Services for the payment webhook pipeline."""

from .reconciliation import ReconciliationEngine, build_reconciliation_engine
from .webhook_handler import WebhookHandler, WebhookResult

__all__ = [
    "ReconciliationEngine",
    "WebhookHandler",
    "WebhookResult",
    "build_reconciliation_engine",
]
