"""Payment webhook reconciliation core.

Verifies, validates and normalizes Stripe and Paystack payment notifications
and applies them to booking, ledger, payment-intent and notification records.
"""

__version__ = "0.1.0"
