"""Pytest configuration and fixtures for the payment webhook reconciler tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (bookings, ledger, payment intents, notifications)
- Webhook signing secrets in the environment
- Seeded booking and payment intent records
"""

import os
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

from factories import (
    PAYSTACK_TEST_SECRET,
    STRIPE_TEST_SECRET,
    TEST_BOOKING_ID,
    TEST_CUSTOMER_ID,
    TEST_PAYMENT_INTENT_ID,
    TEST_TENANT_ID,
)

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"
os.environ["DYNAMODB_TABLE_PREFIX"] = "test-payments"
os.environ.setdefault("ENVIRONMENT", "test")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

REGION = "eu-west-1"

TABLE_KEYS = {
    "test-payments-appointments": "appointment_id",
    "test-payments-transactions": "transaction_id",
    "test-payments-payment-intents": "payment_intent_id",
    "test-payments-notifications": "notification_id",
}


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws need services created inside the mock context
    rather than reused from a previous test.
    """
    from reconciler.services.ssm_service import get_ssm_service
    from reconciler_api.dependencies import reset_services

    reset_services()
    get_ssm_service.cache_clear()
    yield
    reset_services()
    get_ssm_service.cache_clear()


# === Secrets Fixtures ===


@pytest.fixture
def webhook_secrets(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Configure both gateway signing secrets through the environment."""
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", STRIPE_TEST_SECRET)
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", PAYSTACK_TEST_SECRET)
    monkeypatch.delenv("WEBHOOK_SECRETS_SOURCE", raising=False)
    return {"stripe": STRIPE_TEST_SECRET, "paystack": PAYSTACK_TEST_SECRET}


@pytest.fixture
def no_webhook_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every gateway signing secret from the environment."""
    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
    monkeypatch.delenv("PAYSTACK_SECRET_KEY", raising=False)
    monkeypatch.delenv("WEBHOOK_SECRETS_SOURCE", raising=False)


# === DynamoDB Fixtures ===


@pytest.fixture
def mock_dynamodb_tables() -> Generator[Any, None, None]:
    """Create the four record tables in a mocked DynamoDB.

    Yields:
        boto3 DynamoDB resource bound to the mock
    """
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        for table_name, key in TABLE_KEYS.items():
            client.create_table(
                TableName=table_name,
                KeySchema=[{"AttributeName": key, "KeyType": "HASH"}],
                AttributeDefinitions=[{"AttributeName": key, "AttributeType": "S"}],
                BillingMode="PAY_PER_REQUEST",
            )
        yield boto3.resource("dynamodb", region_name=REGION)


@pytest.fixture
def booking_in_db(mock_dynamodb_tables: Any) -> dict[str, Any]:
    """Create a booking awaiting payment."""
    booking = {
        "appointment_id": TEST_BOOKING_ID,
        "tenant_id": TEST_TENANT_ID,
        "customer_id": TEST_CUSTOMER_ID,
        "total_amount": Decimal("100.00"),
        "payment_status": "pending",
        "amount_paid": Decimal("0"),
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    mock_dynamodb_tables.Table("test-payments-appointments").put_item(Item=booking)
    return booking


@pytest.fixture
def payment_intent_in_db(mock_dynamodb_tables: Any) -> dict[str, Any]:
    """Create a pending payment intent."""
    intent = {
        "payment_intent_id": TEST_PAYMENT_INTENT_ID,
        "appointment_id": TEST_BOOKING_ID,
        "tenant_id": TEST_TENANT_ID,
        "status": "pending",
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    mock_dynamodb_tables.Table("test-payments-payment-intents").put_item(Item=intent)
    return intent


def scan_table(resource: Any, table: str) -> list[dict[str, Any]]:
    """Return every item of a mocked table (name without prefix)."""
    response = resource.Table(f"test-payments-{table}").scan()
    return response.get("Items", [])


@pytest.fixture
def scan() -> Any:
    """Expose scan_table to tests."""
    return scan_table
