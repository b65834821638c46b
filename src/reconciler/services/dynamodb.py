"""Thin DynamoDB access layer shared by the record stores.

Table names are ``<prefix>-<table>``; the prefix defaults to
``payments-<environment>`` and can be set with DYNAMODB_TABLE_PREFIX. Every
call goes through one boto3 resource configured with bounded connect and
read timeouts.
"""

import os
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

DEFAULT_TIMEOUT_SECONDS = 3.0

_CONDITION_FAILED = "ConditionalCheckFailedException"

_shared_service: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Return the process-wide DynamoDBService, creating it on first use."""
    global _shared_service
    if _shared_service is None:
        _shared_service = DynamoDBService(environment)
    return _shared_service


def reset_dynamodb_service() -> None:
    """Drop the shared service so the next call builds a new client (tests)."""
    global _shared_service
    _shared_service = None


def store_client_config(timeout_seconds: float | None = None) -> Config:
    """Build the botocore config applied to every store call.

    Args:
        timeout_seconds: Connect and read timeout. Defaults to
            STORE_TIMEOUT_SECONDS env var, then 3 seconds.
    """
    timeout = timeout_seconds or float(
        os.getenv("STORE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
    )
    return Config(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": 2, "mode": "standard"},
    )


def _placeholders(names: list[str], prefix: str) -> dict[str, str]:
    return {f"#{prefix}{i}": name for i, name in enumerate(names)}


class DynamoDBService:
    """Keyed reads and writes against the prefixed payment tables."""

    def __init__(
        self,
        environment: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Create the boto3 resource.

        Args:
            environment: Environment name used in the default table prefix.
                Defaults to the ENVIRONMENT env var, then "dev".
            timeout_seconds: Per-call timeout. Defaults to STORE_TIMEOUT_SECONDS.
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        self.name_prefix = os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"payments-{self.environment}"
        )
        self._resource = boto3.resource(
            "dynamodb", config=store_client_config(timeout_seconds)
        )

    def table(self, name: str) -> Any:
        """boto3 Table for a table name without prefix."""
        return self._resource.Table(f"{self.name_prefix}-{name}")

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        projection: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Read one item, optionally limited to some attributes.

        Returns:
            The item, or None if no item has this key
        """
        request: dict[str, Any] = {"Key": key}
        if projection:
            names = _placeholders(projection, "p")
            request["ProjectionExpression"] = ", ".join(names)
            request["ExpressionAttributeNames"] = names
        return self.table(table).get_item(**request).get("Item")

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        *,
        unique_key: str | None = None,
    ) -> bool:
        """Write a whole item.

        Args:
            table: Table name without prefix
            item: Item attributes
            unique_key: If given, refuse to overwrite an item with this key

        Returns:
            False if ``unique_key`` was given and the item already existed
        """
        request: dict[str, Any] = {"Item": item}
        if unique_key:
            request["ConditionExpression"] = "attribute_not_exists(#k)"
            request["ExpressionAttributeNames"] = {"#k": unique_key}
        try:
            self.table(table).put_item(**request)
        except ClientError as e:
            if e.response["Error"]["Code"] == _CONDITION_FAILED:
                return False
            raise
        return True

    def set_attributes(
        self,
        table: str,
        key: dict[str, Any],
        values: dict[str, Any],
    ) -> bool:
        """Overwrite attributes of an existing item.

        Attribute names are always passed as placeholders, so reserved words
        such as ``status`` need no special handling.

        Returns:
            False if no item has this key (nothing is created)
        """
        attribute_names = _placeholders(list(values), "a")
        key_names = _placeholders(list(key), "k")
        assignments = ", ".join(
            f"{placeholder} = :v{i}" for i, placeholder in enumerate(attribute_names)
        )
        try:
            self.table(table).update_item(
                Key=key,
                UpdateExpression=f"SET {assignments}",
                ConditionExpression=" AND ".join(
                    f"attribute_exists({placeholder})" for placeholder in key_names
                ),
                ExpressionAttributeNames={**attribute_names, **key_names},
                ExpressionAttributeValues={
                    f":v{i}": value for i, value in enumerate(values.values())
                },
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == _CONDITION_FAILED:
                return False
            raise
        return True
