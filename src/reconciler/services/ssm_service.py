"""SSM Parameter Store access for webhook signing secrets.

Secrets are SecureString parameters read with decryption and kept in an
in-process cache, so a warm Lambda pays for each lookup once.
"""

import logging
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

_FAILURE_REASONS = {
    "ParameterNotFound": "not found",
    "AccessDeniedException": "access denied (check ssm:GetParameter and kms:Decrypt)",
}


class SSMServiceError(Exception):
    """Raised when a parameter cannot be read."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"SSM parameter {name}: {reason}")
        self.name = name
        self.reason = reason


class SSMService:
    """Cached reader for decrypted SSM parameters.

    Usage:
        ssm = get_ssm_service()
        secret = ssm.get_parameter("/payments/dev/paystack/secret_key")
    """

    def __init__(self, client: Any = None) -> None:
        self._client = client or boto3.client("ssm")
        self._cache: dict[str, str] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Return the decrypted value of a parameter.

        Args:
            name: Full parameter path
            use_cache: Serve a previously read value without calling SSM

        Raises:
            SSMServiceError: If the parameter is missing or unreadable.
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        logger.info("Fetching SSM parameter %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            raise SSMServiceError(name, _FAILURE_REASONS.get(code, code)) from e
        except BotoCoreError as e:
            raise SSMServiceError(name, str(e)) from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def invalidate(self, name: str | None = None) -> None:
        """Forget one cached parameter, or all of them after a secret rotation."""
        if name is None:
            self._cache.clear()
        else:
            self._cache.pop(name, None)


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Shared SSMService; cleared with ``get_ssm_service.cache_clear()``."""
    return SSMService()
