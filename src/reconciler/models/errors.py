"""Error codes for the payment webhook pipeline.

Every rejection the endpoint can produce has a code here. Rejections happen
before any record is touched, so a provider retry after one of these errors
is always safe.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import WebhookState


class WebhookErrorCode(str, Enum):
    """Rejection reasons for an inbound webhook request."""

    MALFORMED_BODY = "ERR_WEBHOOK_001"
    UNRECOGNIZED_GATEWAY = "ERR_WEBHOOK_002"
    INVALID_SIGNATURE = "ERR_WEBHOOK_003"
    MISSING_SECRET_CONFIG = "ERR_WEBHOOK_004"
    SCHEMA_VIOLATION = "ERR_WEBHOOK_005"
    INVALID_REFERENCE_FORMAT = "ERR_WEBHOOK_006"


# Messages returned to the provider in the error body
ERROR_MESSAGES: dict[WebhookErrorCode, str] = {
    WebhookErrorCode.MALFORMED_BODY: "Invalid JSON payload",
    WebhookErrorCode.UNRECOGNIZED_GATEWAY: "Missing webhook signature",
    WebhookErrorCode.INVALID_SIGNATURE: "Invalid signature",
    WebhookErrorCode.MISSING_SECRET_CONFIG: "Webhook secret not configured",
    WebhookErrorCode.SCHEMA_VIOLATION: "Invalid webhook payload",
    WebhookErrorCode.INVALID_REFERENCE_FORMAT: "Invalid reference format",
}

# Terminal pipeline state reached for each rejection
ERROR_STATES: dict[WebhookErrorCode, WebhookState] = {
    WebhookErrorCode.MALFORMED_BODY: WebhookState.REJECTED_BAD_BODY,
    WebhookErrorCode.UNRECOGNIZED_GATEWAY: WebhookState.REJECTED_NO_SIGNATURE,
    WebhookErrorCode.INVALID_SIGNATURE: WebhookState.REJECTED_BAD_SIGNATURE,
    WebhookErrorCode.MISSING_SECRET_CONFIG: WebhookState.CONFIG_ERROR,
    WebhookErrorCode.SCHEMA_VIOLATION: WebhookState.REJECTED_BAD_SCHEMA,
    WebhookErrorCode.INVALID_REFERENCE_FORMAT: WebhookState.REJECTED_BAD_SCHEMA,
}


class ErrorResponse(BaseModel):
    """Error body returned to the calling provider."""

    model_config = ConfigDict(strict=True)

    error: str


class WebhookError(Exception):
    """Raised when a webhook request is rejected before reconciliation.

    The API layer converts it into an HTTP error response.
    """

    def __init__(
        self,
        code: WebhookErrorCode,
        message: Optional[str] = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    @property
    def state(self) -> WebhookState:
        """Terminal state the request ended in."""
        return ERROR_STATES[self.code]

    def to_response(self) -> ErrorResponse:
        """Convert this exception to the provider-facing error body."""
        return ErrorResponse(error=self.message)


class StoreError(Exception):
    """Raised when a record store read or write fails.

    Wraps botocore client errors and timeouts. The reconciliation engine
    logs these per step and keeps going.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
