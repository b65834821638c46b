"""FastAPI exception handlers for converting WebhookError to HTTP responses.

The WebhookErrorCode-to-HTTP status mapping:
- 400 Bad Request: malformed body, schema violation, invalid reference
- 401 Unauthorized: missing, ambiguous or invalid signature
- 500 Internal Server Error: signing secret not configured

Providers only redeliver on non-2xx responses, and every one of these is
raised before any record is written.

Usage:
    from reconciler_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from reconciler.models import ErrorResponse, WebhookError, WebhookErrorCode

logger = logging.getLogger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[WebhookErrorCode, int] = {
    WebhookErrorCode.MALFORMED_BODY: HTTP_400_BAD_REQUEST,
    WebhookErrorCode.SCHEMA_VIOLATION: HTTP_400_BAD_REQUEST,
    WebhookErrorCode.INVALID_REFERENCE_FORMAT: HTTP_400_BAD_REQUEST,
    WebhookErrorCode.UNRECOGNIZED_GATEWAY: HTTP_401_UNAUTHORIZED,
    WebhookErrorCode.INVALID_SIGNATURE: HTTP_401_UNAUTHORIZED,
    WebhookErrorCode.MISSING_SECRET_CONFIG: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: WebhookErrorCode) -> int:
    """Get HTTP status code for a WebhookErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
    """Render a rejected webhook as ``{"error": <message>}``."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Internal details are logged, never returned to the provider.
    """
    logger.exception("Unhandled exception: %s", exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Webhook processing failed").model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(WebhookError, webhook_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
