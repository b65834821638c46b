"""Request correlation ids.

A caller may send ``X-Correlation-ID``; otherwise one is generated. The id
is bound to the logging context while the request is handled and echoed on
the response so provider delivery logs can be matched to ours.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from reconciler.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Longer caller-supplied ids are truncated before they reach the logs
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id to each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get(CORRELATION_ID_HEADER, "")
        correlation_id = set_correlation_id(supplied[:MAX_CORRELATION_ID_LENGTH] or None)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
