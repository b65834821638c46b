"""Payment webhook endpoint.

Receives Stripe and Paystack payment notifications on a single URL. The
gateway is picked from the signature header; there is no unauthenticated
path. These endpoints do NOT use caller authentication beyond the
provider's signature.
"""

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.status import HTTP_200_OK

from reconciler.models import ErrorResponse
from reconciler.services import WebhookHandler
from reconciler_api.dependencies import get_webhook_handler

router = APIRouter(tags=["webhooks"])


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the provider."""

    received: bool = True


@router.options("/", include_in_schema=False)
async def webhook_preflight() -> Response:
    """CORS preflight without Origin headers; answered with an empty body."""
    return Response(status_code=HTTP_200_OK)


@router.post(
    "/",
    summary="Receive payment gateway webhooks",
    description="""
Endpoint for Stripe (`Stripe-Signature`) and Paystack (`X-Paystack-Signature`)
payment notifications. Exactly one signature header must be present.

Successful payments mark the booking paid, append a ledger entry, notify the
operator and complete the payment intent. Failed payments mark the payment
intent failed. Other event types are acknowledged without changes.

**Not idempotent**: a redelivered success event appends another ledger entry.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Authenticated and structurally valid", "model": WebhookResponse},
        400: {"description": "Malformed body, schema violation or bad reference", "model": ErrorResponse},
        401: {"description": "Missing or invalid signature", "model": ErrorResponse},
        500: {"description": "Signing secret not configured", "model": ErrorResponse},
    },
)
async def receive_payment_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify, normalize and reconcile one webhook delivery."""
    # Raw body is needed byte-for-byte for signature verification
    payload = await request.body()

    # Store calls block; keep them off the event loop
    await run_in_threadpool(handler.handle, request.headers, payload)

    return WebhookResponse(received=True)
