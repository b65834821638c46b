"""FastAPI application for the payment webhook reconciler.

Serves:
- POST / : Stripe and Paystack payment webhooks
- OPTIONS / : CORS preflight
- GET /health : liveness
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from reconciler import __version__
from reconciler.services.gateways import PaystackGatewayAdapter, StripeGatewayAdapter
from reconciler.utils.logging import configure_logging
from reconciler_api.exceptions import register_exception_handlers
from reconciler_api.middleware.correlation import CorrelationIdMiddleware
from reconciler_api.routes.health import router as health_router
from reconciler_api.routes.webhooks import router as webhooks_router

configure_logging()

app = FastAPI(
    title="Payment Webhook Reconciler",
    description="Receives payment gateway webhooks and reconciles bookings and ledger",
    version=__version__,
)

app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=[
        "authorization",
        "content-type",
        StripeGatewayAdapter.default_signature_header,
        PaystackGatewayAdapter.default_signature_header,
    ],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(webhooks_router)


# API Gateway entry point
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = False) -> None:
    """Serve the app locally with uvicorn (reload needs the import string)."""
    import uvicorn

    uvicorn.run("reconciler_api.main:app" if reload else app, host=host, port=port, reload=reload)


if __name__ == "__main__":
    run_server()
