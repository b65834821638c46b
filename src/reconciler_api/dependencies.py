"""FastAPI dependency providers for the webhook pipeline.

Usage in routes:
    from reconciler_api.dependencies import get_webhook_handler

    @router.post("/")
    async def receive(handler: WebhookHandler = Depends(get_webhook_handler)):
        ...

Testing:
    Use reset_services() to clear cached instances between tests, or
    override get_webhook_handler via app.dependency_overrides.
"""

from functools import lru_cache

from reconciler.services import WebhookHandler
from reconciler.services.dynamodb import reset_dynamodb_service


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler instance.

    Returns:
        WebhookHandler with the default gateways, secrets and DynamoDB stores.
    """
    return WebhookHandler()


def reset_services() -> None:
    """Clear cached service instances (for testing only)."""
    get_webhook_handler.cache_clear()
    reset_dynamodb_service()
