"""API routes package.

- health: Liveness endpoint
- webhooks: Payment gateway webhook receiver

All routers are registered in main.py at the root path.
"""

from reconciler_api.routes.health import router as health_router
from reconciler_api.routes.webhooks import router as webhooks_router

__all__ = [
    "health_router",
    "webhooks_router",
]
