"""Gateway adapters and header-based gateway selection."""

import os
from collections.abc import Mapping

from reconciler.models import WebhookError, WebhookErrorCode

from .base import GatewayAdapter
from .paystack_gateway import PaystackGatewayAdapter
from .stripe_gateway import StripeGatewayAdapter


class GatewayRegistry:
    """Picks the adapter whose signature header is present on a request.

    Signature headers are mutually exclusive: a request must carry exactly
    one of them.
    """

    def __init__(self, adapters: list[GatewayAdapter]) -> None:
        self._adapters = list(adapters)

    @property
    def adapters(self) -> list[GatewayAdapter]:
        return list(self._adapters)

    def identify(self, headers: Mapping[str, str]) -> tuple[GatewayAdapter, str]:
        """Select the adapter for a request.

        Args:
            headers: Request headers

        Returns:
            (adapter, signature header value)

        Raises:
            WebhookError: UNRECOGNIZED_GATEWAY when no signature header or
                more than one is present.
        """
        lowered = {name.lower(): value for name, value in headers.items()}
        matches = [
            (adapter, lowered[adapter.signature_header.lower()])
            for adapter in self._adapters
            if lowered.get(adapter.signature_header.lower())
        ]
        if not matches:
            raise WebhookError(WebhookErrorCode.UNRECOGNIZED_GATEWAY)
        if len(matches) > 1:
            raise WebhookError(
                WebhookErrorCode.UNRECOGNIZED_GATEWAY,
                message="Ambiguous webhook signature",
                details={"gateways": ",".join(a.gateway.value for a, _ in matches)},
            )
        return matches[0]


def default_registry() -> GatewayRegistry:
    """Registry with Stripe and Paystack, honouring header name overrides."""
    return GatewayRegistry(
        [
            StripeGatewayAdapter(signature_header=os.getenv("STRIPE_SIGNATURE_HEADER")),
            PaystackGatewayAdapter(signature_header=os.getenv("PAYSTACK_SIGNATURE_HEADER")),
        ]
    )


__all__ = [
    "GatewayAdapter",
    "GatewayRegistry",
    "PaystackGatewayAdapter",
    "StripeGatewayAdapter",
    "default_registry",
]
