"""Resolution of per-gateway webhook signing secrets.

Secrets come from the environment first. When WEBHOOK_SECRETS_SOURCE is
``ssm``, a secret missing from the environment is read from SSM Parameter
Store under ``/payments/<environment>/<gateway parameter>``.
"""

import logging
import os

from .ssm_service import SSMService, SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

SECRETS_SOURCE_ENV = "env"
SECRETS_SOURCE_SSM = "ssm"


class WebhookSecretProvider:
    """Looks up the shared secret a gateway signs its webhooks with."""

    def __init__(
        self,
        environment: str | None = None,
        source: str | None = None,
        ssm: SSMService | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            environment: Environment name used in SSM paths. Defaults to ENVIRONMENT.
            source: "env" or "ssm". Defaults to WEBHOOK_SECRETS_SOURCE, then "env".
            ssm: SSM service to use instead of the shared instance.
        """
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._source = (
            source or os.environ.get("WEBHOOK_SECRETS_SOURCE", SECRETS_SOURCE_ENV)
        ).lower()
        self._ssm = ssm

    def parameter_name(self, parameter: str) -> str:
        return f"/payments/{self._environment}/{parameter}"

    def get_secret(self, env_var: str, parameter: str) -> str | None:
        """Return the configured secret, or None if it is not configured.

        Args:
            env_var: Environment variable holding the secret
            parameter: SSM parameter suffix (e.g. "stripe/webhook_secret")
        """
        value = os.environ.get(env_var)
        if value:
            return value

        if self._source != SECRETS_SOURCE_SSM:
            return None

        ssm = self._ssm or get_ssm_service()
        try:
            return ssm.get_parameter(self.parameter_name(parameter)) or None
        except SSMServiceError as e:
            logger.error("Webhook secret %s unavailable: %s", env_var, e)
            return None
