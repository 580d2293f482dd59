"""Logfire observability for the Loan Ledger server."""

import logging

import logfire

from .config import ObservabilityConfig, get_environment_config

logger = logging.getLogger(__name__)


def initialize_observability(config: ObservabilityConfig | None = None) -> None:
    """Configure Logfire from environment-derived settings."""
    config = config or get_environment_config()

    if not config.enabled:
        logger.debug("Observability disabled via configuration")
        return

    logfire.configure(
        token=config.token or None,
        service_name=config.project_name,
        environment=config.environment,
        send_to_logfire=config.send_to_logfire,
        console=None if config.console_output else False,
    )
    logger.info(
        "Logfire configured (environment=%s, send=%s)",
        config.environment,
        config.send_to_logfire,
    )


__all__ = [
    "ObservabilityConfig",
    "initialize_observability",
]
