"""Push provider construction from settings."""

import structlog

from core.config import Settings
from infrastructure.push.noop import NoOpPushProvider
from infrastructure.push.novu import NovuPushProvider
from infrastructure.push.provider import IPushProvider

logger = structlog.get_logger()


def create_push_provider(settings: Settings) -> IPushProvider:
    """Build the configured push provider (not yet initialized)."""
    provider_type = settings.resolved_push_provider
    if provider_type == "novu":
        return NovuPushProvider(
            secret_key=settings.novu_secret_key,
            base_url=settings.novu_base_url,
        )

    logger.info("push_provider_disabled")
    return NoOpPushProvider()


async def initialize_push_provider(settings: Settings) -> IPushProvider:
    """Build and initialize the push provider.

    A provider that fails to initialize is replaced by the no-op provider so
    the service still starts; notifications then go to the inbox only.
    """
    provider = create_push_provider(settings)
    try:
        await provider.initialize()
    except Exception:
        logger.exception("push_provider_init_failed", provider=provider.name)
        await provider.close()
        provider = NoOpPushProvider()
        await provider.initialize()
    return provider
