"""
Push Service Factory

Returns the Mock or Firebase push service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from delivery_app.core.config import Settings, get_settings
from delivery_app.services.push.base import BasePushService, PushResult
from delivery_app.services.push.mock import MockPushService

logger = logging.getLogger(__name__)


def create_push_service(settings: Settings) -> BasePushService:
    """Build the push service the environment calls for."""
    if settings.use_real_services:
        # firebase-admin pulls in google-cloud; only import it where it is used
        from delivery_app.services.push.firebase import FirebasePushService

        logger.info(f"Push Service: Using FirebasePushService ({settings.env_mode.value} mode)")
        return FirebasePushService(settings)

    logger.info("Push Service: Using MockPushService (development mode)")
    return MockPushService(failure_rate=settings.mock_push_failure_rate)


@lru_cache()
def get_push_service() -> BasePushService:
    """Process-wide push service, used by the Celery worker."""
    return create_push_service(get_settings())


def reset_push_service() -> None:
    """Clear the cached service instance."""
    get_push_service.cache_clear()


__all__ = [
    "create_push_service",
    "get_push_service",
    "reset_push_service",
    "BasePushService",
    "PushResult",
    "MockPushService",
]
