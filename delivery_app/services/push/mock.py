"""
Mock Push Service

Simulates push delivery for development.
No notifications are sent - just logged.
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from delivery_app.services.push.base import BasePushService, PushResult

logger = logging.getLogger(__name__)


class MockPushService(BasePushService):
    """Mock push service for development."""

    def __init__(self, failure_rate: float = 0.0, max_latency: float = 0.05):
        self.failure_rate = failure_rate
        self.max_latency = max_latency
        logger.info(f"MockPushService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(0, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> PushResult:
        """Simulate sending a push notification."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock push failed (simulated) to {token[:20]}...")
            return PushResult(
                success=False,
                error_message="Simulated push failure",
                provider="mock"
            )

        message_id = f"projects/mock/messages/{uuid.uuid4().hex[:16]}"
        logger.info(f"Mock push sent to {token[:20]}...: {title} (ID: {message_id})")

        return PushResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
