"""
Push Service Abstract Base Class

Defines the interface for delivering push notifications to rider devices.
Supports both Mock (development) and Firebase (production) implementations.

Implementations never raise on delivery problems: they log and return a
failed PushResult so callers can treat pushes as best-effort.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class PushResult:
    """Result from sending a push notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BasePushService(ABC):
    """Abstract base class for push services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> PushResult:
        """
        Send one notification to one device token.

        Args:
            token: Device registration token
            title: Notification title
            body: Notification body
            data: String key/value payload delivered to the app

        Returns:
            PushResult: Delivery receipt or failure description
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
