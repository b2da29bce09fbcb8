"""
Rider Notifier

Fire-and-forget push alerts to riders. Looks up the rider's stored
device token and hands the message to the push service, either inline
or through the Celery worker. Nothing in here ever raises to the
caller: a failed or skipped push returns None and is logged.
"""

import logging
from typing import Optional

from delivery_app.core.config import PushDispatchMode
from delivery_app.database import RecordStore
from delivery_app.models import Rider
from delivery_app.services.push.base import BasePushService

logger = logging.getLogger(__name__)


class RiderNotifier:
    """Best-effort push delivery to a rider's device."""

    def __init__(
        self,
        store: RecordStore,
        push_service: BasePushService,
        dispatch_mode: PushDispatchMode = PushDispatchMode.INLINE,
    ):
        self.store = store
        self.push_service = push_service
        self.dispatch_mode = dispatch_mode

    async def notify_rider(
        self,
        rider_id: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> Optional[str]:
        """
        Alert a rider.

        Returns:
            The push message id (inline) or Celery task id, or None when the
            rider has no token or delivery failed.
        """
        try:
            rider = await self.store.get(Rider, rider_id)
        except Exception as e:
            logger.error(f"Could not load rider {rider_id} for notification: {e}")
            return None

        if rider is None or not rider.fcm_token:
            logger.debug(f"No push token for rider {rider_id}, skipping notification")
            return None

        return await self.send(rider.fcm_token, title, body, data)

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> Optional[str]:
        """Send to a known token. Absent token is a no-op."""
        if not token:
            logger.warning("No FCM token provided for notification")
            return None

        payload = {str(k): str(v) for k, v in (data or {}).items()}

        try:
            if self.dispatch_mode == PushDispatchMode.CELERY:
                from delivery_app.tasks import send_push_notification

                task = send_push_notification.delay(token, title, body, payload)
                logger.info(f"Queued push '{title}' for {token[:20]}... (task {task.id})")
                return task.id

            result = await self.push_service.send(token, title, body, payload)
        except Exception as e:
            logger.error(f"Error sending notification '{title}': {e}")
            return None

        if not result.success:
            logger.warning(f"Push '{title}' not delivered: {result.error_message}")
            return None
        return result.message_id
