"""
Celery Tasks
Background delivery of rider push notifications.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone

from delivery_app.celery_worker import celery_app
from delivery_app.services.push import get_push_service

logger = logging.getLogger(__name__)


@celery_app.task(bind=True)
def send_push_notification(self, token: str, title: str, body: str, data: dict) -> dict:
    """
    Deliver one push notification.

    Failures are reported in the result, never retried: a stale order
    alert is worse than a missing one.

    Returns:
        dict: Delivery outcome
    """
    task_id = self.request.id
    start_time = time.time()

    result = asyncio.run(get_push_service().send(token, title, body, data))

    elapsed = round(time.time() - start_time, 3)
    if result.success:
        logger.info(f"Task {task_id}: push '{title}' delivered in {elapsed}s ({result.message_id})")
    else:
        logger.warning(f"Task {task_id}: push '{title}' failed after {elapsed}s - {result.error_message}")

    return {
        'task_id': task_id,
        'success': result.success,
        'message_id': result.message_id,
        'error_message': result.error_message,
        'provider': result.provider,
        'processing_time_seconds': elapsed,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
