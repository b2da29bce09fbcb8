"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend.

Run with:
    celery -A delivery_app.celery_worker worker --loglevel=info
"""

from celery import Celery

from delivery_app.core.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    'delivery_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['delivery_app.tasks']  # Module containing our tasks
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Pushes are best-effort; a lost worker drops the message
    task_acks_late=False,
    task_ignore_result=False,

    broker_connection_retry_on_startup=True,
)


if __name__ == '__main__':
    celery_app.start()
