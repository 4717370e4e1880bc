"""
Celery configuration for background tasks
"""
from celery import Celery
from celery.schedules import crontab
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

redis_url = settings.redis_url

# Create Celery instance
celery_app = Celery(
    "nexpro",
    broker=redis_url,
    backend=redis_url,
    include=[
        "app.modules.whatsapp.tasks",
        "app.modules.sabito.tasks",
    ]
)

beat_schedule = {
    "send-payment-reminders": {
        "task": "app.modules.whatsapp.tasks.send_payment_reminders",
        "schedule": crontab(hour=9, minute=0),  # diario, 09:00 UTC
    },
}

if settings.SABITO_SYNC_ENABLED:
    beat_schedule["sync-sabito-customers"] = {
        "task": "app.modules.sabito.tasks.sync_all_sabito_tenants",
        "schedule": settings.SABITO_SYNC_INTERVAL_HOURS * 3600.0,
    }

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Result backend settings
    result_expires=3600,  # 1 hour

    # Task routes for different queues
    task_routes={
        "app.modules.whatsapp.tasks.*": {"queue": "whatsapp"},
        "app.modules.sabito.tasks.*": {"queue": "sabito"},
    },

    beat_schedule=beat_schedule,
)

# Tests run tasks inline, without broker
if settings.ENVIRONMENT == "test":
    celery_app.conf.update(
        task_always_eager=True,
        task_eager_propagates=False,
        broker_url="memory://",
        result_backend="cache+memory://",
    )

if __name__ == "__main__":
    celery_app.start()
