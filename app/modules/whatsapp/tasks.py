"""
Tareas de Celery para WhatsApp.
"""
import logging
from typing import Any, Dict, List
from uuid import UUID

from app.core.celery import celery_app
from app.database.database import SessionLocal
from app.modules.whatsapp.service import WhatsAppService
from app.modules.whatsapp.notifications import run_payment_reminders

logger = logging.getLogger(__name__)


def _retry_countdown(result: Dict[str, Any], retries: int) -> int:
    try:
        return int(result.get("retry_after"))
    except (TypeError, ValueError):
        return 60 * (2 ** retries)


@celery_app.task(bind=True, max_retries=3)
def send_whatsapp_template(self, tenant_id: str, phone: str, template_name: str, parameters: List[str]):
    """Envío de plantilla con reintentos (backoff exponencial) ante 429, 5xx o fallos de red."""
    db = SessionLocal()
    try:
        result = WhatsAppService(db).send_template(UUID(tenant_id), phone, template_name, parameters)
    finally:
        db.close()

    if not result.get("success") and result.get("retryable"):
        if self.request.retries < self.max_retries:
            raise self.retry(
                exc=RuntimeError(result.get("error")),
                countdown=_retry_countdown(result, self.request.retries)
            )
        logger.error(f"WhatsApp {template_name} for tenant {tenant_id} failed after retries: {result.get('error')}")
    return result


@celery_app.task
def send_payment_reminders():
    db = SessionLocal()
    try:
        return run_payment_reminders(db)
    finally:
        db.close()
