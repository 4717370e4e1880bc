import logging

from app.core.celery import celery_app
from app.database.database import SessionLocal
from app.modules.sabito.service import SabitoSyncService

logger = logging.getLogger(__name__)


@celery_app.task
def sync_all_sabito_tenants(full_sync: bool = False):
    """Sincronización periódica de clientes Sabito para todos los tenants activos."""
    db = SessionLocal()
    try:
        results = SabitoSyncService(db).sync_all_tenants(full_sync=full_sync)
        return {"tenants": len(results), "failed": sum(1 for r in results if not r["success"])}
    finally:
        db.close()
