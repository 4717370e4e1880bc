"""
Notificaciones WhatsApp disparadas por la aplicación.

`notify_template` solo encola cuando el tenant tiene la integración activa y
nunca propaga errores: se llama después del commit de la operación principal.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
from sqlalchemy.orm import Session, joinedload

from app.modules.whatsapp.service import WhatsAppService
from app.modules.whatsapp.templates import format_currency

logger = logging.getLogger(__name__)

REMINDER_STATUSES = ("sent", "partial", "overdue")


def notify_template(db: Session, tenant_id: UUID, phone: Optional[str], template_name: str, parameters: List[Any]) -> bool:
    if not phone:
        return False
    if WhatsAppService(db).get_config(tenant_id) is None:
        logger.debug(f"WhatsApp disabled for tenant {tenant_id}; {template_name} not sent")
        return False
    try:
        from app.modules.whatsapp.tasks import send_whatsapp_template
        send_whatsapp_template.delay(str(tenant_id), phone, template_name, [str(p) for p in parameters])
        return True
    except Exception as e:
        logger.warning(f"Could not queue WhatsApp {template_name} for tenant {tenant_id}: {e}")
        return False


def run_payment_reminders(db: Session, transport: Optional[httpx.BaseTransport] = None) -> Dict[str, int]:
    """
    Envía `payment_reminder` por cada factura vencida con saldo y la marca `overdue`.
    Omite clientes sin teléfono y tenants sin WhatsApp.
    """
    from app.modules.invoices.models import Invoice, InvoiceStatus
    from app.modules.invoices.service import invoice_payment_link

    service = WhatsAppService(db, transport=transport)
    summary = {"sent": 0, "skipped": 0, "failed": 0}
    enabled: Dict[UUID, bool] = {}

    invoices = db.query(Invoice).options(joinedload(Invoice.customer)).filter(
        Invoice.status.in_([InvoiceStatus(s) for s in REMINDER_STATUSES]),
        Invoice.balance > 0,
        Invoice.due_date < date.today()
    ).order_by(Invoice.tenant_id, Invoice.due_date).all()

    for invoice in invoices:
        customer = invoice.customer
        if customer is None or not customer.phone:
            summary["skipped"] += 1
            continue
        if invoice.tenant_id not in enabled:
            enabled[invoice.tenant_id] = service.get_config(invoice.tenant_id) is not None
        if not enabled[invoice.tenant_id]:
            summary["skipped"] += 1
            continue

        result = service.send_template(invoice.tenant_id, customer.phone, "payment_reminder", [
            invoice.invoice_number,
            format_currency(invoice.balance),
            invoice_payment_link(invoice),
        ])
        if result.get("success"):
            invoice.status = InvoiceStatus.OVERDUE
            db.commit()
            summary["sent"] += 1
        else:
            summary["failed"] += 1

    logger.info(f"Payment reminders: {summary}")
    return summary
