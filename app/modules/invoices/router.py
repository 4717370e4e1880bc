from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.invoices.service import InvoiceService
from app.modules.invoices.models import InvoiceStatus
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceOut, InvoiceDetail, InvoiceList,
    InvoicePaymentCreate, InvoicePaymentResult, InvoiceStats, PublicInvoice
)

invoices_router = APIRouter(prefix="/invoices", tags=["Invoices"])
public_invoices_router = APIRouter(prefix="/public/invoices", tags=["Public"])


@invoices_router.post("", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """
    Crear factura manual.

    - **items**: el subtotal se calcula a partir de ellos
    - **due_date**: por defecto 30 días después de la fecha de factura
    """
    return InvoiceService(db).create_invoice(data, auth_context.tenant_id)


@invoices_router.post("/from-job/{job_id}", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice_from_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InvoiceService(db).create_from_job(job_id, auth_context.tenant_id)


@invoices_router.get("", response_model=InvoiceList)
def list_invoices(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = None,
    job_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = Query(None, description="Número de factura o nombre del cliente"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InvoiceService(db).get_invoices(
        auth_context.tenant_id, limit, offset, status_filter, customer_id, job_id, start_date, end_date, search
    )


@invoices_router.get("/stats", response_model=InvoiceStats)
def invoice_stats(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InvoiceService(db).get_stats(auth_context.tenant_id)


@invoices_router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InvoiceService(db).get_invoice(invoice_id, auth_context.tenant_id)


@invoices_router.put("/{invoice_id}", response_model=InvoiceOut)
def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InvoiceService(db).update_invoice(invoice_id, data, auth_context.tenant_id)


@invoices_router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InvoiceService(db).delete_invoice(invoice_id, auth_context.tenant_id)


@invoices_router.post("/{invoice_id}/send", response_model=InvoiceOut)
def send_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InvoiceService(db).send_invoice(invoice_id, auth_context.tenant_id)


@invoices_router.post("/{invoice_id}/cancel", response_model=InvoiceOut)
def cancel_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InvoiceService(db).cancel_invoice(invoice_id, auth_context.tenant_id)


@invoices_router.post("/{invoice_id}/payments", response_model=InvoicePaymentResult, status_code=status.HTTP_201_CREATED)
def record_invoice_payment(
    invoice_id: UUID,
    data: InvoicePaymentCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Registrar un pago. El estado de la factura se recalcula automáticamente."""
    return InvoiceService(db).record_payment(invoice_id, data, auth_context.tenant_id, auth_context.user_id)


@public_invoices_router.get("/{payment_token}", response_model=PublicInvoice)
def get_public_invoice(payment_token: str, db: Session = Depends(get_db)):
    """Consulta pública para el link de pago (sin autenticación)."""
    return InvoiceService(db).get_public_invoice(payment_token)
