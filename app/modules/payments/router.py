from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.payments.service import PaymentService
from app.modules.payments.models import PaymentType, PaymentStatus
from app.modules.payments.schemas import PaymentCreate, PaymentUpdate, PaymentOut, PaymentList, PaymentStats

payments_router = APIRouter(prefix="/payments", tags=["Payments"])


@payments_router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    data: PaymentCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PaymentService(db).create_payment(data, auth_context.tenant_id, auth_context.user_id)


@payments_router.get("", response_model=PaymentList)
def list_payments(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    type: Optional[PaymentType] = None,
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = None,
    vendor_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PaymentService(db).get_payments(
        auth_context.tenant_id, limit, offset, type, status_filter, customer_id, vendor_id, start_date, end_date
    )


@payments_router.get("/stats", response_model=PaymentStats)
def payment_stats(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Pagos completados agrupados por tipo."""
    return PaymentService(db).get_stats(auth_context.tenant_id)


@payments_router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PaymentService(db).get_payment(payment_id, auth_context.tenant_id)


@payments_router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: UUID,
    data: PaymentUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PaymentService(db).update_payment(payment_id, data, auth_context.tenant_id)


@payments_router.delete("/{payment_id}")
def delete_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PaymentService(db).delete_payment(payment_id, auth_context.tenant_id)
