from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.customers.service import CustomerService
from app.modules.customers.schemas import (
    CustomerCreate, CustomerUpdate, CustomerOut, CustomerList, BalanceSyncResult
)

customers_router = APIRouter(prefix="/customers", tags=["Customers"])


@customers_router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).create_customer(data, auth_context.tenant_id)


@customers_router.get("", response_model=CustomerList)
def list_customers(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Nombre, empresa, email o teléfono"),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).get_customers(auth_context.tenant_id, limit, offset, search, is_active)


@customers_router.post("/sync-balances", response_model=BalanceSyncResult)
def sync_all_balances(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Recalcular el saldo de todos los clientes del tenant."""
    return BalanceSyncResult(synced=CustomerService(db).sync_all_balances(auth_context.tenant_id))


@customers_router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).get_customer(customer_id, auth_context.tenant_id)


@customers_router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: UUID,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).update_customer(customer_id, data, auth_context.tenant_id)


@customers_router.delete("/{customer_id}")
def delete_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Soft delete: el cliente queda inactivo."""
    return CustomerService(db).delete_customer(customer_id, auth_context.tenant_id)


@customers_router.post("/{customer_id}/restore", response_model=CustomerOut)
def restore_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Reactivar un cliente desactivado."""
    return CustomerService(db).restore_customer(customer_id, auth_context.tenant_id)


@customers_router.post("/{customer_id}/sync-balance", response_model=CustomerOut)
def sync_customer_balance(
    customer_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).sync_balance(customer_id, auth_context.tenant_id)
