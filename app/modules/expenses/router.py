from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.expenses.service import ExpenseService
from app.modules.expenses.models import ExpenseStatus
from app.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseOut, ExpenseList, ExpenseStats

expenses_router = APIRouter(prefix="/expenses", tags=["Expenses"])


@expenses_router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ExpenseService(db).create_expense(data, auth_context.tenant_id, auth_context.user_id)


@expenses_router.get("", response_model=ExpenseList)
def list_expenses(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    category: Optional[str] = None,
    status_filter: Optional[ExpenseStatus] = Query(None, alias="status"),
    vendor_id: Optional[UUID] = None,
    job_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ExpenseService(db).get_expenses(
        auth_context.tenant_id, limit, offset, category, status_filter, vendor_id, job_id, start_date, end_date
    )


@expenses_router.get("/stats", response_model=ExpenseStats)
def expense_stats(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ExpenseService(db).get_stats(auth_context.tenant_id)


@expenses_router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ExpenseService(db).get_expense(expense_id, auth_context.tenant_id)


@expenses_router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: UUID,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ExpenseService(db).update_expense(expense_id, data, auth_context.tenant_id)


@expenses_router.delete("/{expense_id}")
def delete_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ExpenseService(db).delete_expense(expense_id, auth_context.tenant_id)
