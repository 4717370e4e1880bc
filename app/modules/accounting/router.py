from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.accounting.service import AccountingService
from app.modules.accounting.models import AccountType, JournalEntryStatus
from app.modules.accounting.schemas import (
    AccountCreate, AccountUpdate, AccountOut, AccountList, AccountSummary,
    JournalEntryCreate, JournalEntryOut, JournalEntryList, TrialBalance
)

accounting_router = APIRouter(prefix="/accounting", tags=["Accounting"])


@accounting_router.post("/accounts", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(
    data: AccountCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return AccountingService(db).create_account(data, auth_context.tenant_id)


@accounting_router.get("/accounts", response_model=AccountList)
def list_accounts(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    type: Optional[AccountType] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountingService(db).get_accounts(auth_context.tenant_id, limit, offset, type, is_active)


@accounting_router.get("/accounts/summary", response_model=AccountSummary)
def accounts_summary(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountingService(db).get_summary(auth_context.tenant_id)


@accounting_router.get("/accounts/{account_id}", response_model=AccountOut)
def get_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountingService(db).get_account(account_id, auth_context.tenant_id)


@accounting_router.put("/accounts/{account_id}", response_model=AccountOut)
def update_account(
    account_id: UUID,
    data: AccountUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return AccountingService(db).update_account(account_id, data, auth_context.tenant_id)


@accounting_router.delete("/accounts/{account_id}")
def delete_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return AccountingService(db).delete_account(account_id, auth_context.tenant_id)


@accounting_router.post("/journal-entries", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    data: JournalEntryCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """
    Crear asiento contable.

    - Requiere al menos dos líneas
    - La suma de débitos debe ser igual a la de créditos
    - Si el estado es `posted` se actualizan los saldos del período
    """
    return AccountingService(db).create_journal_entry(data, auth_context.tenant_id, auth_context.user_id)


@accounting_router.get("/journal-entries", response_model=JournalEntryList)
def list_journal_entries(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[JournalEntryStatus] = Query(None, alias="status"),
    source: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountingService(db).get_journal_entries(
        auth_context.tenant_id, limit, offset, status_filter, source, start_date, end_date
    )


@accounting_router.get("/journal-entries/{entry_id}", response_model=JournalEntryOut)
def get_journal_entry(
    entry_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountingService(db).get_journal_entry(entry_id, auth_context.tenant_id)


@accounting_router.get("/trial-balance", response_model=TrialBalance)
def trial_balance(
    fiscal_year: Optional[int] = Query(None, ge=2000, le=2100),
    period: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountingService(db).get_trial_balance(auth_context.tenant_id, fiscal_year, period)
