from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, MANAGER_ROLES
from app.modules.payroll.service import PayrollService
from app.modules.payroll.models import PayrollRunStatus
from app.modules.payroll.schemas import PayrollRunCreate, PayrollRunDetail, PayrollRunList

payroll_router = APIRouter(prefix="/payroll", tags=["Payroll"])


@payroll_router.post("/runs", response_model=PayrollRunDetail, status_code=status.HTTP_201_CREATED)
def create_payroll_run(
    data: PayrollRunCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """
    Calcular una corrida de nómina para los empleados activos.

    - **employee_ids**: opcional, limita la corrida a esos empleados
    """
    return PayrollService(db).create_run(data, auth_context.tenant_id, auth_context.user_id)


@payroll_router.get("/runs", response_model=PayrollRunList)
def list_payroll_runs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[PayrollRunStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PayrollService(db).get_runs(auth_context.tenant_id, limit, offset, status_filter)


@payroll_router.get("/runs/{run_id}", response_model=PayrollRunDetail)
def get_payroll_run(
    run_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PayrollService(db).get_run(run_id, auth_context.tenant_id)


@payroll_router.post("/runs/{run_id}/post", response_model=PayrollRunDetail)
def post_payroll_run(
    run_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Contabilizar la corrida. Requiere las cuentas 5000, 5100, 2000, 2100 y 2200."""
    return PayrollService(db).post_run(run_id, auth_context.tenant_id, auth_context.user_id)
