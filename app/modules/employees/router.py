from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.employees.service import EmployeeService
from app.modules.employees.models import EmployeeStatus
from app.modules.employees.schemas import EmployeeCreate, EmployeeUpdate, EmployeeOut, EmployeeList

employees_router = APIRouter(prefix="/employees", tags=["Employees"])


@employees_router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return EmployeeService(db).create_employee(data, auth_context.tenant_id)


@employees_router.get("", response_model=EmployeeList)
def list_employees(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    department: Optional[str] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return EmployeeService(db).get_employees(
        auth_context.tenant_id, limit, offset, status_filter, department, search, include_inactive
    )


@employees_router.get("/{employee_id}", response_model=EmployeeOut)
def get_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return EmployeeService(db).get_employee(employee_id, auth_context.tenant_id)


@employees_router.put("/{employee_id}", response_model=EmployeeOut)
def update_employee(
    employee_id: UUID,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return EmployeeService(db).update_employee(employee_id, data, auth_context.tenant_id)


@employees_router.delete("/{employee_id}", response_model=EmployeeOut)
def archive_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Archiva al empleado (no se elimina: sus registros de nómina se conservan)."""
    return EmployeeService(db).archive_employee(employee_id, auth_context.tenant_id)
