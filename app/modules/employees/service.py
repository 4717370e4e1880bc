from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.employees.models import Employee, EmployeeStatus
from app.modules.employees.schemas import EmployeeCreate, EmployeeUpdate, EmployeeList
from app.common.validators import money


class EmployeeService:
    def __init__(self, db: Session):
        self.db = db

    def create_employee(self, data: EmployeeCreate, tenant_id: UUID) -> Employee:
        employee = Employee(
            tenant_id=tenant_id,
            metadata_=data.metadata,
            **data.model_dump(exclude={"metadata", "salary_amount"}),
            salary_amount=money(data.salary_amount)
        )
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def get_employees(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = False
    ) -> EmployeeList:
        query = self.db.query(Employee).filter(Employee.tenant_id == tenant_id)
        if not include_inactive:
            query = query.filter(Employee.is_active.is_(True))
        if status_filter:
            query = query.filter(Employee.status == status_filter)
        if department:
            query = query.filter(Employee.department == department)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Employee.first_name.ilike(term),
                Employee.last_name.ilike(term),
                Employee.email.ilike(term),
                Employee.job_title.ilike(term)
            ))

        total = query.count()
        items = query.order_by(Employee.last_name, Employee.first_name).offset(offset).limit(limit).all()
        return EmployeeList(items=items, total=total, limit=limit, offset=offset)

    def get_employee(self, employee_id: UUID, tenant_id: UUID) -> Employee:
        employee = self.db.query(Employee).filter(
            Employee.id == employee_id,
            Employee.tenant_id == tenant_id
        ).first()
        if not employee:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
        return employee

    def update_employee(self, employee_id: UUID, data: EmployeeUpdate, tenant_id: UUID) -> Employee:
        employee = self.get_employee(employee_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if "metadata" in update_data:
            employee.metadata_ = update_data.pop("metadata")
        if "salary_amount" in update_data and update_data["salary_amount"] is not None:
            update_data["salary_amount"] = money(update_data["salary_amount"])
        for field, value in update_data.items():
            setattr(employee, field, value)
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def archive_employee(self, employee_id: UUID, tenant_id: UUID) -> Employee:
        """Baja del empleado: inactivo, terminado y con fecha de salida hoy."""
        employee = self.get_employee(employee_id, tenant_id)
        employee.archive()
        employee.status = EmployeeStatus.TERMINATED
        employee.end_date = date.today()
        self.db.commit()
        self.db.refresh(employee)
        return employee
