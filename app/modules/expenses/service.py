from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.expenses.models import Expense, ExpenseStatus
from app.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseList, ExpenseStats, ExpenseCategoryStat
from app.modules.vendors.models import Vendor
from app.modules.jobs.models import Job
from app.common.scoping import ensure_tenant_row
from app.common.sequences import next_document_number
from app.common.validators import money


class ExpenseService:
    def __init__(self, db: Session):
        self.db = db

    def _check_vendor(self, vendor_id: Optional[UUID], tenant_id: UUID):
        if vendor_id and not self.db.query(Vendor.id).filter(
            Vendor.id == vendor_id, Vendor.tenant_id == tenant_id
        ).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")

    def create_expense(self, data: ExpenseCreate, tenant_id: UUID, user_id: UUID) -> Expense:
        self._check_vendor(data.vendor_id, tenant_id)
        ensure_tenant_row(self.db, Job, data.job_id, tenant_id, "Job")
        expense = Expense(
            tenant_id=tenant_id,
            expense_number=next_document_number(self.db, tenant_id, "EXP"),
            created_by=user_id,
            **data.model_dump(exclude={"amount", "expense_date"}),
            amount=money(data.amount),
            expense_date=data.expense_date or date.today()
        )
        self.db.add(expense)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def get_expenses(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        category: Optional[str] = None,
        status_filter: Optional[ExpenseStatus] = None,
        vendor_id: Optional[UUID] = None,
        job_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> ExpenseList:
        query = self.db.query(Expense).filter(Expense.tenant_id == tenant_id)
        if category:
            query = query.filter(Expense.category == category)
        if status_filter:
            query = query.filter(Expense.status == status_filter)
        if vendor_id:
            query = query.filter(Expense.vendor_id == vendor_id)
        if job_id:
            query = query.filter(Expense.job_id == job_id)
        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)

        total = query.count()
        items = query.order_by(Expense.expense_date.desc()).offset(offset).limit(limit).all()
        return ExpenseList(items=items, total=total, limit=limit, offset=offset)

    def get_expense(self, expense_id: UUID, tenant_id: UUID) -> Expense:
        expense = self.db.query(Expense).filter(
            Expense.id == expense_id,
            Expense.tenant_id == tenant_id
        ).first()
        if not expense:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
        return expense

    def update_expense(self, expense_id: UUID, data: ExpenseUpdate, tenant_id: UUID) -> Expense:
        expense = self.get_expense(expense_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if "vendor_id" in update_data:
            self._check_vendor(update_data["vendor_id"], tenant_id)
        if "job_id" in update_data:
            ensure_tenant_row(self.db, Job, update_data["job_id"], tenant_id, "Job")
        if "amount" in update_data:
            update_data["amount"] = money(update_data["amount"])
        for field, value in update_data.items():
            setattr(expense, field, value)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def delete_expense(self, expense_id: UUID, tenant_id: UUID) -> dict:
        expense = self.get_expense(expense_id, tenant_id)
        self.db.delete(expense)
        self.db.commit()
        return {"message": "Expense deleted", "id": str(expense_id)}

    def get_stats(self, tenant_id: UUID) -> ExpenseStats:
        rows = self.db.query(
            Expense.category,
            func.count(Expense.id),
            func.coalesce(func.sum(Expense.amount), 0)
        ).filter(Expense.tenant_id == tenant_id).group_by(Expense.category).order_by(
            func.sum(Expense.amount).desc()
        ).all()

        by_category = [ExpenseCategoryStat(category=r[0], count=r[1], total=money(r[2])) for r in rows]
        return ExpenseStats(
            total_expenses=money(sum((c.total for c in by_category), 0)),
            count=sum(c.count for c in by_category),
            by_category=by_category
        )
