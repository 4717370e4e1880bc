from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.expenses.models import ExpenseStatus, RecurringFrequency
from app.modules.payments.models import PaymentMethod


class ExpenseCreate(BaseModel):
    vendor_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    expense_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    status: ExpenseStatus = ExpenseStatus.PENDING
    receipt_url: Optional[str] = Field(None, max_length=500)
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_recurring(self):
        if self.is_recurring and not self.recurring_frequency:
            raise ValueError("recurring_frequency is required for recurring expenses")
        return self


class ExpenseUpdate(BaseModel):
    vendor_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    expense_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[ExpenseStatus] = None
    receipt_url: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_frequency: Optional[RecurringFrequency] = None
    notes: Optional[str] = None


class ExpenseOut(BaseModel):
    id: UUID
    tenant_id: UUID
    expense_number: str
    vendor_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    category: str
    description: str
    amount: Decimal
    expense_date: date
    payment_method: Optional[PaymentMethod] = None
    status: ExpenseStatus
    receipt_url: Optional[str] = None
    is_recurring: bool
    recurring_frequency: Optional[RecurringFrequency] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseList(BaseModel):
    items: List[ExpenseOut]
    total: int
    limit: int
    offset: int


class ExpenseCategoryStat(BaseModel):
    category: str
    count: int
    total: Decimal


class ExpenseStats(BaseModel):
    total_expenses: Decimal
    count: int
    by_category: List[ExpenseCategoryStat]
