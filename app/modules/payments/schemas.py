from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.payments.models import PaymentType, PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    type: PaymentType
    customer_id: Optional[UUID] = None
    vendor_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_date: Optional[date] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    status: PaymentStatus = PaymentStatus.COMPLETED
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_counterparty(self):
        if self.type == PaymentType.EXPENSE and self.customer_id:
            raise ValueError("Expense payments are linked to vendors, not customers")
        if self.type == PaymentType.INCOME and self.vendor_id:
            raise ValueError("Income payments are linked to customers, not vendors")
        return self


class PaymentUpdate(BaseModel):
    notes: Optional[str] = None
    status: Optional[PaymentStatus] = None
    reference_number: Optional[str] = Field(None, max_length=100)


class PaymentOut(BaseModel):
    id: UUID
    tenant_id: UUID
    payment_number: str
    type: PaymentType
    customer_id: Optional[UUID] = None
    vendor_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: date
    reference_number: Optional[str] = None
    status: PaymentStatus
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentList(BaseModel):
    items: List[PaymentOut]
    total: int
    limit: int
    offset: int


class PaymentTypeStat(BaseModel):
    type: PaymentType
    count: int
    total: Decimal


class PaymentStats(BaseModel):
    by_type: List[PaymentTypeStat]
    total_income: Decimal
    total_expense: Decimal
