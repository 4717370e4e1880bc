from pydantic import BaseModel, Field, AliasChoices, model_validator
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.payroll.models import PayrollRunStatus


class PayrollRunCreate(BaseModel):
    period_start: date
    period_end: date
    pay_date: date
    employee_ids: Optional[List[UUID]] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must be on or after period_start")
        return self


class PayrollEntryOut(BaseModel):
    id: UUID
    employee_id: UUID
    employee_name: Optional[str] = None
    gross_pay: Decimal
    income_tax: Decimal
    ssnit_employee: Decimal
    ssnit_employer: Decimal
    net_pay: Decimal
    taxes: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))

    class Config:
        from_attributes = True


class PayrollRunOut(BaseModel):
    id: UUID
    period_start: date
    period_end: date
    pay_date: date
    status: PayrollRunStatus
    total_gross: Decimal
    total_net: Decimal
    total_tax: Decimal
    total_employer_contributions: Decimal
    journal_entry_id: Optional[UUID] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    posted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PayrollRunDetail(PayrollRunOut):
    entries: List[PayrollEntryOut] = []


class PayrollRunList(BaseModel):
    items: List[PayrollRunOut]
    total: int
    limit: int
    offset: int
