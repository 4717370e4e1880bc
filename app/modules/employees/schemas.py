from pydantic import BaseModel, EmailStr, Field, AliasChoices, field_validator
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.employees.models import EmploymentType, EmployeeStatus, SalaryType, PayFrequency
from app.modules.customers.schemas import normalize_optional_phone


class EmployeeCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    job_title: Optional[str] = Field(None, max_length=150)
    department: Optional[str] = Field(None, max_length=100)
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    hire_date: Optional[date] = None
    salary_type: SalaryType = SalaryType.SALARY
    salary_amount: Decimal = Field(Decimal("0"), ge=0)
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    bank_name: Optional[str] = None
    bank_account_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    status: Optional[EmployeeStatus] = None
    hire_date: Optional[date] = None
    end_date: Optional[date] = None
    salary_type: Optional[SalaryType] = None
    salary_amount: Optional[Decimal] = Field(None, ge=0)
    pay_frequency: Optional[PayFrequency] = None
    bank_name: Optional[str] = None
    bank_account_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class EmployeeOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    employment_type: EmploymentType
    status: EmployeeStatus
    hire_date: Optional[date] = None
    end_date: Optional[date] = None
    salary_type: SalaryType
    salary_amount: Decimal
    pay_frequency: PayFrequency
    bank_name: Optional[str] = None
    bank_account_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class EmployeeList(BaseModel):
    items: List[EmployeeOut]
    total: int
    limit: int
    offset: int
