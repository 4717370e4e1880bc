from pydantic import BaseModel, EmailStr, Field, AliasChoices, field_validator
from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import date, datetime

from app.modules.leads.models import LeadStatus, LeadPriority, LeadActivityType
from app.modules.customers.schemas import normalize_optional_phone


class LeadCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    source: str = Field("unknown", max_length=100)
    status: LeadStatus = LeadStatus.NEW
    priority: LeadPriority = LeadPriority.MEDIUM
    assigned_to: Optional[UUID] = None
    next_follow_up: Optional[date] = None
    notes: Optional[str] = None
    tags: List[str] = []
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class LeadUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    source: Optional[str] = None
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    assigned_to: Optional[UUID] = None
    next_follow_up: Optional[date] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class LeadOut(BaseModel):
    id: UUID
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: str
    status: LeadStatus
    priority: LeadPriority
    assigned_to: Optional[UUID] = None
    next_follow_up: Optional[date] = None
    last_contacted_at: Optional[datetime] = None
    notes: Optional[str] = None
    tags: List[str] = []
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    converted_customer_id: Optional[UUID] = None
    converted_job_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LeadList(BaseModel):
    items: List[LeadOut]
    total: int
    limit: int
    offset: int


class LeadActivityCreate(BaseModel):
    type: LeadActivityType = LeadActivityType.NOTE
    subject: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    next_step: Optional[str] = Field(None, max_length=255)
    follow_up_date: Optional[date] = None
    update_status: Optional[LeadStatus] = Field(None, description="Nuevo estado del lead")


class LeadActivityOut(BaseModel):
    id: UUID
    lead_id: UUID
    type: LeadActivityType
    subject: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    next_step: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LeadConversionResult(BaseModel):
    lead: LeadOut
    customer_id: UUID


class LeadStatusCount(BaseModel):
    status: LeadStatus
    count: int


class LeadSummary(BaseModel):
    total_leads: int
    by_status: List[LeadStatusCount]
    upcoming_follow_ups: List[LeadOut]
