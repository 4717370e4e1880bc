from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.jobs.models import JobStatus, JobPriority, ColorType


class JobItemIn(BaseModel):
    category: Optional[str] = Field(None, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    paper_size: Optional[str] = Field(None, max_length=50)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    discount_reason: Optional[str] = Field(None, max_length=255)
    specifications: Optional[Dict[str, Any]] = None


class JobItemOut(BaseModel):
    id: UUID
    category: Optional[str] = None
    description: str
    paper_size: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    discount_amount: Decimal
    discount_reason: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class JobStatusHistoryOut(BaseModel):
    id: UUID
    status: JobStatus
    comment: Optional[str] = None
    changed_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class JobCreate(BaseModel):
    customer_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: JobStatus = JobStatus.NEW
    priority: JobPriority = JobPriority.MEDIUM
    job_type: Optional[str] = Field(None, max_length=100)
    quantity: Optional[int] = Field(None, ge=0)
    paper_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[ColorType] = None
    finishing_options: Optional[List[str]] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    actual_cost: Optional[Decimal] = Field(None, ge=0)
    quoted_price: Optional[Decimal] = Field(None, ge=0)
    final_price: Optional[Decimal] = Field(None, ge=0)
    order_date: Optional[date] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    assigned_to: Optional[UUID] = None
    notes: Optional[str] = None
    items: List[JobItemIn] = []


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[JobStatus] = None
    status_comment: Optional[str] = None
    priority: Optional[JobPriority] = None
    job_type: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    paper_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[ColorType] = None
    finishing_options: Optional[List[str]] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    actual_cost: Optional[Decimal] = Field(None, ge=0)
    quoted_price: Optional[Decimal] = Field(None, ge=0)
    final_price: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    assigned_to: Optional[UUID] = None
    notes: Optional[str] = None
    items: Optional[List[JobItemIn]] = None


class JobOut(BaseModel):
    id: UUID
    tenant_id: UUID
    job_number: str
    customer_id: UUID
    title: str
    description: Optional[str] = None
    status: JobStatus
    priority: JobPriority
    job_type: Optional[str] = None
    quote_id: Optional[UUID] = None
    quantity: Optional[int] = None
    paper_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[ColorType] = None
    finishing_options: Optional[List[str]] = None
    estimated_cost: Optional[Decimal] = None
    actual_cost: Optional[Decimal] = None
    quoted_price: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    order_date: Optional[date] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    completion_date: Optional[date] = None
    assigned_to: Optional[UUID] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AttachmentOut(BaseModel):
    id: str
    original_name: str
    mime_type: str
    size: int
    file_data: str
    uploaded_at: str
    uploaded_by: Optional[str] = None


class JobDetail(JobOut):
    items: List[JobItemOut] = []
    status_history: List[JobStatusHistoryOut] = []
    attachments: List[AttachmentOut] = []


class JobList(BaseModel):
    items: List[JobOut]
    total: int
    limit: int
    offset: int


class JobStatusStat(BaseModel):
    status: JobStatus
    count: int
    total_value: Decimal


class JobStats(BaseModel):
    total_jobs: int
    by_status: List[JobStatusStat]
