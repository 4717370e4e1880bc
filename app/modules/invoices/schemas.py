from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.invoices.models import InvoiceStatus, InvoiceSourceType, DiscountType
from app.modules.payments.models import PaymentMethod


class InvoiceItem(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    total: Optional[Decimal] = None

    @model_validator(mode="after")
    def compute_total(self):
        self.total = (self.quantity * self.unit_price).quantize(Decimal("0.01"))
        return self


class InvoiceCreate(BaseModel):
    customer_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    items: List[InvoiceItem] = []
    subtotal: Optional[Decimal] = Field(None, ge=0, description="Solo se usa cuando no hay items")
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    discount_reason: Optional[str] = Field(None, max_length=255)
    payment_terms: str = Field("Due on Receipt", max_length=100)
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT


class InvoiceUpdate(BaseModel):
    customer_id: Optional[UUID] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[InvoiceItem]] = None
    subtotal: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    discount_reason: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    status: Optional[InvoiceStatus] = None


class InvoiceOut(BaseModel):
    id: UUID
    tenant_id: UUID
    invoice_number: str
    job_id: Optional[UUID] = None
    sale_id: Optional[UUID] = None
    source_type: InvoiceSourceType
    customer_id: Optional[UUID] = None
    invoice_date: date
    due_date: Optional[date] = None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal
    discount_amount: Decimal
    discount_reason: Optional[str] = None
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: InvoiceStatus
    payment_terms: str
    items: List[Dict[str, Any]] = []
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    sent_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    payment_token: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvoiceCustomerSummary(BaseModel):
    id: UUID
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class InvoiceJobSummary(BaseModel):
    id: UUID
    job_number: str
    title: str
    status: str

    class Config:
        from_attributes = True


class InvoiceDetail(InvoiceOut):
    customer: Optional[InvoiceCustomerSummary] = None
    job: Optional[InvoiceJobSummary] = None


class InvoiceList(BaseModel):
    items: List[InvoiceOut]
    total: int
    limit: int
    offset: int


class InvoicePaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_date: Optional[date] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class InvoicePaymentResult(BaseModel):
    invoice: InvoiceOut
    payment_id: UUID
    payment_number: str


class InvoiceStats(BaseModel):
    total_invoices: int
    paid: int
    unpaid: int
    overdue: int
    total_revenue: Decimal
    outstanding_amount: Decimal


class PublicInvoice(BaseModel):
    invoice_number: str
    total_amount: Decimal
    balance: Decimal
    status: InvoiceStatus
    due_date: Optional[date] = None
    currency: str
    business_name: Optional[str] = None
