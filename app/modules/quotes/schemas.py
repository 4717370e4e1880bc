from pydantic import BaseModel, Field, AliasChoices
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.quotes.models import QuoteStatus


class QuoteItemIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    metadata: Optional[Dict[str, Any]] = None


class QuoteItemOut(BaseModel):
    id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal
    total: Decimal
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))

    class Config:
        from_attributes = True


class QuoteCreate(BaseModel):
    customer_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    items: List[QuoteItemIn] = Field(..., min_length=1)


class QuoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[QuoteStatus] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    items: Optional[List[QuoteItemIn]] = None


class QuoteOut(BaseModel):
    id: UUID
    tenant_id: UUID
    quote_number: str
    customer_id: UUID
    title: str
    description: Optional[str] = None
    status: QuoteStatus
    valid_until: Optional[date] = None
    subtotal: Decimal
    discount_total: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    accepted_at: Optional[datetime] = None
    created_at: datetime
    items: List[QuoteItemOut] = []

    class Config:
        from_attributes = True


class QuoteList(BaseModel):
    items: List[QuoteOut]
    total: int
    limit: int
    offset: int


class QuoteConversionResult(BaseModel):
    quote: QuoteOut
    job_id: UUID
    job_number: str
    invoice_id: Optional[UUID] = None
