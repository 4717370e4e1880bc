from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import datetime
from app.modules.customers.schemas import normalize_optional_phone
from app.modules.vendors.models import PriceListItemType


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    website: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str = "USA"
    tax_id: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    payment_terms: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    tax_id: Optional[str] = None
    category: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class VendorOut(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str
    tax_id: Optional[str] = None
    category: Optional[str] = None
    payment_terms: Optional[str] = None
    balance: Decimal
    notes: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VendorList(BaseModel):
    items: List[VendorOut]
    total: int
    limit: int
    offset: int


# ===== LISTA DE PRECIOS =====

class PriceListItemCreate(BaseModel):
    item_type: PriceListItemType = PriceListItemType.SERVICE
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    unit: str = Field("unit", min_length=1, max_length=50)
    image_url: Optional[str] = None


class PriceListItemUpdate(BaseModel):
    item_type: Optional[PriceListItemType] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class PriceListItemOut(BaseModel):
    id: UUID
    vendor_id: UUID
    item_type: PriceListItemType
    name: str
    description: Optional[str] = None
    price: Decimal
    unit: str
    image_url: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
