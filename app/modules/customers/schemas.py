from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import datetime
from app.common.validators import validate_phone, format_to_e164


def normalize_optional_phone(v):
    if v is None or str(v).strip() == "":
        return None
    if not validate_phone(v):
        raise ValueError("Invalid phone number")
    return format_to_e164(v)


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: str = Field("USA", max_length=100)
    tax_id: Optional[str] = Field(None, max_length=50)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    how_did_you_hear: Optional[str] = Field(None, max_length=100)
    referral_name: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    tax_id: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    how_did_you_hear: Optional[str] = None
    referral_name: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return normalize_optional_phone(v)


class CustomerOut(CustomerBase):
    id: UUID
    tenant_id: UUID
    balance: Decimal
    is_active: bool
    sabito_customer_id: Optional[str] = None
    sabito_source_type: Optional[str] = None
    sabito_business_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # Los datos guardados no se revalidan
    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return v

    class Config:
        from_attributes = True


class CustomerList(BaseModel):
    items: List[CustomerOut]
    total: int
    limit: int
    offset: int


class BalanceSyncResult(BaseModel):
    synced: int
