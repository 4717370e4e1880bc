from pydantic import BaseModel, EmailStr, Field, AliasChoices, field_validator
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.pharmacies.models import DrugType, PrescriptionStatus, PrescriptionItemStatus
from app.modules.customers.schemas import normalize_optional_phone


# ===== PHARMACIES =====

class PharmacyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    license_number: Optional[str] = Field(None, max_length=100)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('phone')
    @classmethod
    def validate_pharmacy_phone(cls, v):
        return normalize_optional_phone(v)


class PharmacyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    license_number: Optional[str] = None
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('phone')
    @classmethod
    def validate_pharmacy_phone(cls, v):
        return normalize_optional_phone(v)


class PharmacyOut(BaseModel):
    id: UUID
    name: str
    code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    license_number: Optional[str] = None
    is_active: bool
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


class PharmacyList(BaseModel):
    items: List[PharmacyOut]
    total: int
    limit: int
    offset: int


# ===== DRUGS =====

class DrugCreate(BaseModel):
    pharmacy_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    generic_name: Optional[str] = Field(None, max_length=200)
    brand_name: Optional[str] = Field(None, max_length=200)
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    drug_type: DrugType = DrugType.OTC
    schedule: Optional[str] = Field(None, max_length=50)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    quantity_on_hand: Decimal = Field(Decimal("0"), ge=0)
    reorder_level: Decimal = Field(Decimal("0"), ge=0)
    unit: str = Field("tablet", max_length=30)
    strength: Optional[str] = Field(None, max_length=50)
    form: Optional[str] = Field(None, max_length=50)
    manufacturer: Optional[str] = None
    supplier: Optional[str] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = Field(None, max_length=100)
    interactions: List[str] = []


class DrugUpdate(BaseModel):
    pharmacy_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    drug_type: Optional[DrugType] = None
    schedule: Optional[str] = None
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    quantity_on_hand: Optional[Decimal] = Field(None, ge=0)
    reorder_level: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = None
    strength: Optional[str] = None
    form: Optional[str] = None
    manufacturer: Optional[str] = None
    supplier: Optional[str] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None
    interactions: Optional[List[str]] = None
    is_active: Optional[bool] = None


class DrugOut(BaseModel):
    id: UUID
    pharmacy_id: Optional[UUID] = None
    name: str
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    drug_type: DrugType
    schedule: Optional[str] = None
    cost_price: Decimal
    selling_price: Decimal
    quantity_on_hand: Decimal
    reorder_level: Decimal
    unit: str
    strength: Optional[str] = None
    form: Optional[str] = None
    manufacturer: Optional[str] = None
    supplier: Optional[str] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None
    interactions: List[str] = []
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class DrugList(BaseModel):
    items: List[DrugOut]
    total: int
    limit: int
    offset: int


# ===== PRESCRIPTIONS =====

class PrescriptionItemIn(BaseModel):
    drug_id: UUID
    quantity: Decimal = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0, description="Por defecto el precio de venta del medicamento")
    dosage: Optional[str] = Field(None, max_length=100)
    duration: Optional[str] = Field(None, max_length=100)
    instructions: Optional[str] = None


class PrescriptionItemOut(BaseModel):
    id: UUID
    drug_id: UUID
    drug_name: str
    strength: Optional[str] = None
    form: Optional[str] = None
    quantity: Decimal
    quantity_filled: Decimal
    unit: Optional[str] = None
    dosage: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None
    unit_price: Decimal
    total_price: Decimal
    status: PrescriptionItemStatus

    class Config:
        from_attributes = True


class PrescriptionCreate(BaseModel):
    pharmacy_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    prescriber_name: Optional[str] = Field(None, max_length=200)
    prescriber_license: Optional[str] = Field(None, max_length=100)
    prescriber_phone: Optional[str] = Field(None, max_length=30)
    prescription_date: Optional[date] = None
    expiry_date: Optional[date] = None
    amount_paid: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: List[PrescriptionItemIn] = Field(..., min_length=1)


class PrescriptionUpdate(BaseModel):
    customer_id: Optional[UUID] = None
    prescriber_name: Optional[str] = None
    prescriber_license: Optional[str] = None
    prescriber_phone: Optional[str] = None
    prescription_date: Optional[date] = None
    expiry_date: Optional[date] = None
    amount_paid: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class PrescriptionOut(BaseModel):
    id: UUID
    prescription_number: str
    pharmacy_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    prescriber_name: Optional[str] = None
    prescriber_license: Optional[str] = None
    prescriber_phone: Optional[str] = None
    prescription_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: PrescriptionStatus
    total_amount: Decimal
    amount_paid: Decimal
    invoice_id: Optional[UUID] = None
    filled_by: Optional[UUID] = None
    filled_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[PrescriptionItemOut] = []

    class Config:
        from_attributes = True


class PrescriptionList(BaseModel):
    items: List[PrescriptionOut]
    total: int
    limit: int
    offset: int
