from pydantic import BaseModel, EmailStr, Field, AliasChoices, field_validator
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import datetime

from app.modules.shops.models import SalePaymentMethod, SaleStatus
from app.modules.customers.schemas import normalize_optional_phone


# ===== SHOPS =====

class ShopCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    manager_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('phone')
    @classmethod
    def validate_shop_phone(cls, v):
        return normalize_optional_phone(v)


class ShopUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    manager_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('phone')
    @classmethod
    def validate_shop_phone(cls, v):
        return normalize_optional_phone(v)


class ShopOut(BaseModel):
    id: UUID
    name: str
    code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    manager_id: Optional[UUID] = None
    is_active: bool
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


class ShopList(BaseModel):
    items: List[ShopOut]
    total: int
    limit: int
    offset: int


# ===== PRODUCTS =====

class ProductCreate(BaseModel):
    shop_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    quantity_on_hand: Decimal = Field(Decimal("0"), ge=0)
    reorder_level: Decimal = Field(Decimal("0"), ge=0)
    reorder_quantity: Decimal = Field(Decimal("0"), ge=0)
    unit: str = Field("pcs", max_length=30)
    brand: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=200)
    metadata: Optional[Dict[str, Any]] = None


class ProductUpdate(BaseModel):
    shop_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = None
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    quantity_on_hand: Optional[Decimal] = Field(None, ge=0)
    reorder_level: Optional[Decimal] = Field(None, ge=0)
    reorder_quantity: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = None
    brand: Optional[str] = None
    supplier: Optional[str] = None
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None


class ProductOut(BaseModel):
    id: UUID
    shop_id: Optional[UUID] = None
    name: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    cost_price: Decimal
    selling_price: Decimal
    quantity_on_hand: Decimal
    reorder_level: Decimal
    reorder_quantity: Decimal
    unit: str
    brand: Optional[str] = None
    supplier: Optional[str] = None
    is_active: bool
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductList(BaseModel):
    items: List[ProductOut]
    total: int
    limit: int
    offset: int


class VariantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0, description="Si falta se usa el precio del producto")
    quantity_on_hand: Decimal = Field(Decimal("0"), ge=0)
    attributes: Dict[str, Any] = {}
    metadata: Optional[Dict[str, Any]] = None


class VariantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    quantity_on_hand: Optional[Decimal] = Field(None, ge=0)
    attributes: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None


class VariantOut(BaseModel):
    id: UUID
    product_id: UUID
    name: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    cost_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    quantity_on_hand: Decimal
    attributes: Dict[str, Any] = {}
    is_active: bool
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


# ===== SALES =====

class SaleItemIn(BaseModel):
    product_id: UUID
    product_variant_id: Optional[UUID] = None
    quantity: Decimal = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0, description="Por defecto el precio de venta del producto")
    discount: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    name: Optional[str] = None


class SaleItemOut(BaseModel):
    id: UUID
    product_id: UUID
    product_variant_id: Optional[UUID] = None
    name: str
    sku: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal
    tax: Decimal
    subtotal: Decimal
    total: Decimal

    class Config:
        from_attributes = True


class SaleCreate(BaseModel):
    shop_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    items: List[SaleItemIn] = Field(..., min_length=1)
    discount: Decimal = Field(Decimal("0"), ge=0, description="Descuento adicional sobre la venta")
    payment_method: SalePaymentMethod = SalePaymentMethod.CASH
    amount_paid: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class SaleUpdate(BaseModel):
    """Solo estado, notas y metadata son editables."""
    status: Optional[SaleStatus] = None
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class SaleOut(BaseModel):
    id: UUID
    sale_number: str
    shop_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    payment_method: SalePaymentMethod
    amount_paid: Decimal
    change: Decimal
    status: SaleStatus
    invoice_id: Optional[UUID] = None
    sold_by: Optional[UUID] = None
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime
    items: List[SaleItemOut] = []

    class Config:
        from_attributes = True


class SaleList(BaseModel):
    items: List[SaleOut]
    total: int
    limit: int
    offset: int


class ReceiptShop(BaseModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class SaleReceipt(BaseModel):
    sale_number: str
    date: datetime
    shop: Optional[ReceiptShop] = None
    customer_name: Optional[str] = None
    sold_by: Optional[str] = None
    items: List[SaleItemOut]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    payment_method: SalePaymentMethod
    amount_paid: Decimal
    change: Decimal
    status: SaleStatus
