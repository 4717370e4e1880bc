from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import datetime

from app.modules.inventory.models import InventoryMovementType


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=100)
    category_id: Optional[UUID] = None
    unit: str = Field("unit", max_length=30)
    quantity_on_hand: Decimal = Field(Decimal("0"), ge=0)
    reorder_level: Decimal = Field(Decimal("0"), ge=0)
    preferred_vendor_id: Optional[UUID] = None
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    location: Optional[str] = Field(None, max_length=100)


class ItemUpdate(BaseModel):
    """La cantidad solo cambia mediante movimientos."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    sku: Optional[str] = None
    category_id: Optional[UUID] = None
    unit: Optional[str] = None
    reorder_level: Optional[Decimal] = Field(None, ge=0)
    preferred_vendor_id: Optional[UUID] = None
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = None
    is_active: Optional[bool] = None


class ItemOut(BaseModel):
    id: UUID
    name: str
    sku: Optional[str] = None
    category_id: Optional[UUID] = None
    unit: str
    quantity_on_hand: Decimal
    reorder_level: Decimal
    preferred_vendor_id: Optional[UUID] = None
    unit_cost: Decimal
    location: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ItemList(BaseModel):
    items: List[ItemOut]
    total: int
    limit: int
    offset: int


class RestockRequest(BaseModel):
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class AdjustRequest(BaseModel):
    quantity_delta: Optional[Decimal] = None
    new_quantity: Optional[Decimal] = Field(None, ge=0)
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self):
        if self.quantity_delta is None and self.new_quantity is None:
            raise ValueError("quantity_delta or new_quantity is required")
        return self


class UsageRequest(BaseModel):
    job_id: UUID
    quantity: Decimal = Field(..., gt=0)
    notes: Optional[str] = None


class MovementOut(BaseModel):
    id: UUID
    item_id: UUID
    type: InventoryMovementType
    quantity_delta: Decimal
    previous_quantity: Decimal
    new_quantity: Decimal
    unit_cost: Optional[Decimal] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    job_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    occurred_at: datetime

    class Config:
        from_attributes = True


class MovementResult(BaseModel):
    item: ItemOut
    movement: MovementOut


class CategoryCount(BaseModel):
    category_id: Optional[UUID] = None
    category_name: Optional[str] = None
    item_count: int


class InventorySummary(BaseModel):
    total_items: int
    total_quantity: Decimal
    inventory_value: Decimal
    low_stock_count: int
    by_category: List[CategoryCount]
