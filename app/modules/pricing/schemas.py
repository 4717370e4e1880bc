from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import datetime
from app.modules.jobs.models import ColorType


class DiscountTier(BaseModel):
    min_quantity: int = Field(..., ge=1)
    max_quantity: Optional[int] = Field(None, ge=1, description="Sin límite si falta")
    discount_percent: Decimal = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_range(self):
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValueError("max_quantity must be greater than or equal to min_quantity")
        return self


class PricingOption(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0)


class PricingTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    job_type: Optional[str] = Field(None, max_length=100)
    paper_type: Optional[str] = Field(None, max_length=100)
    paper_size: Optional[str] = Field(None, max_length=50)
    color_type: Optional[ColorType] = None
    base_price: Decimal = Field(..., ge=0)
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    minimum_quantity: int = Field(1, ge=1)
    maximum_quantity: Optional[int] = Field(None, ge=1)
    setup_fee: Decimal = Field(Decimal("0"), ge=0)
    discount_tiers: List[DiscountTier] = []
    additional_options: List[PricingOption] = []
    description: Optional[str] = None
    is_active: bool = True


class PricingTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    job_type: Optional[str] = None
    paper_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[ColorType] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    minimum_quantity: Optional[int] = Field(None, ge=1)
    maximum_quantity: Optional[int] = Field(None, ge=1)
    setup_fee: Optional[Decimal] = Field(None, ge=0)
    discount_tiers: Optional[List[DiscountTier]] = None
    additional_options: Optional[List[PricingOption]] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class PricingTemplateOut(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    category: str
    job_type: Optional[str] = None
    paper_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[ColorType] = None
    base_price: Decimal
    price_per_unit: Optional[Decimal] = None
    minimum_quantity: int
    maximum_quantity: Optional[int] = None
    setup_fee: Decimal
    discount_tiers: List[DiscountTier] = []
    additional_options: List[PricingOption] = []
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PricingTemplateList(BaseModel):
    items: List[PricingTemplateOut]
    total: int
    limit: int
    offset: int


class PriceCalculationRequest(BaseModel):
    job_type: Optional[str] = None
    paper_type: Optional[str] = None
    paper_size: Optional[str] = None
    color_type: Optional[ColorType] = None
    quantity: int = Field(..., ge=1)
    additional_options: List[str] = Field([], description="Nombres de opciones de la plantilla")


class AppliedDiscount(BaseModel):
    min_quantity: int
    max_quantity: Optional[int] = None
    percentage: Decimal
    amount: Decimal
    reason: str


class PriceBreakdown(BaseModel):
    base_price: Decimal
    unit_price: Decimal
    setup_fee: Decimal
    subtotal: Decimal
    discount: Decimal
    additional_options: Decimal
    final_price: Decimal


class PriceCalculation(BaseModel):
    template_id: UUID
    template_name: str
    quantity: int
    calculated_price: Decimal
    breakdown: PriceBreakdown
    applied_discount: Optional[AppliedDiscount] = None
    unknown_options: List[str] = []
