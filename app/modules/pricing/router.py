from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.pricing.service import PricingService
from app.modules.pricing.schemas import (
    PricingTemplateCreate, PricingTemplateUpdate, PricingTemplateOut, PricingTemplateList,
    PriceCalculationRequest, PriceCalculation
)

pricing_router = APIRouter(prefix="/pricing", tags=["Pricing"])


@pricing_router.post("", response_model=PricingTemplateOut, status_code=status.HTTP_201_CREATED)
def create_pricing_template(
    data: PricingTemplateCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PricingService(db).create_template(data, auth_context.tenant_id)


@pricing_router.get("", response_model=PricingTemplateList)
def list_pricing_templates(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    category: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PricingService(db).get_templates(auth_context.tenant_id, limit, offset, category, is_active)


@pricing_router.post("/calculate", response_model=PriceCalculation)
def calculate_price(
    data: PriceCalculationRequest,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Precio de un trabajo según la primera plantilla activa que coincide."""
    return PricingService(db).calculate(data, auth_context.tenant_id)


@pricing_router.get("/{template_id}", response_model=PricingTemplateOut)
def get_pricing_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PricingService(db).get_template(template_id, auth_context.tenant_id)


@pricing_router.put("/{template_id}", response_model=PricingTemplateOut)
def update_pricing_template(
    template_id: UUID,
    data: PricingTemplateUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PricingService(db).update_template(template_id, data, auth_context.tenant_id)


@pricing_router.delete("/{template_id}")
def delete_pricing_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PricingService(db).delete_template(template_id, auth_context.tenant_id)
