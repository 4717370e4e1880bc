"""
Plantillas de precios y cálculo de cotizaciones rápidas.

Orden del cálculo: base + precio por unidad × cantidad + preparación; sobre ese
subtotal se aplica el primer tramo de descuento que contiene la cantidad y
después se suman las opciones elegidas (sin descuento).
"""
from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.pricing.models import PricingTemplate
from app.modules.pricing.schemas import (
    PricingTemplateCreate, PricingTemplateUpdate, PricingTemplateList,
    PriceCalculationRequest, PriceCalculation, PriceBreakdown, AppliedDiscount
)
from app.common.validators import money

logger = logging.getLogger(__name__)


JSON_FIELDS = ("discount_tiers", "additional_options")


def _values(data, exclude_unset: bool = False) -> dict:
    values = data.model_dump(exclude_unset=exclude_unset)
    for field in JSON_FIELDS:
        if field in values:
            values[field] = [item.model_dump(mode="json") for item in getattr(data, field) or []]
    return values


def _in_range(quantity: int, low: Optional[int], high: Optional[int]) -> bool:
    return (low is None or quantity >= low) and (high is None or quantity <= high)


class PricingService:
    def __init__(self, db: Session):
        self.db = db

    def create_template(self, data: PricingTemplateCreate, tenant_id: UUID) -> PricingTemplate:
        template = PricingTemplate(tenant_id=tenant_id, **_values(data))
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        logger.info(f"Pricing template '{template.name}' created for tenant {tenant_id}")
        return template

    def get_templates(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        category: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> PricingTemplateList:
        query = self.db.query(PricingTemplate).filter(PricingTemplate.tenant_id == tenant_id)
        if category:
            query = query.filter(PricingTemplate.category == category)
        if is_active is not None:
            query = query.filter(PricingTemplate.is_active == is_active)

        total = query.count()
        items = query.order_by(PricingTemplate.created_at.desc()).offset(offset).limit(limit).all()
        return PricingTemplateList(items=items, total=total, limit=limit, offset=offset)

    def get_template(self, template_id: UUID, tenant_id: UUID) -> PricingTemplate:
        template = self.db.query(PricingTemplate).filter(
            PricingTemplate.id == template_id,
            PricingTemplate.tenant_id == tenant_id
        ).first()
        if not template:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pricing template not found")
        return template

    def update_template(self, template_id: UUID, data: PricingTemplateUpdate, tenant_id: UUID) -> PricingTemplate:
        template = self.get_template(template_id, tenant_id)
        for field, value in _values(data, exclude_unset=True).items():
            setattr(template, field, value)
        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template_id: UUID, tenant_id: UUID) -> dict:
        template = self.get_template(template_id, tenant_id)
        self.db.delete(template)
        self.db.commit()
        return {"message": "Pricing template deleted", "id": str(template_id)}

    def find_template(self, data: PriceCalculationRequest, tenant_id: UUID) -> PricingTemplate:
        """Primera plantilla activa que coincide con los criterios dados y admite la cantidad."""
        query = self.db.query(PricingTemplate).filter(
            PricingTemplate.tenant_id == tenant_id,
            PricingTemplate.is_active.is_(True)
        )
        if data.job_type:
            query = query.filter(PricingTemplate.job_type == data.job_type)
        if data.paper_type:
            query = query.filter(PricingTemplate.paper_type == data.paper_type)
        if data.paper_size:
            query = query.filter(PricingTemplate.paper_size == data.paper_size)
        if data.color_type:
            query = query.filter(PricingTemplate.color_type == data.color_type)

        for template in query.order_by(PricingTemplate.created_at, PricingTemplate.name):
            if _in_range(data.quantity, template.minimum_quantity, template.maximum_quantity):
                return template
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pricing template found for the given criteria"
        )

    def calculate(self, data: PriceCalculationRequest, tenant_id: UUID) -> PriceCalculation:
        template = self.find_template(data, tenant_id)
        quantity = data.quantity

        base_price = money(template.base_price)
        unit_price = money(money(template.price_per_unit) * quantity)
        setup_fee = money(template.setup_fee)
        subtotal = base_price + unit_price + setup_fee

        applied = None
        discount = Decimal("0.00")
        for tier in template.discount_tiers or []:
            if _in_range(quantity, tier.get("min_quantity"), tier.get("max_quantity")):
                percent = Decimal(str(tier["discount_percent"]))
                discount = money(subtotal * percent / 100)
                applied = AppliedDiscount(
                    min_quantity=tier["min_quantity"],
                    max_quantity=tier.get("max_quantity"),
                    percentage=percent,
                    amount=discount,
                    reason=f"Volume discount ({tier['min_quantity']}+ units = {percent}% off)"
                )
                break

        options = {option["name"]: money(option["price"]) for option in template.additional_options or []}
        options_total = sum((options[name] for name in data.additional_options if name in options), Decimal("0.00"))
        unknown = [name for name in data.additional_options if name not in options]

        final_price = money(subtotal - discount + options_total)
        return PriceCalculation(
            template_id=template.id,
            template_name=template.name,
            quantity=quantity,
            calculated_price=final_price,
            breakdown=PriceBreakdown(
                base_price=base_price,
                unit_price=unit_price,
                setup_fee=setup_fee,
                subtotal=money(subtotal),
                discount=discount,
                additional_options=money(options_total),
                final_price=final_price
            ),
            applied_discount=applied,
            unknown_options=unknown
        )
