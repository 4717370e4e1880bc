from app.database.database import Base
from sqlalchemy import Column, String, Integer, Numeric, Enum, Text, JSON, Boolean
from app.common.mixins import BaseMixin
from app.modules.jobs.models import ColorType


class PricingTemplate(Base, BaseMixin):
    """Tarifa por tipo de trabajo, papel, tamaño y color"""
    __tablename__ = "pricing_templates"

    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    job_type = Column(String(100), nullable=True)
    paper_type = Column(String(100), nullable=True)
    paper_size = Column(String(50), nullable=True)
    color_type = Column(Enum(ColorType), nullable=True)

    base_price = Column(Numeric(12, 2), nullable=False)
    price_per_unit = Column(Numeric(12, 2), nullable=True)
    minimum_quantity = Column(Integer, nullable=False, default=1)
    maximum_quantity = Column(Integer, nullable=True)
    setup_fee = Column(Numeric(12, 2), nullable=False, default=0)

    # [{"min_quantity": 100, "max_quantity": 499, "discount_percent": 5}]
    discount_tiers = Column(JSON, nullable=False, default=list)
    # [{"name": "Lamination", "price": 20}]
    additional_options = Column(JSON, nullable=False, default=list)

    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
