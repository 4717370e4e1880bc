from app.database.database import Base
from sqlalchemy import Column, String, DateTime, Text, JSON, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
import enum
from app.common.mixins import TimestampMixin


class TenantStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class TenantPlan(str, enum.Enum):
    TRIAL = "trial"
    STANDARD = "standard"
    PRO = "pro"


class BusinessType(str, enum.Enum):
    PRINTING_PRESS = "printing_press"
    SHOP = "shop"
    PHARMACY = "pharmacy"


class Tenant(Base, TimestampMixin):
    __tablename__ = "tenants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(150), nullable=False)
    slug = Column(String(160), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(Enum(TenantStatus), nullable=False, default=TenantStatus.ACTIVE)
    plan = Column(Enum(TenantPlan), nullable=False, default=TenantPlan.TRIAL)
    business_type = Column(Enum(BusinessType), nullable=False, default=BusinessType.PRINTING_PRESS)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)  # email, phone, website, signup_source
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)

    memberships = relationship("UserTenant", back_populates="tenant", cascade="all, delete-orphan")
