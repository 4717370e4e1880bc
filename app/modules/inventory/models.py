from app.database.database import Base
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Numeric, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime, timezone
import enum
from app.common.mixins import BaseMixin


class InventoryMovementType(str, enum.Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    ADJUSTMENT = "adjustment"
    RETURN = "return"
    TRANSFER = "transfer"


class InventoryCategory(Base, BaseMixin):
    __tablename__ = "inventory_categories"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    items = relationship("InventoryItem", back_populates="category")

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_inventory_category_tenant_name"),
    )


class InventoryItem(Base, BaseMixin):
    """Material de producción (papel, tinta, planchas...)"""
    __tablename__ = "inventory_items"

    name = Column(String(200), nullable=False, index=True)
    sku = Column(String(100), nullable=True)
    category_id = Column(UUID(as_uuid=True), ForeignKey("inventory_categories.id"), nullable=True, index=True)
    unit = Column(String(30), nullable=False, default="unit")
    quantity_on_hand = Column(Numeric(12, 2), nullable=False, default=0)
    reorder_level = Column(Numeric(12, 2), nullable=False, default=0)
    preferred_vendor_id = Column(UUID(as_uuid=True), ForeignKey("vendors.id"), nullable=True)
    unit_cost = Column(Numeric(12, 2), nullable=False, default=0)
    location = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    category = relationship("InventoryCategory", back_populates="items")
    movements = relationship("InventoryMovement", back_populates="item", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_inventory_item_tenant_sku"),
    )


class InventoryMovement(Base, BaseMixin):
    __tablename__ = "inventory_movements"

    item_id = Column(UUID(as_uuid=True), ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(InventoryMovementType), nullable=False)
    quantity_delta = Column(Numeric(12, 2), nullable=False)
    previous_quantity = Column(Numeric(12, 2), nullable=False)
    new_quantity = Column(Numeric(12, 2), nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=True)
    reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id"), nullable=True, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    item = relationship("InventoryItem", back_populates="movements")
