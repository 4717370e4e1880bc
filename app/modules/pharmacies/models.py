from app.database.database import Base
from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, Enum, Text, JSON, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
import enum
from app.common.mixins import BaseMixin, TimestampMixin


class DrugType(str, enum.Enum):
    PRESCRIPTION = "prescription"
    OTC = "otc"
    CONTROLLED = "controlled"
    HERBAL = "herbal"
    SUPPLEMENT = "supplement"


class PrescriptionStatus(str, enum.Enum):
    PENDING = "pending"
    FILLED = "filled"
    PARTIALLY_FILLED = "partially_filled"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PrescriptionItemStatus(str, enum.Enum):
    PENDING = "pending"
    FILLED = "filled"
    PARTIALLY_FILLED = "partially_filled"
    UNAVAILABLE = "unavailable"
    CANCELLED = "cancelled"


class Pharmacy(Base, BaseMixin):
    __tablename__ = "pharmacies"

    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    license_number = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    drugs = relationship("Drug", back_populates="pharmacy")

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_pharmacy_tenant_code"),
    )


class Drug(Base, BaseMixin):
    __tablename__ = "drugs"

    pharmacy_id = Column(UUID(as_uuid=True), ForeignKey("pharmacies.id"), nullable=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    generic_name = Column(String(200), nullable=True, index=True)
    brand_name = Column(String(200), nullable=True)
    sku = Column(String(100), nullable=True)
    barcode = Column(String(100), nullable=True)
    drug_type = Column(Enum(DrugType), nullable=False, default=DrugType.OTC)
    schedule = Column(String(50), nullable=True)

    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)
    quantity_on_hand = Column(Numeric(12, 2), nullable=False, default=0)
    reorder_level = Column(Numeric(12, 2), nullable=False, default=0)
    unit = Column(String(30), nullable=False, default="tablet")

    strength = Column(String(50), nullable=True)
    form = Column(String(50), nullable=True)
    manufacturer = Column(String(200), nullable=True)
    supplier = Column(String(200), nullable=True)
    expiry_date = Column(Date, nullable=True, index=True)
    batch_number = Column(String(100), nullable=True)
    interactions = Column(JSON, nullable=False, default=list)  # nombres genéricos
    is_active = Column(Boolean, nullable=False, default=True)

    pharmacy = relationship("Pharmacy", back_populates="drugs")

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_drug_tenant_sku"),
    )


class Prescription(Base, BaseMixin):
    __tablename__ = "prescriptions"

    prescription_number = Column(String(50), nullable=False, index=True)
    pharmacy_id = Column(UUID(as_uuid=True), ForeignKey("pharmacies.id"), nullable=True, index=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)

    prescriber_name = Column(String(200), nullable=True)
    prescriber_license = Column(String(100), nullable=True)
    prescriber_phone = Column(String(30), nullable=True)
    prescription_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    status = Column(Enum(PrescriptionStatus), nullable=False, default=PrescriptionStatus.PENDING, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    invoice_id = Column(
        UUID(as_uuid=True),
        ForeignKey("invoices.id", use_alter=True, name="fk_prescriptions_invoice_id"),
        nullable=True
    )
    filled_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    filled_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    pharmacy = relationship("Pharmacy")
    customer = relationship("Customer")
    items = relationship("PrescriptionItem", back_populates="prescription", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("tenant_id", "prescription_number", name="uq_prescription_tenant_number"),
    )


class PrescriptionItem(Base, TimestampMixin):
    __tablename__ = "prescription_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    prescription_id = Column(UUID(as_uuid=True), ForeignKey("prescriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    drug_id = Column(UUID(as_uuid=True), ForeignKey("drugs.id"), nullable=False)
    drug_name = Column(String(200), nullable=False)
    strength = Column(String(50), nullable=True)
    form = Column(String(50), nullable=True)
    quantity = Column(Numeric(12, 2), nullable=False)
    quantity_filled = Column(Numeric(12, 2), nullable=False, default=0)
    unit = Column(String(30), nullable=True)
    dosage = Column(String(100), nullable=True)
    duration = Column(String(100), nullable=True)
    instructions = Column(Text, nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(Enum(PrescriptionItemStatus), nullable=False, default=PrescriptionItemStatus.PENDING)

    prescription = relationship("Prescription", back_populates="items")
    drug = relationship("Drug")
