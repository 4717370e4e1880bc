from app.database.database import Base
from sqlalchemy import Column, String, Text, Numeric, Boolean, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
import enum
from app.common.mixins import BaseMixin, SoftDeleteMixin


class PriceListItemType(str, enum.Enum):
    SERVICE = "service"
    PRODUCT = "product"


class Vendor(Base, BaseMixin, SoftDeleteMixin):
    """Proveedor (papel, tintas, servicios externos)"""
    __tablename__ = "vendors"

    name = Column(String(200), nullable=False, index=True)
    company = Column(String(200), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    website = Column(String(255), nullable=True)

    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False, default="USA")

    tax_id = Column(String(50), nullable=True)
    category = Column(String(100), nullable=True, index=True)
    payment_terms = Column(String(100), nullable=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)


class VendorPriceListItem(Base, BaseMixin):
    """Servicio o producto que ofrece el proveedor, con su precio"""
    __tablename__ = "vendor_price_list_items"

    vendor_id = Column(UUID(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(Enum(PriceListItemType), nullable=False, default=PriceListItemType.SERVICE)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    unit = Column(String(50), nullable=False, default="unit")
    # URL o data URI (base64)
    image_url = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
