from app.database.database import Base
from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, Enum, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
import enum
from app.common.mixins import BaseMixin, TimestampMixin


class SalePaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"
    CREDIT = "credit"
    OTHER = "other"


class SaleStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Shop(Base, BaseMixin):
    __tablename__ = "shops"

    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    manager_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    products = relationship("Product", back_populates="shop")
    sales = relationship("Sale", back_populates="shop")

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_shop_tenant_code"),
    )


class Product(Base, BaseMixin):
    __tablename__ = "products"

    shop_id = Column(UUID(as_uuid=True), ForeignKey("shops.id"), nullable=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    sku = Column(String(100), nullable=True)
    barcode = Column(String(100), nullable=True, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)

    quantity_on_hand = Column(Numeric(12, 2), nullable=False, default=0)
    reorder_level = Column(Numeric(12, 2), nullable=False, default=0)
    reorder_quantity = Column(Numeric(12, 2), nullable=False, default=0)
    unit = Column(String(30), nullable=False, default="pcs")

    brand = Column(String(100), nullable=True)
    supplier = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    shop = relationship("Shop", back_populates="products")
    variants = relationship(
        "ProductVariant", back_populates="product", cascade="all, delete-orphan", order_by="ProductVariant.name"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_product_tenant_sku"),
    )


class ProductVariant(Base, TimestampMixin):
    """Variante de un producto (talla, color...). Precio propio opcional y stock propio."""
    __tablename__ = "product_variants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(100), nullable=True)
    barcode = Column(String(100), nullable=True, index=True)
    cost_price = Column(Numeric(12, 2), nullable=True)
    selling_price = Column(Numeric(12, 2), nullable=True)
    quantity_on_hand = Column(Numeric(12, 2), nullable=False, default=0)
    attributes = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        UniqueConstraint("product_id", "sku", name="uq_product_variant_sku"),
    )


class Sale(Base, BaseMixin):
    """Venta de punto de venta. Totales calculados al crear; el stock se descuenta en la misma transacción."""
    __tablename__ = "sales"

    sale_number = Column(String(50), nullable=False, index=True)
    shop_id = Column(UUID(as_uuid=True), ForeignKey("shops.id"), nullable=True, index=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    payment_method = Column(Enum(SalePaymentMethod), nullable=False, default=SalePaymentMethod.CASH)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    change = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(Enum(SaleStatus), nullable=False, default=SaleStatus.COMPLETED, index=True)

    # FK circular con invoices.sale_id
    invoice_id = Column(
        UUID(as_uuid=True),
        ForeignKey("invoices.id", use_alter=True, name="fk_sales_invoice_id"),
        nullable=True
    )
    sold_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    shop = relationship("Shop", back_populates="sales")
    customer = relationship("Customer")
    invoice = relationship("Invoice", foreign_keys=[invoice_id], post_update=True)
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("tenant_id", "sale_number", name="uq_sale_tenant_number"),
    )


class SaleItem(Base, TimestampMixin):
    __tablename__ = "sale_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    product_variant_id = Column(UUID(as_uuid=True), ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(100), nullable=True)
    quantity = Column(Numeric(12, 2), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")
    variant = relationship("ProductVariant")
