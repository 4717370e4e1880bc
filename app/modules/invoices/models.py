"""
Modelo de facturas con cálculo automático de totales.

`Invoice.calculate_totals()` se ejecuta en cada insert y update (listeners
before_insert / before_update), de modo que impuesto, descuento, total, saldo
y estado siempre quedan consistentes con subtotal y amount_paid.
"""
from app.database.database import Base
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Enum, Date, Text, JSON, UniqueConstraint, event
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime, date, timezone
from decimal import Decimal
import enum
from app.common.mixins import BaseMixin
from app.common.validators import money


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceSourceType(str, enum.Enum):
    JOB = "job"
    SALE = "sale"
    PRESCRIPTION = "prescription"
    MANUAL = "manual"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Invoice(Base, BaseMixin):
    __tablename__ = "invoices"

    invoice_number = Column(String(50), nullable=False, index=True)
    job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id"), nullable=True, index=True)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id"), nullable=True, index=True)
    source_type = Column(Enum(InvoiceSourceType), nullable=False, default=InvoiceSourceType.MANUAL)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)

    invoice_date = Column(Date, nullable=False, default=date.today)
    due_date = Column(Date, nullable=True)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)  # porcentaje
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_type = Column(Enum(DiscountType), nullable=True)
    discount_value = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_reason = Column(String(255), nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.DRAFT, index=True)
    payment_terms = Column(String(100), nullable=False, default="Due on Receipt")
    items = Column(JSON, nullable=False, default=list)  # [{description, category, quantity, unit_price, total}]
    notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)

    sent_date = Column(DateTime(timezone=True), nullable=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    payment_token = Column(String(64), nullable=True, unique=True, index=True)

    # Relationships
    customer = relationship("Customer", back_populates="invoices")
    job = relationship("Job", back_populates="invoices")
    sale = relationship("Sale", foreign_keys=[sale_id])

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoice_tenant_number"),
    )

    def calculate_totals(self):
        """Deriva impuesto, descuento, total, saldo y estado a partir del subtotal."""
        subtotal = money(self.subtotal)
        tax_rate = Decimal(str(self.tax_rate or 0))
        discount_value = money(self.discount_value)
        amount_paid = money(self.amount_paid)

        tax_amount = money(subtotal * tax_rate / Decimal("100"))
        if self.discount_type == DiscountType.PERCENTAGE:
            discount_amount = money(subtotal * discount_value / Decimal("100"))
        else:
            discount_amount = discount_value

        total_amount = money(subtotal + tax_amount - discount_amount)
        balance = money(total_amount - amount_paid)

        self.subtotal = subtotal
        self.tax_amount = tax_amount
        self.discount_amount = discount_amount
        self.total_amount = total_amount
        self.amount_paid = amount_paid
        self.balance = balance

        if self.status == InvoiceStatus.CANCELLED:
            return

        due_date = self.due_date
        if isinstance(due_date, datetime):
            due_date = due_date.date()

        if balance <= 0 and amount_paid > 0:
            self.status = InvoiceStatus.PAID
            if not self.paid_date:
                self.paid_date = datetime.now(timezone.utc)
        elif amount_paid > 0 and balance > 0:
            self.status = InvoiceStatus.PARTIAL
        elif due_date and due_date < date.today() and self.status != InvoiceStatus.PAID:
            self.status = InvoiceStatus.OVERDUE


@event.listens_for(Invoice, "before_insert")
@event.listens_for(Invoice, "before_update")
def apply_invoice_totals(mapper, connection, target):
    target.calculate_totals()
