from app.database.database import Base
from sqlalchemy import Column, String, Boolean, Date, ForeignKey, Numeric, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from datetime import date
import enum
from app.common.mixins import BaseMixin
from app.modules.payments.models import PaymentMethod


class ExpenseStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class RecurringFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Expense(Base, BaseMixin):
    __tablename__ = "expenses"

    expense_number = Column(String(50), nullable=False)
    vendor_id = Column(UUID(as_uuid=True), ForeignKey("vendors.id"), nullable=True, index=True)
    job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id"), nullable=True, index=True)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False, default=date.today)
    payment_method = Column(Enum(PaymentMethod), nullable=True)
    status = Column(Enum(ExpenseStatus), nullable=False, default=ExpenseStatus.PENDING)
    receipt_url = Column(String(500), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(Enum(RecurringFrequency), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    vendor = relationship("Vendor")

    __table_args__ = (
        UniqueConstraint("tenant_id", "expense_number", name="uq_expense_tenant_number"),
    )
